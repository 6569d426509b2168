"""CLI for computing GeoRanks for location pages."""

from __future__ import annotations

import argparse
import logging
import os

from common.aws import BUCKET_ENV_VAR, publish_records
from common.cli_helpers import add_common_arguments, load_cli_config, run_stage, setup_logging
from rank_locations.rank_locations import output_format, rank_locations, to_output_record

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute GeoRanks for location pages")
    parser.add_argument("source_file", help="Ranked-page stream from the pagerank stage")
    parser.add_argument("geo_file", help="Gazetteer stream from the locations stage")
    parser.add_argument("dest_file", help="Output file (.txt, .jsonl or .csv)")
    parser.add_argument("--load-s3", action="store_true", help="Upload results to S3")
    add_common_arguments(parser)
    args = parser.parse_args()

    try:
        output_format(args.dest_file)
    except ValueError as exc:
        parser.error(str(exc))
    if args.load_s3 and not os.environ.get(BUCKET_ENV_VAR):
        parser.error(f"--load-s3 requires the {BUCKET_ENV_VAR} environment variable")

    config = load_cli_config(args)

    def _rank() -> None:
        matched = rank_locations(args.source_file, args.geo_file, args.dest_file, config)
        if not args.load_s3:
            return
        if not matched:
            logger.warning("No ranked locations to upload")
            return
        publish_records([to_output_record(m) for m in matched], "ranked_locations")

    run_stage("Computing GeoRanks for location pages", _rank)


if __name__ == "__main__":
    main()
