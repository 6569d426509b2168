"""CLI running the whole pipeline from raw dumps to ranked locations."""

from __future__ import annotations

import argparse
import logging

from common.cli_helpers import add_common_arguments, load_cli_config, run_stage, setup_logging
from rank_locations.rank_locations import output_format
from run_pipeline.run_pipeline import run_all

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Rank geonames locations by the PageRank of their wikipedia pages"
    )
    parser.add_argument("wiki_dump", help="Wikipedia XML dump (.xml, .bz2, .gz)")
    parser.add_argument("geonames_dump", help="GeoNames RDF dump (plain, .gz or .bz2)")
    parser.add_argument("dest_file", help="Output file (.txt, .jsonl or .csv)")
    parser.add_argument(
        "--keep-temp",
        action="store_true",
        help="Keep intermediate record streams after a successful run",
    )
    add_common_arguments(parser)
    args = parser.parse_args()

    try:
        output_format(args.dest_file)
    except ValueError as exc:
        parser.error(str(exc))

    config = load_cli_config(args)
    run_stage(
        "Ranking locations",
        lambda: run_all(
            args.wiki_dump,
            args.geonames_dump,
            args.dest_file,
            config,
            keep_temp=args.keep_temp,
        ),
    )


if __name__ == "__main__":
    main()
