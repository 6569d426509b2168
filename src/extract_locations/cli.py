"""CLI for extracting location refs from geonames."""

from __future__ import annotations

import argparse
import logging

from common.cli_helpers import add_common_arguments, load_cli_config, run_stage, setup_logging
from extract_locations.extract_locations import extract_locations

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Extract location refs from geonames")
    parser.add_argument("source_file", help="GeoNames RDF dump (plain, .gz or .bz2)")
    parser.add_argument("dest_file", help="Gazetteer stream to write")
    add_common_arguments(parser)
    args = parser.parse_args()

    config = load_cli_config(args)
    run_stage(
        "Extracting location refs from geonames",
        lambda: extract_locations(args.source_file, args.dest_file, config),
    )


if __name__ == "__main__":
    main()
