"""CLI for computing PageRank over an extracted page graph."""

from __future__ import annotations

import argparse
import logging

from common.cli_helpers import add_common_arguments, load_cli_config, run_stage, setup_logging
from rank_pages.rank_pages import rank_pages

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute PageRank for all wikipedia pages")
    parser.add_argument("source_file", help="Page stream from the graph stage")
    parser.add_argument("dest_file", help="Ranked-page stream to write")
    add_common_arguments(parser)
    args = parser.parse_args()

    config = load_cli_config(args)
    run_stage(
        "Computing PageRank for all wikipedia pages",
        lambda: rank_pages(args.source_file, args.dest_file, config),
    )


if __name__ == "__main__":
    main()
