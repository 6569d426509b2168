"""CLI for extracting the wikipedia link graph."""

from __future__ import annotations

import argparse
import logging

from build_graph.build_graph import build_graph
from common.cli_helpers import add_common_arguments, load_cli_config, run_stage, setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Extract the wikipedia link graph")
    parser.add_argument(
        "source_file",
        help="Wikipedia XML dump (.xml, .bz2, .gz) or page-element stream (.jsonl, .jsonl.gz)",
    )
    parser.add_argument("dest_file", help="Page stream to write (.jsonl or .jsonl.gz)")
    add_common_arguments(parser)
    args = parser.parse_args()

    config = load_cli_config(args)
    run_stage(
        "Extracting wikipedia graph",
        lambda: build_graph(args.source_file, args.dest_file, config),
    )


if __name__ == "__main__":
    main()
