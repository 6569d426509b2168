"""CLI for materializing a corpus dump as a page-element record stream."""

from __future__ import annotations

import argparse
import logging

from common.cli_helpers import add_common_arguments, load_cli_config, run_stage, setup_logging
from common.local_io import write_records
from extract_pages.extract_pages import iter_page_elements

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Extract page records from a MediaWiki XML dump (.xml, .bz2, .gz)"
    )
    parser.add_argument("source_file", help="Wikipedia XML dump")
    parser.add_argument("dest_file", help="Page-element stream to write (.jsonl or .jsonl.gz)")
    add_common_arguments(parser)
    args = parser.parse_args()

    config = load_cli_config(args)

    def _extract() -> None:
        pages = iter_page_elements(
            args.source_file,
            title_filter=config.title_pattern,
            progress_interval=config.progress_interval,
        )
        write_records(args.dest_file, pages, queue_size=config.write_queue_size)

    run_stage("Extracting page records from wikipedia dump", _extract)


if __name__ == "__main__":
    main()
