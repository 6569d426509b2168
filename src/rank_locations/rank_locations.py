"""Join gazetteer entries with ranked pages to get the rank of geographic entities."""

from __future__ import annotations

import csv
import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Iterable, Sequence

from common.config import PipelineConfig, get_config
from common.errors import FatalIOError
from common.local_io import iter_records, open_text
from common.streaming import consume, produce
from extract_locations.models import GeoEntry, geo_entry_from_dict
from rank_locations.models import JoinStats, RankedGeoEntry
from rank_pages.models import RankedPageNode, ranked_page_from_dict

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = (".txt", ".jsonl", ".csv")
OUTPUT_FIELDS = ["id", "name", "title", "rank", "order"]


def join_locations(
    pages: Iterable[RankedPageNode],
    entries: Sequence[GeoEntry],
    log_sample_limit: int = 10,
) -> tuple[list[RankedGeoEntry], JoinStats]:
    """
    Pair gazetteer entries with the ranked page of exactly the same title.

    Titles must match exactly: aliases are not followed here. Entries without
    a matching page are dropped, not carried through unranked. When several
    pages share a title the last one wins. Pages are streamed past an index of
    the (much smaller) gazetteer, so the ranked pages never sit in memory.

    Args:
        pages: Ranked pages, any order
        entries: Gazetteer entries
        log_sample_limit: Number of hits and misses to log

    Returns:
        Tuple of (matched entries sorted by order, best first; join counters)
    """
    joined = [RankedGeoEntry(entry=entry) for entry in entries]
    by_title: dict[str, list[RankedGeoEntry]] = defaultdict(list)
    for ranked_geo in joined:
        by_title[ranked_geo.entry.title].append(ranked_geo)

    for page in pages:
        for ranked_geo in by_title.get(page.title, ()):
            ranked_geo.page = page

    stats = JoinStats()
    matched = []
    for ranked_geo in joined:
        if ranked_geo.page is None:
            if stats.missing < log_sample_limit:
                logger.info("Missing! title: '%s'", ranked_geo.entry.title)
            stats.missing += 1
            continue
        if stats.found < log_sample_limit:
            logger.info("Found! title: '%s'", ranked_geo.entry.title)
        stats.found += 1
        matched.append(ranked_geo)

    logger.info("Found: %d, Missing: %d", stats.found, stats.missing)

    logger.info("Sorting ranked locations")
    matched.sort(key=lambda ranked_geo: ranked_geo.order)
    return matched, stats


def to_output_record(ranked_geo: RankedGeoEntry) -> dict[str, Any]:
    """Flatten a matched entry into the output record shape."""
    return {
        "id": ranked_geo.entry.id,
        "name": ranked_geo.entry.name,
        "title": ranked_geo.entry.title,
        "rank": ranked_geo.rank,
        "order": ranked_geo.order,
    }


def format_text_line(ranked_geo: RankedGeoEntry) -> str:
    """Format as: <id> "<name>" <title> <rank to 10 places> <order>."""
    entry = ranked_geo.entry
    return f'{entry.id} "{entry.name}" {entry.title} {ranked_geo.rank:.10f} {ranked_geo.order}\n'


def output_format(path: str | Path) -> str:
    """Return the output format implied by path's extension.

    Raises:
        ValueError: If the extension isn't .txt, .jsonl or .csv
    """
    suffix = Path(path).suffix.lower()
    if suffix not in OUTPUT_FORMATS:
        raise ValueError(
            f"Unsupported output format '{suffix}' for {path}. Must be one of {list(OUTPUT_FORMATS)}"
        )
    return suffix


def write_ranked_locations(
    path: str | Path,
    ranked: Iterable[RankedGeoEntry],
    queue_size: int = 1000,
) -> int:
    """Write matched entries in the format chosen by path's extension."""
    path = Path(path)
    fmt = output_format(path)
    if fmt == ".txt":
        logger.info("Output in text format")
    written = 0

    def _sink(items: Iterable[RankedGeoEntry]) -> None:
        nonlocal written
        try:
            with open_text(path, "wt") as f:
                if fmt == ".csv":
                    writer = csv.DictWriter(f, fieldnames=OUTPUT_FIELDS, lineterminator="\n")
                    writer.writeheader()
                    for item in items:
                        writer.writerow(to_output_record(item))
                        written += 1
                elif fmt == ".jsonl":
                    for item in items:
                        f.write(json.dumps(to_output_record(item), ensure_ascii=False) + "\n")
                        written += 1
                else:
                    for item in items:
                        f.write(format_text_line(item))
                        written += 1
        except OSError as exc:
            raise FatalIOError(f"Cannot write {path}: {exc}") from exc

    with consume(_sink, queue_size, name=f"writer:{path.name}") as channel:
        for ranked_geo in ranked:
            channel.put(ranked_geo)

    logger.info("Saved %d ranked locations to %s", written, path)
    return written


def rank_locations(
    ranked_pages_path: str | Path,
    gazetteer_path: str | Path,
    output_path: str | Path,
    config: PipelineConfig | None = None,
) -> list[RankedGeoEntry]:
    """
    Compute ranks for location pages and write them best first.

    Args:
        ranked_pages_path: Ranked-page stream from rank_pages
        gazetteer_path: Gazetteer stream from extract_locations
        output_path: Output file (.txt, .jsonl or .csv)
        config: Pipeline config (process-wide config when None)

    Returns:
        Matched entries sorted by order
    """
    config = config or get_config()
    output_format(output_path)

    logger.info("Reading Geo Entries from %s", gazetteer_path)
    entries = list(
        produce(
            iter_records(gazetteer_path, geo_entry_from_dict),
            config.page_queue_size,
            name="locations",
        )
    )

    logger.info("Reading Ranked Pages from %s", ranked_pages_path)
    pages = produce(
        iter_records(ranked_pages_path, ranked_page_from_dict),
        config.page_queue_size,
        name="ranked-pages",
    )
    matched, _ = join_locations(pages, entries, log_sample_limit=config.log_sample_limit)

    logger.info("Writing ranked locations to '%s'", output_path)
    write_ranked_locations(output_path, matched, queue_size=config.write_queue_size)
    logger.info("Done writing")
    return matched
