"""Extract wikipedia-linked locations from a GeoNames RDF dump."""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path
from typing import Iterator
from urllib.parse import unquote

from common.config import PipelineConfig, get_config
from common.errors import FatalIOError, RecordDecodeError
from common.local_io import open_text, write_records
from common.streaming import produce
from extract_locations.models import GeoEntry

logger = logging.getLogger(__name__)

WIKI_PATTERN = re.compile(
    r'<gn:wikipediaArticle rdf:resource="http://en.wikipedia.org/wiki/([^"]+)"'
)
NAME_PATTERN = re.compile(r"<gn:name>([^<]+)<")
ID_PATTERN = re.compile(r'rdf:about="http://sws.geonames.org/(\d+)/"')


def wiki_title(path_segment: str) -> str:
    """Turn a wikipedia URL path segment into a page title: 'New_York%2C_NY' -> 'New York, NY'."""
    return unquote(path_segment).replace("_", " ")


def parse_geo_line(line: str) -> GeoEntry | None:
    """
    Parse one dump line.

    Returns:
        GeoEntry when the line links a wikipedia article, else None

    Raises:
        RecordDecodeError: If a linked entry has no name or no id
    """
    wiki = WIKI_PATTERN.search(line)
    if wiki is None:
        return None

    name = NAME_PATTERN.search(line)
    if name is None:
        raise RecordDecodeError(f"No name for entry: {wiki.group(1)}")
    geo_id = ID_PATTERN.search(line)
    if geo_id is None:
        raise RecordDecodeError(f"No id for entry: {wiki.group(1)}")

    return GeoEntry(
        id=int(geo_id.group(1)),
        name=html.unescape(name.group(1)),
        title=wiki_title(wiki.group(1)),
    )


def iter_geo_entries(path: str | Path, max_line_length: int = 25000) -> Iterator[GeoEntry]:
    """Yield every wikipedia-linked entry of a (possibly compressed) GeoNames dump."""
    with open_text(path) as f:
        try:
            for line_number, line in enumerate(f, start=1):
                if len(line) > max_line_length:
                    raise RecordDecodeError(
                        f"{path}:{line_number}: unexpected long line ({len(line)} chars)"
                    )
                try:
                    entry = parse_geo_line(line)
                except RecordDecodeError as exc:
                    raise RecordDecodeError(f"{path}:{line_number}: {exc}") from exc
                if entry is not None:
                    yield entry
        except UnicodeDecodeError as exc:
            raise RecordDecodeError(f"{path}: not valid UTF-8 ({exc})") from exc
        except (OSError, EOFError) as exc:
            raise FatalIOError(f"Cannot read {path}: {exc}") from exc


def extract_locations(
    input_path: str | Path,
    output_path: str | Path,
    config: PipelineConfig | None = None,
) -> list[GeoEntry]:
    """
    Extract location refs from geonames and write them as a gazetteer stream.

    Args:
        input_path: GeoNames RDF dump (plain, .gz or .bz2)
        output_path: Gazetteer stream to write
        config: Pipeline config (process-wide config when None)

    Returns:
        Extracted entries in dump order
    """
    config = config or get_config()
    locations = list(
        produce(
            iter_geo_entries(input_path, max_line_length=config.max_line_length),
            config.page_queue_size,
            name="locations",
        )
    )
    logger.info("Found %d locations with Wikipedia links", len(locations))

    logger.info("Writing to %s", output_path)
    write_records(output_path, locations, count=len(locations), queue_size=config.write_queue_size)
    return locations
