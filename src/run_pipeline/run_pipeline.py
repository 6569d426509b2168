"""Run every stage, dump to ranked locations, through a temporary directory."""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from build_graph.build_graph import build_graph
from common.config import PipelineConfig, get_config
from extract_locations.extract_locations import extract_locations
from rank_locations.models import RankedGeoEntry
from rank_locations.rank_locations import output_format, rank_locations
from rank_pages.rank_pages import rank_pages

logger = logging.getLogger(__name__)


@dataclass
class PipelinePaths:
    """Intermediate record streams of a full run."""

    graph: Path
    page_ranks: Path
    locations: Path

    @classmethod
    def in_dir(cls, directory: Path) -> PipelinePaths:
        return cls(
            graph=directory / "1-graph.jsonl.gz",
            page_ranks=directory / "2-page-rank.jsonl.gz",
            locations=directory / "3-locations.jsonl.gz",
        )


def run_all(
    wiki_dump: str | Path,
    geonames_dump: str | Path,
    output_path: str | Path,
    config: PipelineConfig | None = None,
    keep_temp: bool = False,
) -> list[RankedGeoEntry]:
    """
    Chain graph -> pagerank -> locations -> georank.

    Temporary files are removed after a successful run unless keep_temp is
    set; after a failure they are kept so finished stages can be replayed.

    Args:
        wiki_dump: Wikipedia XML dump or page-element stream
        geonames_dump: GeoNames RDF dump
        output_path: Final output (.txt, .jsonl or .csv)
        config: Pipeline config (process-wide config when None)
        keep_temp: Keep intermediate files after success

    Returns:
        Matched entries sorted by order
    """
    config = config or get_config()
    output_format(output_path)

    tempdir = Path(tempfile.mkdtemp(prefix="wiki-geo-rank"))
    logger.info("Temporary files will be stored in '%s'", tempdir)
    paths = PipelinePaths.in_dir(tempdir)

    logger.info("Extracting wikipedia graph")
    build_graph(wiki_dump, paths.graph, config)

    logger.info("Computing PageRank for all wikipedia pages")
    rank_pages(paths.graph, paths.page_ranks, config)

    logger.info("Extracting location refs from geonames")
    extract_locations(geonames_dump, paths.locations, config)

    logger.info("Computing GeoRanks for location pages")
    matched = rank_locations(paths.page_ranks, paths.locations, output_path, config)

    if keep_temp:
        logger.info("Keeping temporary files in '%s'", tempdir)
    else:
        shutil.rmtree(tempdir, ignore_errors=True)
    return matched
