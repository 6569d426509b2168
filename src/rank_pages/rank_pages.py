"""Rank graph pages by PageRank and assign dense 1-based order."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import numpy as np

from build_graph.models import PageNode, page_node_from_dict
from common.config import PipelineConfig, get_config
from common.local_io import iter_records, read_record_count, write_records
from common.streaming import produce
from rank_pages.models import RankedPageNode
from rank_pages.pagerank import pagerank

logger = logging.getLogger(__name__)


def rank_nodes(
    pages: Sequence[PageNode],
    ranks: np.ndarray,
    preview_size: int = 50,
) -> list[RankedPageNode]:
    """
    Pair pages with their ranks, sorted best first.

    The sort is stable, so exactly equal ranks keep their input order.

    Args:
        pages: Nodes in the order the rank vector was computed for
        ranks: Rank per node
        preview_size: Number of top pages to log

    Returns:
        RankedPageNode list with order = 1..n
    """
    values = ranks.tolist()
    if len(values) != len(pages):
        raise ValueError(f"Got {len(values)} ranks for {len(pages)} pages")

    logger.info("Sorting %d pages by rank", len(pages))
    by_rank = sorted(range(len(pages)), key=lambda i: values[i], reverse=True)
    ranked = [
        RankedPageNode(
            title=pages[i].title,
            id=pages[i].id,
            aliases=list(pages[i].aliases),
            links=list(pages[i].links),
            order=order,
            rank=values[i],
        )
        for order, i in enumerate(by_rank, start=1)
    ]

    _log_preview(ranked, preview_size)
    return ranked


def _log_preview(ranked: Sequence[RankedPageNode], preview_size: int) -> None:
    if not ranked or preview_size == 0:
        return
    logger.info("Top %d (Rank, Title, PageRank, NumLinks, NumAliases)", min(preview_size, len(ranked)))
    for page in ranked[:preview_size]:
        logger.info(
            "%d %s %.10f %d %d",
            page.order,
            page.title,
            page.rank,
            len(page.links),
            len(page.aliases),
        )


def rank_pages(
    input_path: str | Path,
    output_path: str | Path,
    config: PipelineConfig | None = None,
) -> list[RankedPageNode]:
    """
    Read a page stream, compute PageRank and write the ranked-page stream.

    Args:
        input_path: Page stream from build_graph
        output_path: Ranked-page stream to write
        config: Pipeline config (process-wide config when None)

    Returns:
        Ranked pages, best first
    """
    config = config or get_config()

    n = read_record_count(input_path)
    logger.info("Reading %d pages from %s", n, input_path)
    pages = list(
        produce(iter_records(input_path, page_node_from_dict), config.page_queue_size, name="pages")
    )

    logger.info("Computing PageRank...")
    result = pagerank(
        pages,
        walk_probability=config.walk_probability,
        convergence=config.convergence,
        max_iterations=config.max_iterations,
    )
    logger.info("PageRank finished after %d iterations (delta=%g)", result.iterations, result.delta)

    ranked = rank_nodes(pages, result.ranks, preview_size=config.preview_size)

    logger.info("Writing ranked pages...")
    write_records(output_path, ranked, count=len(ranked), queue_size=config.write_queue_size)
    logger.info("Done writing pages")
    return ranked
