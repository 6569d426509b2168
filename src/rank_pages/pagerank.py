"""Power-iteration PageRank with global leaked-mass redistribution."""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

import numpy as np

from build_graph.models import PageNode
from common.errors import RecordDecodeError
from rank_pages.models import PageRankResult

logger = logging.getLogger(__name__)

WALK_PROBABILITY = 0.85
CONVERGENCE = 1e-6


def _index_links(pages: Sequence[PageNode]) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Flatten links into dense (source, target) index arrays.

    Returns:
        Tuple of (sources, targets, out_degree) where out_degree counts
        distinct link entries per page
    """
    position = {page.id: i for i, page in enumerate(pages)}
    degree = np.fromiter((len(page.links) for page in pages), dtype=np.int64, count=len(pages))

    def _targets() -> Iterator[int]:
        for page in pages:
            for link in page.links:
                target = position.get(link.target_id)
                if target is None:
                    raise RecordDecodeError(
                        f"Page '{page.title}' links to unknown page id {link.target_id}"
                    )
                yield target

    # Filled straight into numpy arrays
    targets = np.fromiter(_targets(), dtype=np.int64, count=int(degree.sum()))
    sources = np.repeat(np.arange(len(pages), dtype=np.int64), degree)
    return sources, targets, degree.astype(np.float64)


def pagerank(
    pages: Sequence[PageNode],
    walk_probability: float = WALK_PROBABILITY,
    convergence: float = CONVERGENCE,
    max_iterations: int | None = None,
) -> PageRankResult:
    """
    Compute PageRank by power iteration.

    Each iteration spreads walk_probability * rank / out_degree along every
    link entry (counts don't weight the walk), then adds (1 - S) / n to every
    page, where S is the mass that followed links. That single step absorbs
    both the teleport share and the mass of pages without links. Iteration
    stops when the L1 change between vectors is <= convergence.

    Args:
        pages: Nodes in dense order; links reference node ids
        walk_probability: Share of mass following links
        convergence: L1 delta threshold
        max_iterations: Optional cap; the last vector is returned when hit

    Returns:
        PageRankResult with float64 ranks summing to ~1.0
    """
    logger.info(
        "Ranking with walk_probability=%f, convergence=%g",
        walk_probability,
        convergence,
    )
    n = len(pages)
    if n == 0:
        return PageRankResult(ranks=np.zeros(0, dtype=np.float64), iterations=0, delta=0.0)

    sources, targets, out_degree = _index_links(pages)
    last = np.full(n, 1.0 / n, dtype=np.float64)

    iteration = 0
    while True:
        iteration += 1
        shares = walk_probability * last[sources] / out_degree[sources]
        current = np.bincount(targets, weights=shares, minlength=n).astype(np.float64)

        leaked = (1.0 - current.sum()) / n
        current += leaked
        delta = float(np.abs(current - last).sum())

        logger.info("PageRank iteration #%d delta=%f", iteration, delta)
        if delta <= convergence:
            break
        if max_iterations is not None and iteration >= max_iterations:
            logger.warning(
                "PageRank stopped after %d iterations without converging (delta=%g)",
                iteration,
                delta,
            )
            break
        last = current

    return PageRankResult(ranks=current, iterations=iteration, delta=delta)
