"""Data models for rank_pages pipeline stage."""

from dataclasses import dataclass, field

import numpy as np

from build_graph.models import Link, links_from_list
from common.errors import RecordDecodeError


@dataclass
class RankedPageNode:
    """Page node with its PageRank score and 1-based position in the ranking."""
    title: str
    id: int
    aliases: list[str] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    order: int = 0
    rank: float = 0.0


@dataclass
class PageRankResult:
    """Converged rank vector, indexed like the input node list."""
    ranks: np.ndarray
    iterations: int
    delta: float


def ranked_page_from_dict(data: dict) -> RankedPageNode:
    """Decode a ranked-page stream record."""
    try:
        return RankedPageNode(
            title=str(data["title"]),
            id=int(data["id"]),
            aliases=[str(alias) for alias in data.get("aliases") or []],
            links=links_from_list(data.get("links") or []),
            order=int(data["order"]),
            rank=float(data["rank"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise RecordDecodeError(f"Malformed ranked page record: {exc!r}") from exc
