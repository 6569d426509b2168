"""Data models for build_graph pipeline stage."""

from dataclasses import dataclass, field

from common.errors import RecordDecodeError


@dataclass
class Link:
    """Aggregated link from one page to another."""
    target_id: int
    count: int


@dataclass
class PageNode:
    """Graph node for one non-redirect page. Redirect titles live in aliases."""
    title: str
    id: int
    aliases: list[str] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)


@dataclass
class ResolutionStats:
    """Counters for titles that did or didn't resolve through the title index."""
    pages: int = 0
    redirects_resolved: int = 0
    redirects_unresolved: int = 0
    links_resolved: int = 0
    links_unresolved: int = 0
    self_links: int = 0
    pages_unindexed: int = 0


def links_from_list(items: list) -> list[Link]:
    return [Link(target_id=int(item["target_id"]), count=int(item["count"])) for item in items]


def page_node_from_dict(data: dict) -> PageNode:
    """Decode a page stream record."""
    try:
        return PageNode(
            title=str(data["title"]),
            id=int(data["id"]),
            aliases=[str(alias) for alias in data.get("aliases") or []],
            links=links_from_list(data.get("links") or []),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise RecordDecodeError(f"Malformed page record: {exc!r}") from exc
