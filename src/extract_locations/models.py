"""Data models for extract_locations pipeline stage."""

from dataclasses import dataclass

from common.errors import RecordDecodeError


@dataclass
class GeoEntry:
    """Gazetteer entry with a wikipedia article. title is the page title join key."""
    id: int
    name: str
    title: str


def geo_entry_from_dict(data: dict) -> GeoEntry:
    """Decode a gazetteer stream record."""
    try:
        return GeoEntry(id=int(data["id"]), name=str(data["name"]), title=str(data["title"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise RecordDecodeError(f"Malformed gazetteer record: {exc!r}") from exc
