"""Data models for rank_locations pipeline stage."""

from dataclasses import dataclass

from extract_locations.models import GeoEntry
from rank_pages.models import RankedPageNode


@dataclass
class RankedGeoEntry:
    """Gazetteer entry paired with its matched ranked page, if any."""
    entry: GeoEntry
    page: RankedPageNode | None = None

    @property
    def rank(self) -> float | None:
        return self.page.rank if self.page is not None else None

    @property
    def order(self) -> int | None:
        return self.page.order if self.page is not None else None


@dataclass
class JoinStats:
    """Gazetteer entries that did and didn't match a ranked page title."""
    found: int = 0
    missing: int = 0
