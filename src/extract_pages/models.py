"""Data models for extract_pages pipeline stage."""

from dataclasses import dataclass

from common.errors import RecordDecodeError


@dataclass
class PageElement:
    """Raw page parsed from a corpus dump. redirect is empty for a normal page."""
    title: str
    id: int
    redirect: str = ""
    text: str = ""

    @property
    def is_redirect(self) -> bool:
        return bool(self.redirect)


def page_element_from_dict(data: dict) -> PageElement:
    """Decode a page-element stream record."""
    try:
        return PageElement(
            title=str(data["title"]),
            id=int(data["id"]),
            redirect=str(data.get("redirect") or ""),
            text=str(data.get("text") or ""),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise RecordDecodeError(f"Malformed page element: {exc!r}") from exc
