"""Stream page elements out of a MediaWiki XML dump."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

from lxml import etree

from common.config import DEFAULT_TITLE_FILTER
from common.errors import FatalIOError, RecordDecodeError
from common.local_io import open_binary
from extract_pages.models import PageElement

logger = logging.getLogger(__name__)

TITLE_FILTER = re.compile(DEFAULT_TITLE_FILTER)


def _local_name(tag: str) -> str:
    """Strip the XML namespace, which changes between dump versions."""
    return tag.rsplit("}", 1)[-1]


def _child(element: etree._Element, name: str) -> etree._Element | None:
    for child in element:
        # Comments and processing instructions have non-string tags
        if isinstance(child.tag, str) and _local_name(child.tag) == name:
            return child
    return None


def _page_from_element(element: etree._Element) -> PageElement:
    title_el = _child(element, "title")
    id_el = _child(element, "id")
    if title_el is None or id_el is None:
        raise RecordDecodeError("Page element without title or id")

    title = title_el.text or ""
    try:
        page_id = int((id_el.text or "").strip())
    except ValueError as exc:
        raise RecordDecodeError(f"Page {title!r} has non-numeric id {id_el.text!r}") from exc

    redirect_el = _child(element, "redirect")
    redirect = redirect_el.get("title", "") if redirect_el is not None else ""

    text = ""
    revision_el = _child(element, "revision")
    if revision_el is not None:
        text_el = _child(revision_el, "text")
        if text_el is not None:
            text = text_el.text or ""

    return PageElement(title=title, id=page_id, redirect=redirect, text=text)


def iter_page_elements(
    path: str | Path,
    title_filter: re.Pattern[str] = TITLE_FILTER,
    progress_interval: int = 100000,
) -> Iterator[PageElement]:
    """
    Yield pages from a (possibly bz2/gzip compressed) MediaWiki dump.

    Pages whose title matches title_filter (File:, Talk:, ...) are skipped.

    Args:
        path: Dump path
        title_filter: Pattern of namespaced titles to ignore
        progress_interval: Log progress every this many pages

    Yields:
        PageElement per kept page, in dump order

    Raises:
        FatalIOError: If the dump can't be opened or read
        RecordDecodeError: If the XML is malformed
    """
    page_count = 0
    logger.info("Starting parse of %s", path)
    with open_binary(path) as f:
        try:
            context = etree.iterparse(f, events=("end",), tag="{*}page", huge_tree=True)
            for _, element in context:
                page = _page_from_element(element)
                # Drop parsed pages so the tree never holds more than one
                element.clear()
                while element.getprevious() is not None:
                    del element.getparent()[0]

                if title_filter.match(page.title):
                    continue
                page_count += 1
                if page_count % progress_interval == 0:
                    logger.info("Reached page %d", page_count)
                yield page
        except etree.XMLSyntaxError as exc:
            raise RecordDecodeError(f"{path}: malformed XML ({exc})") from exc
        except (OSError, EOFError) as exc:
            raise FatalIOError(f"Cannot read {path}: {exc}") from exc

    logger.info("EOF: %d pages in %s", page_count, path)
