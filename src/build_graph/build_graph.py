"""Build the redirect-folded, multiplicity-weighted link graph of a corpus.

The corpus is read three times, each pass through its own bounded queue:

1. nodes: every non-redirect page becomes a PageNode indexed by title
2. redirects: each redirect title becomes an alias of its target's node
3. links: [[Target]] / [[Target|Label]] markup is resolved through the index
   and counted once per distinct target per page
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Iterable, Iterator

from build_graph.models import Link, PageNode, ResolutionStats
from common.config import PipelineConfig, get_config
from common.local_io import is_record_stream, iter_records, write_records
from common.streaming import produce
from extract_pages.extract_pages import iter_page_elements
from extract_pages.models import PageElement, page_element_from_dict

logger = logging.getLogger(__name__)

LINK_PATTERN = re.compile(r"\[\[(?:([^|\]]*)\|)?([^\]]+)\]\]")

PageSource = Callable[[], Iterable[PageElement]]


def clean_section(title: str) -> str:
    """Drop a trailing #Section anchor: 'Paris#History' -> 'Paris'."""
    return title.split("#", 1)[0]


def extract_link_targets(text: str) -> Iterator[str]:
    """Yield the target title of every [[...]] link in text, in order."""
    for match in LINK_PATTERN.finditer(text):
        target, label = match.groups()
        yield clean_section(target if target else label)


class TitleIndex:
    """Title -> node lookup owned by a single graph build.

    Redirect titles map to their target's node, so lookups follow aliases.
    Duplicate titles are last-write-wins. Frozen once construction completes.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, PageNode] = {}
        self._frozen = False

    def add(self, title: str, node: PageNode) -> None:
        if self._frozen:
            raise RuntimeError("Title index is frozen")
        self._nodes[title] = node

    def resolve(self, title: str) -> PageNode | None:
        return self._nodes.get(title)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, title: object) -> bool:
        return title in self._nodes


class GraphBuilder:
    """Runs the three construction passes over a re-openable page source."""

    def __init__(self, open_source: PageSource, config: PipelineConfig | None = None) -> None:
        self._open_source = open_source
        self._config = config or get_config()
        self._title_filter = self._config.title_pattern
        self.index = TitleIndex()
        self.nodes: list[PageNode] = []
        self.stats = ResolutionStats()

    def build(self) -> list[PageNode]:
        """Run all passes and return the finished nodes. Call once."""
        if self.index.frozen:
            raise RuntimeError("Graph already built")

        logger.info("Starting pass 1: pages")
        self._add_nodes()
        logger.info("Starting pass 2: redirects")
        self._add_redirects()
        logger.info("Starting pass 3: links")
        self._add_links()

        self.index.freeze()
        for node in self.nodes:
            node.aliases.sort()

        self.stats.pages = len(self.nodes)
        logger.info(
            "Built graph: %d pages, %d titles indexed, redirects %d resolved / %d unresolved, "
            "links %d resolved / %d unresolved / %d self",
            self.stats.pages,
            len(self.index),
            self.stats.redirects_resolved,
            self.stats.redirects_unresolved,
            self.stats.links_resolved,
            self.stats.links_unresolved,
            self.stats.self_links,
        )
        return self.nodes

    def _stream(self, queue_size: int, name: str) -> Iterator[PageElement]:
        return produce(self._open_source(), queue_size, name=name)

    def _add_nodes(self) -> None:
        for page in self._stream(self._config.node_queue_size, "pages"):
            if page.is_redirect:
                continue
            node = PageNode(title=page.title, id=page.id)
            self.nodes.append(node)
            self.index.add(page.title, node)

    def _add_redirects(self) -> None:
        for page in self._stream(self._config.page_queue_size, "redirects"):
            if not page.is_redirect:
                continue
            target_title = clean_section(page.redirect)
            target = self.index.resolve(target_title)
            if target is not None:
                target.aliases.append(page.title)
                self.index.add(page.title, target)
                self.stats.redirects_resolved += 1
            elif not self._title_filter.match(target_title):
                if self.stats.redirects_unresolved < self._config.log_sample_limit:
                    logger.info(
                        "Unresolvable redirect: '%s' -> '%s' (cleaned '%s')",
                        page.title,
                        page.redirect,
                        target_title,
                    )
                self.stats.redirects_unresolved += 1

    def _add_links(self) -> None:
        for page in self._stream(self._config.page_queue_size, "links"):
            if page.is_redirect:
                continue
            node = self.index.resolve(page.title)
            if node is None:
                # Source changed between passes
                if self.stats.pages_unindexed < self._config.log_sample_limit:
                    logger.warning("Page '%s' was not indexed in pass 1", page.title)
                self.stats.pages_unindexed += 1
                continue
            counts = self._count_links(node, page.text)
            if counts:
                _merge_links(node, counts)

    def _count_links(self, node: PageNode, text: str) -> dict[int, int]:
        counts: dict[int, int] = {}
        for title in extract_link_targets(text):
            target = self.index.resolve(title)
            if target is None:
                if self.stats.links_unresolved < self._config.log_sample_limit:
                    logger.debug("Unresolved link: '%s' -> '%s'", node.title, title)
                self.stats.links_unresolved += 1
                continue
            if target.id == node.id:
                self.stats.self_links += 1
                continue
            counts[target.id] = counts.get(target.id, 0) + 1
            self.stats.links_resolved += 1
        return counts


def _merge_links(node: PageNode, counts: dict[int, int]) -> None:
    # A node already holding links means an earlier page shared its title
    if node.links:
        for link in node.links:
            if link.target_id in counts:
                link.count += counts.pop(link.target_id)
    node.links.extend(Link(target_id=target_id, count=count) for target_id, count in counts.items())


def open_page_source(path: str | Path, config: PipelineConfig | None = None) -> PageSource:
    """Return a factory re-opening path as a page stream for each pass.

    A .jsonl/.jsonl.gz path is read as a page-element stream, anything else
    as a raw XML dump.
    """
    config = config or get_config()
    if is_record_stream(path):
        return lambda: iter_records(path, page_element_from_dict)
    return lambda: iter_page_elements(
        path,
        title_filter=config.title_pattern,
        progress_interval=config.progress_interval,
    )


def build_graph(
    input_path: str | Path,
    output_path: str | Path,
    config: PipelineConfig | None = None,
) -> ResolutionStats:
    """
    Build the page graph of a corpus and write it as a page stream.

    Args:
        input_path: Raw dump or page-element stream
        output_path: Page stream to write
        config: Pipeline config (process-wide config when None)

    Returns:
        Resolution counters for the build
    """
    config = config or get_config()
    builder = GraphBuilder(open_page_source(input_path, config), config)
    nodes = builder.build()

    logger.info("Starting writing...")
    write_records(output_path, nodes, count=len(nodes), queue_size=config.write_queue_size)
    logger.info("Done writing")
    return builder.stats
