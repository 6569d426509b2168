"""Tests for rank_pages.rank_pages module."""

import logging

import numpy as np
import pytest

from build_graph.models import Link, PageNode
from common.config import PipelineConfig, load_config, set_config
from common.local_io import iter_records, read_record_count, write_records
from rank_pages.models import RankedPageNode, ranked_page_from_dict
from rank_pages.rank_pages import rank_nodes, rank_pages


def _pages(n):
    return [PageNode(title=f"P{i}", id=i) for i in range(1, n + 1)]


class TestRankNodes:
    def test_order_is_dense_and_stable(self) -> None:
        ranked = rank_nodes(_pages(4), np.array([0.2, 0.5, 0.2, 0.1]))

        assert [(page.title, page.order) for page in ranked] == [
            ("P2", 1),
            ("P1", 2),
            ("P3", 3),
            ("P4", 4),
        ]
        assert ranked[0].rank == 0.5
        assert type(ranked[0].rank) is float

    def test_keeps_aliases_and_links(self) -> None:
        page = PageNode(title="A", id=1, aliases=["Alt"], links=[Link(target_id=2, count=3)])
        ranked = rank_nodes([page, PageNode(title="B", id=2)], np.array([0.4, 0.6]))

        assert ranked[1] == RankedPageNode(
            title="A",
            id=1,
            aliases=["Alt"],
            links=[Link(target_id=2, count=3)],
            order=2,
            rank=0.4,
        )

    def test_does_not_share_lists_with_source(self) -> None:
        page = PageNode(title="A", id=1, aliases=["Alt"], links=[Link(target_id=2, count=1)])
        ranked = rank_nodes([page, PageNode(title="B", id=2)], np.array([0.4, 0.6]))

        ranked[1].aliases.append("Other")
        ranked[1].links.clear()

        assert page.aliases == ["Alt"]
        assert page.links == [Link(target_id=2, count=1)]

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            rank_nodes(_pages(2), np.array([1.0]))

    def test_preview_smaller_than_graph(self, caplog) -> None:
        caplog.set_level(logging.INFO)
        rank_nodes(_pages(2), np.array([0.3, 0.7]), preview_size=50)
        assert "Top 2" in caplog.text


class TestRankPages:
    def test_end_to_end(self, tmp_path) -> None:
        config = load_config("test")
        graph = tmp_path / "1-graph.jsonl.gz"
        output = tmp_path / "2-page-rank.jsonl.gz"
        pages = [
            PageNode(title="A", id=1, links=[Link(target_id=2, count=1)]),
            PageNode(title="B", id=2, aliases=["Bee"]),
            PageNode(title="C", id=3, links=[Link(target_id=2, count=4)]),
        ]
        write_records(graph, pages, count=len(pages))

        ranked = rank_pages(graph, output, config)

        assert read_record_count(output) == 3
        stored = list(iter_records(output, ranked_page_from_dict))
        assert stored == ranked
        assert stored[0].title == "B"
        assert stored[0].aliases == ["Bee"]
        assert sorted(page.order for page in stored) == [1, 2, 3]
        assert sum(page.rank for page in stored) == pytest.approx(1.0)
        ranks = [page.rank for page in stored]
        assert ranks == sorted(ranks, reverse=True)

    def test_empty_graph(self, tmp_path) -> None:
        graph = tmp_path / "empty.jsonl"
        output = tmp_path / "ranked.jsonl"
        write_records(graph, [], count=0)

        assert rank_pages(graph, output) == []
        assert read_record_count(output) == 0

    def test_uses_process_config_when_none_given(self, tmp_path, caplog) -> None:
        caplog.set_level(logging.INFO)
        graph = tmp_path / "graph.jsonl"
        pages = [
            PageNode(title="A", id=1, links=[Link(target_id=2, count=1)]),
            PageNode(title="B", id=2),
        ]
        write_records(graph, pages, count=len(pages))
        set_config(PipelineConfig(max_iterations=1))

        rank_pages(graph, tmp_path / "ranked.jsonl")

        assert "PageRank finished after 1 iterations" in caplog.text
