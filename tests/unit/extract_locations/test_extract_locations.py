"""Tests for extract_locations.extract_locations module."""

import gzip
from unittest.mock import patch

import pytest

from common.config import load_config
from common.errors import FatalIOError, RecordDecodeError
from common.local_io import iter_records, read_record_count
from common.streaming import produce
from extract_locations.extract_locations import (
    extract_locations,
    iter_geo_entries,
    parse_geo_line,
    wiki_title,
)
from extract_locations.models import GeoEntry, geo_entry_from_dict


def _line(geo_id, name, article=None):
    wiki = (
        f'<gn:wikipediaArticle rdf:resource="http://en.wikipedia.org/wiki/{article}"/>'
        if article
        else ""
    )
    return (
        f'<rdf:RDF><gn:Feature rdf:about="http://sws.geonames.org/{geo_id}/">'
        f"<gn:name>{name}</gn:name>{wiki}</gn:Feature></rdf:RDF>\n"
    )


DUMP = "".join(
    [
        "http://sws.geonames.org/2988507/about.rdf\n",
        _line(2988507, "Paris", "Paris"),
        _line(1, "Nowhere"),
        _line(5128581, "New York City", "New_York_City"),
        _line(3, "Caf&amp;e", "Caf%C3%A9_du_Monde"),
    ]
)


class TestWikiTitle:
    def test_unquotes_and_replaces_underscores(self) -> None:
        assert wiki_title("New_York%2C_NY") == "New York, NY"
        assert wiki_title("Paris") == "Paris"


class TestParseGeoLine:
    def test_linked_entry(self) -> None:
        assert parse_geo_line(_line(2988507, "Paris", "Paris")) == GeoEntry(
            id=2988507, name="Paris", title="Paris"
        )

    def test_unlinked_entry(self) -> None:
        assert parse_geo_line(_line(1, "Nowhere")) is None
        assert parse_geo_line("\n") is None

    def test_missing_name(self) -> None:
        line = (
            '<gn:Feature rdf:about="http://sws.geonames.org/7/">'
            '<gn:wikipediaArticle rdf:resource="http://en.wikipedia.org/wiki/X"/>\n'
        )
        with pytest.raises(RecordDecodeError, match="No name"):
            parse_geo_line(line)

    def test_missing_id(self) -> None:
        line = (
            "<gn:name>X</gn:name>"
            '<gn:wikipediaArticle rdf:resource="http://en.wikipedia.org/wiki/X"/>\n'
        )
        with pytest.raises(RecordDecodeError, match="No id"):
            parse_geo_line(line)


class TestIterGeoEntries:
    def test_keeps_linked_entries_in_order(self, tmp_path) -> None:
        path = tmp_path / "all-geonames-rdf.txt"
        path.write_text(DUMP, encoding="utf-8")

        entries = list(iter_geo_entries(path))

        assert entries == [
            GeoEntry(id=2988507, name="Paris", title="Paris"),
            GeoEntry(id=5128581, name="New York City", title="New York City"),
            GeoEntry(id=3, name="Caf&e", title="Café du Monde"),
        ]

    def test_gzip_dump(self, tmp_path) -> None:
        path = tmp_path / "all-geonames-rdf.txt.gz"
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(DUMP)
        assert len(list(iter_geo_entries(path))) == 3

    def test_long_line(self, tmp_path) -> None:
        path = tmp_path / "long.txt"
        path.write_text(_line(1, "A", "A") + "x" * 2000 + "\n", encoding="utf-8")
        with pytest.raises(RecordDecodeError, match=r"long\.txt:2"):
            list(iter_geo_entries(path, max_line_length=1000))

    def test_error_carries_line_number(self, tmp_path) -> None:
        path = tmp_path / "broken.txt"
        path.write_text(
            _line(1, "A", "A")
            + '<gn:wikipediaArticle rdf:resource="http://en.wikipedia.org/wiki/B"/>\n',
            encoding="utf-8",
        )
        with pytest.raises(RecordDecodeError, match=r"broken\.txt:2"):
            list(iter_geo_entries(path))

    def test_missing_dump(self, tmp_path) -> None:
        with pytest.raises(FatalIOError):
            list(iter_geo_entries(tmp_path / "missing.txt"))


class TestExtractLocations:
    def test_writes_gazetteer_stream(self, tmp_path) -> None:
        dump = tmp_path / "geonames.txt"
        dump.write_text(DUMP, encoding="utf-8")
        output = tmp_path / "3-locations.jsonl.gz"

        locations = extract_locations(dump, output)

        assert read_record_count(output) == 3
        assert list(iter_records(output, geo_entry_from_dict)) == locations

    def test_reads_through_bounded_queue(self, tmp_path) -> None:
        dump = tmp_path / "geonames.txt"
        dump.write_text(DUMP, encoding="utf-8")

        with patch("extract_locations.extract_locations.produce", wraps=produce) as spy:
            extract_locations(dump, tmp_path / "out.jsonl", load_config("test"))

        _, maxsize = spy.call_args.args
        assert maxsize == 4
        assert spy.call_args.kwargs["name"] == "locations"

    def test_scan_errors_reach_the_caller(self, tmp_path) -> None:
        dump = tmp_path / "broken.txt"
        dump.write_text(
            _line(1, "A", "A")
            + '<gn:wikipediaArticle rdf:resource="http://en.wikipedia.org/wiki/B"/>\n',
            encoding="utf-8",
        )
        output = tmp_path / "out.jsonl"

        with pytest.raises(RecordDecodeError, match=r"broken\.txt:2"):
            extract_locations(dump, output, load_config("test"))
        assert not output.exists()

    def test_missing_dump_is_fatal(self, tmp_path) -> None:
        with pytest.raises(FatalIOError):
            extract_locations(tmp_path / "missing.txt", tmp_path / "out.jsonl")

    def test_bad_record(self) -> None:
        with pytest.raises(RecordDecodeError):
            geo_entry_from_dict({"id": 1, "name": "A"})
