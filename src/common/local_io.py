"""Local file I/O for count-prefixed JSONL record streams.

A record stream file starts with a header line ``{"count": N}`` followed by
exactly N JSON records, one per line. Files ending in ``.gz`` are gzip
compressed; raw dumps ending in ``.bz2`` are read through bz2.

Examples:
    write_records("out/1-graph.jsonl.gz", nodes, count=len(nodes))
    for node in iter_records("out/1-graph.jsonl.gz", page_node_from_dict):
        ...
"""

from __future__ import annotations

import bz2
import gzip
import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import IO, Any, Callable, Iterable, Iterator, TypeVar

from common.errors import FatalIOError, RecordDecodeError
from common.serialization import to_record
from common.streaming import consume

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECORD_STREAM_SUFFIXES = (".jsonl", ".jsonl.gz")


def is_record_stream(path: str | Path) -> bool:
    """Whether path names a materialized record stream rather than a raw dump."""
    return str(path).endswith(RECORD_STREAM_SUFFIXES)


def open_text(path: str | Path, mode: str = "rt") -> IO[str]:
    """Open a plain, gzip or bz2 text file, creating parent dirs for writes."""
    path = Path(path)
    try:
        if "w" in mode:
            path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix == ".bz2":
            return bz2.open(path, mode, encoding="utf-8")
        if path.suffix == ".gz":
            return gzip.open(path, mode, encoding="utf-8")
        return open(path, mode, encoding="utf-8")
    except OSError as exc:
        raise FatalIOError(f"Cannot open {path}: {exc}") from exc


def open_binary(path: str | Path) -> IO[bytes]:
    """Open a raw dump for reading, decompressing by file extension."""
    path = Path(path)
    try:
        if path.suffix == ".bz2":
            logger.info("Assuming bzip2 compressed dump: %s", path)
            return bz2.open(path, "rb")
        if path.suffix == ".gz":
            logger.info("Assuming gzip compressed dump: %s", path)
            return gzip.open(path, "rb")
        logger.info("Assuming uncompressed dump: %s", path)
        return open(path, "rb")
    except OSError as exc:
        raise FatalIOError(f"Cannot open {path}: {exc}") from exc


def _parse_header(line: str, path: Path) -> int:
    try:
        header = json.loads(line)
        count = int(header["count"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        raise RecordDecodeError(f"{path}: missing or malformed count header") from exc
    if count < 0:
        raise RecordDecodeError(f"{path}: negative record count {count}")
    return count


def read_record_count(path: str | Path) -> int:
    """Read only the count header of a record stream."""
    path = Path(path)
    with open_text(path) as f:
        try:
            line = f.readline()
        except (OSError, EOFError) as exc:
            raise FatalIOError(f"Cannot read {path}: {exc}") from exc
    return _parse_header(line, path)


def iter_records(
    path: str | Path,
    decode: Callable[[dict], T] | None = None,
) -> Iterator[T]:
    """
    Stream records from a count-prefixed JSONL file.

    Args:
        path: Record stream path (plain or .gz)
        decode: Optional function turning each record dict into a typed object

    Yields:
        Records one at a time, decoded when decode is given

    Raises:
        FatalIOError: If the file can't be opened or read
        RecordDecodeError: On a bad header, bad JSON, or fewer records than announced
    """
    path = Path(path)
    with open_text(path) as f:
        try:
            count = _parse_header(f.readline(), path)
            for index in range(count):
                line = f.readline()
                if not line:
                    raise RecordDecodeError(
                        f"{path}: expected {count} records, stream ended after {index}"
                    )
                try:
                    data = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise RecordDecodeError(f"{path}: record {index + 1} is not valid JSON") from exc
                yield decode(data) if decode else data
        except UnicodeDecodeError as exc:
            raise RecordDecodeError(f"{path}: not valid UTF-8 ({exc})") from exc
        except (OSError, EOFError) as exc:
            raise FatalIOError(f"Cannot read {path}: {exc}") from exc


def _write_line(f: IO[str], record: Any) -> None:
    f.write(json.dumps(to_record(record), ensure_ascii=False) + "\n")


def write_records(
    path: str | Path,
    records: Iterable[Any],
    count: int | None = None,
    queue_size: int = 1000,
) -> int:
    """
    Write records to a count-prefixed JSONL file through a bounded writer queue.

    When count is unknown the records are spooled to a temporary file first so
    the header can still lead the stream.

    Args:
        path: Output path (.gz for gzip)
        records: Dataclasses or dicts to write
        count: Number of records, if known up front
        queue_size: Writer queue capacity

    Returns:
        Number of records written
    """
    path = Path(path)
    written = 0

    def _sink(items: Iterable[Any]) -> None:
        nonlocal written
        try:
            if count is not None:
                with open_text(path, "wt") as f:
                    f.write(json.dumps({"count": count}) + "\n")
                    for item in items:
                        _write_line(f, item)
                        written += 1
                return

            with tempfile.TemporaryFile("w+", encoding="utf-8") as spool:
                for item in items:
                    _write_line(spool, item)
                    written += 1
                spool.seek(0)
                with open_text(path, "wt") as f:
                    f.write(json.dumps({"count": written}) + "\n")
                    shutil.copyfileobj(spool, f)
        except OSError as exc:
            raise FatalIOError(f"Cannot write {path}: {exc}") from exc

    with consume(_sink, queue_size, name=f"writer:{path.name}") as channel:
        for record in records:
            channel.put(record)

    if count is not None and written != count:
        raise FatalIOError(f"{path}: announced {count} records but wrote {written}")

    logger.info("Saved %d records to %s", written, path)
    return written
