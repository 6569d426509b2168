"""Serialization utilities."""

from dataclasses import asdict, is_dataclass
from typing import Any


def serialize_dataclass(obj) -> dict:
    """Serialize a dataclass, nested dataclasses included, to a plain dict."""
    return asdict(obj)


def to_record(obj: Any) -> Any:
    """Turn a dataclass into a JSON-ready dict; pass mappings through unchanged."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return serialize_dataclass(obj)
    return obj
