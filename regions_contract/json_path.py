# regions_contract/json_path.py
"""
Dotted JSON path extraction.

``items.id`` walks into ``items`` and, because ``items`` is a list,
projects ``id`` across every element. Projections flatten one level per
list crossed, so ``items.country.code`` is a flat list of codes. A
numeric segment applied to a list indexes it instead (``items.0.name``).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List

from regions_contract.contract_types import PathNotFound


class RegionPaths(str, Enum):
    """Named accessors for the fields the suite reads."""
    ITEMS = "items"
    IDS = "items.id"
    NAMES = "items.name"
    COUNTRY_CODES = "items.country.code"
    TOTAL = "total"
    ERROR_MESSAGE = "error.message"


def _split(path: str) -> List[str]:
    parts = [p for p in str(path).split(".") if p]
    if not parts:
        raise ValueError(f"empty JSON path: {path!r}")
    return parts


def _step(node: Any, segment: str, path: str) -> Any:
    if isinstance(node, dict):
        if segment not in node:
            raise PathNotFound(path, segment)
        return node[segment]
    raise PathNotFound(path, segment)


def extract(document: Any, path: str) -> Any:
    """
    Extract a scalar or a list of scalars from ``document``.

    Raises PathNotFound when a segment is absent. An empty intermediate
    list yields ``[]``.
    """
    if isinstance(path, RegionPaths):
        path = path.value
    return _walk(document, _split(path), path)


def _walk(node: Any, segments: List[str], path: str) -> Any:
    if not segments:
        return node

    segment, rest = segments[0], segments[1:]

    if isinstance(node, list):
        if segment.isdigit():
            idx = int(segment)
            if idx >= len(node):
                raise PathNotFound(path, segment)
            return _walk(node[idx], rest, path)

        out: List[Any] = []
        for item in node:
            value = _walk(_step(item, segment, path), rest, path)
            if isinstance(value, list):
                out.extend(value)
            else:
                out.append(value)
        return out

    return _walk(_step(node, segment, path), rest, path)


def extract_list(document: Any, path: str) -> List[Any]:
    """Like extract, but always returns a list (a scalar is wrapped)."""
    value = extract(document, path)
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def extract_string(document: Any, path: str) -> str:
    """String form of the extracted value; lists render like ``[a, b]``."""
    value = extract(document, path)
    if isinstance(value, list):
        return "[" + ", ".join(str(v) for v in value) + "]"
    return "" if value is None else str(value)
