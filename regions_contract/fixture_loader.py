# regions_contract/fixture_loader.py
"""
CSV fixture loader.

Each fixture file holds one scenario instance per row. The first
``skip_lines`` rows (the header) are skipped; every remaining row must
have exactly as many columns as ``types`` declares, and each column is
converted with its type (``str`` or ``int``). Values are stripped and an
empty cell becomes ``None``.

Column layout maps onto ``FixtureRow``: endpoint, then optional JSON
path, then optional expected value.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence, Union

from regions_contract.config import get_settings
from regions_contract.contract_types import FixtureLoadError, FixtureRow

logger = logging.getLogger(__name__)

Converter = Callable[[str], object]


def resolve_fixture(resource: Union[str, Path], fixtures_dir: Optional[Path] = None) -> Path:
    """Bare names resolve against the fixtures dir, anything else is used as a path."""
    p = Path(resource)
    if p.is_absolute() or p.parent != Path("."):
        return p
    base = fixtures_dir or get_settings().fixtures_dir
    return Path(base) / p


def _convert(value: str, conv: Converter, resource: str, line: int) -> object:
    value = value.strip()
    if value == "":
        return None
    try:
        return conv(value)
    except (TypeError, ValueError) as e:
        raise FixtureLoadError(resource, f"cannot convert {value!r}: {e}", line) from e


def load_fixture(
    resource: Union[str, Path],
    types: Sequence[Converter] = (str, str, str),
    skip_lines: int = 1,
    fixtures_dir: Optional[Path] = None,
) -> Iterator[FixtureRow]:
    """
    Lazily yield typed rows from a CSV fixture.

    Raises FixtureLoadError immediately if the file is missing, and while
    iterating if a row has the wrong number of columns.
    """
    if not 1 <= len(types) <= 3:
        raise ValueError(f"fixture arity must be 1-3 columns, got {len(types)}")

    path = resolve_fixture(resource, fixtures_dir)
    if not path.is_file():
        raise FixtureLoadError(str(resource), f"file not found at {path}")

    return _iter_rows(path, str(resource), tuple(types), skip_lines)


def _iter_rows(path: Path, resource: str, types: tuple, skip_lines: int) -> Iterator[FixtureRow]:
    arity = len(types)
    count = 0
    with path.open("r", encoding="utf-8-sig", newline="") as fh:
        reader = csv.reader(fh)
        next_start = 1
        for record, row in enumerate(reader, start=1):
            # quoted cells may span lines, so report where the record starts
            line, next_start = next_start, reader.line_num + 1
            if record <= skip_lines:
                continue
            if not row or all(not cell.strip() for cell in row):
                continue
            if len(row) != arity:
                raise FixtureLoadError(
                    resource, f"expected {arity} columns, got {len(row)}", line
                )

            values = [_convert(cell, conv, resource, line) for cell, conv in zip(row, types)]
            if values[0] is None:
                raise FixtureLoadError(resource, "endpoint column is empty", line)
            values += [None] * (3 - arity)
            count += 1
            yield FixtureRow(endpoint=values[0], path=values[1], expected=values[2], line=line)

    logger.debug(f"Loaded {count} rows from fixture {path.name}")
