"""
CSV text adapter.

Reads and writes CSV held in memory as text (RFC 4180 quoting via the
standard ``csv`` module).  Blank lines are skipped.  A leading UTF-8 BOM is
dropped.

Architecture: stock_ingestion/adapters. Text I/O only, no DB or kernel imports.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Any, Iterable, Sequence


_BOM = "\ufeff"


@dataclass(frozen=True)
class CsvDocument:
    """
    Parsed CSV text.

    ``rows`` holds ``(line_number, record)`` pairs where ``line_number`` is
    the 1-based display number of the row counting the header as line 1 and
    ignoring blank lines.  Missing trailing cells read as "".
    """

    columns: tuple[str, ...]
    rows: tuple[tuple[int, dict[str, str]], ...]

    @property
    def line_count(self) -> int:
        """Non-blank lines, header included."""
        return (1 if self.columns else 0) + len(self.rows)


def _is_blank(cells: Sequence[str]) -> bool:
    # A row of bare delimiters is data, not a blank line.
    return not cells or (len(cells) == 1 and not cells[0].strip())


class CsvTextAdapter:
    """Read CSV text into records and render rows back to CSV text."""

    def __init__(self, delimiter: str = ",", line_terminator: str = "\n"):
        self._delimiter = delimiter
        self._line_terminator = line_terminator

    def read_text(self, text: str) -> CsvDocument:
        if text.startswith(_BOM):
            text = text[len(_BOM):]

        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self._delimiter)
        non_blank = (cells for cells in reader if not _is_blank(cells))

        header = next(non_blank, None)
        if header is None:
            return CsvDocument(columns=(), rows=())
        columns = tuple(c.strip() for c in header)

        rows: list[tuple[int, dict[str, str]]] = []
        for position, cells in enumerate(non_blank):
            record = {
                name: (cells[i] if i < len(cells) else "")
                for i, name in enumerate(columns)
            }
            rows.append((position + 2, record))
        return CsvDocument(columns=columns, rows=tuple(rows))

    def write_text(
        self,
        columns: Sequence[str],
        rows: Iterable[Sequence[Any]],
    ) -> str:
        """Header line followed by one line per row; quoting only where needed."""
        buffer = io.StringIO()
        writer = csv.writer(
            buffer,
            delimiter=self._delimiter,
            lineterminator=self._line_terminator,
            quoting=csv.QUOTE_MINIMAL,
        )
        writer.writerow(columns)
        for row in rows:
            writer.writerow(["" if v is None else v for v in row])
        return buffer.getvalue()
