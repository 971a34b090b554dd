"""In-memory cell store backing a single sheet."""

from __future__ import annotations

from typing import Iterator

import polars as pl

from sheetcalc.cells import Cell, is_valid_cell_label, make_addr, parse_addr
from sheetcalc.formulas.errors import FormulaRefError


class SheetMemory:
    """Holds the cells of one sheet, keyed by A1 label.

    Reads never fail for a well-formed label: a cell that has not been
    written, or that lies outside the sheet, comes back as a fresh blank
    ``Cell``.  Writes are checked against the sheet bounds.

    Parameters
    ----------
    max_rows : int
        Number of rows (labels ``A1`` .. ``A{max_rows}``).
    max_columns : int
        Number of columns (``A`` .. the ``max_columns``-th letter code).
    """

    def __init__(self, max_rows: int = 1000, max_columns: int = 26) -> None:
        self.max_rows = max_rows
        self.max_columns = max_columns
        self._cells: dict[tuple[int, int], Cell] = {}

    def _key(self, label: str) -> tuple[int, int]:
        if not is_valid_cell_label(label):
            raise FormulaRefError(label)
        row, col = parse_addr(label)
        if row >= self.max_rows or col >= self.max_columns:
            raise FormulaRefError(
                label,
                f"Cell {label!r} is outside the sheet "
                f"({self.max_rows} rows x {self.max_columns} columns)",
            )
        return row, col

    def get_cell_by_label(self, label: str) -> Cell:
        """Return the cell at *label*, or a blank cell if it was never written.

        Labels outside the sheet bounds read as blank cells too.
        """
        if not is_valid_cell_label(label):
            raise FormulaRefError(label)
        cell = self._cells.get(parse_addr(label))
        if cell is None:
            return Cell(label)
        return cell

    def set_cell_by_label(self, label: str, cell: Cell) -> None:
        """Store *cell* at *label*, moving it to the end of the write order."""
        key = self._key(label)
        cell.label = label
        self._cells.pop(key, None)
        self._cells[key] = cell

    def clear_cell(self, label: str) -> None:
        """Forget the cell at *label*; later reads see a blank cell."""
        self._cells.pop(self._key(label), None)

    def labels(self) -> list[str]:
        """Labels of all written cells in row-major order."""
        return [make_addr(r, c) for r, c in sorted(self._cells)]

    def cells(self) -> Iterator[Cell]:
        """Iterate written cells in row-major order."""
        for key in sorted(self._cells):
            yield self._cells[key]

    def written(self) -> Iterator[Cell]:
        """Iterate written cells in the order they were last written."""
        yield from self._cells.values()

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, label: object) -> bool:
        if not isinstance(label, str) or not is_valid_cell_label(label):
            return False
        return parse_addr(label) in self._cells

    def to_frame(self) -> pl.DataFrame:
        """Export written cells as a DataFrame (row-major)."""
        rows = []
        for (r, c), cell in sorted(self._cells.items()):
            rows.append(
                {
                    "label": cell.label,
                    "row": r + 1,
                    "column": c + 1,
                    "formula": cell.formula_text,
                    "value": cell.value,
                    "error": cell.error,
                    "display": cell.display,
                }
            )
        schema = {
            "label": pl.Utf8,
            "row": pl.Int64,
            "column": pl.Int64,
            "formula": pl.Utf8,
            "value": pl.Float64,
            "error": pl.Utf8,
            "display": pl.Utf8,
        }
        return pl.DataFrame(rows, schema=schema)
