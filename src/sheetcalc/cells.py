"""Cell records and A1-style address helpers."""

from __future__ import annotations

import math
import re
from typing import Sequence

from sheetcalc.formulas.errors import ErrorMessages

# Column letters (1-3, uppercase) followed by a 1-based row number
_ADDR_RE = re.compile(r"^([A-Z]{1,3})([1-9][0-9]*)$")


def is_valid_cell_label(label: str) -> bool:
    """Return True if *label* is an A1-style cell label such as ``B7`` or ``AA10``."""
    return isinstance(label, str) and _ADDR_RE.match(label) is not None


def col_letter_to_index(letters: str) -> int:
    """Convert column letter(s) to 0-based index.  A=0, B=1, ..., Z=25, AA=26."""
    idx = 0
    for ch in letters:
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1


def index_to_col_letter(idx: int) -> str:
    """Convert 0-based column index to letter(s).  0=A, 25=Z, 26=AA."""
    result = ""
    n = idx + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        result = chr(65 + rem) + result
    return result


def parse_addr(addr: str) -> tuple[int, int]:
    """Parse 'A1' -> (row_0based, col_0based).

    Raises ValueError on bad address.
    """
    m = _ADDR_RE.match(addr)
    if not m:
        raise ValueError(f"Invalid cell address: {addr!r}")
    col = col_letter_to_index(m.group(1))
    row = int(m.group(2)) - 1
    return row, col


def make_addr(row: int, col: int) -> str:
    """Build cell address from 0-based row/col."""
    return f"{index_to_col_letter(col)}{row + 1}"


def format_number(value: float) -> str:
    """Format a numeric cell value for display."""
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return f"{value:.10g}"


class Cell:
    """A single sheet cell: its formula tokens and last computed outcome.

    A cell that has never been written holds an empty formula and the
    ``#EMPTY!`` error, which lets formulas that reference it report an
    invalid reference rather than a real error.
    """

    def __init__(
        self,
        label: str,
        formula: Sequence[str] = (),
        value: float = 0.0,
        error: str = ErrorMessages.empty_formula,
    ) -> None:
        self.label = label
        self.formula = tuple(formula)
        self.value = value
        self.error = error

    def get_formula(self) -> tuple[str, ...]:
        return self.formula

    def get_value(self) -> float:
        return self.value

    def get_error(self) -> str:
        return self.error

    @property
    def is_empty(self) -> bool:
        return not self.formula

    @property
    def formula_text(self) -> str:
        """Formula tokens joined back into editable text."""
        return " ".join(self.formula)

    @property
    def display(self) -> str:
        """What a sheet shows in this cell."""
        if not self.formula:
            return ""
        if self.error:
            return self.error
        return format_number(self.value)

    def __repr__(self) -> str:
        return (
            f"Cell({self.label!r}, formula={list(self.formula)!r}, "
            f"value={self.value!r}, error={self.error!r})"
        )
