from __future__ import annotations

from typing import Callable

import pytest

from sheetcalc.cells import Cell
from sheetcalc.sheet_memory import SheetMemory


@pytest.fixture(autouse=True)
def _detach_event_sink():
    """Keep the module-level event sink from leaking between tests."""
    from sheetcalc.logging.events import reset_sink

    reset_sink()
    yield
    reset_sink()


@pytest.fixture
def memory() -> SheetMemory:
    return SheetMemory(max_rows=20, max_columns=5)


@pytest.fixture
def put(memory: SheetMemory) -> Callable[..., Cell]:
    """Store a cell as if its formula had already been evaluated."""

    def _put(label: str, value: float, error: str = "", formula: tuple[str, ...] | None = None) -> Cell:
        cell = Cell(label, formula if formula is not None else (str(value),), value, error)
        memory.set_cell_by_label(label, cell)
        return cell

    return _put
