"""Sheet controller: writes formulas into cells and evaluates them.

A sheet file is YAML with a ``cells`` mapping of A1 labels to formula text::

    version: 1
    cells:
      A1: "10"
      A2: "A1 * 2"

Cells are evaluated once, when written, in file order.  Dependent cells
are not recomputed when a cell they reference changes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import yaml

from sheetcalc.cells import Cell
from sheetcalc.formulas.errors import FormulaParseError, FormulaRefError, SheetFileError
from sheetcalc.formulas.evaluator import Evaluation, FormulaEvaluator
from sheetcalc.formulas.tokenizer import detokenize, tokenize
from sheetcalc.logging.events import EventLevel, EventType, emit, emit_error, emit_info, make_cell_event
from sheetcalc.project import DEFAULT_CONFIG, load_project_config, sheet_path
from sheetcalc.sheet_memory import SheetMemory

SHEET_FORMAT_VERSION = 1


class Sheet:
    """A cell store paired with the evaluator that fills it.

    Usage::

        sheet = Sheet()
        sheet.set_formula_text("A1", "2 + 3")
        sheet.set_formula_text("A2", "A1 * 4")
        sheet.get_cell("A2").value  # 20.0
    """

    def __init__(
        self,
        memory: SheetMemory | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        cfg = dict(DEFAULT_CONFIG)
        if config:
            cfg.update(config)
        self.config = cfg
        self.memory = memory or SheetMemory(
            max_rows=int(cfg["max_rows"]),
            max_columns=int(cfg["max_columns"]),
        )
        self.evaluator = FormulaEvaluator(self.memory)

    def get_cell(self, label: str) -> Cell:
        return self.memory.get_cell_by_label(label.upper())

    def evaluate(self, tokens: Sequence[str]) -> Evaluation:
        """Evaluate *tokens* against this sheet without writing anything."""
        return self.evaluator.evaluate(tokens)

    def evaluate_text(self, text: str) -> Evaluation:
        """Tokenize and evaluate *text* against this sheet."""
        return self.evaluate(tokenize(text))

    def set_formula(self, label: str, tokens: Sequence[str]) -> Cell:
        """Evaluate *tokens* and store the outcome in the cell at *label*.

        Writing an empty formula clears the cell.

        Raises:
            FormulaRefError: If *label* is not a cell inside this sheet.
        """
        label = label.upper()
        tokens = tuple(tokens)
        if not tokens:
            self.memory.clear_cell(label)
            return self.memory.get_cell_by_label(label)

        evaluation = self.evaluator.evaluate(tokens)
        cell = Cell(label, tokens, evaluation.result, evaluation.error)
        self.memory.set_cell_by_label(label, cell)

        if evaluation.ok:
            emit(
                make_cell_event(
                    EventType.cell_evaluated,
                    EventLevel.info,
                    f"{label} = {cell.display}",
                    label=label,
                    formula=cell.formula_text,
                )
            )
        else:
            emit(
                make_cell_event(
                    EventType.cell_error,
                    EventLevel.warning,
                    f"{label} failed with {evaluation.error}",
                    label=label,
                    formula=cell.formula_text,
                    error_code=evaluation.kind.value if evaluation.kind else None,
                )
            )
        return cell

    def set_formula_text(self, label: str, text: str) -> Cell:
        """Tokenize *text* and store it in the cell at *label*."""
        return self.set_formula(label, tokenize(text))

    def formulas(self) -> dict[str, str]:
        """Formula text of every written cell, in row-major order."""
        return {cell.label: cell.formula_text for cell in self.memory.cells()}


# ---------------------------------------------------------------------------
# Sheet files
# ---------------------------------------------------------------------------


def load_sheet(path: Path, config: dict[str, Any] | None = None) -> Sheet:
    """Load a sheet file, evaluating each cell in file order.

    Args:
        path: Path to the sheet YAML file.
        config: Project configuration (sheet bounds).

    Returns:
        The populated sheet.

    Raises:
        SheetFileError: If the file is missing, is not valid YAML, or
            holds a cell that cannot be tokenized or placed.
    """
    if not path.exists():
        raise SheetFileError(path, "sheet file not found")
    try:
        spec = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise SheetFileError(path, f"invalid YAML: {exc}") from exc
    if not isinstance(spec, dict):
        raise SheetFileError(path, "sheet file must contain a mapping")

    cells = spec.get("cells") or {}
    if not isinstance(cells, dict):
        raise SheetFileError(path, "'cells' must be a mapping of label to formula")

    sheet = Sheet(config=config)
    for label, formula in cells.items():
        text = "" if formula is None else str(formula)
        try:
            sheet.set_formula_text(str(label), text)
        except (FormulaParseError, FormulaRefError) as exc:
            raise SheetFileError(path, f"cell {label}: {exc}") from exc

    emit_info(
        EventType.sheet_loaded,
        f"Loaded {len(sheet.memory)} cell(s) from {path.name}",
        {"path": str(path), "cells": len(sheet.memory)},
    )
    return sheet


def save_sheet(sheet: Sheet, path: Path) -> Path:
    """Write the formulas of *sheet* to *path*.

    Cells are written in the order they were last set, which is the order
    ``load_sheet`` evaluates them in.
    """
    spec = {
        "version": SHEET_FORMAT_VERSION,
        "cells": {cell.label: detokenize(cell.formula) for cell in sheet.memory.written()},
    }
    path.write_text(yaml.safe_dump(spec, sort_keys=False, default_flow_style=False))
    emit_info(
        EventType.sheet_saved,
        f"Saved {len(sheet.memory)} cell(s) to {path.name}",
        {"path": str(path), "cells": len(sheet.memory)},
    )
    return path


def load_project_sheet(project_dir: Path) -> tuple[Sheet, Path]:
    """Load the sheet of the project in *project_dir*.

    A sheet file that fails to load is logged as an error event before
    the ``SheetFileError`` propagates.

    Returns:
        Tuple of (sheet, sheet file path).
    """
    config = load_project_config(project_dir)
    path = sheet_path(project_dir, config)
    try:
        sheet = load_sheet(path, config)
    except SheetFileError as exc:
        emit_error(
            EventType.sheet_load_failed,
            str(exc),
            {"path": str(path)},
            error_code="sheet_file",
        )
        raise
    return sheet, path
