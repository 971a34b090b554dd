"""Tests for the sheet controller, sheet files and project config."""

from __future__ import annotations

import math
from pathlib import Path

import pytest
import yaml

from sheetcalc.formulas import ErrorKind, ErrorMessages, FormulaParseError, FormulaRefError, SheetFileError
from sheetcalc.project import DEFAULT_CONFIG, load_project_config, scaffold_project, sheet_path
from sheetcalc.sheet import Sheet, load_project_sheet, load_sheet, save_sheet


@pytest.fixture
def sheet() -> Sheet:
    return Sheet(config={"max_rows": 50, "max_columns": 10})


def _write_sheet(path: Path, cells: dict) -> Path:
    path.write_text(yaml.safe_dump({"version": 1, "cells": cells}, sort_keys=False))
    return path


# ────────────────────────────────────────────────────────────────
# Sheet controller
# ────────────────────────────────────────────────────────────────


class TestSheet:
    def test_chained_references(self, sheet: Sheet) -> None:
        sheet.set_formula_text("A1", "2 + 3")
        sheet.set_formula_text("A2", "A1 * 4")
        cell = sheet.get_cell("A2")
        assert cell.value == 20
        assert cell.error == ""
        assert cell.formula == ("A1", "*", "4")

    def test_set_formula_with_tokens(self, sheet: Sheet) -> None:
        cell = sheet.set_formula("b3", ["7", "+/-"])
        assert cell.label == "B3"
        assert sheet.get_cell("B3").value == -7

    def test_reference_to_unset_cell(self, sheet: Sheet) -> None:
        cell = sheet.set_formula_text("A1", "C5 + 1")
        assert cell.error == ErrorMessages.invalid_cell
        assert cell.value == 0
        assert cell.display == "#REF!"

    def test_error_propagates_through_references(self, sheet: Sheet) -> None:
        sheet.set_formula_text("A1", "1 / 0")
        assert sheet.get_cell("A1").value == math.inf
        cell = sheet.set_formula_text("A2", "A1 + 1")
        assert cell.error == ErrorMessages.divide_by_zero
        assert cell.value == 0

    def test_reference_error_from_another_cell_is_propagated(self, sheet: Sheet) -> None:
        sheet.set_formula_text("A1", "B1")
        evaluation = sheet.evaluate(["A1"])
        assert evaluation.error == ErrorMessages.invalid_cell
        assert evaluation.kind == ErrorKind.propagated

    def test_empty_formula_clears_cell(self, sheet: Sheet) -> None:
        sheet.set_formula_text("A1", "4")
        sheet.set_formula_text("A1", "")
        assert sheet.get_cell("A1").is_empty
        assert len(sheet.memory) == 0
        cell = sheet.set_formula_text("A2", "A1")
        assert cell.error == ErrorMessages.invalid_cell

    def test_no_recalculation_of_dependents(self, sheet: Sheet) -> None:
        sheet.set_formula_text("A1", "1")
        sheet.set_formula_text("A2", "A1 + 1")
        sheet.set_formula_text("A1", "10")
        assert sheet.get_cell("A2").value == 2

    def test_self_reference_reads_previous_state(self, sheet: Sheet) -> None:
        sheet.set_formula_text("A1", "5")
        cell = sheet.set_formula_text("A1", "A1 * 2")
        assert cell.value == 10

    def test_evaluate_does_not_write(self, sheet: Sheet) -> None:
        sheet.set_formula_text("A1", "3")
        evaluation = sheet.evaluate_text("A1 * A1")
        assert evaluation.result == 9
        assert sheet.memory.labels() == ["A1"]

    def test_evaluate_tokens(self, sheet: Sheet) -> None:
        evaluation = sheet.evaluate(["(", "1"])
        assert evaluation.kind == ErrorKind.missing_parentheses

    def test_write_outside_sheet(self, sheet: Sheet) -> None:
        with pytest.raises(FormulaRefError):
            sheet.set_formula_text("K1", "1")

    def test_untokenizable_text(self, sheet: Sheet) -> None:
        with pytest.raises(FormulaParseError):
            sheet.set_formula_text("A1", "1 # 2")

    def test_formulas(self, sheet: Sheet) -> None:
        sheet.set_formula_text("B1", "2")
        sheet.set_formula_text("A1", "B1+1")
        assert sheet.formulas() == {"A1": "B1 + 1", "B1": "2"}

    def test_default_bounds(self) -> None:
        sheet = Sheet()
        assert sheet.memory.max_rows == DEFAULT_CONFIG["max_rows"]
        assert sheet.memory.max_columns == DEFAULT_CONFIG["max_columns"]


# ────────────────────────────────────────────────────────────────
# Sheet files
# ────────────────────────────────────────────────────────────────


class TestSheetFiles:
    def test_load_in_file_order(self, tmp_path: Path) -> None:
        path = _write_sheet(tmp_path / "sheet.yaml", {"B1": "4", "A1": "B1 * 2", "A2": 3})
        sheet = load_sheet(path)
        assert sheet.get_cell("A1").value == 8
        assert sheet.get_cell("A2").value == 3

    def test_forward_reference_is_invalid(self, tmp_path: Path) -> None:
        path = _write_sheet(tmp_path / "sheet.yaml", {"A1": "B1 * 2", "B1": "4"})
        sheet = load_sheet(path)
        assert sheet.get_cell("A1").error == ErrorMessages.invalid_cell

    def test_null_formula_is_skipped(self, tmp_path: Path) -> None:
        path = _write_sheet(tmp_path / "sheet.yaml", {"A1": None, "A2": "1"})
        sheet = load_sheet(path)
        assert sheet.memory.labels() == ["A2"]

    def test_save_round_trip_preserves_order(self, tmp_path: Path) -> None:
        sheet = Sheet()
        sheet.set_formula_text("B2", "6")
        sheet.set_formula_text("A1", "B2 / 2")
        path = save_sheet(sheet, tmp_path / "out.yaml")

        spec = yaml.safe_load(path.read_text())
        assert spec["version"] == 1
        assert list(spec["cells"]) == ["B2", "A1"]

        reloaded = load_sheet(path)
        assert reloaded.get_cell("A1").value == 3

    def test_save_after_rewrite_reloads_same_values(self, tmp_path: Path) -> None:
        sheet = Sheet()
        sheet.set_formula_text("A1", "1")
        sheet.set_formula_text("B1", "5")
        sheet.set_formula_text("A1", "B1")
        assert sheet.get_cell("A1").value == 5
        path = save_sheet(sheet, tmp_path / "out.yaml")

        assert list(yaml.safe_load(path.read_text())["cells"]) == ["B1", "A1"]
        reloaded = load_sheet(path)
        assert reloaded.get_cell("A1").value == 5
        assert reloaded.get_cell("A1").error == ""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SheetFileError, match="not found"):
            load_sheet(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "sheet.yaml"
        path.write_text("cells: [unclosed")
        with pytest.raises(SheetFileError, match="invalid YAML"):
            load_sheet(path)

    def test_cells_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "sheet.yaml"
        path.write_text("cells:\n  - A1\n")
        with pytest.raises(SheetFileError):
            load_sheet(path)

    def test_bad_cell_reports_label(self, tmp_path: Path) -> None:
        path = _write_sheet(tmp_path / "sheet.yaml", {"A1": "1 & 2"})
        with pytest.raises(SheetFileError, match="cell A1"):
            load_sheet(path)

    def test_cell_outside_configured_bounds(self, tmp_path: Path) -> None:
        path = _write_sheet(tmp_path / "sheet.yaml", {"C1": "1"})
        with pytest.raises(SheetFileError):
            load_sheet(path, {"max_columns": 2})


# ────────────────────────────────────────────────────────────────
# Project config
# ────────────────────────────────────────────────────────────────


class TestProject:
    def test_defaults_without_config(self, tmp_path: Path) -> None:
        assert load_project_config(tmp_path) == DEFAULT_CONFIG

    def test_overrides(self, tmp_path: Path) -> None:
        (tmp_path / "sheetcalc.yaml").write_text("max_rows: 10\nsheet_file: other.yaml\n")
        cfg = load_project_config(tmp_path)
        assert cfg["max_rows"] == 10
        assert cfg["max_columns"] == DEFAULT_CONFIG["max_columns"]
        assert sheet_path(tmp_path, cfg) == tmp_path / "other.yaml"

    def test_invalid_bounds(self, tmp_path: Path) -> None:
        (tmp_path / "sheetcalc.yaml").write_text("max_columns: 0\n")
        with pytest.raises(ValueError):
            load_project_config(tmp_path)

    def test_scaffold_and_load(self, tmp_path: Path) -> None:
        project = scaffold_project(tmp_path / "demo")
        assert (project / "sheet.yaml").exists()
        assert (project / "sheetcalc.yaml").exists()

        sheet, path = load_project_sheet(project)
        assert path == project / "sheet.yaml"
        assert sheet.get_cell("A3").value == 50
        assert sheet.get_cell("B1").value == 5
        assert sheet.get_cell("B2").value == -50

    def test_scaffold_refuses_overwrite(self, tmp_path: Path) -> None:
        scaffold_project(tmp_path)
        with pytest.raises(FileExistsError):
            scaffold_project(tmp_path)
