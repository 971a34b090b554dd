"""Error messages, error kinds and exception types for formula handling."""

from __future__ import annotations

from enum import Enum


class ErrorMessages:
    """Display strings written into a cell when its formula fails."""

    partial = "#ERR"
    divide_by_zero = "#DIV/0!"
    invalid_cell = "#REF!"
    invalid_formula = "#ERR"
    missing_parentheses = "#ERR"
    empty_formula = "#EMPTY!"


class ErrorKind(str, Enum):
    """Machine-readable classification of an evaluation failure.

    Several kinds share the ``#ERR`` display string, so callers that need to
    tell them apart should inspect the kind rather than the message.
    """

    empty_formula = "empty_formula"
    invalid_formula = "invalid_formula"
    partial = "partial"
    missing_parentheses = "missing_parentheses"
    divide_by_zero = "divide_by_zero"
    invalid_cell = "invalid_cell"
    propagated = "propagated"


DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.empty_formula: ErrorMessages.empty_formula,
    ErrorKind.invalid_formula: ErrorMessages.invalid_formula,
    ErrorKind.partial: ErrorMessages.partial,
    ErrorKind.missing_parentheses: ErrorMessages.missing_parentheses,
    ErrorKind.divide_by_zero: ErrorMessages.divide_by_zero,
    ErrorKind.invalid_cell: ErrorMessages.invalid_cell,
}


class FormulaError(Exception):
    """Base class for all formula-related errors."""


class FormulaParseError(FormulaError):
    """Raw formula text could not be split into tokens.

    Attributes:
        position: Character position where the error was detected.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        full = f"Formula parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)


class FormulaRefError(FormulaError):
    """A cell label is malformed or lies outside the sheet.

    Attributes:
        ref_name: The offending label.
    """

    def __init__(self, ref_name: str, message: str | None = None) -> None:
        self.ref_name = ref_name
        super().__init__(message or f"Invalid cell reference: {ref_name!r}")


class SheetFileError(FormulaError):
    """A sheet file on disk is missing or malformed.

    Attributes:
        path: The file that failed to load.
    """

    def __init__(self, path: object, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")
