"""Recursive-descent evaluator for tokenized arithmetic formulas.

Grammar (lowest to highest precedence)::

    expression: term (("+" | "-") term)*
    term:       factor (("*" | "/") factor | "+/-")*
    factor:     NUMBER | "(" expression ")" | CELL_REF

The three grammar levels share an immutable token tuple and thread an
explicit cursor through their calls.  Each level returns a ``_Step`` that
holds either its computed value or, once something has gone wrong, the
rollback value the whole evaluation reports.  The first fault wins: every
enclosing level hands a faulted step back unchanged.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from sheetcalc.formulas.errors import DEFAULT_MESSAGES, ErrorKind, ErrorMessages

ADDITIVE_OPERATORS = ("+", "-")
MULTIPLICATIVE_OPERATORS = ("*", "/")
SIGN_TOGGLE = "+/-"
OPEN_PAREN = "("
CLOSE_PAREN = ")"

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


class CellSnapshot(Protocol):
    """Read-only view of a referenced cell."""

    def get_formula(self) -> Sequence[str]:
        ...

    def get_value(self) -> float:
        ...

    def get_error(self) -> str:
        ...


class CellStore(Protocol):
    """Resolves a cell label to its current snapshot."""

    def get_cell_by_label(self, label: str) -> CellSnapshot:
        ...


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Fault:
    """The first error raised by a grammar level."""

    kind: ErrorKind
    message: str

    @classmethod
    def of(cls, kind: ErrorKind) -> Fault:
        return cls(kind, DEFAULT_MESSAGES[kind])


@dataclass(frozen=True)
class _Step:
    value: float
    pos: int
    fault: Fault | None = None


@dataclass(frozen=True)
class Evaluation:
    """Outcome of one ``evaluate`` call.

    Attributes:
        result: The computed value, or the rollback value on error.
        error: Display error string, empty on success.
        kind: Error classification, ``None`` on success.
    """

    result: float
    error: str = ""
    kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return not self.error


def is_number(token: str) -> bool:
    """Return True if *token* is a decimal numeric literal."""
    return _NUMBER_RE.match(token) is not None


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class FormulaEvaluator:
    """Evaluates token sequences against a read-only cell store.

    Usage::

        evaluator = FormulaEvaluator(memory)
        evaluator.evaluate(["A1", "*", "(", "2", "+", "3", ")"])
        print(evaluator.result, evaluator.error)
    """

    def __init__(
        self,
        store: CellStore,
        is_cell_label: Callable[[str], bool] | None = None,
    ) -> None:
        if is_cell_label is None:
            # Local import to avoid circular dependency
            from sheetcalc.cells import is_valid_cell_label

            is_cell_label = is_valid_cell_label
        self._store = store
        self._is_cell_label = is_cell_label
        self._tokens: tuple[str, ...] = ()
        self._last = Evaluation(0.0)

    @property
    def result(self) -> float:
        return self._last.result

    @property
    def error(self) -> str:
        return self._last.error

    @property
    def kind(self) -> ErrorKind | None:
        return self._last.kind

    def evaluate(self, formula: Sequence[str]) -> Evaluation:
        """Evaluate *formula* and record the outcome on this evaluator.

        Never raises for a malformed formula; failures are reported through
        the returned ``Evaluation`` and the ``result``/``error`` accessors.
        """
        self._tokens = tuple(formula)
        try:
            self._last = self._run()
        except RecursionError:
            # Parentheses nested deeper than the interpreter stack allows
            self._last = Evaluation(0.0, ErrorMessages.invalid_formula, ErrorKind.invalid_formula)
        finally:
            self._tokens = ()
        return self._last

    def _run(self) -> Evaluation:
        if not self._tokens:
            return Evaluation(0.0, ErrorMessages.empty_formula, ErrorKind.empty_formula)

        step = self._expression(0, 0.0)
        if step.fault is not None:
            return Evaluation(step.value, step.fault.message, step.fault.kind)
        if step.pos < len(self._tokens):
            # Parsed cleanly but left tokens behind, e.g. a stray ")"
            return Evaluation(step.value, ErrorMessages.invalid_formula, ErrorKind.invalid_formula)
        return Evaluation(step.value)

    # ------------------------------------------------------------------
    # Grammar levels
    # ------------------------------------------------------------------

    def _peek(self, pos: int) -> str | None:
        if pos < len(self._tokens):
            return self._tokens[pos]
        return None

    def _expression(self, pos: int, last_good: float) -> _Step:
        step = self._term(pos, last_good)
        if step.fault is not None:
            return step
        result = step.value
        pos = step.pos

        while self._peek(pos) in ADDITIVE_OPERATORS:
            operator = self._tokens[pos]
            step = self._term(pos + 1, result)
            if step.fault is not None:
                return step
            pos = step.pos
            if operator == "+":
                result += step.value
            else:
                result -= step.value

        return _Step(result, pos)

    def _term(self, pos: int, last_good: float) -> _Step:
        step = self._factor(pos, last_good)
        if step.fault is not None:
            return step
        result = step.value
        pos = step.pos

        while True:
            operator = self._peek(pos)
            if operator == SIGN_TOGGLE:
                pos += 1
                if result != 0:
                    result = -result
                continue
            if operator not in MULTIPLICATIVE_OPERATORS:
                break

            step = self._factor(pos + 1, result)
            if step.fault is not None:
                return step
            pos = step.pos

            if operator == "*":
                result *= step.value
            elif step.value == 0:
                return _Step(math.inf, pos, Fault.of(ErrorKind.divide_by_zero))
            else:
                result /= step.value

        return _Step(result, pos)

    def _factor(self, pos: int, last_good: float) -> _Step:
        token = self._peek(pos)
        if token is None:
            return _Step(0.0, pos, Fault.of(ErrorKind.partial))
        pos += 1

        if token == "":
            return _Step(last_good, pos, Fault.of(ErrorKind.invalid_formula))

        if is_number(token):
            return _Step(float(token), pos)

        if token == OPEN_PAREN:
            inner = self._expression(pos, last_good)
            if inner.fault is not None:
                return inner
            if self._peek(inner.pos) != CLOSE_PAREN:
                return _Step(inner.value, inner.pos, Fault.of(ErrorKind.missing_parentheses))
            return _Step(inner.value, inner.pos + 1)

        if self._is_cell_label(token):
            value, error, kind = self._resolve_cell(token)
            if kind is not None:
                return _Step(value, pos, Fault(kind, error))
            return _Step(value, pos)

        return _Step(last_good, pos, Fault.of(ErrorKind.invalid_formula))

    # ------------------------------------------------------------------
    # Cell resolution
    # ------------------------------------------------------------------

    def get_cell_value(self, label: str) -> tuple[float, str]:
        """Resolve a referenced cell to ``(value, error)``.

        Returns:
            ``(0, cell_error)`` if the cell holds a real error,
            ``(0, "#REF!")`` if the cell has never been given a formula,
            ``(value, "")`` otherwise.
        """
        value, error, _ = self._resolve_cell(label)
        return value, error

    def _resolve_cell(self, label: str) -> tuple[float, str, ErrorKind | None]:
        cell = self._store.get_cell_by_label(label)
        cell_error = cell.get_error()
        if cell_error != "" and cell_error != ErrorMessages.empty_formula:
            return 0.0, cell_error, ErrorKind.propagated
        if len(cell.get_formula()) == 0:
            return 0.0, ErrorMessages.invalid_cell, ErrorKind.invalid_cell
        return float(cell.get_value()), "", None


def evaluate_tokens(
    tokens: Sequence[str],
    store: CellStore,
    is_cell_label: Callable[[str], bool] | None = None,
) -> Evaluation:
    """Evaluate *tokens* once against *store*."""
    return FormulaEvaluator(store, is_cell_label).evaluate(tokens)
