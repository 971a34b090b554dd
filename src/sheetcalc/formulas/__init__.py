"""Spreadsheet arithmetic formula tokenizing and evaluation.

Public API::

    from sheetcalc.formulas import tokenize, FormulaEvaluator
"""

from sheetcalc.formulas.errors import (
    ErrorKind,
    ErrorMessages,
    FormulaError,
    FormulaParseError,
    FormulaRefError,
    SheetFileError,
)
from sheetcalc.formulas.evaluator import (
    CellSnapshot,
    CellStore,
    Evaluation,
    FormulaEvaluator,
    evaluate_tokens,
    is_number,
)
from sheetcalc.formulas.tokenizer import detokenize, tokenize

__all__ = [
    "CellSnapshot",
    "CellStore",
    "ErrorKind",
    "ErrorMessages",
    "Evaluation",
    "FormulaError",
    "FormulaEvaluator",
    "FormulaParseError",
    "FormulaRefError",
    "SheetFileError",
    "detokenize",
    "evaluate_tokens",
    "is_number",
    "tokenize",
]
