"""Lark-based lexer that splits raw formula text into evaluator tokens.

Produces the token vocabulary the evaluator understands:

- Decimal numbers: ``3``, ``2.5``, ``.5``, ``1e3``
- Binary operators: ``+ - * /``
- Sign toggle: ``+/-`` (wins over a plain ``+``)
- Parentheses: ``(`` and ``)``
- Cell labels: ``A1``, ``aa10`` (upper-cased on output)
"""

from __future__ import annotations

from lark import Lark
from lark.exceptions import LarkError, UnexpectedInput

from sheetcalc.formulas.errors import FormulaParseError

GRAMMAR = r"""
start: _item*

_item: NUMBER
    | SIGN_TOGGLE
    | OPERATOR
    | LPAR
    | RPAR
    | CELL_REF

SIGN_TOGGLE.3: "+/-"
OPERATOR: "+" | "-" | "*" | "/"
LPAR: "("
RPAR: ")"

// Cell label: column letters then a row number (validated downstream)
CELL_REF.2: /[A-Za-z]{1,3}[0-9]+/

NUMBER: /(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/

%import common.WS
%ignore WS
"""

_lexer = Lark(GRAMMAR, parser="lalr", lexer="basic", start="start")


def tokenize(text: str) -> list[str]:
    """Split *text* into formula tokens.

    A leading ``=`` is optional and dropped.  Blank text yields an empty
    list, which the evaluator reports as an empty formula.

    Args:
        text: Formula text, e.g. ``"=A1 * (2 + 3)"``.

    Returns:
        The token strings in source order.

    Raises:
        FormulaParseError: If the text contains characters outside the
            formula vocabulary.
    """
    source = text.strip()
    if source.startswith("="):
        source = source[1:]
    try:
        tokens = list(_lexer.lex(source))
    except UnexpectedInput as exc:
        # Position is reported against the caller's text, not the stripped source
        offset = len(text) - len(text.lstrip()) + (len(text.strip()) - len(source))
        raise FormulaParseError(
            f"Unexpected character {source[exc.pos_in_stream]!r}",
            position=exc.pos_in_stream + offset,
        ) from exc
    except LarkError as exc:
        raise FormulaParseError(str(exc)) from exc
    return [str(tok).upper() if tok.type == "CELL_REF" else str(tok) for tok in tokens]


def detokenize(tokens: list[str] | tuple[str, ...]) -> str:
    """Join tokens back into editable formula text."""
    return " ".join(tokens)
