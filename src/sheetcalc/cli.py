"""Command-line interface for sheetcalc."""

from __future__ import annotations

import json
from pathlib import Path

import click

from sheetcalc import __version__
from sheetcalc.formulas.errors import FormulaError


@click.group()
@click.version_option(version=__version__, prog_name="sheetcalc")
def main() -> None:
    """sheetcalc -- spreadsheet arithmetic formula evaluator."""


# ---------------------------------------------------------------------------
# Tokenize / Eval
# ---------------------------------------------------------------------------


@main.command("tokenize")
@click.argument("text")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def tokenize_cmd(text: str, as_json: bool) -> None:
    """Split formula TEXT into tokens."""
    from sheetcalc.formulas.tokenizer import tokenize

    try:
        tokens = tokenize(text)
    except FormulaError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(tokens))
    else:
        click.echo(" ".join(tokens))


@main.command("eval")
@click.argument("text")
@click.option("--project", "directory", type=click.Path(exists=True), default=None, help="Evaluate against this project's sheet.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def eval_cmd(text: str, directory: str | None, as_json: bool) -> None:
    """Evaluate formula TEXT.

    Exits with status 1 when the formula evaluates to an error.
    """
    from sheetcalc.cells import format_number
    from sheetcalc.formulas.tokenizer import tokenize
    from sheetcalc.logging.events import EventType, emit_info, emit_warning, set_project_dir
    from sheetcalc.sheet import Sheet, load_project_sheet

    try:
        if directory:
            set_project_dir(Path(directory))
            sheet, _ = load_project_sheet(Path(directory))
        else:
            sheet = Sheet()
        tokens = tokenize(text)
    except (FormulaError, ValueError) as e:
        raise click.ClickException(str(e))

    evaluation = sheet.evaluate(tokens)
    context = {"formula": " ".join(tokens), "result": evaluation.result}
    if evaluation.ok:
        emit_info(EventType.formula_evaluated, f"Evaluated {context['formula']!r}", context)
    else:
        emit_warning(
            EventType.formula_error,
            f"Evaluating {context['formula']!r} failed with {evaluation.error}",
            context,
            error_code=evaluation.kind.value if evaluation.kind else None,
        )

    if as_json:
        click.echo(
            json.dumps(
                {
                    "tokens": tokens,
                    "result": evaluation.result,
                    "error": evaluation.error,
                    "kind": evaluation.kind.value if evaluation.kind else None,
                }
            )
        )
    else:
        click.echo(f"Result: {format_number(evaluation.result)}")
        if evaluation.error:
            click.echo(f"Error: {evaluation.error} ({evaluation.kind.value})")

    if not evaluation.ok:
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


@main.command()
@click.argument("directory", type=click.Path())
def new(directory: str) -> None:
    """Scaffold a new project at DIRECTORY."""
    from sheetcalc.project import scaffold_project

    try:
        result = scaffold_project(Path(directory))
    except FileExistsError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created project at {result}")


@main.command()
@click.argument("directory", type=click.Path(exists=True))
@click.option("--csv", "csv_path", default=None, type=click.Path(), help="Also write the cell table to this CSV file.")
def show(directory: str, csv_path: str | None) -> None:
    """Evaluate and print the sheet in DIRECTORY."""
    import polars as pl

    from sheetcalc.logging.events import set_project_dir
    from sheetcalc.sheet import load_project_sheet

    project_dir = Path(directory)
    set_project_dir(project_dir)
    try:
        sheet, path = load_project_sheet(project_dir)
    except (FormulaError, ValueError) as e:
        raise click.ClickException(str(e))

    df = sheet.memory.to_frame()
    if df.is_empty():
        click.echo(f"No cells in {path.name}.")
    else:
        with pl.Config(tbl_rows=len(df), tbl_hide_dataframe_shape=True):
            click.echo(str(df.select("label", "formula", "display")))

    if csv_path:
        df.write_csv(csv_path)
        click.echo(f"Wrote {len(df)} cell(s) to {csv_path}")


@main.command("set")
@click.argument("directory", type=click.Path(exists=True))
@click.argument("label")
@click.argument("text")
def set_cmd(directory: str, label: str, text: str) -> None:
    """Write formula TEXT into cell LABEL of the sheet in DIRECTORY."""
    from sheetcalc.logging.events import set_project_dir
    from sheetcalc.sheet import load_project_sheet, save_sheet

    project_dir = Path(directory)
    set_project_dir(project_dir)
    try:
        sheet, path = load_project_sheet(project_dir)
        cell = sheet.set_formula_text(label, text)
    except (FormulaError, ValueError) as e:
        raise click.ClickException(str(e))

    save_sheet(sheet, path)
    click.echo(f"{cell.label} = {cell.display}")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@main.command("events")
@click.argument("directory", type=click.Path(exists=True))
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--label", default=None, help="Filter by cell label.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
def events_cmd(
    directory: str,
    level: str | None,
    event_type: str | None,
    label: str | None,
    limit: int,
) -> None:
    """Show structured event log for DIRECTORY."""
    from sheetcalc.logging.sink import EventSink

    sink = EventSink(Path(directory))
    events = sink.read_global(level=level, event_type=event_type, label=label, limit=limit)

    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        ts = evt.get("ts", "")
        lvl = evt.get("level", "").upper()
        etype = evt.get("event_type", "")
        msg = evt.get("message", "")
        err = evt.get("error_code")
        line = f"[{ts}] {lvl:7s} {etype}: {msg}"
        if err:
            line += f"  ({err})"
        click.echo(line)
