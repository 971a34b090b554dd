"""sheetcalc: spreadsheet arithmetic formula evaluation."""

__version__ = "0.1.0"
