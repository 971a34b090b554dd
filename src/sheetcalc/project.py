"""Project-level configuration and scaffolding."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


CONFIG_FILE = "sheetcalc.yaml"

DEFAULT_CONFIG = {
    "max_rows": 1000,
    "max_columns": 26,
    "sheet_file": "sheet.yaml",
    "logging_enabled": True,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}

DEMO_SHEET = """\
# sheetcalc sheet v1
# Each cell maps an A1 label to its formula text.  Cells are evaluated in
# file order, so a cell may only reference cells listed above it.
version: 1
cells:
  A1: "10"
  A2: "5"
  A3: "A1 * A2"
  B1: "( A1 + A2 ) / 3"
  B2: "A3 +/-"
"""

DEMO_CONFIG = """\
# sheetcalc project configuration
max_rows: 1000
max_columns: 26
sheet_file: sheet.yaml
logging_enabled: true
# logging_fsync: true
"""


def load_project_config(project_dir: Path) -> dict[str, Any]:
    """Load project configuration from ``sheetcalc.yaml``, with defaults.

    Unknown keys are kept so that callers can read their own settings.

    Args:
        project_dir: Root of the sheetcalc project.

    Returns:
        Merged configuration dict.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = project_dir / CONFIG_FILE
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(user_config, dict):
            raise ValueError(f"{config_path} must contain a mapping")
        config.update(user_config)

    for key in ("max_rows", "max_columns"):
        config[key] = int(config[key])
        if config[key] < 1:
            raise ValueError(f"{key} must be at least 1, got {config[key]}")
    return config


def sheet_path(project_dir: Path, config: dict[str, Any] | None = None) -> Path:
    """Return the path of the project's sheet file."""
    cfg = config if config is not None else load_project_config(project_dir)
    return project_dir / str(cfg.get("sheet_file", DEFAULT_CONFIG["sheet_file"]))


def scaffold_project(target_dir: Path) -> Path:
    """Create a new sheetcalc demo project at the target directory.

    Args:
        target_dir: Directory to create (must not already contain a sheet).

    Returns:
        Path to the created project directory.
    """
    target_dir = target_dir.resolve()
    target_dir.mkdir(parents=True, exist_ok=True)

    sheet_file = target_dir / DEFAULT_CONFIG["sheet_file"]
    if sheet_file.exists():
        raise FileExistsError(f"{sheet_file.name} already exists in {target_dir}")

    sheet_file.write_text(DEMO_SHEET)
    (target_dir / CONFIG_FILE).write_text(DEMO_CONFIG)
    (target_dir / "logs").mkdir(exist_ok=True)

    return target_dir
