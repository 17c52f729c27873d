"""
boardsync.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for tunable, non-secret settings (default columns for
new boards, activity page sizes).  Secrets and connection strings
(``DATABASE_URL``, ``JWT_SECRET``) stay in the environment / ``.env``.

Usage::

    from boardsync.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.app_name)          # "BoardSync"
    print(cfg.default_columns)   # ("To Do", "In Progress", "Done")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from boardsync.constants import (
    DEFAULT_ACTIVITY_PAGE_MAX,
    DEFAULT_ACTIVITY_PAGE_SIZE,
    DEFAULT_COLUMN_TITLES,
)


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BoardSyncConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str

    # Boards
    default_columns: tuple[str, ...] = DEFAULT_COLUMN_TITLES

    # Activity feed paging
    activity_page_size: int = DEFAULT_ACTIVITY_PAGE_SIZE
    activity_page_max: int = DEFAULT_ACTIVITY_PAGE_MAX


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> BoardSyncConfig:
    """Read *path* and return a :class:`BoardSyncConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If the page sizes are inconsistent or no default column is given.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    columns = tuple(
        str(title).strip()
        for title in raw.get("default_columns", DEFAULT_COLUMN_TITLES)
        if str(title).strip()
    )
    if not columns:
        raise ValueError("default_columns must list at least one column title")

    page_size = int(raw.get("activity_page_size", DEFAULT_ACTIVITY_PAGE_SIZE))
    page_max = int(raw.get("activity_page_max", DEFAULT_ACTIVITY_PAGE_MAX))
    if not 1 <= page_size <= page_max:
        raise ValueError(
            f"activity_page_size ({page_size}) must be between 1 and "
            f"activity_page_max ({page_max})"
        )

    return BoardSyncConfig(
        app_name=raw["app_name"],
        default_columns=columns,
        activity_page_size=page_size,
        activity_page_max=page_max,
    )
