"""Workspace root, timezone, path helpers for FocusLedger."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from focuscore.fileio import read_yaml


def workspace_root() -> Path:
    """Get the workspace root directory (contains planner/)."""
    return Path(
        os.environ.get("PLANNER_ROOT", str(Path.home() / "planner"))
    ).expanduser().resolve()


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from profile.yaml, defaulting to UTC."""
    if root is None:
        root = workspace_root()
    try:
        profile = read_yaml(profile_path(root))
        if profile and "timezone" in profile:
            return ZoneInfo(profile["timezone"])
    except Exception:
        pass
    return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    tz = get_user_timezone(root)
    return datetime.now(tz)


# ── Path helpers ──────────────────────────────────────────────

def profile_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner" / "profile.yaml"


def focus_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner" / "focus.yaml"


def ledger_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner" / "focus_tasks.json"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner" / "hooks.yaml"


def sounds_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner" / "sounds"


def log_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner" / "logs"
