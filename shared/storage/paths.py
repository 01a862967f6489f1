"""
Shared storage path utilities.

This module defines canonical filesystem locations for
device-scoped state (the fallback leaderboard, the remembered
player name) and the reference server's roster.

Design goals:
- Single source of truth for storage paths
- OS-safe, repo-relative resolution
- No side effects on import (directories are created on demand)
"""

from __future__ import annotations

from pathlib import Path

# ----------------------------------------------------------------------
# BASE DIRECTORIES
# ----------------------------------------------------------------------

# Repo root is assumed to be the current working directory
# when the CLI or server is launched
BASE_DIR = Path.cwd()

STATE_DIR = BASE_DIR / "shared" / "state"
DEVICE_STATE_DIR = "device"
SERVER_STATE_DIR = "server"


# ----------------------------------------------------------------------
# STATE PATH HELPERS
# ----------------------------------------------------------------------

def resolve_state_dir(configured: Path | str | None = None) -> Path:
    """
    Return the root state directory, honoring a configured override.
    Relative overrides resolve against BASE_DIR.
    """
    if not configured:
        return STATE_DIR

    path = Path(configured).expanduser()
    return path if path.is_absolute() else BASE_DIR / path


def get_state_path(name: str, root: Path | str | None = None) -> Path:
    """
    Return a path inside the state directory.

    Example:
        get_state_path("device")

    This function DOES NOT write files.
    It only guarantees directory existence.
    """

    path = resolve_state_dir(root) / name
    path.mkdir(parents=True, exist_ok=True)
    return path
