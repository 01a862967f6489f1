"""Runtime version metadata for the Skybound leaderboard.

This module is import-safe and exposes authoritative version identifiers for
the CLI and the server without executing side effects on import.
"""

from __future__ import annotations

PROJECT_NAME = "Skybound Leaderboard"
VERSION = "v0.3.0"
BUILD = "2026.10"

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "BUILD",
    "as_dict",
    "as_string",
]


def as_dict() -> dict[str, str]:
    """Return version metadata as a dictionary."""

    return {
        "project": PROJECT_NAME,
        "version": VERSION,
        "build": BUILD,
    }


def as_string() -> str:
    """Return a concise version string."""

    return f"{PROJECT_NAME} {VERSION} (Build {BUILD})"
