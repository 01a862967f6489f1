"""
======================================================================
 Skybound Leaderboard - Version v0.3.0 (Build 2026.10)
======================================================================

Configuration validation script.

This script validates shared/config/leaderboard.json against
minimal runtime expectations.

Design rules:
- No side effects on import
- No runtime startup
- Validation only (no mutation)
- Forward-compatible: unknown fields are ignored
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional


# ------------------------------------------------------------
# Paths
# ------------------------------------------------------------

ROOT = Path(__file__).resolve().parents[1]
CONFIG_PATH = ROOT / "shared" / "config" / "leaderboard.json"


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            raise ValueError("Root JSON value must be an object")
    except Exception as e:
        raise ValueError(f"{path.name}: invalid JSON ({e})") from e


def _error(msg: str):
    print(f"[CONFIG ERROR] {msg}", file=sys.stderr)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _section(data: Dict[str, Any], name: str, errors: List[str]) -> Optional[Dict[str, Any]]:
    section = data.get(name)
    if section is None:
        return None
    if not isinstance(section, dict):
        errors.append(f"leaderboard.json: '{name}' must be an object")
        return None
    return section


# ------------------------------------------------------------
# Validators
# ------------------------------------------------------------

def validate_leaderboard_config(data: Dict[str, Any]) -> List[str]:
    """
    Validate the leaderboard configuration document.

    Expected (minimal) shape:
    {
        "client":  { "api_base": str, "timeout_ms": int > 0, "remote_enabled": bool },
        "storage": { "state_dir": str },
        "server":  { "host": str, "port": int >= 0,
                     "allow_origins": [str], "rate_limit_per_minute": int > 0 }
    }

    Missing keys are allowed.
    Invalid types are rejected.
    """
    errors: List[str] = []

    client = _section(data, "client", errors)
    if client is not None:
        api_base = client.get("api_base")
        if api_base is not None and (
            not isinstance(api_base, str)
            or not api_base.startswith(("http://", "https://"))
        ):
            errors.append("leaderboard.json: 'client.api_base' must be an http(s) URL")
        if "timeout_ms" in client and not _is_positive_int(client["timeout_ms"]):
            errors.append("leaderboard.json: 'client.timeout_ms' must be a positive integer")
        if "remote_enabled" in client and not isinstance(client["remote_enabled"], bool):
            errors.append("leaderboard.json: 'client.remote_enabled' must be a boolean")

    storage = _section(data, "storage", errors)
    if storage is not None:
        state_dir = storage.get("state_dir")
        if state_dir is not None and not isinstance(state_dir, str):
            errors.append("leaderboard.json: 'storage.state_dir' must be a string")

    server = _section(data, "server", errors)
    if server is not None:
        if "host" in server and not isinstance(server["host"], str):
            errors.append("leaderboard.json: 'server.host' must be a string")
        port = server.get("port")
        if port is not None and not (
            isinstance(port, int) and not isinstance(port, bool) and port >= 0
        ):
            errors.append("leaderboard.json: 'server.port' must be a non-negative integer")
        origins = server.get("allow_origins")
        if origins is not None and (
            not isinstance(origins, list)
            or not all(isinstance(o, str) for o in origins)
        ):
            errors.append("leaderboard.json: 'server.allow_origins' must be a list of strings")
        if "rate_limit_per_minute" in server and not _is_positive_int(
            server["rate_limit_per_minute"]
        ):
            errors.append(
                "leaderboard.json: 'server.rate_limit_per_minute' must be a positive integer"
            )

    return errors


# ------------------------------------------------------------
# Entry point
# ------------------------------------------------------------

def main(path: Path = CONFIG_PATH) -> int:
    try:
        data = _load_json(path)
    except ValueError as e:
        _error(str(e))
        print("Configuration validation failed.", file=sys.stderr)
        return 1

    errors = validate_leaderboard_config(data)
    for message in errors:
        _error(message)

    if errors:
        print("Configuration validation failed.", file=sys.stderr)
        return 1

    print("Configuration validation passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
