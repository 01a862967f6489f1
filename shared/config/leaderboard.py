from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from shared.logging.logger import get_logger

log = get_logger("shared.config.leaderboard")

_CONFIG_PATH = Path(__file__).parent / "leaderboard.json"

ENV_API_BASE = "SKYBOUND_API_BASE"
ENV_TIMEOUT_MS = "SKYBOUND_TIMEOUT_MS"
ENV_REMOTE_ENABLED = "SKYBOUND_REMOTE_ENABLED"
ENV_STATE_DIR = "SKYBOUND_STATE_DIR"
ENV_SERVER_HOST = "SKYBOUND_SERVER_HOST"
ENV_SERVER_PORT = "SKYBOUND_SERVER_PORT"


@dataclass
class ClientConfig:
    api_base: str = "http://localhost:5000"
    timeout_seconds: float = 1.0
    remote_enabled: bool = True


@dataclass
class StorageConfig:
    state_dir: Optional[str] = None


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 5000
    allow_origins: List[str] = field(default_factory=lambda: ["*"])
    rate_limit_per_minute: int = 60


@dataclass
class LeaderboardConfig:
    client: ClientConfig = field(default_factory=ClientConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        log.debug(f"leaderboard.json not found at {path}; using defaults")
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except Exception as e:
        log.warning(f"Failed to load leaderboard.json ({e}); using defaults")
        return {}


def _parse_bool(value: Any, default: bool, label: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    log.warning(f"{label} must be boolean; defaulting to {default}")
    return default


def _parse_positive_int(
    value: Any, default: int, label: str, *, minimum: int = 1
) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        log.warning(f"{label} must be an integer; defaulting to {default}")
        return default
    if parsed < minimum:
        log.warning(f"{label} must be >= {minimum}; defaulting to {default}")
        return default
    return parsed


def _load_client(raw: Any, env: Mapping[str, str]) -> ClientConfig:
    raw = raw if isinstance(raw, dict) else {}
    defaults = ClientConfig()

    api_base = env.get(ENV_API_BASE) or raw.get("api_base") or defaults.api_base

    timeout_raw = env.get(ENV_TIMEOUT_MS, raw.get("timeout_ms"))
    timeout_ms = (
        _parse_positive_int(timeout_raw, 1000, "client.timeout_ms")
        if timeout_raw is not None
        else 1000
    )

    enabled_raw = env.get(ENV_REMOTE_ENABLED, raw.get("remote_enabled"))
    remote_enabled = (
        _parse_bool(enabled_raw, defaults.remote_enabled, "client.remote_enabled")
        if enabled_raw is not None
        else defaults.remote_enabled
    )

    return ClientConfig(
        api_base=str(api_base).rstrip("/"),
        timeout_seconds=timeout_ms / 1000.0,
        remote_enabled=remote_enabled,
    )


def _load_storage(raw: Any, env: Mapping[str, str]) -> StorageConfig:
    raw = raw if isinstance(raw, dict) else {}
    state_dir = env.get(ENV_STATE_DIR) or raw.get("state_dir")
    return StorageConfig(state_dir=str(state_dir) if state_dir else None)


def _load_server(raw: Any, env: Mapping[str, str]) -> ServerConfig:
    raw = raw if isinstance(raw, dict) else {}
    defaults = ServerConfig()

    host = env.get(ENV_SERVER_HOST) or raw.get("host") or defaults.host

    port_raw = env.get(ENV_SERVER_PORT, raw.get("port"))
    port = (
        # 0 binds an ephemeral port
        _parse_positive_int(port_raw, defaults.port, "server.port", minimum=0)
        if port_raw is not None
        else defaults.port
    )

    origins = raw.get("allow_origins", defaults.allow_origins)
    if not isinstance(origins, list) or not all(isinstance(o, str) for o in origins):
        log.warning("server.allow_origins must be a list of strings; defaulting to ['*']")
        origins = defaults.allow_origins

    rate_raw = raw.get("rate_limit_per_minute")
    rate_limit = (
        _parse_positive_int(
            rate_raw, defaults.rate_limit_per_minute, "server.rate_limit_per_minute"
        )
        if rate_raw is not None
        else defaults.rate_limit_per_minute
    )

    return ServerConfig(
        host=str(host),
        port=port,
        allow_origins=list(origins),
        rate_limit_per_minute=rate_limit,
    )


def load_leaderboard_config(
    raw: Optional[Dict[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> LeaderboardConfig:
    """
    Build the leaderboard configuration.

    Precedence: environment variables > leaderboard.json > defaults.
    Invalid values are logged and replaced by defaults, never raised.
    """
    raw = raw if raw is not None else _load_json(_CONFIG_PATH)
    env = env if env is not None else os.environ

    return LeaderboardConfig(
        client=_load_client(raw.get("client"), env),
        storage=_load_storage(raw.get("storage"), env),
        server=_load_server(raw.get("server"), env),
    )
