"""Runtime configuration loader (config-first, env overrides in Settings).

`config/runtime.toml` holds the checked-in defaults; an optional
`config/runtime.local.toml` next to it is layered on top, key by key within
each table.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "runtime.toml"
DEFAULT_LOCAL_OVERRIDE_PATH = CONFIG_DIR / "runtime.local.toml"

SECTIONS = ("paths", "storage", "scoreboard", "odds_gateway")

# (section, key, attribute, type, default)
_FIELDS: tuple[tuple[str, str, str, type, Any], ...] = (
    ("storage", "key", "storage_key", str, "propTracker:v210"),
    ("scoreboard", "base_url", "scoreboard_base_url", str, "https://site.web.api.espn.com/apis/v2/sports"),
    ("scoreboard", "timeout_s", "scoreboard_timeout_s", float, 12.0),
    ("odds_gateway", "url", "odds_gateway_url", str, ""),
    ("odds_gateway", "timeout_s", "odds_gateway_timeout_s", float, 10.0),
    ("odds_gateway", "regions", "odds_regions", str, "us"),
    ("odds_gateway", "odds_format", "odds_format", str, "american"),
    ("odds_gateway", "date_format", "odds_date_format", str, "iso"),
    ("odds_gateway", "max_retries", "odds_max_retries", int, 3),
)


@dataclass(frozen=True)
class RuntimeConfig:
    """Materialized runtime configuration."""

    config_path: Path
    state_dir: Path
    storage_key: str
    scoreboard_base_url: str
    scoreboard_timeout_s: float
    odds_gateway_url: str
    odds_gateway_timeout_s: float
    odds_regions: str
    odds_format: str
    odds_date_format: str
    odds_max_retries: int


_CURRENT: RuntimeConfig | None = None


def set_current_runtime_config(config: RuntimeConfig | None) -> None:
    global _CURRENT
    _CURRENT = config


def current_runtime_config() -> RuntimeConfig:
    """Process-wide config, loaded from the default path on first use."""
    config = _CURRENT
    if config is None:
        config = load_runtime_config()
        set_current_runtime_config(config)
    return config


def _load_tables(path: Path) -> dict[str, dict[str, Any]]:
    try:
        payload = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"failed reading runtime config: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise RuntimeError(f"invalid runtime config TOML: {path}") from exc
    tables: dict[str, dict[str, Any]] = {}
    for section in SECTIONS:
        value = payload.get(section)
        if value is None:
            tables[section] = {}
        elif isinstance(value, dict):
            tables[section] = value
        else:
            raise RuntimeError(f"runtime config section [{section}] must be a table")
    return tables


def _layer(
    base: dict[str, dict[str, Any]], overlay: dict[str, dict[str, Any]]
) -> dict[str, dict[str, Any]]:
    return {section: {**base[section], **overlay[section]} for section in SECTIONS}


def _coerce(value: Any, kind: type, default: Any) -> Any:
    """Read a scalar of the wanted type; blanks and bad values give the default."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    elif kind is str:
        return default
    try:
        return kind(value)
    except (TypeError, ValueError):
        return default


def load_runtime_config(config_path: Path | None = None) -> RuntimeConfig:
    """Load runtime config; relative paths resolve against the config file's directory."""
    source = (config_path or DEFAULT_CONFIG_PATH).expanduser().resolve()
    if not source.exists():
        raise RuntimeError(f"runtime config file not found: {source}")

    tables = _load_tables(source)
    if source == DEFAULT_CONFIG_PATH and DEFAULT_LOCAL_OVERRIDE_PATH.exists():
        tables = _layer(tables, _load_tables(DEFAULT_LOCAL_OVERRIDE_PATH))

    state_dir = Path(_coerce(tables["paths"].get("state_dir"), str, "data/prop_tracker"))
    state_dir = state_dir.expanduser()
    if not state_dir.is_absolute():
        state_dir = (source.parent / state_dir).resolve()

    values = {
        attribute: _coerce(tables[section].get(key), kind, default)
        for section, key, attribute, kind, default in _FIELDS
    }
    return RuntimeConfig(config_path=source, state_dir=state_dir, **values)
