from pathlib import Path

import pytest

from prop_tracker.runtime_config import (
    DEFAULT_CONFIG_PATH,
    load_runtime_config,
    set_current_runtime_config,
)
from prop_tracker.settings import Settings

ENV_VARS = (
    "ODDS_GATEWAY_URL",
    "PROP_TRACKER_ODDS_GATEWAY_URL",
    "PROP_TRACKER_STATE_DIR",
    "PROP_TRACKER_SCOREBOARD_TIMEOUT_S",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    set_current_runtime_config(None)


def _write_config(path: Path) -> Path:
    path.write_text(
        "\n".join(
            [
                "[paths]",
                'state_dir = "state"',
                "",
                "[storage]",
                'key = "propTracker:test"',
                "",
                "[scoreboard]",
                "timeout_s = 5",
                "",
                "[odds_gateway]",
                'url = "https://gw.example.dev"',
                "max_retries = 1",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return path


def test_settings_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.state_dir == "data/prop_tracker"
    assert settings.storage_key == "propTracker:v210"
    assert settings.scoreboard_base_url == "https://site.web.api.espn.com/apis/v2/sports"
    assert settings.scoreboard_timeout_s == 12.0
    assert settings.odds_gateway_url == ""
    assert settings.odds_gateway_timeout_s == 10.0
    assert settings.odds_regions == "us"
    assert settings.odds_format == "american"
    assert settings.odds_date_format == "iso"
    assert settings.odds_max_retries == 3


def test_settings_read_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ODDS_GATEWAY_URL", "https://env.example.dev")
    monkeypatch.setenv("PROP_TRACKER_SCOREBOARD_TIMEOUT_S", "3.5")

    settings = Settings(_env_file=None)

    assert settings.odds_gateway_url == "https://env.example.dev"
    assert settings.scoreboard_timeout_s == 3.5


def test_load_runtime_config_resolves_relative_paths(tmp_path: Path) -> None:
    config = load_runtime_config(_write_config(tmp_path / "runtime.toml"))

    assert config.state_dir == (tmp_path / "state").resolve()
    assert config.storage_key == "propTracker:test"
    assert config.scoreboard_timeout_s == 5.0
    assert config.scoreboard_base_url == "https://site.web.api.espn.com/apis/v2/sports"
    assert config.odds_gateway_url == "https://gw.example.dev"
    assert config.odds_gateway_timeout_s == 10.0
    assert config.odds_max_retries == 1


def test_load_runtime_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError, match="not found"):
        load_runtime_config(tmp_path / "missing.toml")


def test_load_runtime_config_rejects_bad_section(tmp_path: Path) -> None:
    path = tmp_path / "runtime.toml"
    path.write_text('scoreboard = "nope"\n', encoding="utf-8")

    with pytest.raises(RuntimeError, match=r"\[scoreboard\]"):
        load_runtime_config(path)


def test_default_config_file_loads() -> None:
    config = load_runtime_config(DEFAULT_CONFIG_PATH)

    assert config.storage_key == "propTracker:v210"
    assert config.odds_gateway_url == ""


def test_from_runtime_lets_env_override_gateway_and_state_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    set_current_runtime_config(load_runtime_config(_write_config(tmp_path / "runtime.toml")))

    settings = Settings.from_runtime()
    assert settings.odds_gateway_url == "https://gw.example.dev"
    assert settings.state_dir == str((tmp_path / "state").resolve())
    assert settings.odds_max_retries == 1

    monkeypatch.setenv("ODDS_GATEWAY_URL", "https://env.example.dev")
    monkeypatch.setenv("PROP_TRACKER_STATE_DIR", str(tmp_path / "elsewhere"))
    overridden = Settings.from_runtime()
    assert overridden.odds_gateway_url == "https://env.example.dev"
    assert overridden.state_dir == str(tmp_path / "elsewhere")
