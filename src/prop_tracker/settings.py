"""Application settings for prop-tracker."""

import os

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from prop_tracker.runtime_config import current_runtime_config


class Settings(BaseSettings):
    """Runtime settings for storage and external service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PROP_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    state_dir: str = "data/prop_tracker"
    storage_key: str = "propTracker:v210"
    scoreboard_base_url: str = "https://site.web.api.espn.com/apis/v2/sports"
    scoreboard_timeout_s: float = 12.0
    odds_gateway_url: str = Field(
        default="",
        validation_alias=AliasChoices("ODDS_GATEWAY_URL", "PROP_TRACKER_ODDS_GATEWAY_URL"),
    )
    odds_gateway_timeout_s: float = 10.0
    odds_regions: str = "us"
    odds_format: str = "american"
    odds_date_format: str = "iso"
    odds_max_retries: int = 3

    @classmethod
    def from_runtime(cls) -> "Settings":
        """Construct settings from runtime config; env wins for state dir and gateway URL."""
        runtime = current_runtime_config()

        direct_gateway = (
            os.environ.get("ODDS_GATEWAY_URL", "").strip()
            or os.environ.get("PROP_TRACKER_ODDS_GATEWAY_URL", "").strip()
        )
        direct_state_dir = os.environ.get("PROP_TRACKER_STATE_DIR", "").strip()

        return cls(
            state_dir=direct_state_dir or str(runtime.state_dir),
            storage_key=runtime.storage_key,
            scoreboard_base_url=runtime.scoreboard_base_url,
            scoreboard_timeout_s=runtime.scoreboard_timeout_s,
            odds_gateway_url=direct_gateway or runtime.odds_gateway_url,
            odds_gateway_timeout_s=runtime.odds_gateway_timeout_s,
            odds_regions=runtime.odds_regions,
            odds_format=runtime.odds_format,
            odds_date_format=runtime.odds_date_format,
            odds_max_retries=runtime.odds_max_retries,
        )
