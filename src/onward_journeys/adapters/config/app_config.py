"""12-factor configuration adapter using environment variables and TOML config."""

import logging
import tomllib
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from onward_journeys.adapters.darwin_api.constants import (
    DARWIN_API_MIN_DELAY_SECONDS,
    DARWIN_ARRIVALS_BASE_URL,
    DARWIN_BASE_URL,
    DEFAULT_MAX_CONCURRENT,
    DEFAULT_NUM_ROWS,
    DEFAULT_TIMEOUT_SECONDS,
)
from onward_journeys.adapters.stations.constants import (
    DEFAULT_CACHE_FILE,
    DEFAULT_CACHE_TTL_SECONDS,
    STATIONS_BASE_URL,
)
from onward_journeys.domain.errors import ValidationError
from onward_journeys.domain.models.crs import Crs

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.example.toml"


class AppConfig(BaseSettings):
    """Application configuration following 12-factor principles."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Darwin API configuration
    darwin_api_key: str | None = Field(
        default=None, description="Rail Data Marketplace API key for the departure board product"
    )
    darwin_base_url: str = Field(default=DARWIN_BASE_URL, description="LDBWS base URL")
    darwin_api_timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS, description="Timeout for Darwin requests in seconds"
    )
    darwin_max_concurrent: int = Field(
        default=DEFAULT_MAX_CONCURRENT, description="Maximum concurrent Darwin requests"
    )
    darwin_min_delay_seconds: float = Field(
        default=DARWIN_API_MIN_DELAY_SECONDS,
        description="Minimum delay between Darwin requests in seconds",
    )
    darwin_num_rows: int = Field(
        default=DEFAULT_NUM_ROWS, description="Number of services requested per board"
    )
    darwin_arrivals_api_key: str | None = Field(
        default=None,
        description="Rail Data Marketplace API key for the arrivals board product (optional)",
    )
    darwin_arrivals_base_url: str = Field(
        default=DARWIN_ARRIVALS_BASE_URL, description="LDBWS base URL of the arrivals product"
    )

    # Station names
    stations_api_key: str | None = Field(
        default=None, description="Rail Data Marketplace API key for the stations feed"
    )
    stations_base_url: str = Field(default=STATIONS_BASE_URL, description="Stations feed base URL")
    station_cache_file: str = Field(
        default=DEFAULT_CACHE_FILE, description="Where the fetched station list is kept"
    )
    station_cache_ttl_seconds: float = Field(
        default=DEFAULT_CACHE_TTL_SECONDS, description="How long the kept station list is used"
    )

    # Offline development
    mock_data_dir: str | None = Field(
        default=None,
        description="Directory of <CRS>.json boards; when set, Darwin is not contacted",
    )
    mock_arrivals_dir: str | None = Field(
        default=None,
        description="Directory of <CRS>.json arrivals boards (defaults to MOCK_DATA_DIR)",
    )

    # Board cache
    board_cache_ttl_seconds: float = Field(
        default=60.0, description="How long a fetched board is reused"
    )
    board_cache_max_entries: int = Field(
        default=1000, description="Maximum number of boards kept in the cache"
    )

    # Planning
    plan_deadline_seconds: float | None = Field(
        default=20.0,
        description="Wall-clock budget for one planning request (unset for no deadline)",
    )
    fallback_stations: str = Field(
        default="PAD,EUS,KGX,VIC,WAT,LIV,BHM,MAN",
        description="Comma-separated stations searched when a service id is not on its board",
    )
    timezone: str = Field(
        default="Europe/London",
        description="Timezone of board times (IANA timezone name)",
    )

    # TOML config file path for [search] defaults and [[walkable]] edges
    config_file: str | None = Field(
        default=DEFAULT_CONFIG_FILE,
        description="Path to TOML configuration file with search defaults and walking links",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone {v!r}") from e
        return v

    @field_validator("fallback_stations")
    @classmethod
    def validate_fallback_stations(cls, v: str) -> str:
        """Normalise to upper-case codes, rejecting anything that is not a CRS code."""
        codes = [code.strip() for code in v.split(",") if code.strip()]
        try:
            return ",".join(str(Crs.parse(code)) for code in codes)
        except ValidationError as e:
            raise ValueError(str(e)) from e

    @field_validator(
        "board_cache_ttl_seconds",
        "darwin_api_timeout",
        "darwin_min_delay_seconds",
        "station_cache_ttl_seconds",
    )
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("plan_deadline_seconds")
    @classmethod
    def validate_deadline(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("plan_deadline_seconds must be positive")
        return v

    @field_validator("darwin_max_concurrent", "board_cache_max_entries", "darwin_num_rows")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    def get_fallback_stations(self) -> list[Crs]:
        return [Crs.parse(code) for code in self.fallback_stations.split(",") if code]

    def load_toml_data(self) -> dict[str, Any]:
        """Read the TOML config file.

        A missing default file yields an empty config; a missing file that was set
        explicitly is an error.

        Raises:
            FileNotFoundError: If an explicitly configured file does not exist.
        """
        if not self.config_file:
            return {}

        config_path = Path(self.config_file)
        if not config_path.exists():
            if "config_file" in self.model_fields_set:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            logger.debug(f"No configuration file at {config_path}, using built-in defaults")
            return {}

        with open(config_path, "rb") as f:
            return tomllib.load(f)

    def get_search_config_data(self) -> dict[str, Any]:
        search = self.load_toml_data().get("search", {})
        if not isinstance(search, dict):
            raise ValueError("TOML config 'search' must be a table")
        return search

    def get_walkable_config(self) -> list[dict[str, Any]]:
        walkable = self.load_toml_data().get("walkable", [])
        if not isinstance(walkable, list):
            raise ValueError("TOML config 'walkable' must be an array of tables")
        return [edge for edge in walkable if isinstance(edge, dict)]
