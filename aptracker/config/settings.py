"""
Runtime settings for aptracker
Values come from the environment (optionally a .env file loaded at startup)
"""

import logging
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from rich.logging import RichHandler

DEFAULT_DATABASE_URL = "sqlite:///aptracker.db"


def _env_or_none(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


class Settings(BaseModel):
    """Application settings"""

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    # Storage
    database_url: str = Field(DEFAULT_DATABASE_URL, description="SQLAlchemy database URL")

    # External services
    openrouteservice_api_key: Optional[str] = Field(
        None, description="OpenRouteService API key used for transit estimates"
    )
    geoapify_api_key: Optional[str] = Field(
        None, description="Geoapify API key used for address geocoding"
    )
    http_timeout: float = Field(30.0, gt=0, description="Outbound HTTP timeout in seconds")

    # Geocoding bias
    geocode_locality: str = Field(
        "Trento, Italy", description="Locality appended to every geocoding query"
    )
    geocode_country_code: str = Field("it", description="Country filter for geocoding")
    geocode_bias_lat: float = Field(46.0748, ge=-90, le=90, description="Bias latitude")
    geocode_bias_lng: float = Field(11.1217, ge=-180, le=180, description="Bias longitude")

    # HTTP server
    host: str = Field("127.0.0.1", description="API bind host")
    port: int = Field(8000, ge=1, le=65535, description="API bind port")
    cors_origin: Optional[str] = Field(None, description="Allowed CORS origin for the web UI")

    log_level: str = Field("INFO", description="Logging level")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lowercase level names"""
        if v is None:
            return "INFO"
        level = str(v).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def routing_configured(self) -> bool:
        return bool(self.openrouteservice_api_key)

    @property
    def geocoding_configured(self) -> bool:
        return bool(self.geoapify_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables"""
        values = {
            "database_url": _env_or_none("DATABASE_URL"),
            "openrouteservice_api_key": _env_or_none("OPENROUTESERVICE_API_KEY"),
            "geoapify_api_key": _env_or_none("GEOAPIFY_API_KEY"),
            "http_timeout": _env_or_none("APTRACKER_HTTP_TIMEOUT"),
            "geocode_locality": _env_or_none("APTRACKER_GEOCODE_LOCALITY"),
            "geocode_country_code": _env_or_none("APTRACKER_GEOCODE_COUNTRY"),
            "geocode_bias_lat": _env_or_none("APTRACKER_GEOCODE_BIAS_LAT"),
            "geocode_bias_lng": _env_or_none("APTRACKER_GEOCODE_BIAS_LNG"),
            "host": _env_or_none("APTRACKER_HOST"),
            "port": _env_or_none("APTRACKER_PORT"),
            "cors_origin": _env_or_none("CORS_ORIGIN"),
            "log_level": _env_or_none("APTRACKER_LOG_LEVEL"),
        }
        return cls(**{key: value for key, value in values.items() if value is not None})


def get_settings() -> Settings:
    """Load settings from the current environment"""
    return Settings.from_env()


def setup_logging(level: str = "INFO") -> None:
    """Install a Rich log handler on the root logger"""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
