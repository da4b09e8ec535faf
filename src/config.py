"""
Configuration settings for the transcoding decision engine
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

from constants import (
    CAPABILITY_CACHE_TTL,
    CAPABILITY_PROBE_TIMEOUT,
    DEFAULT_DEVICE_MAX_BITRATE,
    DEFAULT_DEVICE_MAX_HEIGHT,
    DEFAULT_DEVICE_MAX_WIDTH,
    VALID_LOG_LEVELS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Feature gate for the HTTP surface
    enhanced_transcoding_enabled: bool = Field(
        False,
        description="Expose presets, device capabilities and decisions over HTTP"
    )

    # Authentication
    require_api_auth: bool = Field(
        False,
        description="Require API key authentication for all endpoints"
    )
    api_keys: str = Field(
        "",
        description="Comma-separated API keys. Format: 'key1,key2' or 'admin:key1,readonly:key2'"
    )

    # Default capability profile for devices that have not been probed
    default_max_bitrate: int = Field(
        DEFAULT_DEVICE_MAX_BITRATE,
        gt=0,
        description="Maximum bitrate (bps) assumed for an unprobed device"
    )
    default_max_width: int = Field(DEFAULT_DEVICE_MAX_WIDTH, gt=0)
    default_max_height: int = Field(DEFAULT_DEVICE_MAX_HEIGHT, gt=0)

    # Capability cache
    capability_probe_timeout: float = Field(
        CAPABILITY_PROBE_TIMEOUT,
        gt=0,
        le=120,
        description="Seconds allowed for a single device capability probe"
    )
    capability_cache_ttl: int = Field(
        CAPABILITY_CACHE_TTL,
        ge=0,
        description="Seconds a cached device profile stays valid (0 = never expires)"
    )

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    log_path: str = Field("/data/logs", description="Directory for log files")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {v}. "
                f"Valid options: {', '.join(VALID_LOG_LEVELS)}"
            )
        return v_upper

    class Config:
        env_prefix = ""
        case_sensitive = False


settings = Settings()
