"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SILONET_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Silo Network Optimizer API"
    api_prefix: str = "/api"
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service. Empty disables road distances.",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing road distances.",
    )
    osrm_timeout_seconds: float = Field(default=10.0, gt=0.0)
    osrm_max_retries: int = Field(default=1, ge=0)
    osrm_backoff_seconds: float = Field(default=0.5, ge=0.0)
    osrm_pairwise_delay_seconds: float = Field(
        default=0.1,
        ge=0.0,
        description="Pause between serial pairwise requests after a failed table request.",
    )
    osrm_mst_delay_seconds: float = Field(
        default=0.05,
        ge=0.0,
        description="Pause between serial pairwise requests when building the network cache.",
    )
    osrm_max_coordinates_per_request: int = Field(default=80, ge=2)
    osrm_max_parallel_requests: int = Field(default=4, ge=1)
    degrees_to_km: float = Field(
        default=111.0,
        gt=0.0,
        description="Scale factor applied to planar degree distances.",
    )
    sentinel_cost: float = Field(
        default=9999.0,
        gt=0.0,
        description="Cost used for padded (non-existent) pairings in rectangular assignments.",
    )
    use_road_network: bool = Field(default=False, description="Default distance source for optimization runs.")
    tour_refine_time_limit_seconds: int = Field(default=2, ge=1)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("osrm_base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip().rstrip("/")
        return text or None

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
