"""Configuration schema and validation using Pydantic.

Every source (environment, project file, programmatic) is validated and
coerced through ``RecipeExtractSettings`` before it reaches a component.
"""

from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from recipe_extract import constants

UploadMode = Literal["public", "private", "auto"]

SECRET_FIELDS = frozenset({"memories_api_key", "youtube_api_key"})


class RecipeExtractSettings(BaseSettings):
    """Pydantic settings schema for recipe extraction.

    Reads ``RECIPE_EXTRACT_*`` environment variables when instantiated
    directly; the resolver passes merged values explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="RECIPE_EXTRACT_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Credentials ---

    memories_api_key: str | None = Field(
        default=None, description="Video-understanding service API key"
    )
    youtube_api_key: str | None = Field(
        default=None, description="YouTube Data API key used by the preflight gate"
    )
    use_real_api: bool = Field(
        default=False,
        description="Use the real video service instead of the deterministic mock",
    )

    # --- Video service ---

    video_service_base_url: str = Field(
        default=constants.VIDEO_SERVICE_BASE_URL, min_length=1
    )
    upload_mode: UploadMode = Field(
        default="public", description="Library the video is uploaded to first"
    )
    unique_id: str = Field(default="default", min_length=1)
    callback_url: str | None = Field(default=None)
    upload_quality: int = Field(default=constants.UPLOAD_QUALITY, ge=1)

    # --- Circuit breaker ---

    breaker_threshold: int = Field(default=constants.BREAKER_THRESHOLD, ge=1)
    breaker_cooldown_seconds: float = Field(default=constants.BREAKER_COOLDOWN, gt=0)

    # --- Chat retry policy ---

    chat_max_retries: int = Field(default=constants.CHAT_MAX_RETRIES, ge=0)
    transient_backoff_seconds: float = Field(
        default=constants.TRANSIENT_BACKOFF, ge=0
    )
    no_videos_backoff_seconds: float = Field(
        default=constants.NO_VIDEOS_BACKOFF,
        ge=0,
        description="Backoff multiplier when the service has not indexed the video yet",
    )
    invalid_structure_backoff_seconds: float = Field(
        default=constants.INVALID_STRUCTURE_BACKOFF, ge=0
    )
    chat_jitter_seconds: float = Field(default=constants.CHAT_JITTER, ge=0)

    # --- Polling ---

    poll_cap_seconds: int = Field(default=constants.POLL_CAP, ge=1)
    poll_min_seconds: int = Field(default=constants.POLL_MIN, ge=1)
    default_estimated_duration_seconds: int = Field(
        default=constants.DEFAULT_ESTIMATED_DURATION, ge=1
    )

    # --- Timeouts ---

    upstream_timeout_seconds: float = Field(default=constants.UPSTREAM_TIMEOUT, gt=0)
    query_timeout_seconds: float = Field(default=constants.QUERY_TIMEOUT, gt=0)
    fetch_timeout_seconds: float = Field(default=constants.FETCH_TIMEOUT, gt=0)

    # --- Web rendering ---

    headless_enabled: bool = Field(default=True)
    chrome_binary: str | None = Field(default=None)

    # --- Validation Rules ---

    @field_validator("upload_mode", mode="before")
    @classmethod
    def parse_upload_mode(cls, v: Any) -> Any:
        """Accept upload modes case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def validate_requirements(self) -> "RecipeExtractSettings":
        """Cross-field checks: API key presence and poll budget bounds."""
        if self.use_real_api and not self.memories_api_key:
            raise ValueError(
                "memories_api_key is required when use_real_api=True. "
                "Set RECIPE_EXTRACT_MEMORIES_API_KEY, provide it in pyproject.toml, "
                "or pass it programmatically."
            )
        if self.poll_min_seconds > self.poll_cap_seconds:
            raise ValueError(
                f"poll_min_seconds ({self.poll_min_seconds}) must not exceed "
                f"poll_cap_seconds ({self.poll_cap_seconds})"
            )
        return self

    @classmethod
    def defaults(cls) -> dict[str, Any]:
        """Schema defaults, without reading the environment."""
        return {
            name: field.get_default(call_default_factory=True)
            for name, field in cls.model_fields.items()
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for SourceMap annotation."""
        return self.model_dump()
