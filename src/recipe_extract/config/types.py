"""Configuration data types: resolve once, freeze, then flow."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

from .schema import SECRET_FIELDS, UploadMode

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]


def _redacted_fields(values: Mapping[str, object]) -> str:
    parts = []
    for name, value in values.items():
        if name in SECRET_FIELDS and value is not None:
            value = "[REDACTED]"
        parts.append(f"{name}={value!r}")
    return ", ".join(parts)


class ResolvedConfig(NamedTuple):
    """Configuration after merging every source, before freezing.

    ``origin`` records where each value came from. Both API keys are
    redacted from ``str``/``repr`` and from ``audit()``.
    """

    memories_api_key: str | None
    youtube_api_key: str | None
    use_real_api: bool
    video_service_base_url: str
    upload_mode: UploadMode
    unique_id: str
    callback_url: str | None
    upload_quality: int
    breaker_threshold: int
    breaker_cooldown_seconds: float
    chat_max_retries: int
    transient_backoff_seconds: float
    no_videos_backoff_seconds: float
    invalid_structure_backoff_seconds: float
    chat_jitter_seconds: float
    poll_cap_seconds: int
    poll_min_seconds: int
    default_estimated_duration_seconds: int
    upstream_timeout_seconds: float
    query_timeout_seconds: float
    fetch_timeout_seconds: float
    headless_enabled: bool
    chrome_binary: str | None

    origin: SourceMap

    def __str__(self) -> str:
        values = self._asdict()
        origin = values.pop("origin")
        return f"ResolvedConfig({_redacted_fields(values)}, origin={dict(origin)!r})"

    def __repr__(self) -> str:
        return self.__str__()

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration handed to components."""
        values = self._asdict()
        values.pop("origin")
        return FrozenConfig(**values)

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Return a copy with known fields overridden and marked programmatic."""
        new_values = self._asdict()
        new_origin = dict(self.origin)
        for field, value in overrides.items():
            if field in self._fields and field != "origin":
                new_values[field] = value
                new_origin[field] = "programmatic"
        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Render one ``field: origin:value`` line per field, secrets redacted."""
        lines = []
        for field in self._fields:
            if field == "origin" or field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if field in SECRET_FIELDS and value is not None:
                display = f"{origin}:<redacted>"
            elif origin == "env":
                display = f"env:RECIPE_EXTRACT_{field.upper()}={value}"
            else:
                display = f"{origin}:{value}"
            lines.append(f"{field}: {display}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration consumed by the gate, orchestrator and pipeline."""

    memories_api_key: str | None
    youtube_api_key: str | None
    use_real_api: bool
    video_service_base_url: str
    upload_mode: UploadMode
    unique_id: str
    callback_url: str | None
    upload_quality: int
    breaker_threshold: int
    breaker_cooldown_seconds: float
    chat_max_retries: int
    transient_backoff_seconds: float
    no_videos_backoff_seconds: float
    invalid_structure_backoff_seconds: float
    chat_jitter_seconds: float
    poll_cap_seconds: int
    poll_min_seconds: int
    default_estimated_duration_seconds: int
    upstream_timeout_seconds: float
    query_timeout_seconds: float
    fetch_timeout_seconds: float
    headless_enabled: bool
    chrome_binary: str | None

    def __str__(self) -> str:
        return f"FrozenConfig({_redacted_fields(vars(self))})"

    def __repr__(self) -> str:
        return self.__str__()
