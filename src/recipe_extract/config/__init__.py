"""Configuration for recipe extraction.

Resolve once from programmatic values, ``RECIPE_EXTRACT_*`` environment
variables, ``[tool.recipe_extract]`` in ``pyproject.toml`` and defaults, then
freeze and hand the ``FrozenConfig`` to components.
"""

from pathlib import Path
from typing import Any

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import RecipeExtractSettings, UploadMode
from .scope import config_override, config_scope, get_ambient_resolved_config
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration, honouring an enclosing ``config_scope``."""
    ambient = get_ambient_resolved_config()
    if ambient is not None:
        return ambient.with_overrides(**programmatic) if programmatic else ambient
    return ConfigResolver().resolve(
        programmatic, profile=profile, project_root=project_root
    )


__all__ = [  # noqa: RUF022
    "resolve_config",
    "config_scope",
    "config_override",
    "get_ambient_resolved_config",
    "ConfigResolver",
    "ConfigFileError",
    "FileConfigLoader",
    "EnvironmentConfigLoader",
    "RecipeExtractSettings",
    "UploadMode",
    "ConfigOrigin",
    "SourceMap",
    "ResolvedConfig",
    "FrozenConfig",
]
