"""Configuration resolution with precedence handling.

Precedence: Programmatic > Environment > Project file > Home file > Defaults
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from recipe_extract.exceptions import ConfigurationError

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import RecipeExtractSettings
from .types import ConfigOrigin, ResolvedConfig

logger = logging.getLogger(__name__)


class ConfigResolver:
    """Merges every configuration source and validates the result once."""

    def __init__(
        self,
        file_loader: FileConfigLoader | None = None,
        env_loader: EnvironmentConfigLoader | None = None,
    ) -> None:
        self.file_loader = file_loader or FileConfigLoader()
        self.env_loader = env_loader or EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources with proper precedence.

        Raises:
            ConfigurationError: A source is malformed or the merged values
                fail validation.
        """
        if profile is None:
            profile = os.getenv("RECIPE_EXTRACT_PROFILE")

        merged: dict[str, Any] = RecipeExtractSettings.defaults()
        origin: dict[str, ConfigOrigin] = dict.fromkeys(merged, "default")

        def apply(values: dict[str, Any], source: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in merged:
                    merged[field] = value
                    origin[field] = source

        try:
            apply(self.file_loader.load_home_config(profile=profile), "file")
        except ConfigFileError as e:
            # A broken home file should not block project-local runs.
            logger.warning("Ignoring home configuration: %s", e.message)

        try:
            apply(
                self.file_loader.load_project_config(
                    project_root=project_root, profile=profile
                ),
                "file",
            )
        except ConfigFileError:
            if profile is None:
                raise
            logger.warning("Profile %r not found in project configuration", profile)

        apply(self.env_loader.load_env_config(), "env")
        if programmatic:
            apply(programmatic, "programmatic")

        try:
            validated = RecipeExtractSettings(**merged)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(**validated.to_dict(), origin=origin)
