"""Environment variable configuration loading (``RECIPE_EXTRACT_*``)."""

import os
from typing import Any

from .schema import SECRET_FIELDS, RecipeExtractSettings

ENV_PREFIX = "RECIPE_EXTRACT_"


def _env_var_names() -> dict[str, str]:
    return {
        f"{ENV_PREFIX}{name.upper()}": name
        for name in RecipeExtractSettings.model_fields
    }


class EnvironmentConfigLoader:
    """Collects the configuration fields that are actually set in the environment.

    Values are returned as raw strings; the resolver coerces them through the
    settings schema together with every other source.
    """

    def load_env_config(self) -> dict[str, Any]:
        return {
            field_name: os.environ[env_var]
            for env_var, field_name in _env_var_names().items()
            if env_var in os.environ
        }

    def get_env_summary(self) -> dict[str, str]:
        """Map set ``RECIPE_EXTRACT_*`` variables to values, secrets redacted."""
        return {
            env_var: "<redacted>" if field_name in SECRET_FIELDS else os.environ[env_var]
            for env_var, field_name in _env_var_names().items()
            if env_var in os.environ
        }
