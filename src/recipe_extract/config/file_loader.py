"""TOML configuration loading with profile support.

Project settings live under ``[tool.recipe_extract]`` in ``pyproject.toml``;
user settings live in ``~/.config/recipe_extract.toml``. Named profiles sit
under a ``profiles`` table in either file.
"""

from pathlib import Path
import tomllib
from typing import Any

from recipe_extract.exceptions import ConfigurationError


class ConfigFileError(ConfigurationError):
    """Raised when a configuration file cannot be loaded."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


class FileConfigLoader:
    """Loads configuration tables from project and home TOML files."""

    def load_project_config(
        self, project_root: Path | None = None, profile: str | None = None
    ) -> dict[str, Any]:
        """Load ``[tool.recipe_extract]`` from the nearest ``pyproject.toml``.

        Returns an empty dict when no file or section exists.

        Raises:
            ConfigFileError: The file is malformed or the profile is unknown.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}
        data = self._read_toml(pyproject_path)
        section = data.get("tool", {}).get("recipe_extract", {})
        if not section:
            return {}
        return self._select_profile(section, profile, pyproject_path)

    def load_home_config(self, profile: str | None = None) -> dict[str, Any]:
        """Load ``~/.config/recipe_extract.toml`` when it exists."""
        home_config_path = self._get_home_config_path()
        if not home_config_path.exists():
            return {}
        return self._select_profile(
            self._read_toml(home_config_path), profile, home_config_path
        )

    def _read_toml(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(mode="rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(path, f"Failed to parse TOML: {e}", cause=e) from e

    def _select_profile(
        self, section: dict[str, Any], profile: str | None, path: Path
    ) -> dict[str, Any]:
        if profile:
            profiles = section.get("profiles", {})
            if profile not in profiles:
                raise ConfigFileError(
                    path,
                    f"Profile '{profile}' not found. "
                    f"Available profiles: {sorted(profiles)}",
                )
            return dict(profiles[profile])
        config = dict(section)
        config.pop("profiles", None)
        return config

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        current = Path(start_dir or Path.cwd()).resolve()
        while current != current.parent:
            candidate = current / "pyproject.toml"
            if candidate.exists():
                return candidate
            current = current.parent
        return None

    def _get_home_config_path(self) -> Path:
        return Path.home() / ".config" / "recipe_extract.toml"
