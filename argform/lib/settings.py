"""Project settings loader.

Reads UI behaviour and strings from .argform.yaml in the project root, so
a team can enable the extra tabs and translate the interface without
touching code.

Example .argform.yaml:
    argform:
      enable_env: "Variables passed to the program"
      enable_stdin: "Data piped into the program"
      enable_working_dir: null        # hide the working directory field
      localization:
        run: Uruchom
        kill: Zakończ
        error_is_required: ["Argument '", "' jest wymagany"]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from argform.lib.errors import ArgformError

logger = logging.getLogger(__name__)

__all__ = ["Localization", "Settings", "get_settings", "SETTINGS_FILE"]

SETTINGS_FILE = ".argform.yaml"


@dataclass
class Localization:
    """Every user-visible string of the form UI."""

    optional: str = "(Optional)"
    select_file: str = "Select file..."
    select_directory: str = "Select directory..."
    new_value: str = "New value"
    reset: str = "Reset"
    reset_to_default: str = "Reset to default"
    # Wraps the argument label: prefix + label + suffix
    error_is_required: Tuple[str, str] = ("Argument '", "' is required")
    arguments: str = "Arguments"
    env_variables: str = "Environment variables"
    error_env_var_cant_be_empty: str = "Environment variable name can't be empty"
    input: str = "Input"
    text: str = "Text"
    file: str = "File"
    working_directory: str = "Working directory"
    run: str = "Run"
    kill: str = "Kill"
    running: str = "Running"
    no_subcommand: str = "(none)"

    def is_required(self, label: str) -> str:
        prefix, suffix = self.error_is_required
        return f"{prefix}{label}{suffix}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Localization":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ArgformError(
                "Unknown localization keys",
                details={"keys": ", ".join(sorted(unknown))},
            )
        values = dict(data)
        if "error_is_required" in values:
            pair = values["error_is_required"]
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise ArgformError(
                    "error_is_required must be a [prefix, suffix] pair",
                    details={"value": repr(pair)},
                )
            values["error_is_required"] = (str(pair[0]), str(pair[1]))
        return cls(**values)


@dataclass
class Settings:
    """UI configuration.

    The enable_* fields double as descriptions: None hides the feature,
    a string (possibly empty) shows it with that text under the heading.
    """

    enable_env: Optional[str] = None
    enable_stdin: Optional[str] = None
    enable_working_dir: Optional[str] = None
    localization: Localization = field(default_factory=Localization)

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> "Settings":
        """Load settings from .argform.yaml in the project root.

        Args:
            project_root: Project root directory. Defaults to cwd.

        Returns:
            Settings from the file, or defaults when there is no file.

        Raises:
            ArgformError: The file exists but is malformed
        """
        root = project_root or Path.cwd()
        config_path = root / SETTINGS_FILE

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ArgformError(
                f"Could not parse {config_path}",
                details={"error": str(e)},
                suggestion="Check the YAML syntax of the settings file.",
            ) from e

        section = config.get("argform", {}) if isinstance(config, dict) else None
        if not isinstance(section, dict):
            raise ArgformError(
                f"{config_path} must contain an 'argform' mapping",
                suggestion="Put settings under a top-level 'argform:' key.",
            )

        logger.debug("Loaded settings from %s", config_path)
        return cls.from_dict(section)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        loc = data.get("localization") or {}
        return cls(
            enable_env=data.get("enable_env"),
            enable_stdin=data.get("enable_stdin"),
            enable_working_dir=data.get("enable_working_dir"),
            localization=Localization.from_dict(loc),
        )


# Global settings instance (loaded on first access)
_settings: Optional[Settings] = None


def get_settings(reload: bool = False) -> Settings:
    """Get the global settings.

    Args:
        reload: Force reload from the settings file.
    """
    global _settings
    if _settings is None or reload:
        _settings = Settings.load()
    return _settings
