"""
Engine Settings Store.

Settings are read from the ``[tool.hookwright]`` table of the nearest
``pyproject.toml`` and may be overridden by keyword arguments. A single
default instance is created at import time; `decorate` uses it unless a
caller passes its own.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

if sys.version_info >= (3, 11):
  import tomllib
else:
  try:
    import tomli as tomllib
  except ImportError:
    tomllib = None  # type: ignore

from hookwright.utils.console import LOGGER_NAME

TOOL_SECTION = "hookwright"


class EngineSettings(BaseModel):
  """
  Process-wide configuration for the decoration engine.
  """

  model_config = ConfigDict(frozen=True)

  logger_name: str = Field(LOGGER_NAME, description="Logger used by the default error reporter.")
  error_level: str = Field("ERROR", description="Logging level name for absorbed call failures.")
  show_traceback: bool = Field(True, description="If True, absorbed failures are logged with their traceback.")
  trace_calls: bool = Field(False, description="If True, wrappers record events on the global call tracer.")

  @field_validator("error_level")
  @classmethod
  def validate_level(cls, v: str) -> str:
    """
    Ensures the level is a known logging level name.

    Args:
        v (str): The level name (case-insensitive).

    Returns:
        str: The upper-cased level name.

    Raises:
        ValueError: If logging does not know the level.
    """
    v_clean = str(v).upper().strip()
    if not isinstance(logging.getLevelName(v_clean), int):
      raise ValueError(f"Unknown logging level: '{v}'")
    return v_clean

  @property
  def error_level_num(self) -> int:
    """Numeric value of `error_level`."""
    return logging.getLevelName(self.error_level)

  @classmethod
  def load(cls, search_path: Optional[Path] = None, **overrides: Any) -> "EngineSettings":
    """
    Loads settings from pyproject.toml and applies explicit overrides.

    Args:
        search_path (Optional[Path]): Directory to start searching for TOML config.
        **overrides: Field values that win over the TOML table. ``None`` values are ignored.

    Returns:
        EngineSettings: The fully resolved settings.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    known = cls.model_fields.keys()
    merged = {k: v for k, v in toml_config.items() if k in known}
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return cls(**merged)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches the start path and its parents for 'pyproject.toml' and extracts
  the ``[tool.hookwright]`` table.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  if not tomllib:
    return {}, None

  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError):
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get(TOOL_SECTION, {}), parent

  return {}, None


_DEFAULT_SETTINGS = EngineSettings()


def get_default_settings() -> EngineSettings:
  """Returns the settings instance created at import time."""
  return _DEFAULT_SETTINGS
