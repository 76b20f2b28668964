"""Scan configuration and config-file loading."""

import json
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Set

import yaml

from graph.errors import ConfigError
from graph.names import DEFAULT_PACKAGE
from .discovery import DEFAULT_EXCLUDE_DIRS
from .parser import DEFAULT_COMMENT_CHARS


CONFIG_FILE_NAMES = (
    ".symxref.yaml",
    ".symxref.yml",
    ".symxref.toml",
    ".symxref.json",
)

DEFAULT_TITLE = "Cross reference"


@dataclass
class ScanConfig:
    """Settings for one scan run."""

    comment_chars: str = DEFAULT_COMMENT_CHARS
    include_ext: Optional[Set[str]] = None  # None scans every file
    exclude_dirs: Set[str] = field(default_factory=lambda: set(DEFAULT_EXCLUDE_DIRS))
    max_depth: Optional[int] = None
    default_package: str = DEFAULT_PACKAGE
    title: str = DEFAULT_TITLE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanConfig":
        """
        Build a config from parsed file contents.

        Unknown keys are rejected. ``include_ext`` entries are normalized to
        lower case with a leading dot; ``exclude_dirs`` extends the defaults.

        Raises:
            ConfigError: Unknown keys or values of the wrong type.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        config = cls()
        if "comment_chars" in data:
            config.comment_chars = _expect_str(data, "comment_chars")
            if not config.comment_chars:
                raise ConfigError("comment_chars must not be empty")
        if "include_ext" in data:
            config.include_ext = normalize_extensions(_expect_list(data, "include_ext"))
        if "exclude_dirs" in data:
            config.exclude_dirs = set(_expect_list(data, "exclude_dirs")) | DEFAULT_EXCLUDE_DIRS
        if "max_depth" in data:
            max_depth = data["max_depth"]
            if max_depth is not None and not isinstance(max_depth, int):
                raise ConfigError("max_depth must be an integer")
            config.max_depth = max_depth
        if "default_package" in data:
            config.default_package = _expect_str(data, "default_package")
        if "title" in data:
            config.title = _expect_str(data, "title")
        return config


def normalize_extensions(extensions) -> Set[str]:
    """Lower-case extensions and give each a leading dot."""
    normalized = set()
    for ext in extensions:
        ext = str(ext)
        if not ext.startswith("."):
            ext = "." + ext
        normalized.add(ext.lower())
    return normalized


def _expect_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value


def _expect_list(data: Dict[str, Any], key: str) -> list:
    value = data[key]
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    return value


def load_config(file_path: Path) -> ScanConfig:
    """
    Load a configuration file.

    The format is picked from the suffix: YAML (``.yaml``/``.yml``), TOML
    (``.toml``) or JSON (``.json``). In a TOML file the settings may also sit
    under a ``[symxref]`` table.

    Args:
        file_path: Path to the config file.

    Returns:
        The parsed ScanConfig.

    Raises:
        ConfigError: The file is unreadable, malformed, or not a mapping.
    """
    suffix = file_path.suffix.lower()

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {file_path}: {e}") from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(content)
        elif suffix == ".toml":
            data = tomllib.loads(content)
            data = data.get("symxref", data)
        elif suffix == ".json":
            data = json.loads(content)
        else:
            raise ConfigError(f"Unsupported config format: {file_path.name}")
    except (yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"Invalid config file {file_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {file_path} must contain a mapping")

    return ScanConfig.from_dict(data)


def find_config(root: Path) -> Optional[Path]:
    """Return the first config file found directly under ``root``."""
    for name in CONFIG_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None
