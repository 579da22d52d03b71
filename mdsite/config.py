"""Configuration loading for mdsite.

Settings come from three layers, later ones winning:

1. ``DEFAULT_CONFIG``
2. an optional YAML file (``mdsite.yaml`` in the working directory, or the
   file passed with ``-c``)
3. flags given explicitly on the command line

Key objects:
- SiteConfig: Resolved settings for one invocation.
- load_config: Read the YAML layer.
- resolve_config: Merge all three layers into a SiteConfig.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "mdsite.yaml"

WATCHERS = ("poll", "events")

DEFAULT_CONFIG: dict[str, Any] = {
    "input_dir": "input",
    "output_dir": "output",
    "templates_dir": "templates",
    "serve": False,
    "host": "0.0.0.0",
    "port": 8000,
    "watcher": "poll",
    "verbose": False,
}


class ConfigError(Exception):
    """Raised when an explicitly requested config file cannot be used."""


@dataclass
class SiteConfig:
    """Resolved settings for a build or serve invocation.

    Attributes:
        input_dir: Directory holding Markdown content and assets.
        output_dir: Directory the site is written to (wiped on every build).
        templates_dir: Directory holding page templates.
        serve: Whether to start the development server after building.
        host: Address the development server binds to.
        port: Port the development server binds to.
        watcher: Change-detection backend, ``poll`` or ``events``.
        verbose: Whether to print per-file detail lines.
    """

    input_dir: Path
    output_dir: Path
    templates_dir: Path
    serve: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    watcher: str = "poll"
    verbose: bool = False

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> SiteConfig:
        merged = {**DEFAULT_CONFIG, **values}
        watcher = str(merged["watcher"])
        if watcher not in WATCHERS:
            raise ConfigError(
                f"Unknown watcher {watcher!r}; expected one of {', '.join(WATCHERS)}"
            )
        try:
            port = int(merged["port"])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid port: {merged['port']!r}") from exc
        return cls(
            input_dir=Path(merged["input_dir"]),
            output_dir=Path(merged["output_dir"]),
            templates_dir=Path(merged["templates_dir"]),
            serve=bool(merged["serve"]),
            host=str(merged["host"]),
            port=port,
            watcher=watcher,
            verbose=bool(merged["verbose"]),
        )


def load_config(config_path: Path | None = None, cwd: Path | None = None) -> dict[str, Any]:
    """Load settings from a YAML config file.

    Args:
        config_path: Explicit file to read. Errors reading it are fatal.
        cwd: Directory searched for ``mdsite.yaml`` when no explicit file
            is given. Defaults to the current working directory.

    Returns:
        Dictionary of recognised settings found in the file. Unknown keys and
        non-mapping documents are ignored.

    Raises:
        ConfigError: If the explicit file is missing, unreadable or invalid YAML.
    """
    if config_path is None:
        candidate = (cwd or Path.cwd()) / CONFIG_FILENAME
        if not candidate.is_file():
            return {}
        path = candidate
    else:
        path = config_path

    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        return {}
    return {key: value for key, value in loaded.items() if key in DEFAULT_CONFIG}


def resolve_config(
    overrides: dict[str, Any],
    config_path: Path | None = None,
    cwd: Path | None = None,
) -> SiteConfig:
    """Merge defaults, the config file and CLI overrides.

    Args:
        overrides: Values given on the command line. ``None`` entries mean
            "not given" and do not override lower layers.
        config_path: Optional explicit config file.
        cwd: Directory searched for ``mdsite.yaml``.

    Returns:
        The resolved SiteConfig.
    """
    values = load_config(config_path, cwd)
    values.update({key: value for key, value in overrides.items() if value is not None})
    return SiteConfig.from_mapping(values)
