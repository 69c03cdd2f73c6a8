"""Analyzer settings and ``.callchain.toml`` loading."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path

from callchain.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".callchain.toml"

DEFAULT_CONTROLLER_ANNOTATIONS = ("RestController", "Controller")

# Lookup order matters: the first annotation yielding a path wins.
DEFAULT_MAPPING_ANNOTATIONS = (
    "GetMapping",
    "PostMapping",
    "PutMapping",
    "DeleteMapping",
    "PatchMapping",
    "RequestMapping",
)

DEFAULT_EXCLUDE = (".git", ".svn", ".idea", ".gradle", "node_modules", "target", "build")


@dataclass(frozen=True)
class AnalyzerConfig:
    controller_annotations: tuple[str, ...] = DEFAULT_CONTROLLER_ANNOTATIONS
    mapping_annotations: tuple[str, ...] = DEFAULT_MAPPING_ANNOTATIONS
    class_mapping_annotation: str = "RequestMapping"
    constant_holder_suffix: str = "Constants"
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    parser: str = "tree-sitter"
    workers: int | None = None  # None: pick automatically

    def merged(self, **overrides) -> AnalyzerConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


_TUPLE_KEYS = {"controller_annotations", "mapping_annotations", "exclude"}
_STR_KEYS = {"class_mapping_annotation", "constant_holder_suffix", "parser"}


def load_config(project_dir: Path, path: Path | None = None) -> AnalyzerConfig:
    """Read the ``[callchain]`` table from *path* or ``<project_dir>/.callchain.toml``.

    A missing or unreadable auto-discovered file yields the defaults; an
    explicit *path* that cannot be loaded raises :class:`ConfigError`.
    """
    explicit = path is not None
    config_path = path if explicit else project_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"configuration file not found: {config_path}")
        return AnalyzerConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if explicit:
            raise ConfigError(f"could not read {config_path}: {e}") from e
        logger.warning("Ignoring %s: %s", config_path, e)
        return AnalyzerConfig()

    table = data.get("callchain", {})
    if not isinstance(table, dict):
        raise ConfigError(f"{config_path}: [callchain] must be a table")

    logger.debug("Loaded configuration from %s", config_path)
    return _from_table(table, config_path)


def _from_table(table: dict, source: Path) -> AnalyzerConfig:
    known = {f.name for f in fields(AnalyzerConfig)}
    values: dict = {}
    for key, value in table.items():
        if key not in known:
            logger.warning("%s: unknown setting %r ignored", source, key)
            continue
        if key in _TUPLE_KEYS:
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{source}: {key} must be a list of strings")
            values[key] = tuple(value)
        elif key in _STR_KEYS:
            if not isinstance(value, str) or not value:
                raise ConfigError(f"{source}: {key} must be a non-empty string")
            values[key] = value
        elif key == "workers":
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"{source}: workers must be a positive integer")
            values[key] = value
    return AnalyzerConfig(**values)
