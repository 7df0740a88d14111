"""Pack configuration — one immutable value per pack operation.

``PackConfig`` is what the packer consumes.  ``PackSettings`` is the subset a
project can pin in ``.appforge.yaml``::

    format: zip
    output_dir: dist
    exclude_prefix: [".", "tmp/"]
    exclude_suffix: [".go", ".DS_Store", ".tmp"]
    exclude_regex: ["^~", "swp$"]
    follow_symlinks: false
    skip_symlinks: false
    verbose: true
    overlays: [build/out]
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from appforge.contracts.load import validate_instance
from appforge.core.exclude import ExclusionPolicy
from appforge.errors import ConfigError
from appforge.model import ArchiveFormat

DEFAULT_EXCLUDE_PREFIX: tuple[str, ...] = (".",)
DEFAULT_EXCLUDE_SUFFIX: tuple[str, ...] = (".go", ".DS_Store", ".tmp")

CONFIG_FILENAMES = (".appforge.yaml", ".appforge.yml", "appforge.yaml")

_SCHEMA_NAME = "pack_config.schema.json"


def split_rule_list(value: str | None, sep: str = ":") -> tuple[str, ...]:
    """Split a colon-separated CLI value, dropping empty segments."""
    if not value:
        return ()
    return tuple(part for part in value.split(sep) if part)


@dataclass(frozen=True)
class PackConfig:
    """Everything one ``pack_directory`` call needs.

    ``roots`` are walked in order; the first root providing a logical name
    wins.  ``output`` is the archive file path.
    """

    roots: tuple[Path, ...]
    output: Path
    format: ArchiveFormat = ArchiveFormat.TAR_GZ
    exclude_prefix: tuple[str, ...] = DEFAULT_EXCLUDE_PREFIX
    exclude_suffix: tuple[str, ...] = DEFAULT_EXCLUDE_SUFFIX
    exclude_regex: tuple[str, ...] = ()
    follow_symlinks: bool = False
    skip_symlinks: bool = False
    verbose: bool = False

    def build_policy(self) -> ExclusionPolicy:
        return ExclusionPolicy.compile(
            self.exclude_prefix, self.exclude_suffix, self.exclude_regex
        )


@dataclass(frozen=True)
class PackSettings:
    """Project-level defaults loaded from a YAML file.

    ``None`` means "not set in the file"; callers fall back to their own
    defaults.  Relative ``output_dir`` and ``overlays`` are resolved against
    the directory holding the config file.
    """

    format: ArchiveFormat | None = None
    output_dir: Path | None = None
    exclude_prefix: tuple[str, ...] | None = None
    exclude_suffix: tuple[str, ...] | None = None
    exclude_regex: tuple[str, ...] | None = None
    follow_symlinks: bool | None = None
    skip_symlinks: bool | None = None
    verbose: bool | None = None
    overlays: tuple[Path, ...] = field(default_factory=tuple)
    source: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, base_dir: Path) -> PackSettings:
        def _tuple(key: str) -> tuple[str, ...] | None:
            value = data.get(key)
            return tuple(value) if value is not None else None

        def _path(value: str) -> Path:
            p = Path(value)
            return p if p.is_absolute() else base_dir / p

        fmt = data.get("format")
        output_dir = data.get("output_dir")
        return cls(
            format=ArchiveFormat.parse(fmt) if fmt is not None else None,
            output_dir=_path(output_dir) if output_dir is not None else None,
            exclude_prefix=_tuple("exclude_prefix"),
            exclude_suffix=_tuple("exclude_suffix"),
            exclude_regex=_tuple("exclude_regex"),
            follow_symlinks=data.get("follow_symlinks"),
            skip_symlinks=data.get("skip_symlinks"),
            verbose=data.get("verbose"),
            overlays=tuple(_path(p) for p in data.get("overlays", ())),
        )

    @classmethod
    def load(cls, config_path: Path) -> PackSettings:
        """Load and validate a YAML config file.

        Raises ``ConfigError`` if the file is unreadable, is not valid YAML,
        or does not satisfy ``pack_config.schema.json``.
        """
        data = load_settings_data(config_path)
        settings = cls.from_dict(data, base_dir=config_path.resolve().parent)
        return replace(settings, source=config_path)

    @classmethod
    def discover(cls, root: Path) -> PackSettings:
        """Load the first known config file found in *root*, else empty settings."""
        for name in CONFIG_FILENAMES:
            candidate = root / name
            if candidate.is_file():
                return cls.load(candidate)
        return cls()


def load_settings_data(config_path: Path) -> dict[str, Any]:
    """Read a YAML config file and validate it; returns the raw mapping."""
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"cannot read config file {config_path}: {exc}", path=config_path) from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {config_path}: {exc}", path=config_path) from exc

    try:
        validate_instance(data, _SCHEMA_NAME)
    except jsonschema.ValidationError as exc:
        where = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ConfigError(
            f"{config_path}: {where}: {exc.message}", path=config_path
        ) from exc
    return data
