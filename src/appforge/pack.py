"""Pack — orchestrate policy, walker and archive writer.

Usage::

    from appforge.pack import pack_application

    result = pack_application("/srv/myapp", output_dir="dist", format="zip")
    print(result.output, result.entry_count)

Configuration problems (bad regex, missing root) raise ``ConfigError``
before the output file exists.  Traversal and write failures abort the
whole operation and leave the partial archive on disk.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterable, Iterator

from appforge.archive import open_writer
from appforge.core.config import (
    DEFAULT_EXCLUDE_PREFIX,
    DEFAULT_EXCLUDE_SUFFIX,
    PackConfig,
)
from appforge.core.exclude import ExclusionPolicy
from appforge.core.walker import EntryCallback, TreeWalker, directory_is_empty
from appforge.errors import ArchiveWriteError, ConfigError
from appforge.model import ArchiveFormat
from appforge.model.pack_result import PackResult

_logger = logging.getLogger(__name__)

STAGING_PREFIX = "appforge-pack-"


def _absolute(path: str | Path, *, cwd: Path | None = None) -> Path:
    p = Path(path)
    if not p.is_absolute():
        p = (cwd or Path.cwd()) / p
    return Path(os.path.abspath(p))


def _validate_roots(roots: Iterable[Path]) -> tuple[Path, ...]:
    checked: list[Path] = []
    for root in roots:
        root = _absolute(root)
        try:
            is_dir = root.is_dir()
            if is_dir:
                os.listdir(root)
        except OSError as exc:
            raise ConfigError(f"cannot read root {root}: {exc}", path=root) from exc
        if not is_dir:
            raise ConfigError(f"root does not exist or is not a directory: {root}", path=root)
        checked.append(root)
    if not checked:
        raise ConfigError("no root directories to pack")
    return tuple(checked)


@contextmanager
def staging_directory(prefix: str = STAGING_PREFIX) -> Iterator[Path]:
    """Create a scratch directory and remove it on every exit path."""
    path = Path(tempfile.mkdtemp(prefix=prefix))
    _logger.debug("Created staging directory %s", path)
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError as exc:
            _logger.error("Failed to remove the generated temp dir %s: %s", path, exc)


def pack_directory(
    config: PackConfig,
    *,
    policy: ExclusionPolicy | None = None,
    on_entry: EntryCallback | None = None,
) -> PackResult:
    """Write every surviving file under ``config.roots`` into ``config.output``.

    *on_entry* receives each archived logical name, but only when
    ``config.verbose`` is set.
    """
    if policy is None:
        policy = config.build_policy()
    for line in policy.describe():
        _logger.info(line)

    roots = _validate_roots(config.roots)
    output = _absolute(config.output)
    if output.is_dir():
        raise ConfigError(f"output path is a directory: {output}", path=output)

    if all(
        directory_is_empty(
            root,
            root=root,
            policy=policy,
            follow_symlinks=config.follow_symlinks,
            skip_symlinks=config.skip_symlinks,
            ignore=output,
        )
        for root in roots
    ):
        _logger.warning("No files left to pack after exclusions; archive will be empty")

    fmt = ArchiveFormat.parse(config.format)
    _logger.info("Writing to output: %s", output)
    with open_writer(fmt, output) as writer:
        walker = TreeWalker(
            policy,
            writer,
            follow_symlinks=config.follow_symlinks,
            skip_symlinks=config.skip_symlinks,
            output_path=output,
            on_entry=on_entry if config.verbose else None,
        )
        for root in roots:
            walker.walk_root(root)

    return PackResult(output=output, format=fmt, roots=roots, entries=tuple(walker.entries))


def pack_application(
    app_path: str | Path,
    *,
    output_dir: str | Path | None = None,
    format: ArchiveFormat | str = ArchiveFormat.TAR_GZ,
    exclude_prefix: Iterable[str] = DEFAULT_EXCLUDE_PREFIX,
    exclude_suffix: Iterable[str] = DEFAULT_EXCLUDE_SUFFIX,
    exclude_regex: Iterable[str] = (),
    follow_symlinks: bool = False,
    skip_symlinks: bool = False,
    verbose: bool = False,
    overlays: Iterable[str | Path] = (),
    prepare: Callable[[Path], None] | None = None,
    on_entry: EntryCallback | None = None,
) -> PackResult:
    """Pack an application directory into ``<output_dir>/<app name>.<format>``.

    Roots are packed in this order, earlier ones winning on name clashes:
    a fresh staging directory, each of *overlays*, then the application.
    *prepare* is called with the staging directory before packing so callers
    can drop generated artifacts there; the directory is removed afterwards
    whether packing succeeds or fails.
    """
    policy = ExclusionPolicy.compile(exclude_prefix, exclude_suffix, exclude_regex)

    cwd = Path.cwd()
    app = _absolute(app_path, cwd=cwd)
    if not app.is_dir():
        raise ConfigError(f"Application path does not exist: {app}", path=app)
    overlays = tuple(overlays)
    overlay_roots = _validate_roots(_absolute(o, cwd=cwd) for o in overlays) if overlays else ()
    _logger.info("Packaging application on '%s'...", app)

    fmt = ArchiveFormat.parse(format)
    out_dir = _absolute(output_dir, cwd=cwd) if output_dir else cwd
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArchiveWriteError(f"cannot create output directory {out_dir}: {exc}", path=out_dir) from exc

    config = PackConfig(
        roots=(),
        output=out_dir / f"{app.name}{fmt.extension}",
        format=fmt,
        exclude_prefix=policy.prefixes,
        exclude_suffix=policy.suffixes,
        exclude_regex=tuple(p.pattern for p in policy.patterns),
        follow_symlinks=follow_symlinks,
        skip_symlinks=skip_symlinks,
        verbose=verbose,
    )
    with staging_directory() as staging:
        if prepare is not None:
            prepare(staging)
        config = replace(config, roots=(staging, *overlay_roots, app))
        result = pack_directory(config, policy=policy, on_entry=on_entry)
    _logger.info("Application packed: %s", result.output)
    return result
