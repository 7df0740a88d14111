"""CLI entry-point for appforge.

Usage:
    python -m appforge pack [-p APP_PATH] [-o OUTPUT_DIR] [-f tar.gz|zip]
                            [--exp PREFIXES] [--exs SUFFIXES] [--exr REGEX ...]
                            [--fs] [--ss] [-v] [--overlay DIR ...]
                            [--config FILE] [--json] [--debug]
    python -m appforge validate-config <config.yaml>
    python -m appforge --version
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from appforge import __version__
from appforge.core.config import (
    DEFAULT_EXCLUDE_PREFIX,
    DEFAULT_EXCLUDE_SUFFIX,
    PackSettings,
    load_settings_data,
    split_rule_list,
)
from appforge.core.exclude import ExclusionPolicy
from appforge.errors import ConfigError, PackError
from appforge.model import ArchiveFormat
from appforge.pack import pack_application
from appforge.utils.exit_codes import ExitCode
from appforge.utils.json_norm import stable_json_dump

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="appforge",
        description="Scaffolding and maintenance tool for framework applications.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    sub = p.add_subparsers(dest="command")

    # ── pack subcommand ─────────────────────────────────────────────
    pack_p = sub.add_parser(
        "pack",
        help="Compress an application into a single tar.gz or zip file.",
        description=(
            "Pack is used to compress an application into a tarball/zip file. "
            "This eases deployment by directly extracting the file on a server."
        ),
    )
    pack_p.add_argument(
        "-p",
        dest="app_path",
        type=Path,
        default=Path("."),
        help="Application path. Defaults to the current path.",
    )
    pack_p.add_argument(
        "-o",
        dest="output_dir",
        type=Path,
        default=None,
        help="Directory for the compressed file. Defaults to the current path.",
    )
    pack_p.add_argument(
        "-f",
        dest="format",
        default=None,
        help="File format, either tar.gz or zip. Defaults to tar.gz.",
    )
    pack_p.add_argument(
        "--exp",
        dest="exclude_prefix",
        default=None,
        help=(
            "Prefixes of paths to exclude, colon separated. "
            f"Defaults to {':'.join(DEFAULT_EXCLUDE_PREFIX)!r}."
        ),
    )
    pack_p.add_argument(
        "--exs",
        dest="exclude_suffix",
        default=None,
        help=(
            "Suffixes of paths to exclude, colon separated. "
            f"Defaults to {':'.join(DEFAULT_EXCLUDE_SUFFIX)!r}."
        ),
    )
    pack_p.add_argument(
        "--exr",
        dest="exclude_regex",
        action="append",
        default=None,
        metavar="REGEX",
        help="Regular expression of file names to exclude (repeatable).",
    )
    pack_p.add_argument(
        "--fs",
        dest="follow_symlinks",
        action="store_true",
        default=None,
        help="Follow symlinks.",
    )
    pack_p.add_argument(
        "--ss",
        dest="skip_symlinks",
        action="store_true",
        default=None,
        help="Skip symlinks.",
    )
    pack_p.add_argument(
        "-v",
        dest="verbose",
        action="store_true",
        default=None,
        help="Print every compressed entry.",
    )
    pack_p.add_argument(
        "--overlay",
        dest="overlays",
        action="append",
        type=Path,
        default=None,
        metavar="DIR",
        help="Extra root packed before the application; its files win on name clashes.",
    )
    pack_p.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="YAML config file. Defaults to .appforge.yaml in the application path.",
    )
    pack_p.add_argument(
        "--json",
        dest="json_out",
        action="store_true",
        default=False,
        help="Print the pack result as JSON to stdout.",
    )
    pack_p.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug logging.",
    )

    # ── validate-config subcommand ──────────────────────────────────
    val_p = sub.add_parser(
        "validate-config",
        help="Validate a pack config file against the bundled schema.",
    )
    val_p.add_argument("config", type=Path, help="Path to the YAML config file.")

    return p


def _pick(cli_value, file_value, default):
    if cli_value is not None:
        return cli_value
    if file_value is not None:
        return file_value
    return default


def _print_entry(name: str) -> None:
    print(f"\tcompressed\t{name}", file=sys.stderr)


def _handle_pack(args: argparse.Namespace) -> int:
    """Dispatch ``appforge pack``."""
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format=_LOG_FORMAT,
    )
    app_path: Path = args.app_path
    try:
        if args.config_path is not None:
            settings = PackSettings.load(args.config_path)
        elif app_path.is_dir():
            settings = PackSettings.discover(app_path)
        else:
            settings = PackSettings()

        exclude_prefix = (
            split_rule_list(args.exclude_prefix)
            if args.exclude_prefix is not None
            else _pick(None, settings.exclude_prefix, DEFAULT_EXCLUDE_PREFIX)
        )
        exclude_suffix = (
            split_rule_list(args.exclude_suffix)
            if args.exclude_suffix is not None
            else _pick(None, settings.exclude_suffix, DEFAULT_EXCLUDE_SUFFIX)
        )
        fmt = ArchiveFormat.parse(_pick(args.format, settings.format, None))
        overlays = tuple(args.overlays) if args.overlays else settings.overlays

        result = pack_application(
            app_path,
            output_dir=_pick(args.output_dir, settings.output_dir, None),
            format=fmt,
            exclude_prefix=exclude_prefix,
            exclude_suffix=exclude_suffix,
            exclude_regex=_pick(args.exclude_regex, settings.exclude_regex, ()),
            follow_symlinks=bool(_pick(args.follow_symlinks, settings.follow_symlinks, False)),
            skip_symlinks=bool(_pick(args.skip_symlinks, settings.skip_symlinks, False)),
            verbose=bool(_pick(args.verbose, settings.verbose, False)),
            overlays=overlays,
            on_entry=_print_entry,
        )
    except PackError as e:
        print(f"error: {e}", file=sys.stderr)
        return ExitCode.ERROR

    if args.json_out:
        stable_json_dump(result.to_dict(), sys.stdout)
    else:
        print(f"Application packed: {result.output} ({result.entry_count} entries)", file=sys.stderr)
    return ExitCode.SUCCESS


def _handle_validate_config(args: argparse.Namespace) -> int:
    """Dispatch ``appforge validate-config <file>``."""
    path: Path = args.config
    if not path.is_file():
        print(f"error: config file does not exist: {path}", file=sys.stderr)
        return ExitCode.ERROR
    try:
        data = load_settings_data(path)
        ExclusionPolicy.compile(patterns=data.get("exclude_regex", ()))
    except ConfigError as e:
        print(f"FAIL: {e}", file=sys.stderr)
        return ExitCode.VIOLATION
    print("OK")
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Entry-point — returns an exit code (0 = success, 1 = invalid config, 2 = error)."""
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else sys.argv[1:])

    if args.command == "pack":
        return _handle_pack(args)
    if args.command == "validate-config":
        return _handle_validate_config(args)

    parser.print_help(sys.stderr)
    return ExitCode.ERROR


if __name__ == "__main__":
    raise SystemExit(main())
