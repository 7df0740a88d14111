"""CLI tests for ``appforge pack`` and ``appforge validate-config``."""

from __future__ import annotations

import json
import os
import subprocess
import sys
import tarfile
import zipfile
from pathlib import Path

import pytest

from appforge import __version__
from appforge.__main__ import main
from appforge.utils.exit_codes import ExitCode

REPO_ROOT = Path(__file__).resolve().parents[1]


def _write(root: Path, rel: str, content: str = "x") -> Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content)
    return p


def _app(tmp_path: Path) -> Path:
    app = tmp_path / "shop"
    _write(app, "main.go")
    _write(app, "README.md")
    _write(app, "views/index.tpl")
    _write(app, "views/index.tpl.bak")
    _write(app, ".env")
    return app


class TestPackCommand:
    """End-to-end runs of ``appforge pack``."""

    def test_default_tar_gz(self, tmp_path: Path, capsys):
        """Defaults write <app>.tar.gz with the default exclusions."""
        app = _app(tmp_path)
        rc = main(["pack", "-p", str(app), "-o", str(tmp_path / "dist")])
        assert rc == ExitCode.SUCCESS
        out = tmp_path / "dist" / "shop.tar.gz"
        with tarfile.open(out, "r:gz") as tf:
            assert tf.getnames() == ["README.md", "views/index.tpl", "views/index.tpl.bak"]
        assert "Application packed" in capsys.readouterr().err

    def test_zip_with_rules_and_verbose(self, tmp_path: Path, capsys):
        """CLI rules apply and -v lists each entry on stderr."""
        app = _app(tmp_path)
        rc = main(
            [
                "pack", "-p", str(app), "-o", str(tmp_path), "-f", "zip",
                "--exp", "views/", "--exs", ".go:.md", "--exr", r"\.bak$", "-v",
            ]
        )
        assert rc == ExitCode.SUCCESS
        with zipfile.ZipFile(tmp_path / "shop.zip") as zf:
            assert zf.namelist() == [".env"]
        assert "\tcompressed\t.env" in capsys.readouterr().err

    def test_json_output(self, tmp_path: Path, capsys):
        """--json prints the pack result to stdout."""
        app = _app(tmp_path)
        rc = main(["pack", "-p", str(app), "-o", str(tmp_path), "--json"])
        assert rc == ExitCode.SUCCESS
        payload = json.loads(capsys.readouterr().out)
        assert payload["format"] == "tar.gz"
        assert payload["entry_count"] == 3
        assert payload["output"].endswith("shop.tar.gz")

    def test_config_file_is_discovered_and_cli_overrides_it(self, tmp_path: Path):
        """A discovered config applies; flags override it."""
        app = _app(tmp_path)
        (app / ".appforge.yaml").write_text("format: zip\nexclude_regex: ['bak$']\n")
        assert main(["pack", "-p", str(app), "-o", str(tmp_path)]) == ExitCode.SUCCESS
        with zipfile.ZipFile(tmp_path / "shop.zip") as zf:
            assert zf.namelist() == ["README.md", "views/index.tpl"]

        assert main(["pack", "-p", str(app), "-o", str(tmp_path), "-f", "tar.gz"]) == ExitCode.SUCCESS
        assert (tmp_path / "shop.tar.gz").exists()

    def test_overlay(self, tmp_path: Path):
        """--overlay entries are packed before the app."""
        app = _app(tmp_path)
        overlay = tmp_path / "build"
        _write(overlay, "shop", "binary")
        rc = main(["pack", "-p", str(app), "-o", str(tmp_path / "dist"), "--overlay", str(overlay)])
        assert rc == ExitCode.SUCCESS
        with tarfile.open(tmp_path / "dist" / "shop.tar.gz", "r:gz") as tf:
            assert tf.getnames()[0] == "shop"

    def test_bad_regex_is_error(self, tmp_path: Path, capsys):
        """An invalid --exr exits 2 before creating the output dir."""
        app = _app(tmp_path)
        rc = main(["pack", "-p", str(app), "-o", str(tmp_path / "dist"), "--exr", "("])
        assert rc == ExitCode.ERROR
        assert "invalid exclude regex" in capsys.readouterr().err
        assert not (tmp_path / "dist").exists()

    def test_missing_app_path_is_error(self, tmp_path: Path, capsys):
        """A missing -p directory exits 2."""
        rc = main(["pack", "-p", str(tmp_path / "missing")])
        assert rc == ExitCode.ERROR
        assert "Application path does not exist" in capsys.readouterr().err

    def test_format_match_is_exact(self, tmp_path: Path):
        """-f ZIP is not zip; tar.gz is written."""
        app = _app(tmp_path)
        assert main(["pack", "-p", str(app), "-o", str(tmp_path), "-f", "ZIP"]) == ExitCode.SUCCESS
        assert (tmp_path / "shop.tar.gz").exists()
        assert not (tmp_path / "shop.zip").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="needs byte-string file names")
    def test_unstorable_zip_name_is_reported_as_error(self, tmp_path: Path, capsys):
        """A name zip cannot store exits 2 with an error line, not a traceback."""
        app = _app(tmp_path)
        try:
            (app / os.fsdecode(b"caf\xe9.txt")).write_bytes(b"menu")
        except (OSError, UnicodeEncodeError):
            pytest.skip("filesystem rejects non-UTF-8 names")
        rc = main(["pack", "-p", str(app), "-o", str(tmp_path), "-f", "zip"])
        assert rc == ExitCode.ERROR
        err = capsys.readouterr().err
        assert "error: cannot store entry name" in err
        assert "Traceback" not in err


class TestValidateConfig:
    """``appforge validate-config`` outcomes."""

    def test_valid(self, tmp_path: Path, capsys):
        """A valid file prints OK and exits 0."""
        cfg = _write(tmp_path, "appforge.yaml", "format: zip\nverbose: true\n")
        assert main(["validate-config", str(cfg)]) == ExitCode.SUCCESS
        assert capsys.readouterr().out.strip() == "OK"

    def test_schema_violation(self, tmp_path: Path, capsys):
        """A schema violation exits 1."""
        cfg = _write(tmp_path, "appforge.yaml", "verbose: maybe\n")
        assert main(["validate-config", str(cfg)]) == ExitCode.VIOLATION
        assert "FAIL" in capsys.readouterr().err

    def test_bad_regex_is_violation(self, tmp_path: Path):
        """An uncompilable regex exits 1."""
        cfg = _write(tmp_path, "appforge.yaml", "exclude_regex: ['[']\n")
        assert main(["validate-config", str(cfg)]) == ExitCode.VIOLATION

    def test_missing_file(self, tmp_path: Path):
        """A missing file exits 2."""
        assert main(["validate-config", str(tmp_path / "nope.yaml")]) == ExitCode.ERROR


def test_no_command_prints_help(capsys):
    """No subcommand prints usage and exits 2."""
    assert main([]) == ExitCode.ERROR
    assert "usage: appforge" in capsys.readouterr().err


def test_module_entry_point_version_subprocess():
    """python -m appforge --version prints the version."""
    env = os.environ.copy()
    env["PYTHONPATH"] = str(REPO_ROOT / "src")
    proc = subprocess.run(
        [sys.executable, "-m", "appforge", "--version"],
        env=env,
        text=True,
        capture_output=True,
    )
    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip() == f"appforge {__version__}"
