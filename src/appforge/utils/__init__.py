"""Shared utilities for appforge."""

from appforge.utils.exit_codes import ExitCode
from appforge.utils.json_norm import stable_json_dump, stable_json_dumps

__all__ = [
    "ExitCode",
    "stable_json_dump",
    "stable_json_dumps",
]
