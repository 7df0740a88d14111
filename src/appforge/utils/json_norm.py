"""Canonical JSON serialization — single dump path for CLI output.

Guarantees:
  - Stable key ordering (``sort_keys=True``)
  - Trailing newline at EOF
  - ``Path`` objects → POSIX strings
  - Enums → their values
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import IO, Any, Mapping


def _to_builtin(obj: Any) -> Any:
    """Convert common non-JSON types into JSON-safe builtins."""
    if obj is None or isinstance(obj, (bool, int, float)):
        return obj
    if isinstance(obj, Enum):
        return _to_builtin(obj.value)
    if isinstance(obj, str):
        return obj
    if isinstance(obj, Path):
        return obj.as_posix()
    if isinstance(obj, Mapping):
        return {str(k): _to_builtin(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [_to_builtin(v) for v in obj]
    return str(obj)


def stable_json_dumps(obj: Any, *, indent: int | None = 2) -> str:
    built = _to_builtin(obj)
    return json.dumps(built, indent=indent, sort_keys=True, ensure_ascii=False) + "\n"


def stable_json_dump(obj: Any, fp: IO[str], *, indent: int | None = 2) -> None:
    fp.write(stable_json_dumps(obj, indent=indent))
