"""Centralized exit-code contract for all CLI commands.

Code  Meaning
----  -------
  0   Success — archive written / config valid
  1   Violation — config file fails validation (``validate-config``)
  2   Error — usage error, missing path, pack aborted
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    VIOLATION = 1
    ERROR = 2
