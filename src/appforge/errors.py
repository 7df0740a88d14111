"""Exception hierarchy for packing operations.

Every failure that aborts a pack is a ``PackError``.  The CLI catches the
base class, prints the message and exits with ``ExitCode.ERROR``.
"""

from __future__ import annotations

from pathlib import Path


class PackError(RuntimeError):
    """Base error for a packing operation.

    ``path`` names the file or directory being processed when the error
    happened, if there was one.
    """

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ConfigError(PackError):
    """Invalid configuration: bad regex, missing root, malformed config file.

    Always raised before the output archive is created.
    """


class TraversalError(PackError):
    """The source tree could not be read (permission denied, I/O failure)."""


class ArchiveWriteError(PackError):
    """Writing a header or entry body to the output archive failed."""
