"""Enums shared by the walker, the archive writers and the CLI."""

from __future__ import annotations

from enum import Enum


class ArchiveFormat(str, Enum):
    """Output container selected with ``-f``."""

    TAR_GZ = "tar.gz"
    ZIP = "zip"

    @classmethod
    def parse(cls, value: str | ArchiveFormat | None) -> ArchiveFormat:
        """Map a user-supplied format to a member; anything but ``"zip"`` means tar.gz."""
        if isinstance(value, ArchiveFormat):
            return value
        if value == cls.ZIP.value:
            return cls.ZIP
        return cls.TAR_GZ

    @property
    def extension(self) -> str:
        return "." + self.value


class Visit(str, Enum):
    """Outcome of visiting one node of the tree.

    Aborting is not a member: fatal conditions raise a ``PackError``.
    """

    CONTINUE = "continue"
    SKIP_SUBTREE = "skip_subtree"
