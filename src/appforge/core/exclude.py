"""Exclusion policy — decide which logical names never reach the archive."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from appforge.errors import ConfigError


@dataclass(frozen=True)
class ExclusionPolicy:
    """Prefix, suffix and base-name regex rules, OR-ed together.

    Prefix and suffix rules are plain string matches against the logical
    name (root-relative, ``/``-separated).  Regex rules are searched in the
    base name only.  There are no include rules: any single match excludes.

    Build instances with :meth:`compile` so that invalid patterns surface as
    ``ConfigError`` before the filesystem is touched.
    """

    prefixes: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()
    patterns: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def compile(
        cls,
        prefixes: Iterable[str] = (),
        suffixes: Iterable[str] = (),
        patterns: Iterable[str] = (),
    ) -> ExclusionPolicy:
        """Build a policy from rule source strings.

        Empty strings are dropped from every list, matching how the CLI
        treats ``::`` in colon-separated values.

        Raises
        ------
        ConfigError
            On the first pattern that fails to compile.
        """
        compiled: list[re.Pattern[str]] = []
        for source in patterns:
            if not source:
                continue
            try:
                compiled.append(re.compile(source))
            except re.error as exc:
                raise ConfigError(f"invalid exclude regex {source!r}: {exc}") from exc
        return cls(
            prefixes=tuple(p for p in prefixes if p),
            suffixes=tuple(s for s in suffixes if s),
            patterns=tuple(compiled),
        )

    def is_excluded(self, logical_name: str) -> bool:
        """True if *logical_name* starts with a prefix or ends with a suffix."""
        if not logical_name:
            return False
        if any(logical_name.startswith(p) for p in self.prefixes):
            return True
        return any(logical_name.endswith(s) for s in self.suffixes)

    def is_excluded_name(self, base_name: str) -> bool:
        """True if any regex rule matches somewhere in *base_name*."""
        return any(p.search(base_name) for p in self.patterns)

    def excludes(self, logical_name: str) -> bool:
        """Apply every rule category to *logical_name*."""
        if not logical_name:
            return False
        base_name = logical_name.rsplit("/", maxsplit=1)[-1]
        return self.is_excluded_name(base_name) or self.is_excluded(logical_name)

    def describe(self) -> list[str]:
        lines = [
            f"Excluding relpath prefix: {':'.join(self.prefixes)}",
            f"Excluding relpath suffix: {':'.join(self.suffixes)}",
        ]
        if self.patterns:
            joined = "`, `".join(p.pattern for p in self.patterns)
            lines.append(f"Excluding filename regex: `{joined}`")
        return lines
