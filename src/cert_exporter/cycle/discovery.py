"""Certificate file discovery through a glob pattern."""

from __future__ import annotations

import glob
import logging
from pathlib import Path

log = logging.getLogger(__name__)


class InvalidGlobError(ValueError):
    """The configured glob pattern can never match as intended."""


def _check_brackets(pattern: str) -> None:
    i = 0
    n = len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue
        j = i + 1
        if j < n and pattern[j] == "!":
            j += 1
        if j < n and pattern[j] == "]":
            j += 1
        close = pattern.find("]", j)
        if close == -1:
            msg = f"unclosed character class at position {i}"
            raise InvalidGlobError(msg)
        i = close + 1


def validate_glob_pattern(pattern: str) -> None:
    """Reject patterns that are empty or syntactically broken.

    Python's :mod:`glob` quietly treats an unclosed ``[`` as a literal and
    ``a**b`` as ``a*b``; both almost always mean a typo in the config.
    """
    if not pattern:
        msg = "pattern is empty"
        raise InvalidGlobError(msg)
    if "\x00" in pattern:
        msg = "pattern contains a NUL byte"
        raise InvalidGlobError(msg)

    _check_brackets(pattern)

    for component in pattern.replace("\\", "/").split("/"):
        if "**" in component and component != "**":
            msg = f"recursive wildcard must be a whole path component (got {component!r})"
            raise InvalidGlobError(msg)


class CertificateGlob:
    """Expands a validated glob pattern into certificate file paths."""

    def __init__(self, pattern: str) -> None:
        validate_glob_pattern(pattern)
        self.pattern = pattern

    def paths(self) -> list[Path]:
        """Return matching regular files in sorted order.

        Directories matched by the pattern are skipped; hidden files match
        like any other.
        """
        matches = sorted(glob.glob(self.pattern, recursive=True, include_hidden=True))
        paths = [Path(m) for m in matches if Path(m).is_file()]
        log.debug("Pattern %s matched %d file(s)", self.pattern, len(paths))
        return paths

    def __repr__(self) -> str:
        return f"<CertificateGlob pattern={self.pattern!r}>"
