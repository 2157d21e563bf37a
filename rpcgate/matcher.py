"""Case-insensitive glob matching with a fall-back to plain comparison."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

logger = logging.getLogger(__name__)

_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


class _GlobError(ValueError):
    """The text is not a valid glob pattern."""


def _translate_class(chars: Iterator[str]) -> str:
    negated = False
    body: list[str] = []
    for ch in chars:
        if ch in "!^" and not body and not negated:
            negated = True
            continue
        if ch == "]" and body:
            break
        body.append(ch)
    else:
        raise _GlobError("unclosed character class")

    last = len(body) - 1
    members = "".join(
        "-" if ch == "-" and 0 < position < last else re.escape(ch)
        for position, ch in enumerate(body)
    )
    return f"[{'^' if negated else ''}{members}]"


def _translate(pattern: str) -> str:
    parts: list[str] = []
    in_alternates = False
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            escaped = next(chars, None)
            if escaped is None:
                raise _GlobError("dangling escape")
            parts.append(re.escape(escaped))
        elif ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        elif ch == "[":
            parts.append(_translate_class(chars))
        elif ch == "{":
            if in_alternates:
                raise _GlobError("nested alternates")
            in_alternates = True
            parts.append("(?:")
        elif ch == "}":
            if not in_alternates:
                raise _GlobError("unopened alternates")
            in_alternates = False
            parts.append(")")
        elif ch == "," and in_alternates:
            parts.append("|")
        else:
            parts.append(re.escape(ch))
    if in_alternates:
        raise _GlobError("unclosed alternates")
    return "".join(parts)


class Matcher:
    """Matches strings against a glob pattern, ignoring case.

    If the pattern is not a valid glob it is compared literally,
    ignoring ASCII case.
    """

    __slots__ = ("pattern", "_regex")

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        try:
            self._regex: re.Pattern[str] | None = re.compile(
                _translate(pattern), re.IGNORECASE | re.DOTALL
            )
        except (_GlobError, re.error) as exc:
            logger.warning("Invalid glob pattern for %s: %s", pattern, exc)
            self._regex = None

    @property
    def is_glob(self) -> bool:
        """True when the pattern compiled as a glob."""
        return self._regex is not None

    def matches(self, other: str) -> bool:
        """Return True if ``other`` matches the pattern."""
        if self._regex is not None:
            return self._regex.fullmatch(other) is not None
        return self.pattern.translate(_ASCII_LOWER) == other.translate(_ASCII_LOWER)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matcher):
            return NotImplemented
        return self.pattern == other.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def __repr__(self) -> str:
        return f"Matcher({self.pattern!r}, glob={self.is_glob})"