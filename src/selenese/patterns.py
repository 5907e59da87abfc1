"""
String-match patterns used by assertions, verifications and waits.

Supported syntaxes:
- glob:pattern    - "*" is any run of characters, "?" is one character,
                    anchored to the whole subject; "\\*" and "\\?" are
                    literal, any other backslash is an ordinary character
- regexp:regexp   - case-sensitive regular expression, unanchored search
- regexpi:regexpi - case-insensitive regular expression
- exact:string    - verbatim equality
- anything else   - treated as a glob
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum

from selenese.errors import PatternCompileError


class PatternKind(StrEnum):
    """How a pattern body is interpreted."""

    GLOB = "glob"
    REGEXP = "regexp"
    REGEXPI = "regexpi"
    EXACT = "exact"
    PLAIN = "plain"


_PREFIXES: tuple[PatternKind, ...] = (
    PatternKind.GLOB,
    PatternKind.REGEXPI,
    PatternKind.REGEXP,
    PatternKind.EXACT,
)


@dataclass(frozen=True)
class Pattern:
    """A parsed string-match pattern."""

    kind: PatternKind
    body: str
    regex: re.Pattern[str] | None = field(default=None, compare=False, repr=False)

    def matches(self, subject: str) -> bool:
        """Check whether subject satisfies this pattern."""
        if self.kind == PatternKind.EXACT:
            return subject == self.body
        regex = self.regex or _compile(self.kind, self.body)
        if self.kind in (PatternKind.REGEXP, PatternKind.REGEXPI):
            return regex.search(subject) is not None
        return regex.fullmatch(subject) is not None

    def __str__(self) -> str:
        if self.kind == PatternKind.PLAIN:
            return self.body
        return f"{self.kind}:{self.body}"


def parse_pattern(raw: str) -> Pattern:
    """
    Parse a raw pattern string into a Pattern.

    Raises:
        PatternCompileError: If a regexp/regexpi body does not compile
    """
    kind = PatternKind.PLAIN
    body = raw
    for prefix in _PREFIXES:
        marker = f"{prefix}:"
        if raw.startswith(marker):
            kind = prefix
            body = raw[len(marker):]
            break

    regex = None if kind == PatternKind.EXACT else _compile(kind, body, raw)
    return Pattern(kind=kind, body=body, regex=regex)


def matches(pattern: Pattern | str, subject: str) -> bool:
    """Match subject against a Pattern or a raw pattern string."""
    if isinstance(pattern, str):
        pattern = parse_pattern(pattern)
    return pattern.matches(subject)


def glob_to_regex(body: str) -> str:
    """Translate a glob body into an (unanchored) regular expression."""
    parts: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body) and body[i + 1] in "*?":
            parts.append(re.escape(body[i + 1]))
            i += 2
            continue
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        i += 1
    return "".join(parts)


def escape_glob(literal: str) -> str:
    """Escape a literal so that, used as a glob, it matches only itself."""
    return re.sub(r"([*?])", r"\\\1", literal)


def _compile(kind: PatternKind, body: str, raw: str | None = None) -> re.Pattern[str]:
    try:
        match kind:
            case PatternKind.REGEXP:
                return re.compile(body)
            case PatternKind.REGEXPI:
                return re.compile(body, re.IGNORECASE)
            case _:
                return re.compile(glob_to_regex(body), re.DOTALL)
    except re.error as e:
        raise PatternCompileError(raw if raw is not None else body, str(e)) from e
