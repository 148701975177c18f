"""
Rewatch Glob Matcher.

Compiles shell-style glob patterns into anchored regular expressions
and tests root-relative paths against them.
Requires Python 3.11+.
"""

import re
from dataclasses import dataclass, field

from utils.errors import InvalidPatternError

SEPARATOR = "/"


@dataclass(frozen=True)
class GlobMatcher:
    """
    A compiled glob pattern.

    Paths passed to matches() are relative to the watch root and use
    "/" as the separator.
    """

    pattern: str
    regex: re.Pattern[str] = field(repr=False, compare=False)
    literal_separator: bool = False

    def matches(self, relative_path: str) -> bool:
        """Check whether the whole relative path matches the pattern."""
        return self.regex.fullmatch(relative_path) is not None


class _Translator:
    """Single-pass glob to regex translator."""

    def __init__(self, pattern: str, literal_separator: bool) -> None:
        self._pattern = pattern
        self._n = len(pattern)
        self._any = "[^/]*" if literal_separator else ".*"
        self._one = "[^/]" if literal_separator else "."
        self._literal_separator = literal_separator

    def _fail(self, reason: str) -> InvalidPatternError:
        return InvalidPatternError(self._pattern, reason)

    def translate(self) -> str:
        pattern = self._pattern
        n = self._n
        out: list[str] = []
        in_alternation = False
        i = 0

        while i < n:
            c = pattern[i]

            if c == "*":
                if i + 1 < n and pattern[i + 1] == "*":
                    i = self._recursive(i, out, in_alternation)
                else:
                    out.append(self._any)
                    i += 1
            elif c == "?":
                out.append(self._one)
                i += 1
            elif c == "[":
                i = self._char_class(i, out)
            elif c == "{":
                if in_alternation:
                    raise self._fail("nested alternation")
                in_alternation = True
                out.append("(?:")
                i += 1
            elif c == "," and in_alternation:
                out.append("|")
                i += 1
            elif c == "}":
                if not in_alternation:
                    raise self._fail("unopened alternation")
                in_alternation = False
                out.append(")")
                i += 1
            elif c == "\\":
                if i + 1 >= n:
                    raise self._fail("dangling escape")
                out.append(re.escape(pattern[i + 1]))
                i += 2
            else:
                out.append(re.escape(c))
                i += 1

        if in_alternation:
            raise self._fail("unclosed alternation")
        return "".join(out)

    def _recursive(self, i: int, out: list[str], in_alternation: bool) -> int:
        """Translate a "**" starting at i and return the next index."""
        pattern = self._pattern
        after = i + 2
        # Alternation branches start and end path segments too
        starts = SEPARATOR + ("{," if in_alternation else "")
        ends = ",}" if in_alternation else ""
        at_start = i == 0 or (pattern[i - 1] in starts and (i < 2 or pattern[i - 2] != "\\"))
        at_end = after == self._n or pattern[after] in ends
        before_sep = after < self._n and pattern[after] == SEPARATOR

        if not at_start or not (at_end or before_sep):
            # Not a whole segment; same as a single star
            out.append(self._any)
            return after

        if at_end:
            # "**" alone, a trailing "/**" or the end of a branch
            out.append(".*")
            return after

        # Leading "**/" or inner "/**/": zero or more directories
        out.append("(?:.*/)?")
        return after + 1

    def _char_class(self, i: int, out: list[str]) -> int:
        """Translate a "[...]" class starting at i and return the next index."""
        pattern = self._pattern
        j = i + 1
        negated = False
        if j < self._n and pattern[j] in "!^":
            negated = True
            j += 1

        start = j
        # A "]" right after the opening bracket is literal
        if j < self._n and pattern[j] == "]":
            j += 1
        while j < self._n and pattern[j] != "]":
            j += 1
        if j >= self._n:
            raise self._fail("unclosed character class")

        body = pattern[start:j]
        items: list[str] = []
        k = 0
        while k < len(body):
            if k + 2 < len(body) and body[k + 1] == "-":
                lo, hi = body[k], body[k + 2]
                if lo > hi:
                    raise self._fail(f"invalid range {lo}-{hi}")
                items.append(f"{re.escape(lo)}-{re.escape(hi)}")
                k += 3
            else:
                items.append(re.escape(body[k]))
                k += 1

        if negated:
            if self._literal_separator:
                items.append(SEPARATOR)
            out.append(f"[^{''.join(items)}]")
        else:
            out.append(f"[{''.join(items)}]")
        return j + 1


def translate(pattern: str, literal_separator: bool = False) -> str:
    """
    Translate a glob pattern into an (unanchored) regular expression.

    Raises:
        InvalidPatternError: If the pattern is malformed
    """
    if not pattern:
        raise InvalidPatternError(pattern, "empty pattern")
    return _Translator(pattern, literal_separator).translate()


def compile_pattern(pattern: str, literal_separator: bool = False) -> GlobMatcher:
    """
    Compile a glob pattern.

    Supported syntax: "?", "*", "**" as a whole path segment,
    "[...]" / "[!...]" classes, "{a,b}" alternation and "\\" escapes.

    Args:
        pattern: Glob pattern, e.g. "*.txt" or "src/**/*.py"
        literal_separator: Keep "*" and "?" from matching "/"

    Returns:
        Compiled GlobMatcher

    Raises:
        InvalidPatternError: If the pattern is malformed
    """
    source = translate(pattern, literal_separator)
    try:
        regex = re.compile(source, re.DOTALL)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e
    return GlobMatcher(pattern=pattern, literal_separator=literal_separator, regex=regex)
