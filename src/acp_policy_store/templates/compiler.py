"""Template compiler - turn author-written templates into anchored patterns.

A template is literal text with optional delimited regular-expression
fragments. With the default delimiters:

    users:<[0-9]+>:profile   ->   ^users:([0-9]+):profile\\Z

Compilation rules:
1. Text outside a delimiter pair is escaped and matches only itself
2. Text inside the outermost delimiter pair is inserted verbatim as a
   capture group (delimiters nest, so a fragment may contain them as long
   as they stay balanced)
3. The result is anchored at both ends - a template describes the WHOLE
   candidate string, partial matches never count. The end anchor is \\Z,
   so a trailing newline is not accepted even by .match()

Hazards callers must handle:
- Delimiter characters are ALWAYS interpreted as delimiters. A template
  cannot contain a literal "<" or ">" outside a fragment; choose other
  delimiters for such policies.
- Fragments are author-supplied regular expressions. Patterns that
  backtrack catastrophically (e.g. "<(a+)+>") are NOT detected or limited
  here. Validating template input is the caller's responsibility.

Compilation is pure and deterministic, so compiled patterns can be persisted
and re-derived at any time with identical output.
"""

from __future__ import annotations

__all__ = [
    "compile_template",
    "delimiter_indices",
    "matches",
]

import re
from functools import lru_cache

from acp_policy_store.constants import (
    DEFAULT_END_DELIMITER,
    DEFAULT_START_DELIMITER,
    TEMPLATE_CACHE_SIZE,
)
from acp_policy_store.exceptions import CompileError


def delimiter_indices(template: str, start: str, end: str) -> list[tuple[int, int]]:
    """Find the outermost delimiter pairs in a template.

    Args:
        template: Template to scan.
        start: Opening delimiter character.
        end: Closing delimiter character.

    Returns:
        List of (open_index, close_index + 1) spans, left to right.

    Raises:
        CompileError: If the delimiters are unbalanced.
    """
    spans: list[tuple[int, int]] = []
    level = 0
    open_idx = 0
    for i, char in enumerate(template):
        if char == start:
            level += 1
            if level == 1:
                open_idx = i
        elif char == end:
            level -= 1
            if level == 0:
                spans.append((open_idx, i + 1))
            elif level < 0:
                raise CompileError(template, f"unbalanced delimiters: {end!r} at position {i} has no {start!r}")

    if level != 0:
        raise CompileError(template, f"unbalanced delimiters: unterminated {start!r} at position {open_idx}")

    return spans


def compile_template(
    template: str,
    start: str = DEFAULT_START_DELIMITER,
    end: str = DEFAULT_END_DELIMITER,
) -> re.Pattern[str]:
    """Compile a template into an anchored regular expression.

    Args:
        template: Author-written template, e.g. "users:<.+>".
        start: Opening delimiter character.
        end: Closing delimiter character.

    Returns:
        Compiled pattern. Its .pattern string is what gets persisted.

    Raises:
        CompileError: If delimiters are invalid or unbalanced, or a fragment
            is not a valid regular expression.
    """
    if len(start) != 1 or len(end) != 1:
        raise CompileError(template, "delimiters must be single characters")
    if start == end:
        raise CompileError(template, "start and end delimiters must differ")
    return _compile(template, start, end)


@lru_cache(maxsize=TEMPLATE_CACHE_SIZE)
def _compile(template: str, start: str, end: str) -> re.Pattern[str]:
    parts = ["^"]
    pos = 0
    for open_idx, close_idx in delimiter_indices(template, start, end):
        fragment = template[open_idx + 1 : close_idx - 1]
        # Each fragment must be a valid expression on its own, otherwise
        # "<a)(b>" would become the valid group "(a)(b)"
        try:
            re.compile(fragment)
        except re.error as e:
            raise CompileError(template, f"invalid pattern {fragment!r}: {e}") from e
        parts.append(re.escape(template[pos:open_idx]))
        parts.append(f"({fragment})")
        pos = close_idx
    parts.append(re.escape(template[pos:]))
    parts.append(r"\Z")

    try:
        return re.compile("".join(parts))
    except re.error as e:
        raise CompileError(template, str(e)) from e


@lru_cache(maxsize=TEMPLATE_CACHE_SIZE)
def _load(compiled: str, case_insensitive: bool) -> re.Pattern[str]:
    return re.compile(compiled, re.IGNORECASE if case_insensitive else 0)


def matches(compiled: str, candidate: str, case_insensitive: bool = False) -> bool:
    """Check whether a persisted pattern matches the whole candidate.

    Args:
        compiled: Pattern string produced by compile_template().
        candidate: Subject, resource or permission string to test.
        case_insensitive: Ignore case when matching.

    Returns:
        True if the pattern matches the entire candidate.

    Raises:
        re.error: If the persisted pattern is not a valid expression.
    """
    return _load(compiled, case_insensitive).fullmatch(candidate) is not None
