"""Character-level helpers for brace matching and comma splitting.

Everything here works on a single span of text and honours string literal
masking: a ``"`` not preceded by a backslash toggles the in-string state, and
nothing between quotes counts towards nesting or splitting.
"""

from __future__ import annotations

import re
from typing import Callable, Iterator, List, Optional, Tuple

_OPENERS = "{(["
_CLOSERS = "})]"

_WHITESPACE_RUN = re.compile(r"\s+")
_ASSIGNMENT = re.compile(r"\s*::=\s*")


def _is_quote(text: str, i: int) -> bool:
    return text[i] == '"' and (i == 0 or text[i - 1] != "\\")


def iter_unquoted(text: str) -> Iterator[Tuple[int, str]]:
    """Yield (index, char) for every character outside string literals.

    Quote characters themselves are not yielded.
    """
    in_string = False
    for i, ch in enumerate(text):
        if _is_quote(text, i):
            in_string = not in_string
        elif not in_string:
            yield i, ch


def leading_closers(text: str) -> int:
    """Count the ``}`` characters a line starts with, ignoring spaces."""
    count = 0
    for ch in text:
        if ch == "}":
            count += 1
        elif ch not in " \t":
            break
    return count


def find_matching_close(text: str, open_index: int) -> Optional[int]:
    """Return the index of the ``}`` that balances the ``{`` at *open_index*.

    Returns None when the end of *text* is reached first.
    """
    if open_index < 0 or open_index >= len(text) or text[open_index] != "{":
        raise ValueError(f"No opening brace at index {open_index}")

    depth = 1
    in_string = False
    i = open_index + 1
    n = len(text)

    while i < n:
        if _is_quote(text, i):
            in_string = not in_string
        elif not in_string:
            ch = text[i]
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i
        i += 1

    return None


def find_unquoted(text: str, target: str, start: int = 0) -> int:
    """Find the first *target* character outside string literals, or -1."""
    in_string = False
    for i in range(len(text)):
        if _is_quote(text, i):
            in_string = not in_string
        elif not in_string and i >= start and text[i] == target:
            return i
    return -1


def brace_delta(text: str) -> int:
    """Net count of ``{`` minus ``}`` outside string literals."""
    delta = 0
    in_string = False
    for i, ch in enumerate(text):
        if _is_quote(text, i):
            in_string = not in_string
        elif not in_string:
            if ch == "{":
                delta += 1
            elif ch == "}":
                delta -= 1
    return delta


def split_trailing_comment(line: str) -> Tuple[str, Optional[str]]:
    """Split ``code -- comment`` into its code and comment parts.

    The comment keeps its ``--`` marker and runs to the end of the line.
    """
    in_string = False
    for i in range(len(line) - 1):
        if _is_quote(line, i):
            in_string = not in_string
        elif not in_string and line[i] == "-" and line[i + 1] == "-":
            return line[:i].rstrip(), line[i:].strip()
    return line, None


def split_top_level(text: str, delimiter: str = ",") -> List[str]:
    """Split *text* on *delimiter* at nesting depth zero.

    Braces, parentheses and brackets all count towards depth. Every segment
    is passed through :func:`normalize_field`; empty segments and segments
    made of a lone brace are dropped.
    """
    segments: List[str] = []
    depth = 0
    in_string = False
    start = 0

    for i, ch in enumerate(text):
        if _is_quote(text, i):
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            # Stray closers must not push the depth below zero.
            depth = max(0, depth - 1)
        elif ch == delimiter and depth == 0:
            segments.append(text[start:i])
            start = i + 1
    segments.append(text[start:])

    result: List[str] = []
    for segment in segments:
        normalized = normalize_field(segment)
        if normalized in ("", "{", "}"):
            continue
        result.append(normalized)
    return result


def _map_outside_strings(text: str, fn: Callable[[str], str]) -> str:
    """Apply *fn* to every chunk of *text* that is not inside a string literal."""
    parts: List[str] = []
    in_string = False
    start = 0
    for i in range(len(text)):
        if _is_quote(text, i):
            if in_string:
                parts.append(text[start:i + 1])
                start = i + 1
            else:
                parts.append(fn(text[start:i]))
                start = i
            in_string = not in_string
    tail = text[start:]
    parts.append(tail if in_string else fn(tail))
    return "".join(parts)


def _tidy_code(chunk: str) -> str:
    chunk = _ASSIGNMENT.sub(" ::= ", chunk)
    return _WHITESPACE_RUN.sub(" ", chunk)


def tidy(text: str) -> str:
    """Collapse whitespace and space the ``::=`` operator outside strings."""
    return _map_outside_strings(text, _tidy_code).strip()


def normalize_field(field: str) -> str:
    """Canonicalize whitespace and trailing punctuation of one segment."""
    result = tidy(field)
    while result.endswith(","):
        result = result[:-1].rstrip()
    return result
