"""Line-preserving re-indenter used when structural parsing fails.

Only leading whitespace changes. Lines are never split, joined, dropped or
reordered, so the result always has as many lines as the input.
"""

from __future__ import annotations

import re
from typing import List

from asn1fmt.parser.classifier import LineClassifier, LineKind
from asn1fmt.parser.scanner import brace_delta, leading_closers, split_trailing_comment

_BEGIN_SUFFIX = re.compile(r"(?<![\w-])BEGIN$")


def reindent(text: str, indent_width: int = 2) -> str:
    """Re-indent *text* by brace depth without touching anything else.

    Line structure is kept exactly, including the final line break: the
    result ends with a newline if and only if *text* does.
    """
    indent_width = max(1, indent_width)
    classifier = LineClassifier()
    out: List[str] = []
    depth = 0

    for line in text.split("\n"):
        continuation = classifier.in_block_comment
        kind = classifier.classify(line)
        stripped = line.strip()

        if not stripped:
            out.append("" if not continuation else line)
            continue
        if kind == LineKind.COMMENT:
            out.append(line if continuation else " " * (depth * indent_width) + stripped)
            continue

        code, _ = split_trailing_comment(stripped)
        closers = leading_closers(code)
        if kind == LineKind.END:
            depth = max(0, depth - 1)
        depth = max(0, depth - closers)

        out.append(" " * (depth * indent_width) + stripped)

        # Closers at the start of the line were already applied.
        delta = brace_delta(code) + closers
        depth = max(0, depth + delta)
        if kind in (LineKind.BEGIN, LineKind.MODULE) and _BEGIN_SUFFIX.search(code):
            depth += 1

    return "\n".join(out)
