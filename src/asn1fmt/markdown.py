"""Find and format ```asn1 fenced blocks inside Markdown notes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

from asn1fmt.formatter import format_asn1

logger = logging.getLogger(__name__)

FENCE = "```"
LANGUAGE = "asn1"


@dataclass
class CodeBlock:
    """An ASN.1 fenced block. Line numbers are 0-based and refer to the fences."""

    start_line: int
    end_line: int
    source: str


def _opens_block(line: str) -> bool:
    text = line.strip()
    if not text.startswith(FENCE):
        return False
    info = text[len(FENCE):].strip().split()
    return bool(info) and info[0].lower() == LANGUAGE


def find_asn1_blocks(text: str) -> Iterator[CodeBlock]:
    """Yield every terminated ```asn1 block in *text*."""
    lines = text.split("\n")
    i = 0
    while i < len(lines):
        if not _opens_block(lines[i]):
            # Skip over other fenced blocks so their content is never scanned.
            if lines[i].strip().startswith(FENCE):
                i += 1
                while i < len(lines) and lines[i].strip() != FENCE:
                    i += 1
            i += 1
            continue

        start = i
        i += 1
        while i < len(lines) and lines[i].strip() != FENCE:
            i += 1
        if i >= len(lines):
            logger.debug("Unterminated asn1 block starting on line %d", start + 1)
            return
        yield CodeBlock(start_line=start, end_line=i, source="\n".join(lines[start + 1:i]))
        i += 1


def block_at_line(text: str, line: int) -> Optional[CodeBlock]:
    """Return the block whose body contains the 0-based *line*, if any."""
    for block in find_asn1_blocks(text):
        if block.start_line < line < block.end_line:
            return block
    return None


def format_markdown(text: str, config: Any = None) -> str:
    """Format every ```asn1 block body in *text*, leaving other lines untouched."""
    lines = text.split("\n")
    out: List[str] = []
    cursor = 0

    for block in find_asn1_blocks(text):
        out.extend(lines[cursor:block.start_line + 1])
        formatted = format_asn1(block.source, config)
        if formatted:
            out.extend(formatted.rstrip("\n").split("\n"))
        cursor = block.end_line

    out.extend(lines[cursor:])
    return "\n".join(out)
