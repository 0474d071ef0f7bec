"""Line classifier for ASN.1 source lines."""

from __future__ import annotations

import re
from enum import Enum, auto

from .scanner import split_trailing_comment


class LineKind(Enum):
    MODULE = auto()
    BEGIN = auto()
    END = auto()
    TYPE_DEFINITION = auto()
    FIELD = auto()
    COMMENT = auto()
    OTHER = auto()


_DEFINITIONS = re.compile(r"(?<![\w-])DEFINITIONS(?![\w-])")
_MODULE_HEADER = re.compile(r"^[A-Za-z][\w-]*.*?\sDEFINITIONS(?![\w-])")
_BEGIN_SUFFIX = re.compile(r"(?<![\w-])BEGIN$")
_END_PREFIX = re.compile(r"^END(?![\w-])")


class LineClassifier:
    """Classify logical lines one at a time.

    The classifier is stateful: once a line opens a ``-* ... *-`` block, every
    following line is a comment until one ends with ``*-``.
    """

    def __init__(self) -> None:
        self._in_block_comment = False

    @property
    def in_block_comment(self) -> bool:
        return self._in_block_comment

    def reset(self) -> None:
        self._in_block_comment = False

    def classify(self, line: str) -> LineKind:
        text = line.strip()

        if self._in_block_comment:
            if text.endswith("*-"):
                self._in_block_comment = False
            return LineKind.COMMENT
        if text.startswith("--"):
            return LineKind.COMMENT
        if text.startswith("-*"):
            if not (len(text) >= 4 and text.endswith("*-")):
                self._in_block_comment = True
            return LineKind.COMMENT

        text, _ = split_trailing_comment(text)
        if _MODULE_HEADER.match(text):
            return LineKind.MODULE
        if text == "BEGIN" or _BEGIN_SUFFIX.search(text):
            return LineKind.BEGIN
        if _END_PREFIX.match(text):
            return LineKind.END
        if "::=" in text:
            return LineKind.TYPE_DEFINITION
        if len(text.split()) >= 2 and not _DEFINITIONS.search(text):
            return LineKind.FIELD
        return LineKind.OTHER
