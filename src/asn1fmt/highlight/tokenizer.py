"""Lexical tokenizer for ASN.1 text, used only for highlighting.

Unlike the formatter this keeps every character: concatenating the token
values gives back the input exactly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import List

from asn1fmt.keywords import is_keyword


class Asn1TokenType(Enum):
    COMMENT = auto()
    STRING = auto()
    NUMBER = auto()
    KEYWORD = auto()
    IDENTIFIER = auto()
    OPERATOR = auto()
    TAG = auto()
    PUNCTUATION = auto()
    WHITESPACE = auto()
    NEWLINE = auto()
    OTHER = auto()

    # Special
    EOF = auto()


_PUNCTUATION = set(":{}[]().,;|")
_OPERATORS = ("::=", "...", "..")
_TAG = re.compile(r"\[\s*(?:(?:UNIVERSAL|APPLICATION|PRIVATE|CONTEXT)\s+)?\d+\s*\]", re.IGNORECASE)


@dataclass
class Asn1Token:
    type: Asn1TokenType
    value: str
    line: int
    col: int


def tokenize_asn1(text: str) -> List[Asn1Token]:
    """Tokenize ASN.1 source into a list of tokens ending with EOF."""
    tokens: List[Asn1Token] = []
    i = 0
    line = 1
    col = 1
    n = len(text)

    def add(tok_type: Asn1TokenType, end: int) -> None:
        nonlocal i, line, col
        value = text[i:end]
        tokens.append(Asn1Token(tok_type, value, line, col))
        newlines = value.count("\n")
        if newlines:
            line += newlines
            col = len(value) - value.rfind("\n")
        else:
            col += len(value)
        i = end

    while i < n:
        ch = text[i]

        if ch == "\n":
            add(Asn1TokenType.NEWLINE, i + 1)
            continue

        if ch in (" ", "\t", "\r"):
            end = i
            while end < n and text[end] in (" ", "\t", "\r"):
                end += 1
            add(Asn1TokenType.WHITESPACE, end)
            continue

        # Single-line comment: runs to end of line
        if text.startswith("--", i):
            end = text.find("\n", i)
            add(Asn1TokenType.COMMENT, n if end < 0 else end)
            continue

        # Block comment, possibly spanning lines
        if text.startswith("-*", i):
            end = text.find("*-", i + 2)
            add(Asn1TokenType.COMMENT, n if end < 0 else end + 2)
            continue

        # String literal; "" inside a string is an escaped quote
        if ch == '"':
            end = i + 1
            while end < n:
                if text[end] == "\\":
                    end += 2
                    continue
                if text[end] == '"':
                    if end + 1 < n and text[end + 1] == '"':
                        end += 2
                        continue
                    end += 1
                    break
                end += 1
            add(Asn1TokenType.STRING, min(end, n))
            continue

        if ch == "[":
            match = _TAG.match(text, i)
            if match:
                add(Asn1TokenType.TAG, match.end())
                continue

        operator = next((op for op in _OPERATORS if text.startswith(op, i)), None)
        if operator:
            add(Asn1TokenType.OPERATOR, i + len(operator))
            continue

        if ch.isdigit():
            end = i
            while end < n and text[end].isdigit():
                end += 1
            # Decimal part, but not the start of a ".." range
            if end + 1 < n and text[end] == "." and text[end + 1].isdigit():
                end += 1
                while end < n and text[end].isdigit():
                    end += 1
            add(Asn1TokenType.NUMBER, end)
            continue

        # Identifier / keyword; single hyphens are part of the name
        if ch.isalpha():
            end = i + 1
            while end < n:
                c = text[end]
                if c.isalnum():
                    end += 1
                elif c == "-" and end + 1 < n and text[end + 1].isalnum():
                    end += 1
                else:
                    break
            word = text[i:end]
            tok_type = Asn1TokenType.KEYWORD if is_keyword(word) else Asn1TokenType.IDENTIFIER
            add(tok_type, end)
            continue

        if ch in _PUNCTUATION:
            add(Asn1TokenType.PUNCTUATION, i + 1)
            continue

        add(Asn1TokenType.OTHER, i + 1)

    tokens.append(Asn1Token(Asn1TokenType.EOF, "", line, col))
    return tokens
