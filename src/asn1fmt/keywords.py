"""ASN.1 keyword table shared by the formatter and the highlighter."""

from __future__ import annotations

from typing import FrozenSet

# Constructed types whose brace body is laid out one member per line.
STRUCTURED_KINDS = ("SEQUENCE", "SET", "CHOICE", "ENUMERATED")

_BUILTIN_TYPES = (
    "BOOLEAN", "INTEGER", "BIT", "OCTET", "NULL", "OBJECT", "REAL",
    "ENUMERATED", "EMBEDDED", "UTF8String", "RELATIVE-OID",
)

_STRING_TYPES = (
    "NumericString", "PrintableString", "TeletexString", "T61String",
    "VideotexString", "IA5String", "GraphicString", "VisibleString",
    "GeneralString", "UniversalString", "BMPString",
)

_TIME_TYPES = ("UTCTime", "GeneralizedTime")

_CONSTRUCTED = ("SEQUENCE", "SET", "CHOICE", "STRING")

_TAGGING = (
    "UNIVERSAL", "APPLICATION", "PRIVATE", "CONTEXT",
    "EXPLICIT", "IMPLICIT", "AUTOMATIC", "TAGS",
)

_MODULE = ("DEFINITIONS", "BEGIN", "END", "EXPORTS", "IMPORTS", "FROM")

_CONSTRAINTS = (
    "SIZE", "WITH", "COMPONENT", "COMPONENTS", "PRESENT", "ABSENT",
    "OPTIONAL", "DEFAULT", "INCLUDES", "PATTERN",
)

_SET_OPERATORS = ("UNION", "INTERSECTION", "EXCEPT", "ALL")

_VALUES = ("TRUE", "FALSE", "PLUS-INFINITY", "MINUS-INFINITY", "MIN", "MAX")

_OBJECT_CLASSES = (
    "CLASS", "TYPE-IDENTIFIER", "ABSTRACT-SYNTAX", "INSTANCE",
    "SYNTAX", "UNIQUE", "CONSTRAINED", "CHARACTER",
    "PDV", "EXTERNAL", "BY", "OF", "IDENTIFIER",
)

KEYWORDS: FrozenSet[str] = frozenset(
    _BUILTIN_TYPES
    + _STRING_TYPES
    + _TIME_TYPES
    + _CONSTRUCTED
    + _TAGGING
    + _MODULE
    + _CONSTRAINTS
    + _SET_OPERATORS
    + _VALUES
    + _OBJECT_CLASSES
)

# Keyword lookup is case-insensitive for highlighting.
KEYWORDS_UPPER: FrozenSet[str] = frozenset(k.upper() for k in KEYWORDS)


def is_keyword(word: str) -> bool:
    """Return True if *word* is an ASN.1 keyword, ignoring case."""
    return word.upper() in KEYWORDS_UPPER
