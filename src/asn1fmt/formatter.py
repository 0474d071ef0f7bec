from __future__ import annotations

import logging
from typing import Any

from asn1fmt.config import FormatConfig, resolve_config
from asn1fmt.fallback import reindent
from asn1fmt.parser.structural_parser import StructuralFault, parse_definitions
from asn1fmt.printer import render

logger = logging.getLogger(__name__)


def normalize_source(source: str, indent_width: int) -> str:
    """Unify line endings and expand tabs."""
    text = source.replace("\r\n", "\n").replace("\r", "\n")
    return "\n".join(line.expandtabs(indent_width) for line in text.split("\n"))


def format_asn1(source: Any, config: Any = None) -> str:
    """Format ASN.1 source text into canonical form.

    Never raises. If the text cannot be parsed structurally, the result is
    the input re-indented by brace depth with every line kept in place.
    """
    if source is None:
        return ""
    if not isinstance(source, str):
        source = str(source)
    if not source.strip():
        return ""

    try:
        options = resolve_config(config)
    except ValueError as e:
        logger.warning("Ignoring unusable configuration: %s", e)
        options = FormatConfig()

    text = normalize_source(source, options.indent_width)

    try:
        tree = parse_definitions(text, options)
        return render(tree, options)
    except StructuralFault as e:
        logger.debug("Structural formatting failed, re-indenting instead: %s", e)
    except Exception:
        logger.warning("Unexpected formatter error, re-indenting instead", exc_info=True)

    try:
        return reindent(text, options.indent_width)
    except Exception:
        logger.exception("Fallback re-indent failed, returning input unchanged")
        return text
