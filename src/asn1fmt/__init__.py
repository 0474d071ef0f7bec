"""Canonical formatting for ASN.1 schema text."""

from asn1fmt.config import ConfigurationFault, FormatConfig
from asn1fmt.formatter import format_asn1
from asn1fmt.models import DefinitionNode, NodeKind, StructureKind

__version__ = "0.1.0"

__all__ = [
    "ConfigurationFault",
    "DefinitionNode",
    "FormatConfig",
    "NodeKind",
    "StructureKind",
    "format_asn1",
]
