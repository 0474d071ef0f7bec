from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class NodeKind(Enum):
    ROOT = "root"
    MODULE = "module"
    BEGIN = "begin"
    END = "end"
    TYPE_DEFINITION = "type-definition"
    FIELD = "field"
    COMMENT = "comment"
    OTHER = "other"


class StructureKind(Enum):
    SEQUENCE = "SEQUENCE"
    SET = "SET"
    CHOICE = "CHOICE"
    ENUMERATED = "ENUMERATED"
    PRIMITIVE = "PRIMITIVE"


@dataclass
class DefinitionNode:
    """One node of the definition tree built for a single format call.

    TYPE_DEFINITION nodes carry ``structure_kind``, ``is_single_line``,
    ``inline_fields`` and ``header``. A FIELD whose brace group spans several
    source lines is a group: ``is_single_line`` is False, ``header`` holds the
    text before the brace and ``children`` its members. Members of a
    structured group are FIELD and COMMENT nodes. Any other group keeps its
    lines as OTHER nodes whose ``nesting_level`` records their indentation.
    """

    kind: NodeKind
    name: str = ""
    raw_content: str = ""
    children: List[DefinitionNode] = field(default_factory=list)
    nesting_level: int = 0
    structure_kind: Optional[StructureKind] = None
    is_single_line: Optional[bool] = None
    inline_fields: Optional[List[str]] = None
    header: Optional[str] = None
    # Text after the closing brace, e.g. a constraint.
    trailer: str = ""
    trailing_comment: Optional[str] = None
    # Comment on the closing-brace line of a multi-line node.
    closing_comment: Optional[str] = None
    # Physical line the node came from (1-based), for diagnostics.
    line: int = 0
    # Comment lines after the opening line of a -* ... *- block.
    is_continuation: bool = False

    @property
    def is_structured(self) -> bool:
        return self.structure_kind not in (None, StructureKind.PRIMITIVE)

    @property
    def is_group(self) -> bool:
        return self.kind == NodeKind.FIELD and self.is_single_line is False
