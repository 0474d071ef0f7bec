"""Render a definition tree as canonical ASN.1 text."""

from __future__ import annotations

import re
from typing import List, Optional

from asn1fmt.config import FormatConfig
from asn1fmt.models import DefinitionNode, NodeKind, StructureKind
from asn1fmt.parser.scanner import (
    find_matching_close,
    find_unquoted,
    split_top_level,
    split_trailing_comment,
)
from asn1fmt.parser.structural_parser import StructuralFault, structure_kind_of

_EXCESS_BLANKS = re.compile(r"\n{4,}")


def _with_comment(text: str, comment: Optional[str]) -> str:
    return f"{text} {comment}" if comment else text


def _field_node(text: str, comment: Optional[str] = None) -> DefinitionNode:
    return DefinitionNode(kind=NodeKind.FIELD, raw_content=text, trailing_comment=comment)


class Printer:
    def __init__(self, config: FormatConfig):
        self._config = config
        self._lines: List[str] = []

    # -- public API --

    def render(self, tree: DefinitionNode) -> str:
        self._lines = []
        for node in tree.children:
            self._render_node(node)
        return self._finish()

    # -- nodes --

    def _render_node(self, node: DefinitionNode) -> None:
        level = node.nesting_level

        if node.kind in (NodeKind.MODULE, NodeKind.BEGIN):
            self._emit(level, node.raw_content)
            if split_trailing_comment(node.raw_content)[0].endswith("BEGIN"):
                self._blank()
        elif node.kind == NodeKind.END:
            self._blank()
            self._emit(level, node.raw_content)
        elif node.kind == NodeKind.COMMENT:
            self._comment(node, level)
        elif node.kind == NodeKind.TYPE_DEFINITION:
            self._type_definition(node)
        elif node.raw_content:
            self._emit(level, node.raw_content)
        else:
            self._blank()

    def _comment(self, node: DefinitionNode, level: int) -> None:
        if node.is_continuation:
            self._lines.append(node.raw_content)
        else:
            self._emit(level, node.raw_content)

    def _type_definition(self, node: DefinitionNode) -> None:
        level = node.nesting_level
        assignment = f"{node.name} ::="

        if node.is_single_line and not node.is_structured:
            line = _with_comment(f"{assignment} {node.header}", node.trailing_comment)
            if self._needs_wrap(level, line) and self._expand_braced(
                level, assignment, node.header, node.trailing_comment, False, 0
            ):
                self._blank()
            else:
                self._emit(level, line)
            return

        opener = f"{assignment} {node.header} {{" if node.header else f"{assignment} {{"
        self._emit(level, _with_comment(opener, node.trailing_comment))
        if node.is_single_line:
            self._body([_field_node(f) for f in node.inline_fields or []], level + 1, 1)
        else:
            self._members(node, level + 1, 0)
        self._close(node, level, False)
        self._blank()

    def _members(self, node: DefinitionNode, level: int, depth: int) -> None:
        """Render the body of a multi-line definition or group."""
        if node.is_structured:
            self._body(self._body_items(node), level, depth + 1)
            return
        # Lines of any other brace group are kept, only re-indented.
        base = node.nesting_level + 1
        for child in node.children:
            child_level = level + max(0, child.nesting_level - base)
            if child.kind == NodeKind.COMMENT:
                self._comment(child, child_level)
            else:
                self._emit(child_level, child.raw_content)

    def _close(self, node: DefinitionNode, level: int, comma: bool) -> None:
        closing = f"}} {node.trailer}" if node.trailer else "}"
        self._emit(level, _with_comment(closing + ("," if comma else ""), node.closing_comment))

    @staticmethod
    def _body_items(node: DefinitionNode) -> List[DefinitionNode]:
        items: List[DefinitionNode] = []
        for child in node.children:
            if child.kind != NodeKind.FIELD or child.is_group:
                items.append(child)
                continue
            segments = split_top_level(child.raw_content) or [child.raw_content]
            items.extend(_field_node(segment) for segment in segments[:-1])
            items.append(_field_node(segments[-1], child.trailing_comment))
        return items

    # -- bodies and fields --

    def _body(self, items: List[DefinitionNode], level: int, depth: int) -> None:
        fields = [i for i, item in enumerate(items) if item.kind == NodeKind.FIELD]
        last_field = fields[-1] if fields else -1
        for i, item in enumerate(items):
            if item.is_group:
                self._group(item, level, depth, i < last_field)
            elif item.kind == NodeKind.FIELD:
                self._field(
                    item.raw_content, item.trailing_comment, i < last_field, level, depth
                )
            elif item.kind == NodeKind.COMMENT:
                self._comment(item, level)
            else:
                self._emit(level, item.raw_content)

    def _group(self, node: DefinitionNode, level: int, depth: int, comma: bool) -> None:
        if depth > self._config.max_depth:
            raise StructuralFault(f"nesting deeper than {self._config.max_depth} levels")
        opener = f"{node.header} {{" if node.header else "{"
        self._emit(level, _with_comment(opener, node.trailing_comment))
        self._members(node, level + 1, depth)
        self._close(node, level, comma)

    def _field(
        self, text: str, comment: Optional[str], comma: bool, level: int, depth: int
    ) -> None:
        if depth > self._config.max_depth:
            raise StructuralFault(f"nesting deeper than {self._config.max_depth} levels")

        brace = find_unquoted(text, "{")
        if brace >= 0:
            prefix = text[:brace].rstrip()
            line = _with_comment(text + ("," if comma else ""), comment)
            structured = structure_kind_of(prefix) != StructureKind.PRIMITIVE
            if structured or self._needs_wrap(level, line):
                if self._expand_braced(level, prefix, text[brace:], comment, comma, depth):
                    return

        self._emit(level, _with_comment(text + ("," if comma else ""), comment))

    def _expand_braced(
        self,
        level: int,
        prefix: str,
        rest: str,
        comment: Optional[str],
        comma: bool,
        depth: int,
    ) -> bool:
        """Lay out ``prefix {a, b} suffix`` one member per line.

        Returns False, emitting nothing, when *rest* holds no balanced group.
        """
        brace = find_unquoted(rest, "{")
        if brace < 0:
            return False
        close = find_matching_close(rest, brace)
        if close is None:
            return False

        prefix = f"{prefix} {rest[:brace].strip()}".strip()
        suffix = rest[close + 1:].strip()
        members = split_top_level(rest[brace + 1:close])

        self._emit(level, f"{prefix} {{" if prefix else "{")
        self._body([_field_node(m) for m in members], level + 1, depth + 1)
        closing = f"}} {suffix}" if suffix else "}"
        self._emit(level, _with_comment(closing + ("," if comma else ""), comment))
        return True

    def _needs_wrap(self, level: int, line: str) -> bool:
        config = self._config
        return (
            config.wrap_long_lines
            and level * config.indent_width + len(line) > config.max_line_length
        )

    # -- output buffer --

    def _emit(self, level: int, text: str) -> None:
        self._lines.append(" " * (level * self._config.indent_width) + text)

    def _blank(self) -> None:
        if self._lines and self._lines[-1] != "":
            self._lines.append("")

    def _finish(self) -> str:
        lines = self._lines
        start = 0
        while start < len(lines) and not lines[start].strip():
            start += 1
        end = len(lines)
        while end > start and not lines[end - 1].strip():
            end -= 1
        if start == end:
            return ""
        text = "\n".join(lines[start:end])
        return _EXCESS_BLANKS.sub("\n\n\n", text) + "\n"


def render(tree: DefinitionNode, config: Optional[FormatConfig] = None) -> str:
    """Render *tree* with the indent and blank-line policy of *config*."""
    return Printer(config or FormatConfig()).render(tree)
