"""Line-oriented parser that builds a definition tree from ASN.1 text.

There is no formal grammar here. Lines are classified one at a time and a
small state machine decides how many lines each definition spans, counting
braces outside string literals. Every loop shares one iteration budget so the
scan terminates even when braces never balance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from asn1fmt.config import FormatConfig
from asn1fmt.keywords import STRUCTURED_KINDS
from asn1fmt.models import DefinitionNode, NodeKind, StructureKind

from .classifier import LineClassifier, LineKind
from .scanner import (
    brace_delta,
    find_matching_close,
    find_unquoted,
    iter_unquoted,
    leading_closers,
    normalize_field,
    split_top_level,
    split_trailing_comment,
    tidy,
)

logger = logging.getLogger(__name__)


class StructuralFault(Exception):
    """Raised when the input cannot be turned into a definition tree."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line:
            super().__init__(f"Line {line}: {message}")
        else:
            super().__init__(message)


def structure_kind_of(header: str) -> StructureKind:
    """Pick the structure kind from the text in front of an opening brace.

    The last word decides, so ``[0] IMPLICIT SEQUENCE`` and
    ``SEQUENCE SIZE(1..8) OF SET`` are both structured.
    """
    words = header.split()
    if words and words[-1] in STRUCTURED_KINDS:
        return StructureKind(words[-1])
    return StructureKind.PRIMITIVE


def _join_comment(code: str, comment: Optional[str]) -> str:
    if not comment:
        return code
    return f"{code} {comment}" if code else comment


def _merge_comments(*comments: Optional[str]) -> Optional[str]:
    return " ".join(c for c in comments if c) or None


def _attach(node: DefinitionNode, comment: Optional[str]) -> None:
    """Attach a same-line comment to the line *node* ends on."""
    if node.is_group:
        node.closing_comment = _merge_comments(node.closing_comment, comment)
    else:
        node.trailing_comment = _merge_comments(node.trailing_comment, comment)


@dataclass
class _Frame:
    """A brace group that is open while a multi-line body is collected."""

    node: DefinitionNode
    level: int
    structured: bool
    # Member text seen so far; may span lines until a top-level comma.
    text: str = ""
    # Depth of brackets opened inside the current member.
    inner: int = 0
    # Group closed in this frame whose trailing text is still being read.
    group: Optional[DefinitionNode] = None
    comment: Optional[str] = None
    held: List[DefinitionNode] = field(default_factory=list)


class StructuralParser:
    """Single-pass parser over normalized source lines."""

    def __init__(self, lines: List[str], config: Optional[FormatConfig] = None):
        config = config or FormatConfig()
        self._lines = lines
        self._classifier = LineClassifier()
        self._level = 0
        self._steps = 0
        self._max_steps = config.iteration_factor * (len(lines) + 1)
        self._max_depth = config.max_depth
        self._deferred: List[DefinitionNode] = []

    # -- public API --

    def parse(self) -> DefinitionNode:
        """Parse all lines into a ROOT node whose children are top-level siblings."""
        root = DefinitionNode(kind=NodeKind.ROOT, name="root")
        index = 0
        while index < len(self._lines):
            node, index = self.parse_siblings(index)
            # Comments skipped while reading a right-hand side go first.
            root.children.extend(self._deferred)
            self._deferred.clear()
            root.children.append(node)
        logger.debug(
            "Parsed %d line(s) into %d top-level node(s)",
            len(self._lines),
            len(root.children),
        )
        return root

    def parse_siblings(self, start_index: int) -> Tuple[DefinitionNode, int]:
        """Parse the node starting at *start_index*; return it with the next index."""
        self._tick(start_index)
        raw = self._lines[start_index]
        text = raw.strip()
        line_no = start_index + 1
        continuation = self._classifier.in_block_comment
        kind = self._classifier.classify(raw)

        if kind == LineKind.COMMENT:
            return self._comment(raw, continuation, self._level, line_no), start_index + 1

        if not text:
            return self._leaf(NodeKind.OTHER, "", line_no), start_index + 1

        if kind == LineKind.MODULE:
            node = self._leaf(NodeKind.MODULE, self._tidy_line(text), line_no)
            node.name = text.split()[0]
            if split_trailing_comment(text)[0].endswith("BEGIN"):
                self._level += 1
            return node, start_index + 1

        if kind == LineKind.BEGIN:
            node = self._leaf(NodeKind.BEGIN, self._tidy_line(text), line_no)
            self._level += 1
            return node, start_index + 1

        if kind == LineKind.END:
            self._level = max(0, self._level - 1)
            return self._leaf(NodeKind.END, self._tidy_line(text), line_no), start_index + 1

        if kind == LineKind.TYPE_DEFINITION:
            return self._parse_type_definition(start_index)

        # Stray fields, IMPORTS/EXPORTS lists, lone braces.
        return self._leaf(NodeKind.OTHER, self._tidy_line(text), line_no), start_index + 1

    # -- type definitions --

    def _parse_type_definition(self, index: int) -> Tuple[DefinitionNode, int]:
        line_no = index + 1
        code, comment = split_trailing_comment(self._lines[index].strip())
        lhs, _, rhs = code.partition("::=")
        name = normalize_field(lhs)
        rhs = rhs.strip()
        next_index = index + 1

        if not name:
            raise StructuralFault("type definition without a name", line_no)

        if not rhs:
            rhs, extra_comment, next_index = self._continuation(next_index, line_no)
            comment = _merge_comments(comment, extra_comment)

        # Opening brace might be on the next line
        if find_unquoted(rhs, "{") < 0 and self._next_starts_with_brace(next_index):
            more, extra_comment, next_index = self._continuation(next_index, line_no)
            rhs = f"{rhs} {more}"
            comment = _merge_comments(comment, extra_comment)

        node = DefinitionNode(
            kind=NodeKind.TYPE_DEFINITION,
            name=name,
            raw_content=_join_comment(f"{name} ::= {tidy(rhs)}", comment),
            nesting_level=self._level,
            line=line_no,
        )

        brace = find_unquoted(rhs, "{")
        if brace < 0:
            return self._primitive(node, rhs, comment), next_index

        node.header = tidy(rhs[:brace])
        node.structure_kind = structure_kind_of(node.header)
        close = find_matching_close(rhs, brace)

        if close is None:
            node.is_single_line = False
            node.trailing_comment = comment
            return node, self._collect_body(node, rhs[brace + 1:], next_index)

        delta = brace_delta(rhs)
        if delta > 0:
            raise StructuralFault(f"unbalanced braces in definition of {name}", line_no)
        if delta < 0 or not node.is_structured:
            return self._primitive(node, rhs, comment), next_index

        node.is_single_line = True
        node.inline_fields = split_top_level(rhs[brace + 1:close])
        node.trailer = tidy(rhs[close + 1:])
        node.closing_comment = comment
        return node, next_index

    def _primitive(
        self, node: DefinitionNode, rhs: str, comment: Optional[str]
    ) -> DefinitionNode:
        node.structure_kind = StructureKind.PRIMITIVE
        node.is_single_line = True
        node.header = tidy(rhs)
        node.trailing_comment = comment
        return node

    def _continuation(self, index: int, line_no: int) -> Tuple[str, Optional[str], int]:
        """Read the right-hand side of ``Name ::=`` from the next code line.

        Blank lines are skipped. Comment lines are skipped too and kept for
        :meth:`parse` to place in front of the definition.
        """
        while index < len(self._lines):
            raw = self._lines[index]
            text = raw.strip()
            continuation = self._classifier.in_block_comment
            if not continuation and not text:
                self._tick(index)
                index += 1
                continue
            if continuation or text.startswith("--") or text.startswith("-*"):
                self._tick(index)
                self._classifier.classify(raw)
                self._deferred.append(
                    self._comment(raw, continuation, self._level, index + 1)
                )
                index += 1
                continue
            break

        if index >= len(self._lines):
            raise StructuralFault("missing right-hand side after '::='", line_no)

        text = self._lines[index].strip()
        if "::=" in text:
            raise StructuralFault("missing right-hand side after '::='", line_no)
        self._tick(index)
        self._classifier.classify(text)
        code, comment = split_trailing_comment(text)
        return code, comment, index + 1

    def _next_starts_with_brace(self, index: int) -> bool:
        while index < len(self._lines):
            text = self._lines[index].strip()
            if text:
                return text.startswith("{")
            index += 1
        return False

    # -- multi-line bodies --

    def _collect_body(self, node: DefinitionNode, first_span: str, index: int) -> int:
        """Gather the members of a multi-line definition.

        Open brace groups are kept on a stack. Inside a structured group a
        member ends only at a top-level comma or at the closing brace, so a
        member may run over several lines. Groups of any other kind keep
        their lines as written. Returns the index after the closing line.
        """
        stack: List[_Frame] = []
        self._push(stack, node)

        # Code after the opening brace on the header line.
        if first_span.strip():
            comment = node.trailing_comment
            node.trailing_comment = None
            if self._consume_line(stack, first_span, comment, node.line, opened=node):
                return index

        while index < len(self._lines):
            self._tick(index)
            raw = self._lines[index]
            line_no = index + 1
            continuation = self._classifier.in_block_comment
            kind = self._classifier.classify(raw)
            index += 1

            if kind == LineKind.COMMENT:
                self._body_comment(stack[-1], raw, continuation, line_no)
                continue
            if not raw.strip():
                continue
            if kind in (LineKind.MODULE, LineKind.END, LineKind.TYPE_DEFINITION):
                raise StructuralFault(
                    f"unterminated definition of {node.name} (opened on line {node.line})",
                    line_no,
                )

            code, comment = split_trailing_comment(raw.strip())
            if self._consume_line(stack, code, comment, line_no):
                return index

        raise StructuralFault(f"unmatched '{{' in definition of {node.name}", node.line)

    def _consume_line(
        self,
        stack: List[_Frame],
        code: str,
        comment: Optional[str],
        line_no: int,
        opened: Optional[DefinitionNode] = None,
    ) -> bool:
        """Feed one line of body code through the open groups.

        Returns True once the definition's own closing brace is reached.
        """
        frame = stack[-1]
        if frame.structured and frame.text:
            frame.text += " "
        start = 0
        chunk_inner = frame.inner
        # Node whose line this is, and whether it was opened (not ended) here.
        last: Optional[DefinitionNode] = opened
        last_opened = opened is not None

        for i, ch in iter_unquoted(code):
            if ch == "}" and frame.inner == 0:
                if frame.structured:
                    frame.text += code[start:i]
                    done = self._finish_member(frame, line_no)
                    if done is not None:
                        last, last_opened = done, False
                else:
                    self._verbatim_line(frame, code[start:i], chunk_inner, line_no)
                stack.pop()
                closed = frame.node

                if not stack:
                    rest = code[i + 1:]
                    if brace_delta(rest) != 0:
                        raise StructuralFault(
                            f"unbalanced braces after the body of {closed.name}", line_no
                        )
                    closed.trailer = tidy(rest)
                    closed.closing_comment = comment
                    return True

                frame = stack[-1]
                frame.group = closed
                last, last_opened = closed, False
                start = i + 1
                continue

            if (
                ch == "{"
                and frame.inner == 0
                and frame.structured
                and find_matching_close(code, i) is None
            ):
                if frame.group is not None:
                    raise StructuralFault("opening brace after a closed group", line_no)
                group = self._open_group(frame, frame.text + code[start:i], line_no)
                frame = self._push(stack, group)
                chunk_inner = 0
                last, last_opened = group, True
                start = i + 1
                continue

            if ch in "{([":
                frame.inner += 1
            elif ch in "})]":
                frame.inner = max(0, frame.inner - 1)
            elif ch == "," and frame.inner == 0 and frame.structured:
                frame.text += code[start:i]
                done = self._finish_member(frame, line_no)
                if done is not None:
                    last, last_opened = done, False
                start = i + 1

        tail = None
        if frame.structured:
            frame.text += code[start:]
        else:
            tail = self._verbatim_line(frame, code[start:], chunk_inner, line_no)

        if not comment:
            return False
        if tail is not None:
            tail.raw_content = _join_comment(tail.raw_content, comment)
        elif frame.structured and frame.text.strip():
            frame.comment = _merge_comments(frame.comment, comment)
        elif last is not None and last_opened:
            last.trailing_comment = _merge_comments(last.trailing_comment, comment)
        elif last is not None:
            _attach(last, comment)
        else:
            frame.node.children.append(
                self._comment(comment, False, frame.level + frame.inner, line_no)
            )
        return False

    def _push(self, stack: List[_Frame], node: DefinitionNode) -> _Frame:
        if len(stack) >= self._max_depth:
            raise StructuralFault(f"nesting deeper than {self._max_depth} levels", node.line)
        frame = _Frame(
            node=node,
            level=node.nesting_level + 1,
            structured=node.is_structured,
        )
        stack.append(frame)
        return frame

    def _open_group(self, frame: _Frame, prefix: str, line_no: int) -> DefinitionNode:
        header = tidy(prefix)
        group = DefinitionNode(
            kind=NodeKind.FIELD,
            name=header.split()[0] if header else "",
            raw_content=header,
            nesting_level=frame.level,
            structure_kind=structure_kind_of(header),
            is_single_line=False,
            header=header,
            trailing_comment=frame.comment,
            line=line_no,
        )
        frame.text = ""
        frame.comment = None
        frame.node.children.append(group)
        # Comments between the header and its brace open the group's body.
        for held in frame.held:
            held.nesting_level = frame.level + 1
        group.children.extend(frame.held)
        frame.held.clear()
        return group

    def _finish_member(self, frame: _Frame, line_no: int) -> Optional[DefinitionNode]:
        """End the member buffered in *frame*; return the node it ended, if any."""
        text = normalize_field(frame.text)
        frame.text = ""
        node = None

        if frame.group is not None:
            node = frame.group
            node.trailer = text
            frame.group = None
        elif text:
            node = DefinitionNode(
                kind=NodeKind.FIELD,
                name=text.split()[0],
                raw_content=text,
                nesting_level=frame.level,
                line=line_no,
            )
            frame.node.children.append(node)

        if frame.comment:
            if node is not None:
                _attach(node, frame.comment)
            else:
                frame.node.children.append(
                    self._comment(frame.comment, False, frame.level, line_no)
                )
            frame.comment = None
        frame.node.children.extend(frame.held)
        frame.held.clear()
        return node

    @staticmethod
    def _verbatim_line(
        frame: _Frame, chunk: str, inner: int, line_no: int
    ) -> Optional[DefinitionNode]:
        text = tidy(chunk)
        if not text:
            return None
        line = DefinitionNode(
            kind=NodeKind.OTHER,
            raw_content=text,
            nesting_level=frame.level + max(0, inner - leading_closers(text)),
            line=line_no,
        )
        frame.node.children.append(line)
        return line

    def _body_comment(self, frame: _Frame, raw: str, continuation: bool, line_no: int) -> None:
        level = frame.level if frame.structured else frame.level + frame.inner
        node = self._comment(raw, continuation, level, line_no)
        if frame.structured and frame.text.strip():
            frame.held.append(node)
        else:
            frame.node.children.append(node)

    # -- helpers --

    def _leaf(self, kind: NodeKind, content: str, line_no: int) -> DefinitionNode:
        return DefinitionNode(
            kind=kind,
            raw_content=content,
            nesting_level=self._level,
            line=line_no,
        )

    @staticmethod
    def _comment(raw: str, continuation: bool, level: int, line_no: int) -> DefinitionNode:
        return DefinitionNode(
            kind=NodeKind.COMMENT,
            raw_content=raw if continuation else raw.lstrip(),
            nesting_level=level,
            line=line_no,
            is_continuation=continuation,
        )

    @staticmethod
    def _tidy_line(text: str) -> str:
        code, comment = split_trailing_comment(text)
        return _join_comment(tidy(code), comment)

    def _tick(self, index: int) -> None:
        self._steps += 1
        if self._steps > self._max_steps:
            raise StructuralFault(
                f"iteration limit of {self._max_steps} exceeded", index + 1
            )


def parse_definitions(text: str, config: Optional[FormatConfig] = None) -> DefinitionNode:
    """Parse normalized ASN.1 text into a definition tree.

    Raises StructuralFault if the text cannot be parsed structurally.
    """
    return StructuralParser(text.split("\n"), config).parse()
