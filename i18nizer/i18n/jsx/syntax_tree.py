import os
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Parser

from i18nizer.utils.logging_setup import get_logger

logger = get_logger("syntax_tree")

TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())
TYPESCRIPT_LANGUAGE = Language(tree_sitter_typescript.language_typescript())

# Fields looked up on every node; any that the grammar does not define resolve to None.
FIELD_NAMES = (
    "name", "value", "body", "condition", "consequence", "alternative",
    "left", "right", "operator", "function", "arguments", "object",
    "property", "open_tag", "close_tag", "source", "declaration", "parameters",
    "parameter",
)

TEXT_RUN_TYPES = ("jsx_text", "html_character_reference")


class ParseError(Exception):
    """Raised when a source file cannot be parsed without syntax errors."""

    def __init__(self, message, path=None, line=None, column=None):
        self.path = path
        self.line = line
        self.column = column
        location = ""
        if path:
            location = f"{path}"
        if line is not None:
            location += f":{line}:{column}"
        super().__init__(f"{location}: {message}" if location else message)


class RewriteError(Exception):
    """Raised when edits on a tree conflict or cannot be serialized."""


class NodeKind(Enum):
    STRING = auto()
    TEMPLATE_STRING = auto()
    CONDITIONAL = auto()
    BINARY = auto()
    PARENTHESIZED = auto()
    JSX_ELEMENT = auto()
    JSX_SELF_CLOSING = auto()
    JSX_OPENING = auto()
    JSX_CLOSING = auto()
    JSX_TEXT = auto()
    JSX_EXPRESSION = auto()
    JSX_ATTRIBUTE = auto()
    CALL = auto()
    ARGUMENTS = auto()
    MEMBER = auto()
    IDENTIFIER = auto()
    NUMBER = auto()
    IMPORT = auto()
    EXPORT = auto()
    PROGRAM = auto()
    OTHER = auto()

    @staticmethod
    def from_grammar_type(node_type: str) -> 'NodeKind':
        return _GRAMMAR_KINDS.get(node_type, NodeKind.OTHER)


_GRAMMAR_KINDS = {
    "string": NodeKind.STRING,
    "template_string": NodeKind.TEMPLATE_STRING,
    "ternary_expression": NodeKind.CONDITIONAL,
    "binary_expression": NodeKind.BINARY,
    "parenthesized_expression": NodeKind.PARENTHESIZED,
    "jsx_element": NodeKind.JSX_ELEMENT,
    "jsx_self_closing_element": NodeKind.JSX_SELF_CLOSING,
    "jsx_opening_element": NodeKind.JSX_OPENING,
    "jsx_closing_element": NodeKind.JSX_CLOSING,
    "jsx_text": NodeKind.JSX_TEXT,
    "html_character_reference": NodeKind.JSX_TEXT,
    "jsx_expression": NodeKind.JSX_EXPRESSION,
    "jsx_attribute": NodeKind.JSX_ATTRIBUTE,
    "call_expression": NodeKind.CALL,
    "arguments": NodeKind.ARGUMENTS,
    "member_expression": NodeKind.MEMBER,
    "identifier": NodeKind.IDENTIFIER,
    "property_identifier": NodeKind.IDENTIFIER,
    "number": NodeKind.NUMBER,
    "import_statement": NodeKind.IMPORT,
    "export_statement": NodeKind.EXPORT,
    "program": NodeKind.PROGRAM,
}


@dataclass
class SyntaxNode:
    """One node of the arena. Nodes refer to each other only by index."""
    index: int
    kind: NodeKind
    type: str
    start: int
    end: int
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    fields: Dict[str, int] = field(default_factory=dict)
    named: bool = True


@dataclass
class Edit:
    start: int
    end: int
    text: str
    sequence: int = 0


class SyntaxTree:
    """Arena of syntax nodes for a single source file, plus pending text edits.

    Edits never mutate the node list. They are spliced into the original
    source bytes by serialize(), so every byte outside an edit is preserved.
    """

    def __init__(self, source: str, path: Optional[str] = None):
        self.source = source
        self.source_bytes = source.encode("utf-8")
        self.path = path
        self.nodes: List[SyntaxNode] = []
        self.root: Optional[int] = None
        self._edits: List[Edit] = []

    def __len__(self):
        return len(self.nodes)

    def node(self, index: int) -> SyntaxNode:
        return self.nodes[index]

    def text(self, index: int) -> str:
        node = self.nodes[index]
        return self.source_bytes[node.start:node.end].decode("utf-8")

    def slice(self, start: int, end: int) -> str:
        return self.source_bytes[start:end].decode("utf-8")

    def field(self, index: int, name: str) -> Optional[int]:
        return self.nodes[index].fields.get(name)

    def parent(self, index: int) -> Optional[int]:
        return self.nodes[index].parent

    def named_children(self, index: int) -> List[int]:
        return [c for c in self.nodes[index].children if self.nodes[c].named]

    def kind(self, index: Optional[int]) -> Optional[NodeKind]:
        if index is None:
            return None
        return self.nodes[index].kind

    def walk(self, start: Optional[int] = None) -> Iterator[int]:
        """Yield node indices in document order (preorder)."""
        if start is None:
            start = self.root
        if start is None:
            return
        stack = [start]
        while stack:
            index = stack.pop()
            yield index
            stack.extend(reversed(self.nodes[index].children))

    def ancestors(self, index: int) -> Iterator[int]:
        current = self.nodes[index].parent
        while current is not None:
            yield current
            current = self.nodes[current].parent

    def trimmed_range(self, index: int) -> Tuple[int, int]:
        """Byte range of a node with leading and trailing whitespace removed."""
        node = self.nodes[index]
        raw = self.source_bytes[node.start:node.end]
        leading = len(raw) - len(raw.lstrip())
        trailing = len(raw) - len(raw.rstrip())
        if leading == len(raw):
            return node.start, node.start
        return node.start + leading, node.end - trailing

    # Edits

    @property
    def edits(self) -> List[Edit]:
        return list(self._edits)

    def has_edits(self) -> bool:
        return len(self._edits) > 0

    def replace(self, index: int, text: str):
        node = self.nodes[index]
        self.replace_range(node.start, node.end, text)

    def insert(self, offset: int, text: str):
        self.replace_range(offset, offset, text)

    def replace_range(self, start: int, end: int, text: str):
        if start > end or start < 0 or end > len(self.source_bytes):
            raise RewriteError(f"Invalid edit range {start}-{end} in {self.path or '<source>'}")
        for edit in self._edits:
            if start < edit.end and edit.start < end:
                raise RewriteError(
                    f"Edit {start}-{end} overlaps edit {edit.start}-{edit.end} in {self.path or '<source>'}")
        self._edits.append(Edit(start, end, text, len(self._edits)))

    def serialize(self) -> str:
        """Return the source with all pending edits applied."""
        if not self._edits:
            return self.source
        parts = []
        cursor = 0
        for edit in sorted(self._edits, key=lambda e: (e.start, e.end, e.sequence)):
            if edit.start < cursor:
                raise RewriteError(f"Edits out of order at offset {edit.start}")
            parts.append(self.source_bytes[cursor:edit.start])
            parts.append(edit.text.encode("utf-8"))
            cursor = edit.end
        parts.append(self.source_bytes[cursor:])
        return b"".join(parts).decode("utf-8")


def _language_for_path(path: Optional[str]):
    if path and os.path.splitext(path)[1].lower() in (".ts", ".mts", ".cts"):
        return TYPESCRIPT_LANGUAGE
    return TSX_LANGUAGE


def _first_error(ts_root):
    stack = [ts_root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return ts_root


def _field_map(ts_node) -> Dict[Tuple[int, int, str], str]:
    fields = {}
    for name in FIELD_NAMES:
        child = ts_node.child_by_field_name(name)
        if child is not None:
            fields.setdefault((child.start_byte, child.end_byte, child.type), name)
    return fields


def _group_children(ts_node) -> List[list]:
    """Group the children of a node, merging adjacent JSX text runs inside elements."""
    groups = []
    merge = ts_node.type == "jsx_element"
    for child in ts_node.children:
        if merge and child.type in TEXT_RUN_TYPES and groups and groups[-1][0].type in TEXT_RUN_TYPES:
            groups[-1].append(child)
        else:
            groups.append([child])
    return groups


def build_tree(source: str, ts_tree, path: Optional[str] = None) -> SyntaxTree:
    """Convert a tree-sitter tree into a SyntaxTree arena without recursion."""
    tree = SyntaxTree(source, path)
    stack = [([ts_tree.root_node], None, None)]
    while stack:
        group, parent, field_name = stack.pop()
        first, last = group[0], group[-1]
        if len(group) > 1 or first.type in TEXT_RUN_TYPES:
            kind = NodeKind.JSX_TEXT
            node_type = "jsx_text"
        else:
            kind = NodeKind.from_grammar_type(first.type)
            node_type = first.type
        index = len(tree.nodes)
        node = SyntaxNode(
            index=index,
            kind=kind,
            type=node_type,
            start=first.start_byte,
            end=last.end_byte,
            parent=parent,
            named=first.is_named,
        )
        tree.nodes.append(node)
        if parent is None:
            tree.root = index
        else:
            tree.nodes[parent].children.append(index)
            if field_name:
                tree.nodes[parent].fields[field_name] = index

        if kind == NodeKind.JSX_TEXT:
            continue
        fields = _field_map(first)
        pending = []
        for child_group in _group_children(first):
            child = child_group[0]
            child_field = None
            if len(child_group) == 1:
                child_field = fields.get((child.start_byte, child.end_byte, child.type))
            pending.append((child_group, index, child_field))
        stack.extend(reversed(pending))
    return tree


def parse_source(source: str, path: Optional[str] = None) -> SyntaxTree:
    """Parse JSX/TSX source into a SyntaxTree.

    Args:
        source (str): The file contents
        path (str, optional): Used to pick the grammar and in error messages

    Returns:
        SyntaxTree: The parsed arena

    Raises:
        ParseError: If the source contains syntax errors
    """
    parser = Parser(_language_for_path(path))
    ts_tree = parser.parse(source.encode("utf-8"))
    if ts_tree.root_node.has_error:
        error_node = _first_error(ts_tree.root_node)
        line, column = error_node.start_point
        raise ParseError("syntax error", path=path, line=line + 1, column=column + 1)
    tree = build_tree(source, ts_tree, path)
    logger.debug(f"Parsed {path or '<source>'} into {len(tree)} nodes")
    return tree


def parse_file(path: str) -> SyntaxTree:
    with open(path, "r", encoding="utf-8") as f:
        source = f.read()
    return parse_source(source, path)
