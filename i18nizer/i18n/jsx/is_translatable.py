import re
from typing import Optional

from i18nizer.i18n.jsx.syntax_tree import NodeKind, SyntaxTree

DIRECTIVES = ("use client", "use server")
NON_TRANSLATABLE_ATTRIBUTES = ("class", "className", "id", "key", "style")
UTILITY_CLASS_PATTERN = re.compile(r"^(flex|grid|gap-|bg-|text-|p-|m-|w-|h-)")
PASSTHROUGH_KINDS = (
    NodeKind.CONDITIONAL,
    NodeKind.BINARY,
    NodeKind.PARENTHESIZED,
    NodeKind.JSX_EXPRESSION,
    NodeKind.ARGUMENTS,
)


def attribute_name(tree: SyntaxTree, attribute: int) -> Optional[str]:
    named = tree.named_children(attribute)
    if not named:
        return None
    return tree.text(named[0])


def attribute_value(tree: SyntaxTree, attribute: int) -> Optional[int]:
    named = tree.named_children(attribute)
    if len(named) < 2:
        return None
    return named[-1]


def callee_name(tree: SyntaxTree, call: int) -> Optional[str]:
    """Dotted name of the function a call invokes, e.g. "toast.error".

    Returns None for callees that are not plain identifier chains.
    """
    function = tree.field(call, "function")
    if function is None:
        return None
    parts = []
    current = function
    while True:
        kind = tree.kind(current)
        if kind == NodeKind.IDENTIFIER:
            parts.append(tree.text(current))
            break
        if kind == NodeKind.MEMBER:
            prop = tree.field(current, "property")
            obj = tree.field(current, "object")
            if prop is None or obj is None:
                return None
            parts.append(tree.text(prop))
            current = obj
            continue
        return None
    return ".".join(reversed(parts))


def enclosing_context(tree: SyntaxTree, index: int) -> Optional[int]:
    """Climb through expression wrappers to the attribute, call or other node that owns a value."""
    current = tree.parent(index)
    while current is not None and tree.kind(current) in PASSTHROUGH_KINDS:
        current = tree.parent(current)
    return current


def _inside_module_declaration(tree: SyntaxTree, index: int) -> bool:
    for ancestor in tree.ancestors(index):
        kind = tree.kind(ancestor)
        if kind == NodeKind.IMPORT:
            return True
        if kind == NodeKind.EXPORT:
            source = tree.field(ancestor, "source")
            if source is not None:
                node = tree.node(index)
                source_node = tree.node(source)
                if source_node.start <= node.start and node.end <= source_node.end:
                    return True
    return False


def is_translatable(tree: SyntaxTree, index: int, text: str) -> bool:
    """Decide whether already-extracted text at a node should be translated.

    Args:
        tree (SyntaxTree): The parsed file
        index (int): The node the text was extracted from
        text (str): The extracted, unescaped text

    Returns:
        bool: True if the text looks like user-facing copy
    """
    stripped = text.strip()
    if not stripped:
        return False
    if not any(ch.isalnum() for ch in stripped):
        return False
    if stripped in DIRECTIVES:
        return False
    if UTILITY_CLASS_PATTERN.match(stripped):
        return False
    if stripped.startswith("/") or stripped.startswith("./"):
        return False
    if _inside_module_declaration(tree, index):
        return False

    context = enclosing_context(tree, index)
    if context is not None:
        kind = tree.kind(context)
        if kind == NodeKind.JSX_ATTRIBUTE and attribute_name(tree, context) in NON_TRANSLATABLE_ATTRIBUTES:
            return False
        if kind == NodeKind.CALL:
            name = callee_name(tree, context)
            if name and name.startswith("console."):
                return False
    return True
