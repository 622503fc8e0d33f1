import json
import re
from dataclasses import dataclass
from typing import Optional

from i18nizer.i18n.jsx.syntax_tree import NodeKind, SyntaxTree
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("component_binding")

FUNCTION_TYPES = ("function_declaration", "function_expression", "function", "arrow_function",
                  "generator_function_declaration")
DECLARATION_TYPES = ("lexical_declaration", "variable_declaration")
BINDING_NAME_TYPES = ("identifier", "shorthand_property_identifier_pattern")
DIRECTIVES = ("use client", "use server")
# Fields holding default values rather than bound names.
PARAMETER_DEFAULT_FIELDS = {
    "required_parameter": "value",
    "optional_parameter": "value",
    "assignment_pattern": "right",
    "object_assignment_pattern": "right",
}
DEFAULT_INDENT = "  "


@dataclass
class BindingResult:
    component: Optional[int] = None
    inserted_binding: bool = False
    inserted_import: bool = False


def hook_statement(hook_name: str, namespace: str, function_name: str = "t") -> str:
    """The statement that brings the translation function into scope.

    react-i18next's useTranslation returns an object, next-intl's useTranslations the function itself.
    """
    if hook_name == "useTranslation":
        return f"const {{ {function_name} }} = {hook_name}({json.dumps(namespace)});"
    return f"const {function_name} = {hook_name}({json.dumps(namespace)});"


def _line_indent(tree: SyntaxTree, offset: int) -> str:
    line_start = tree.source_bytes.rfind(b"\n", 0, offset) + 1
    line = tree.source_bytes[line_start:offset].decode("utf-8")
    return line[:len(line) - len(line.lstrip())]


def _top_level_statements(tree: SyntaxTree):
    """Program statements, looking through export wrappers."""
    for statement in tree.named_children(tree.root):
        yield statement
        if tree.kind(statement) == NodeKind.EXPORT:
            declaration = tree.field(statement, "declaration")
            if declaration is not None:
                yield declaration


def _find_declared_function(tree: SyntaxTree, name: str) -> Optional[int]:
    for statement in _top_level_statements(tree):
        node_type = tree.node(statement).type
        if node_type in FUNCTION_TYPES:
            declared = tree.field(statement, "name")
            if declared is not None and tree.text(declared) == name:
                return statement
        elif node_type in DECLARATION_TYPES:
            for declarator in tree.named_children(statement):
                declared = tree.field(declarator, "name")
                value = tree.field(declarator, "value")
                if declared is not None and value is not None and tree.text(declared) == name:
                    return _unwrap_component(tree, value)
    return None


def _unwrap_component(tree: SyntaxTree, index: Optional[int]) -> Optional[int]:
    """Resolve a component expression to its function, looking through memo()/forwardRef() wrappers."""
    seen = 0
    while index is not None and seen < 8:
        seen += 1
        node = tree.node(index)
        if node.type in FUNCTION_TYPES:
            return index
        if node.kind == NodeKind.PARENTHESIZED:
            named = tree.named_children(index)
            index = named[0] if named else None
        elif node.kind == NodeKind.CALL:
            arguments = tree.field(index, "arguments")
            named = tree.named_children(arguments) if arguments is not None else []
            index = named[0] if named else None
        elif node.kind == NodeKind.IDENTIFIER:
            return _find_declared_function(tree, tree.text(index))
        else:
            return None
    return None


def find_component(tree: SyntaxTree, component_name: Optional[str] = None) -> Optional[int]:
    """Find the function node of the default-exported component.

    Falls back to a top-level function named component_name when there is no default export.
    """
    for statement in tree.named_children(tree.root):
        if tree.kind(statement) != NodeKind.EXPORT:
            continue
        if not any(tree.node(c).type == "default" for c in tree.node(statement).children):
            continue
        declaration = tree.field(statement, "declaration")
        if declaration is not None:
            return _unwrap_component(tree, declaration)
        return _unwrap_component(tree, tree.field(statement, "value"))
    if component_name:
        return _find_declared_function(tree, component_name)
    return None


def _declares_name(tree: SyntaxTree, block: int, name: str) -> bool:
    for statement in tree.named_children(block):
        if tree.node(statement).type not in DECLARATION_TYPES:
            continue
        for declarator in tree.named_children(statement):
            pattern = tree.field(declarator, "name")
            if pattern is None:
                continue
            for index in tree.walk(pattern):
                node = tree.node(index)
                if node.type in BINDING_NAME_TYPES and tree.text(index) == name:
                    return True
    return False


def _binds_parameter(tree: SyntaxTree, component: int, name: str) -> bool:
    """True if one of the component's parameters binds name, including destructured ones."""
    parameters = tree.field(component, "parameters")
    if parameters is None:
        parameters = tree.field(component, "parameter")
    if parameters is None:
        return False
    stack = [parameters]
    while stack:
        index = stack.pop()
        node = tree.node(index)
        if node.type in BINDING_NAME_TYPES and tree.text(index) == name:
            return True
        default_field = PARAMETER_DEFAULT_FIELDS.get(node.type)
        skipped = tree.field(index, default_field) if default_field else None
        stack.extend(c for c in node.children
                     if c != skipped and tree.node(c).type != "type_annotation")
    return False


def _has_import(tree: SyntaxTree, hook_name: str, import_source: str) -> bool:
    pattern = re.compile(r"\b" + re.escape(hook_name) + r"\b")
    for statement in tree.named_children(tree.root):
        if tree.kind(statement) != NodeKind.IMPORT:
            continue
        source = tree.field(statement, "source")
        if source is None or tree.text(source)[1:-1] != import_source:
            continue
        if pattern.search(tree.text(statement)):
            return True
    return False


def _import_offset(tree: SyntaxTree):
    """Offset for a new import and whether it goes after an existing statement."""
    statements = tree.named_children(tree.root)
    imports = [s for s in statements if tree.kind(s) == NodeKind.IMPORT]
    if imports:
        return tree.node(imports[-1]).end, True
    if statements:
        first = statements[0]
        if tree.node(first).type == "expression_statement":
            named = tree.named_children(first)
            if named and tree.kind(named[0]) == NodeKind.STRING and tree.text(named[0])[1:-1] in DIRECTIVES:
                return tree.node(first).end, True
    return 0, False


def insert_translation_binding(tree: SyntaxTree, namespace: str, hook_name: str = "useTranslations",
                               import_source: str = "next-intl", function_name: str = "t",
                               component_name: Optional[str] = None) -> BindingResult:
    """Make the translation function available inside the default-exported component.

    Args:
        tree (SyntaxTree): The parsed file, edits are recorded on it
        namespace (str): Message namespace passed to the hook
        hook_name (str): e.g. useTranslations or useTranslation
        import_source (str): Module the hook is imported from
        function_name (str): Name the translation function is bound to
        component_name (str, optional): Fallback component name when there is no default export

    Returns:
        BindingResult: What was inserted
    """
    result = BindingResult()
    component = find_component(tree, component_name)
    if component is None:
        logger.warning(f"No component found in {tree.path or '<source>'}, skipping {hook_name} injection")
        return result
    result.component = component

    statement = hook_statement(hook_name, namespace, function_name)
    body = tree.field(component, "body")
    if body is None:
        logger.warning(f"Component in {tree.path or '<source>'} has no body, skipping {hook_name} injection")
        return result

    if _binds_parameter(tree, component, function_name):
        logger.debug(f"{function_name} is a parameter of the component in {tree.path or '<source>'}")
        return result

    body_node = tree.node(body)
    if body_node.type == "statement_block":
        if _declares_name(tree, body, function_name):
            logger.debug(f"{function_name} already declared in {tree.path or '<source>'}")
            return result
        first_statements = tree.named_children(body)
        if first_statements:
            indent = _line_indent(tree, tree.node(first_statements[0]).start)
        else:
            indent = _line_indent(tree, tree.node(component).start) + DEFAULT_INDENT
        tree.insert(body_node.start + 1, f"\n{indent}{statement}")
    else:
        indent = _line_indent(tree, tree.node(component).start)
        inner = indent + DEFAULT_INDENT
        tree.insert(body_node.start, f"{{\n{inner}{statement}\n{inner}return ")
        tree.insert(body_node.end, f";\n{indent}}}")
    result.inserted_binding = True

    if not _has_import(tree, hook_name, import_source):
        offset, after_statement = _import_offset(tree)
        line = f"import {{ {hook_name} }} from {json.dumps(import_source)};"
        tree.insert(offset, f"\n{line}" if after_statement else f"{line}\n")
        result.inserted_import = True
    return result
