import html
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from i18nizer.i18n.jsx.candidate_span import (
    CandidateSpan, PluralForms, RichTextElement, SpanContext, SpanKind,
)
from i18nizer.i18n.jsx.is_translatable import (
    attribute_name, attribute_value, callee_name, is_translatable,
)
from i18nizer.i18n.jsx.syntax_tree import NodeKind, SyntaxTree
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("classifier")

DEFAULT_ALLOWED_CALL_NAMES = ("alert", "confirm", "prompt")
DEFAULT_ALLOWED_MEMBER_CALL_NAMES = ("toast.error", "toast.info", "toast.success", "toast.warn")
DEFAULT_ALLOWED_ATTRIBUTE_NAMES = (
    "alt",
    "aria-label",
    "aria-placeholder",
    "helperText",
    "label",
    "placeholder",
    "text",
    "title",
    "tooltip",
)

LOGICAL_OPERATORS = ("&&", "||")
EQUALITY_OPERATORS = ("==", "===")
TAG_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
JS_ESCAPE_PATTERN = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
JS_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
LINE_CONTINUATIONS = ("\n", "\r", "\r\n", "\u2028", "\u2029")
NAME_STOP_WORDS = ("this", "props", "state")
ASCII_WHITESPACE = " \t\n\r\x0b\x0c"


@dataclass
class ExtractOptions:
    """Which attributes and calls may carry translatable strings."""
    allowed_call_names: Set[str] = field(default_factory=lambda: set(DEFAULT_ALLOWED_CALL_NAMES))
    allowed_member_call_names: Set[str] = field(default_factory=lambda: set(DEFAULT_ALLOWED_MEMBER_CALL_NAMES))
    allowed_attribute_names: Set[str] = field(default_factory=lambda: set(DEFAULT_ALLOWED_ATTRIBUTE_NAMES))

    @staticmethod
    def from_config(config) -> 'ExtractOptions':
        return ExtractOptions(
            allowed_call_names=set(config.allowed_functions),
            allowed_member_call_names=set(config.allowed_member_functions),
            allowed_attribute_names=set(config.allowed_props),
        )

    def is_allowed_call(self, name: Optional[str]) -> bool:
        if not name:
            return False
        if "." in name:
            return name in self.allowed_member_call_names
        return name in self.allowed_call_names


def unescape_js_string(raw: str) -> str:
    """Decode the escape sequences of a JavaScript string literal body."""
    def _replace(match):
        escape = match.group(1)
        if escape in JS_SIMPLE_ESCAPES:
            return JS_SIMPLE_ESCAPES[escape]
        if escape in LINE_CONTINUATIONS:
            return ""
        if escape.startswith("u{"):
            return chr(int(escape[2:-1], 16))
        if escape[0] in ("u", "x") and len(escape) > 1:
            return chr(int(escape[1:], 16))
        return escape

    decoded = JS_ESCAPE_PATTERN.sub(_replace, raw)
    try:
        return decoded.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeError:
        return decoded


def collapse_markup_whitespace(text: str) -> str:
    """Collapse whitespace that spans line breaks, the way JSX renders it.

    Only ASCII whitespace is touched. Non-breaking spaces, literal or written
    as entities, are content.
    """
    return re.sub(r"\s*\n\s*", " ", text, flags=re.ASCII).strip(ASCII_WHITESPACE)


def expression_name(expression: str) -> str:
    """Derive a placeholder name from an interpolated expression, e.g. user.name -> userName."""
    words = [w for w in IDENTIFIER_PATTERN.findall(expression) if w not in NAME_STOP_WORDS]
    words = [w.replace("$", "") for w in words if w.replace("$", "")]
    if not words:
        return "value"
    words = words[:3]
    return words[0][0].lower() + words[0][1:] + "".join(w[0].upper() + w[1:] for w in words[1:])


class Classifier:
    """Walks a SyntaxTree and produces the ordered list of translatable spans.

    A Classifier keeps its own temp-id counter, so one instance used across
    several files never hands out the same temp id twice.
    """

    def __init__(self, options: Optional[ExtractOptions] = None, temp_id_prefix: str = "tmp"):
        self.options = options or ExtractOptions()
        self.temp_id_prefix = temp_id_prefix
        self._counter = 0

    def _next_temp_id(self) -> str:
        self._counter += 1
        return f"{self.temp_id_prefix}_{self._counter}"

    def classify(self, tree: SyntaxTree) -> List[CandidateSpan]:
        """Classify every translatable span of a tree.

        Args:
            tree (SyntaxTree): The parsed file

        Returns:
            List[CandidateSpan]: Spans in document order with temp ids assigned
        """
        spans: List[CandidateSpan] = []
        claimed: Set[int] = set()
        if tree.root is None:
            return spans

        stack = [tree.root]
        while stack:
            index = stack.pop()
            if index in claimed:
                continue
            self._visit(tree, index, spans, claimed)
            if index in claimed:
                continue
            stack.extend(reversed(tree.node(index).children))

        spans.sort(key=lambda s: (tree.node(s.node).start, -tree.node(s.node).end))
        for span in spans:
            span.temp_id = self._next_temp_id()
        logger.debug(f"Classified {len(spans)} spans in {tree.path or '<source>'}")
        return spans

    def _visit(self, tree: SyntaxTree, index: int, spans: List[CandidateSpan], claimed: Set[int]):
        kind = tree.kind(index)
        parent_kind = tree.kind(tree.parent(index))

        if kind == NodeKind.JSX_ELEMENT:
            span = self._rich_text_span(tree, index)
            if span is not None:
                spans.append(span)
                # The opening tag stays in place, so its attributes are still visited.
                claimed.update(self._content_children(tree, index))
        elif kind == NodeKind.JSX_TEXT and parent_kind == NodeKind.JSX_ELEMENT:
            text = html.unescape(collapse_markup_whitespace(tree.text(index)))
            if is_translatable(tree, index, text):
                spans.append(CandidateSpan(source_text=text, node=index))
            claimed.add(index)
        elif kind == NodeKind.JSX_EXPRESSION and parent_kind == NodeKind.JSX_ELEMENT:
            named = tree.named_children(index)
            if named:
                self._extract_expression(tree, named[0], SpanContext.MARKUP_TEXT, spans, claimed)
        elif kind == NodeKind.JSX_ATTRIBUTE:
            if attribute_name(tree, index) in self.options.allowed_attribute_names:
                value = attribute_value(tree, index)
                if tree.kind(value) == NodeKind.STRING:
                    self._extract_expression(tree, value, SpanContext.MARKUP_ATTRIBUTE, spans, claimed)
                elif tree.kind(value) == NodeKind.JSX_EXPRESSION:
                    named = tree.named_children(value)
                    if named:
                        self._extract_expression(tree, named[0], SpanContext.MARKUP_ATTRIBUTE, spans, claimed)
        elif kind == NodeKind.CALL:
            if self.options.is_allowed_call(callee_name(tree, index)):
                arguments = tree.field(index, "arguments")
                if arguments is not None:
                    for argument in tree.named_children(arguments):
                        self._extract_expression(tree, argument, SpanContext.CALL_ARGUMENT, spans, claimed)

    # Expressions

    def _extract_expression(self, tree: SyntaxTree, index: int, context: SpanContext,
                            spans: List[CandidateSpan], claimed: Set[int]):
        stack = [index]
        while stack:
            current = stack.pop()
            if current in claimed:
                continue
            kind = tree.kind(current)
            if kind == NodeKind.STRING:
                text = self._string_value(tree, current)
                if is_translatable(tree, current, text):
                    spans.append(CandidateSpan(source_text=text, node=current, context=context))
                    claimed.add(current)
            elif kind == NodeKind.TEMPLATE_STRING:
                span = self._template_span(tree, current, context)
                if span is not None:
                    spans.append(span)
                    claimed.add(current)
            elif kind == NodeKind.CONDITIONAL:
                span = self._plural_span(tree, current, context)
                if span is not None:
                    spans.append(span)
                    claimed.add(current)
                    continue
                branches = [tree.field(current, "consequence"), tree.field(current, "alternative")]
                stack.extend(reversed([b for b in branches if b is not None]))
            elif kind == NodeKind.BINARY:
                operator = tree.field(current, "operator")
                if operator is not None and tree.text(operator) in LOGICAL_OPERATORS:
                    sides = [tree.field(current, "left"), tree.field(current, "right")]
                    stack.extend(reversed([s for s in sides if s is not None]))
            elif kind == NodeKind.PARENTHESIZED:
                named = tree.named_children(current)
                if named:
                    stack.append(named[0])

    def _string_value(self, tree: SyntaxTree, index: int) -> str:
        raw = tree.text(index)[1:-1]
        if tree.kind(tree.parent(index)) == NodeKind.JSX_ATTRIBUTE:
            return html.unescape(raw)
        return unescape_js_string(raw)

    def _template_span(self, tree: SyntaxTree, index: int, context: SpanContext) -> Optional[CandidateSpan]:
        node = tree.node(index)
        cursor = node.start + 1
        end = node.end - 1
        pieces: List[str] = []
        static_pieces: List[str] = []
        names_by_expression: Dict[str, str] = {}
        arguments: Dict[str, str] = {}
        interpolations: List[str] = []

        for child in node.children:
            if tree.node(child).type != "template_substitution":
                continue
            substitution = tree.node(child)
            static = unescape_js_string(tree.slice(cursor, substitution.start))
            pieces.append(static)
            static_pieces.append(static)
            cursor = substitution.end

            named = tree.named_children(child)
            if not named:
                continue
            expression_index = named[0]
            expression = tree.text(expression_index)
            name = names_by_expression.get(expression)
            if name is None:
                if tree.kind(expression_index) == NodeKind.IDENTIFIER:
                    base = expression
                else:
                    base = expression_name(expression)
                name = base
                suffix = 2
                while name in arguments:
                    name = f"{base}{suffix}"
                    suffix += 1
                names_by_expression[expression] = name
                arguments[name] = expression
            if name not in interpolations:
                interpolations.append(name)
            pieces.append("{" + name + "}")

        tail = unescape_js_string(tree.slice(cursor, end))
        pieces.append(tail)
        static_pieces.append(tail)

        if not is_translatable(tree, index, "".join(static_pieces)):
            return None
        return CandidateSpan(
            source_text="".join(pieces).strip(),
            node=index,
            context=context,
            interpolations=interpolations,
            arguments=arguments,
        )

    def _unwrap_parentheses(self, tree: SyntaxTree, index: Optional[int]) -> Optional[int]:
        while index is not None and tree.kind(index) == NodeKind.PARENTHESIZED:
            named = tree.named_children(index)
            index = named[0] if named else None
        return index

    def _plural_variable(self, tree: SyntaxTree, condition: Optional[int]) -> Optional[str]:
        condition = self._unwrap_parentheses(tree, condition)
        if condition is None or tree.kind(condition) != NodeKind.BINARY:
            return None
        operator = tree.field(condition, "operator")
        if operator is None or tree.text(operator) not in EQUALITY_OPERATORS:
            return None
        left = self._unwrap_parentheses(tree, tree.field(condition, "left"))
        right = self._unwrap_parentheses(tree, tree.field(condition, "right"))
        for identifier, number in ((left, right), (right, left)):
            if tree.kind(identifier) == NodeKind.IDENTIFIER and tree.kind(number) == NodeKind.NUMBER \
                    and tree.text(number) == "1":
                return tree.text(identifier)
        return None

    def _plural_span(self, tree: SyntaxTree, index: int, context: SpanContext) -> Optional[CandidateSpan]:
        variable = self._plural_variable(tree, tree.field(index, "condition"))
        if variable is None:
            return None
        forms = []
        for branch in (tree.field(index, "consequence"), tree.field(index, "alternative")):
            if tree.kind(branch) != NodeKind.STRING:
                return None
            value = self._string_value(tree, branch)
            if not value.strip():
                return None
            forms.append(value)
        one, other = forms
        if not is_translatable(tree, index, other):
            return None
        return CandidateSpan(
            source_text=f"{{{variable}, plural, one {{{one}}} other {{{other}}}}}",
            node=index,
            kind=SpanKind.PLURAL,
            context=context,
            interpolations=[variable],
            arguments={variable: variable},
            plural=PluralForms(variable=variable, one=one, other=other),
        )

    # Rich text

    def _content_children(self, tree: SyntaxTree, element: int) -> List[int]:
        return [
            c for c in tree.node(element).children
            if tree.kind(c) not in (NodeKind.JSX_OPENING, NodeKind.JSX_CLOSING)
        ]

    def _content_range(self, tree: SyntaxTree, element: int) -> Optional[Tuple[int, int]]:
        open_tag = tree.field(element, "open_tag")
        close_tag = tree.field(element, "close_tag")
        if open_tag is None or close_tag is None:
            return None
        return tree.node(open_tag).end, tree.node(close_tag).start

    def _tag_name(self, tree: SyntaxTree, element: int) -> Optional[str]:
        open_tag = tree.field(element, "open_tag")
        if open_tag is None:
            return None
        name = tree.field(open_tag, "name")
        if name is None or tree.kind(name) != NodeKind.IDENTIFIER:
            return None
        tag = tree.text(name)
        return tag if TAG_NAME_PATTERN.match(tag) else None

    def _has_translatable_attribute(self, tree: SyntaxTree, element: int) -> bool:
        """True if the element's opening tag carries an attribute the normal rules would extract.

        Such an opening tag would be copied verbatim into a rich text formatter.
        """
        open_tag = tree.field(element, "open_tag")
        if open_tag is None:
            return False
        for attribute in tree.named_children(open_tag):
            if tree.kind(attribute) != NodeKind.JSX_ATTRIBUTE:
                continue
            found: List[CandidateSpan] = []
            self._visit(tree, attribute, found, set())
            if found:
                return True
        return False

    def _rich_text_span(self, tree: SyntaxTree, index: int) -> Optional[CandidateSpan]:
        content_range = self._content_range(tree, index)
        if content_range is None:
            return None
        children = self._content_children(tree, index)

        has_text = False
        child_elements = []
        for child in children:
            kind = tree.kind(child)
            if kind == NodeKind.JSX_TEXT:
                if tree.text(child).strip():
                    has_text = True
            elif kind == NodeKind.JSX_ELEMENT:
                child_elements.append(child)
            else:
                return None
        if not has_text or not child_elements:
            return None

        elements: List[RichTextElement] = []
        opening_tags: Dict[str, str] = {}
        rendered: Dict[int, str] = {}
        for child in child_elements:
            tag = self._tag_name(tree, child)
            inner_range = self._content_range(tree, child)
            if tag is None or inner_range is None:
                return None
            if any(tree.kind(c) != NodeKind.JSX_TEXT for c in self._content_children(tree, child)):
                return None
            if self._has_translatable_attribute(tree, child):
                return None
            opening_tag = tree.text(tree.field(child, "open_tag"))
            if tag in opening_tags:
                if opening_tags[tag] != opening_tag:
                    return None
            else:
                opening_tags[tag] = opening_tag
                elements.append(RichTextElement(tag=tag, placeholder_name=tag, opening_tag=opening_tag))
            rendered[child] = f"<{tag}>{tree.slice(*inner_range)}</{tag}>"

        pieces = []
        plain_pieces = []
        cursor = content_range[0]
        for child in children:
            node = tree.node(child)
            gap = tree.slice(cursor, node.start)
            pieces.append(gap)
            plain_pieces.append(gap)
            if child in rendered:
                pieces.append(rendered[child])
                plain_pieces.append(tree.slice(*self._content_range(tree, child)))
            else:
                pieces.append(tree.text(child))
                plain_pieces.append(tree.text(child))
            cursor = node.end
        pieces.append(tree.slice(cursor, content_range[1]))

        text = html.unescape(re.sub(r"\s+", " ", "".join(pieces), flags=re.ASCII).strip(ASCII_WHITESPACE))
        plain_text = html.unescape("".join(plain_pieces))
        if not is_translatable(tree, index, plain_text):
            return None
        return CandidateSpan(
            source_text=text,
            node=index,
            kind=SpanKind.RICH_TEXT,
            context=SpanContext.MARKUP_TEXT,
            elements=elements,
        )


def classify(tree: SyntaxTree, options: Optional[ExtractOptions] = None) -> List[CandidateSpan]:
    return Classifier(options).classify(tree)
