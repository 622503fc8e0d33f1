import json
from typing import Dict, List

from i18nizer.i18n.jsx.candidate_span import CandidateSpan, SpanKind
from i18nizer.i18n.jsx.syntax_tree import NodeKind, RewriteError, SyntaxTree
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("rewriter")

__all__ = ["RewriteError", "build_call", "rewrite"]


def _object_literal(entries: List[str]) -> str:
    return "{ " + ", ".join(entries) + " }"


def _property_name(name: str) -> str:
    if name.replace("_", "a").replace("$", "a").isalnum() and not name[0].isdigit():
        return name
    return json.dumps(name)


def build_call(span: CandidateSpan, key: str, function_name: str = "t") -> str:
    """Render the translation call that replaces a span.

    Args:
        span (CandidateSpan): The classified span
        key (str): The key allocated for the span's text
        function_name (str): Name of the translation function in scope

    Returns:
        str: e.g. t("helloWorld") or t("greeting", { name: user.name })
    """
    quoted_key = json.dumps(key)
    if span.kind == SpanKind.RICH_TEXT:
        entries = [
            f"{_property_name(element.placeholder_name)}: (chunks) => "
            f"{element.opening_tag}{{chunks}}</{element.tag}>"
            for element in span.elements
        ]
        return f"{function_name}.rich({quoted_key}, {_object_literal(entries)})"

    if not span.interpolations:
        return f"{function_name}({quoted_key})"
    entries = [f"{_property_name(name)}: {span.arguments.get(name, name)}" for name in span.interpolations]
    return f"{function_name}({quoted_key}, {_object_literal(entries)})"


def rewrite(tree: SyntaxTree, spans: List[CandidateSpan], keys: Dict[str, str], function_name: str = "t") -> int:
    """Record one edit per span on the tree.

    Args:
        tree (SyntaxTree): The tree the spans were classified from
        spans (List[CandidateSpan]): Classified spans
        keys (Dict[str, str]): Source text to allocated key
        function_name (str): Name of the translation function

    Returns:
        int: Number of spans rewritten

    Raises:
        RewriteError: If a span has no key or two edits overlap
    """
    count = 0
    for span in spans:
        key = keys.get(span.source_text)
        if key is None:
            raise RewriteError(f"No key allocated for \"{span.source_text}\" ({span.temp_id})")
        call = build_call(span, key, function_name)
        node = tree.node(span.node)

        if span.kind == SpanKind.RICH_TEXT:
            open_tag = tree.field(span.node, "open_tag")
            close_tag = tree.field(span.node, "close_tag")
            if open_tag is None or close_tag is None:
                raise RewriteError(f"Rich text element without tags at offset {node.start}")
            tree.replace_range(tree.node(open_tag).end, tree.node(close_tag).start, f"{{{call}}}")
        elif node.kind == NodeKind.JSX_TEXT:
            start, end = tree.trimmed_range(span.node)
            tree.replace_range(start, end, f"{{{call}}}")
        elif node.kind == NodeKind.STRING and tree.kind(node.parent) == NodeKind.JSX_ATTRIBUTE:
            tree.replace(span.node, f"{{{call}}}")
        else:
            tree.replace(span.node, call)
        count += 1
    logger.debug(f"Rewrote {count} spans in {tree.path or '<source>'}")
    return count
