import pytest

from i18nizer.i18n.jsx.candidate_span import SpanContext, SpanKind
from i18nizer.i18n.jsx.classifier import Classifier, ExtractOptions, classify, expression_name, unescape_js_string
from i18nizer.i18n.jsx.syntax_tree import NodeKind, ParseError, parse_source


def spans_for(body, options=None):
    source = f"export default function Sample() {{\n  return (\n    {body}\n  );\n}}\n"
    tree = parse_source(source, "Sample.tsx")
    return classify(tree, options)


def texts_for(body, options=None):
    return [span.source_text for span in spans_for(body, options)]


class TestMarkupText:
    def test_plain_text_is_one_trimmed_span(self):
        spans = spans_for("<div>Hello World</div>")
        assert len(spans) == 1
        assert spans[0].source_text == "Hello World"
        assert spans[0].kind == SpanKind.PLAIN
        assert spans[0].context == SpanContext.MARKUP_TEXT
        assert spans[0].interpolations == []

    def test_surrounding_whitespace_is_trimmed(self):
        assert texts_for("<p>\n      Welcome back!\n    </p>") == ["Welcome back!"]

    def test_character_references_are_decoded(self):
        assert texts_for("<p>Tom &amp; Jerry</p>") == ["Tom & Jerry"]

    def test_string_child_expression(self):
        spans = spans_for('<p>{"Hi there"}</p>')
        assert [s.source_text for s in spans] == ["Hi there"]
        assert spans[0].context == SpanContext.MARKUP_TEXT

    def test_logical_expression_operands(self):
        assert texts_for('<p>{error && "Something went wrong"}</p>') == ["Something went wrong"]

    def test_non_plural_conditional_yields_both_branches(self):
        spans = spans_for('<button>{isOpen ? "Close menu" : "Open menu"}</button>')
        assert [s.source_text for s in spans] == ["Close menu", "Open menu"]
        assert all(s.kind == SpanKind.PLAIN for s in spans)

    def test_punctuation_only_text_is_ignored(self):
        assert spans_for("<p>...</p>") == []

    def test_paths_are_ignored(self):
        assert spans_for('<p>{"/api/users"}</p>') == []


class TestPlural:
    @pytest.mark.parametrize("condition", ["count === 1", "1 === count", "count == 1", "(count === 1)"])
    def test_plural_idiom(self, condition):
        spans = spans_for(f'<span>{{{condition} ? "item" : "items"}}</span>')
        assert len(spans) == 1
        span = spans[0]
        assert span.kind == SpanKind.PLURAL
        assert span.interpolations == ["count"]
        assert span.plural.one == "item"
        assert span.plural.other == "items"
        assert span.source_text == "{count, plural, one {item} other {items}}"

    def test_other_number_is_not_plural(self):
        spans = spans_for('<span>{count === 2 ? "pair" : "items"}</span>')
        assert [s.kind for s in spans] == [SpanKind.PLAIN, SpanKind.PLAIN]

    def test_empty_branch_is_not_plural(self):
        spans = spans_for('<span>{count === 1 ? "" : "items"}</span>')
        assert [s.source_text for s in spans] == ["items"]
        assert spans[0].kind == SpanKind.PLAIN


class TestRichText:
    def test_link_inside_sentence(self):
        spans = spans_for('<p>Click <a href="/terms">here</a> to continue</p>')
        assert len(spans) == 1
        span = spans[0]
        assert span.kind == SpanKind.RICH_TEXT
        assert span.source_text == "Click <a>here</a> to continue"
        assert [e.tag for e in span.elements] == ["a"]
        assert span.elements[0].opening_tag == '<a href="/terms">'

    def test_repeated_tag_is_listed_once(self):
        spans = spans_for("<p>Use <b>bold</b> and <b>more bold</b> text</p>")
        assert len(spans) == 1
        assert spans[0].source_text == "Use <b>bold</b> and <b>more bold</b> text"
        assert [e.tag for e in spans[0].elements] == ["b"]

    def test_repeated_tag_with_different_attributes_is_not_rich(self):
        spans = spans_for('<p>See <a href="/a">one</a> or <a href="/b">two</a> now</p>')
        assert all(s.kind == SpanKind.PLAIN for s in spans)
        assert [s.source_text for s in spans] == ["See", "one", "or", "two", "now"]

    def test_only_child_elements_is_not_rich(self):
        spans = spans_for("<div><span>One</span><span>Two</span></div>")
        assert [s.source_text for s in spans] == ["One", "Two"]
        assert all(s.kind == SpanKind.PLAIN for s in spans)

    def test_expression_child_is_not_rich(self):
        spans = spans_for("<p>Hello <b>friend</b> {name}</p>")
        assert all(s.kind == SpanKind.PLAIN for s in spans)
        assert "Hello" in [s.source_text for s in spans]

    def test_translatable_attribute_on_inline_tag_is_not_rich(self):
        spans = spans_for('<p>Read the <a title="Terms page" href="/terms">terms</a> first</p>')
        assert all(s.kind == SpanKind.PLAIN for s in spans)
        assert [s.source_text for s in spans] == ["Read the", "Terms page", "terms", "first"]

    def test_untranslatable_attribute_on_inline_tag_stays_rich(self):
        spans = spans_for('<p>Read the <a className="link" href="/terms">terms</a> first</p>')
        assert [s.kind for s in spans] == [SpanKind.RICH_TEXT]

    def test_attribute_of_rich_text_wrapper_is_extracted(self):
        spans = spans_for('<p title="Legal notice">Click <a href="/terms">here</a> to continue</p>')
        # The wrapper element starts before its own attribute.
        assert [(s.source_text, s.kind) for s in spans] == [
            ("Click <a>here</a> to continue", SpanKind.RICH_TEXT),
            ("Legal notice", SpanKind.PLAIN),
        ]

    def test_nested_inline_markup_falls_back_to_inner_rich_text(self):
        spans = spans_for("<div>Read <p>the <b>docs</b> first</p> please</div>")
        kinds = {s.source_text: s.kind for s in spans}
        assert kinds["the <b>docs</b> first"] == SpanKind.RICH_TEXT
        assert kinds["Read"] == SpanKind.PLAIN
        assert kinds["please"] == SpanKind.PLAIN


class TestAttributes:
    def test_allowed_attribute(self):
        spans = spans_for('<input placeholder="Your name" className="flex p-2" />')
        assert [s.source_text for s in spans] == ["Your name"]
        assert spans[0].context == SpanContext.MARKUP_ATTRIBUTE

    def test_attribute_expression(self):
        assert texts_for('<img alt={"Company logo"} src="/logo.png" />') == ["Company logo"]

    def test_attribute_not_in_allow_list(self):
        assert texts_for('<a href="About us" data-label="Something">x1</a>') == ["x1"]

    def test_custom_allow_list(self):
        options = ExtractOptions(allowed_attribute_names={"data-label"})
        assert texts_for('<div data-label="Tooltip text" title="Ignored title" />', options) == ["Tooltip text"]

    def test_denied_attribute_never_extracted(self):
        options = ExtractOptions(allowed_attribute_names={"className"})
        assert spans_for('<div className="Card title" />', options) == []


class TestCalls:
    def test_allowed_calls(self):
        source = (
            "function save() {\n"
            '  alert("Saved!");\n'
            '  toast.error("Failed to save");\n'
            '  console.log("debug message");\n'
            '  fetchData("Not a message");\n'
            "}\n"
        )
        spans = classify(parse_source(source, "save.ts"))
        assert [s.source_text for s in spans] == ["Saved!", "Failed to save"]
        assert all(s.context == SpanContext.CALL_ARGUMENT for s in spans)

    def test_console_call_is_rejected_even_when_allowed(self):
        options = ExtractOptions(allowed_member_call_names={"console.log"})
        spans = classify(parse_source('console.log("debug message");\n', "debug.ts"), options)
        assert spans == []

    def test_template_with_member_expression(self):
        spans = classify(parse_source("toast.success(`Welcome ${user.name}`);\n", "welcome.ts"))
        assert len(spans) == 1
        assert spans[0].source_text == "Welcome {userName}"
        assert spans[0].interpolations == ["userName"]
        assert spans[0].arguments == {"userName": "user.name"}

    def test_template_with_identifier(self):
        spans = classify(parse_source("alert(`Hello ${name}, you have ${count} messages`);\n", "hello.ts"))
        assert spans[0].source_text == "Hello {name}, you have {count} messages"
        assert spans[0].interpolations == ["name", "count"]

    def test_template_with_only_placeholders_is_rejected(self):
        assert classify(parse_source("alert(`${a}${b}`);\n", "only.ts")) == []

    def test_string_escapes_are_decoded(self):
        spans = classify(parse_source('alert("It\\u2019s done\\nreally");\n', "escape.ts"))
        assert spans[0].source_text == "It’s done\nreally"


class TestFilters:
    def test_directives_and_imports(self):
        source = (
            '"use client";\n'
            'import Link from "next/link";\n'
            'export { Button } from "./Button";\n'
            "export default function Page() {\n"
            "  return <p>Welcome</p>;\n"
            "}\n"
        )
        assert [s.source_text for s in classify(parse_source(source, "Page.tsx"))] == ["Welcome"]

    def test_utility_class_text(self):
        options = ExtractOptions(allowed_attribute_names={"title"})
        assert spans_for('<div title="flex items-center" />', options) == []


class TestOrdering:
    def test_temp_ids_follow_document_order(self):
        spans = spans_for('<div title="First title"><p>Second</p><p>Third</p></div>')
        assert [s.source_text for s in spans] == ["First title", "Second", "Third"]
        assert len({s.temp_id for s in spans}) == 3
        assert [s.temp_id for s in spans] == ["tmp_1", "tmp_2", "tmp_3"]

    def test_classifier_counter_is_per_instance(self):
        tree = parse_source("export default function A() { return <p>One</p>; }\n", "A.tsx")
        classifier = Classifier()
        first = classifier.classify(tree)
        second = classifier.classify(tree)
        assert first[0].temp_id != second[0].temp_id
        assert Classifier().classify(tree)[0].temp_id == "tmp_1"


class TestSyntaxTree:
    def test_parse_error(self):
        with pytest.raises(ParseError):
            parse_source("const a = {;\n", "a.tsx")

    def test_serialize_without_edits_is_identity(self):
        source = "const a = <p>Hi</p>;\n"
        assert parse_source(source, "a.tsx").serialize() == source

    def test_text_runs_are_merged(self):
        tree = parse_source("const a = <p>Fish &amp; chips</p>;\n", "a.tsx")
        texts = [tree.text(i) for i in tree.walk() if tree.kind(i) == NodeKind.JSX_TEXT]
        assert texts == ["Fish &amp; chips"]


class TestHelpers:
    def test_expression_name(self):
        assert expression_name("user.name") == "userName"
        assert expression_name("props.title") == "title"
        assert expression_name("items.length") == "itemsLength"
        assert expression_name("1 + 2") == "value"

    def test_unescape_js_string(self):
        assert unescape_js_string("a\\tb") == "a\tb"
        assert unescape_js_string("\\x41\\u{1F600}") == "A\U0001F600"
        assert unescape_js_string("say \\\"hi\\\"") == 'say "hi"'
