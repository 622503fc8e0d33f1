from i18nizer.i18n.jsx.component_binding import find_component, hook_statement, insert_translation_binding
from i18nizer.i18n.jsx.syntax_tree import parse_source


def bind(source, path="Greeting.tsx", **kwargs):
    tree = parse_source(source, path)
    kwargs.setdefault("namespace", "Greeting")
    result = insert_translation_binding(tree, **kwargs)
    output = tree.serialize()
    parse_source(output, path)
    return result, output


class TestHookStatement:
    def test_next_intl(self):
        assert hook_statement("useTranslations", "Greeting") == 'const t = useTranslations("Greeting");'

    def test_react_i18next(self):
        assert hook_statement("useTranslation", "Greeting") == 'const { t } = useTranslation("Greeting");'


class TestInsertTranslationBinding:
    def test_function_declaration(self):
        source = "export default function Greeting() {\n  return <div>Hello World</div>;\n}\n"
        result, output = bind(source)
        assert result.inserted_binding and result.inserted_import
        assert output == (
            'import { useTranslations } from "next-intl";\n'
            "export default function Greeting() {\n"
            '  const t = useTranslations("Greeting");\n'
            "  return <div>Hello World</div>;\n"
            "}\n"
        )

    def test_import_goes_after_existing_imports(self):
        source = (
            'import React from "react";\n'
            'import Link from "next/link";\n'
            "\n"
            "export default function Greeting() {\n"
            "    return <Link href=\"/\">Home</Link>;\n"
            "}\n"
        )
        _, output = bind(source)
        assert output.startswith(
            'import React from "react";\n'
            'import Link from "next/link";\n'
            'import { useTranslations } from "next-intl";\n'
        )
        assert '{\n    const t = useTranslations("Greeting");\n    return' in output

    def test_import_goes_after_directive(self):
        source = '"use client";\n\nexport default function Greeting() {\n  return <p>Hi there</p>;\n}\n'
        _, output = bind(source)
        assert output.startswith('"use client";\nimport { useTranslations } from "next-intl";\n\n')

    def test_arrow_with_expression_body(self):
        source = "const Banner = () => <p>Hi there</p>;\n\nexport default Banner;\n"
        result, output = bind(source, path="Banner.tsx", namespace="Banner",
                              hook_name="useTranslation", import_source="react-i18next")
        assert result.inserted_binding
        assert output == (
            'import { useTranslation } from "react-i18next";\n'
            "const Banner = () => {\n"
            '  const { t } = useTranslation("Banner");\n'
            "  return <p>Hi there</p>;\n"
            "};\n"
            "\n"
            "export default Banner;\n"
        )

    def test_exported_const_referenced_by_default_export(self):
        source = (
            "export const Card = ({ title }) => {\n"
            "  return <h2>{title}</h2>;\n"
            "};\n"
            "export default Card;\n"
        )
        _, output = bind(source, path="Card.tsx", namespace="Card")
        assert 'export const Card = ({ title }) => {\n  const t = useTranslations("Card");' in output

    def test_memo_wrapper(self):
        source = 'import { memo } from "react";\n\nexport default memo(function Card() {\n  return <p>Card body</p>;\n});\n'
        result, output = bind(source, path="Card.tsx", namespace="Card")
        assert result.inserted_binding
        assert 'function Card() {\n  const t = useTranslations("Card");' in output

    def test_existing_binding_is_kept(self):
        source = (
            'import { useTranslations } from "next-intl";\n'
            "export default function Greeting() {\n"
            '  const t = useTranslations("Greeting");\n'
            "  return <p>Hi</p>;\n"
            "}\n"
        )
        result, output = bind(source)
        assert not result.inserted_binding
        assert not result.inserted_import
        assert output == source

    def test_existing_destructured_binding_is_kept(self):
        source = (
            "export default function Greeting() {\n"
            '  const { t, i18n } = useTranslation("Greeting");\n'
            "  return <p>Hi</p>;\n"
            "}\n"
        )
        result, _ = bind(source, hook_name="useTranslation", import_source="react-i18next")
        assert not result.inserted_binding

    def test_existing_import_is_not_duplicated(self):
        source = (
            'import { useLocale, useTranslations } from "next-intl";\n'
            "export default function Greeting() {\n"
            "  return <p>Hi</p>;\n"
            "}\n"
        )
        result, output = bind(source)
        assert result.inserted_binding
        assert not result.inserted_import
        assert output.count("next-intl") == 1

    def test_no_component_found(self):
        source = "export const helper = 1;\n"
        result, output = bind(source)
        assert result.component is None
        assert output == source

    def test_falls_back_to_named_component(self):
        source = "export function Greeting() {\n  return <p>Hi</p>;\n}\n"
        tree = parse_source(source, "Greeting.tsx")
        assert find_component(tree) is None
        assert find_component(tree, "Greeting") is not None

    def test_destructured_parameter_is_kept(self):
        source = "export default function Card({ t }) {\n  return <p>Hi</p>;\n}\n"
        result, output = bind(source, path="Card.tsx", namespace="Card")
        assert not result.inserted_binding
        assert not result.inserted_import
        assert output == source

    def test_plain_parameter_is_kept(self):
        source = "const Card = (t) => <p>Hi</p>;\nexport default Card;\n"
        result, output = bind(source, path="Card.tsx", namespace="Card")
        assert not result.inserted_binding
        assert output == source

    def test_typed_and_defaulted_parameters_do_not_count(self):
        source = (
            "export default function Card({ label = t }: { t: string; label: string }) {\n"
            "  return <p>{label}</p>;\n"
            "}\n"
        )
        result, output = bind(source, path="Card.tsx", namespace="Card")
        assert result.inserted_binding
        assert 'const t = useTranslations("Card");' in output
