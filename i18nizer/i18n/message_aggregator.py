import os
import re
from typing import Dict, List, Optional, Tuple

from i18nizer.i18n.locale_file_writer import filename_to_identifier
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("message_aggregator")

AGGREGATOR_FILE_NAME = "messages.generated.ts"
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _locale_dirs(messages_dir: str) -> List[str]:
    return sorted(
        name for name in os.listdir(messages_dir)
        if os.path.isdir(os.path.join(messages_dir, name)) and not name.startswith(".")
    )


def _json_files(locale_dir: str) -> List[str]:
    """Paths of every JSON file under a locale directory, relative to it, sorted."""
    found = []
    for root, dirs, files in os.walk(locale_dir):
        dirs[:] = [d for d in dirs if not d.startswith(".")]
        for filename in files:
            if filename.endswith(".json"):
                relative = os.path.relpath(os.path.join(root, filename), locale_dir)
                found.append(relative.replace(os.sep, "/"))
    return sorted(found)


def import_identifier(relative_path: str, locale: str) -> str:
    """components/forms/login-form.json, en -> ComponentsForms_LoginForm_en"""
    parts = relative_path[:-len(".json")].split("/")
    directory = "".join(filename_to_identifier(part) for part in parts[:-1])
    name = filename_to_identifier(parts[-1])
    locale_suffix = re.sub(r"[^A-Za-z0-9_]", "_", locale)
    pieces = [directory] if directory else []
    pieces.extend([name, locale_suffix])
    return "_".join(pieces)


def _object_key(locale: str) -> str:
    return locale if IDENTIFIER_PATTERN.match(locale) else f'"{locale}"'


def render_aggregator(imports: Dict[str, List[Tuple[str, str]]]) -> str:
    """Render the TypeScript module from locale -> [(identifier, import path)]."""
    lines = [
        "// This file is generated by i18nizer. DO NOT EDIT MANUALLY.",
        "// Run `i18nizer regenerate` to update it.",
        "",
    ]
    for locale in sorted(imports):
        for identifier, import_path in imports[locale]:
            lines.append(f'import {identifier} from "{import_path}";')
    lines.extend(["", "export const messages = {"])
    for locale in sorted(imports):
        lines.append(f"  {_object_key(locale)}: {{")
        for identifier, _ in imports[locale]:
            lines.append(f"    ...{identifier},")
        lines.append("  },")
    lines.append("} as const;")
    return "\n".join(lines) + "\n"


def generate_aggregator(messages_dir: str, output_dir: str) -> Optional[str]:
    """Write messages.generated.ts importing every locale JSON file under messages_dir.

    Args:
        messages_dir (str): Directory holding one subdirectory per locale
        output_dir (str): Directory the aggregator is written to, created if missing

    Returns:
        str: Path of the written file, or None if there was nothing to aggregate
    """
    if not os.path.isdir(messages_dir):
        logger.warning(f"Messages directory {messages_dir} does not exist, skipping aggregator")
        return None
    locales = _locale_dirs(messages_dir)
    if not locales:
        logger.warning(f"No locale directories in {messages_dir}, skipping aggregator")
        return None

    imports: Dict[str, List[Tuple[str, str]]] = {}
    relative_messages_dir = os.path.relpath(messages_dir, output_dir).replace(os.sep, "/")
    for locale in locales:
        files = _json_files(os.path.join(messages_dir, locale))
        if files:
            imports[locale] = [
                (import_identifier(relative, locale), f"{relative_messages_dir}/{locale}/{relative}")
                for relative in files
            ]
    if not imports:
        logger.warning(f"No JSON message files in {messages_dir}, skipping aggregator")
        return None

    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, AGGREGATOR_FILE_NAME)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(render_aggregator(imports))
    logger.info(f"Aggregator saved: {output_path}")
    return output_path
