import json
import os
import re
from typing import Dict, List, Sequence

from i18nizer.utils.globals import Globals
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("locale_file_writer")

DEFAULT_MESSAGES_DIR = os.path.join(Globals.USER_DIR, "messages")


def component_name_to_filename(component_name: str) -> str:
    """NotificationItem -> notification-item"""
    return re.sub(r"(?<!^)([A-Z])", r"-\1", component_name).lower().lstrip("-")


def filename_to_identifier(filename: str) -> str:
    """notification-item -> NotificationItem"""
    return "".join(part[:1].upper() + part[1:].lower() for part in filename.split("-"))


def _read_existing(file_path: str, namespace: str) -> Dict[str, str]:
    if not os.path.exists(file_path):
        return {}
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        existing = data.get(namespace, {}) if isinstance(data, dict) else {}
        return existing if isinstance(existing, dict) else {}
    except Exception as e:
        logger.warning(f"Replacing unreadable locale file {file_path}: {e}")
        return {}


def write_locale_files(namespace: str, table: Dict[str, Dict[str, str]], locales: Sequence[str],
                       output_dir: str = None) -> List[str]:
    """Write one JSON message file per locale for a component.

    Args:
        namespace (str): Component name, used as the top-level object key
        table (Dict[str, Dict[str, str]]): key -> locale -> message
        locales (Sequence[str]): Locales to write
        output_dir (str, optional): Messages directory. Defaults to ~/.i18nizer/messages.

    Returns:
        List[str]: Paths of the written files
    """
    base_dir = output_dir or DEFAULT_MESSAGES_DIR
    filename = component_name_to_filename(namespace)
    written = []
    for locale in locales:
        locale_dir = os.path.join(base_dir, locale)
        os.makedirs(locale_dir, exist_ok=True)
        file_path = os.path.join(locale_dir, f"{filename}.json")

        messages = _read_existing(file_path, namespace)
        for key, translations in table.items():
            if locale in translations:
                messages[key] = translations[locale]
        content = {namespace: {key: messages[key] for key in sorted(messages)}}

        with open(file_path, "w", encoding="utf-8") as f:
            f.write(json.dumps(content, ensure_ascii=False, indent=2) + "\n")
        logger.info(f"Locale file saved: {file_path}")
        written.append(file_path)
    return written
