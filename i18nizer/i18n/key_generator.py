import re
import unicodedata
from typing import Iterable

MAX_KEY_WORDS = 5
MIN_KEY_LENGTH = 3
FALLBACK_KEY = "text"

KEY_PATTERN = re.compile(r"^[a-z][a-zA-Z0-9]*$")
PLACEHOLDER_PATTERN = re.compile(r"\{[^}]+\}")
PLURAL_OTHER_PATTERN = re.compile(r"^\{\s*\w+\s*,\s*plural\s*,.*\bother\s*\{([^}]*)\}\s*\}$", re.DOTALL)
TAG_PATTERN = re.compile(r"</?[A-Za-z][A-Za-z0-9]*>")
NON_WORD_PATTERN = re.compile(r"[\W_]+", re.ASCII)


def is_valid_key(key) -> bool:
    return isinstance(key, str) and KEY_PATTERN.match(key) is not None


def _plural_other_form(text: str) -> str:
    match = PLURAL_OTHER_PATTERN.match(text.strip())
    if match:
        return match.group(1)
    return text


def generate_key(text: str) -> str:
    """Deterministically derive a camelCase key from source text.

    Args:
        text (str): The source message, possibly an ICU plural or rich text message

    Returns:
        str: A key matching ^[a-z][a-zA-Z0-9]*$, or "text" if too little remains
    """
    value = _plural_other_form(text)
    value = PLACEHOLDER_PATTERN.sub(" ", value)
    value = TAG_PATTERN.sub(" ", value)
    value = re.sub(r"'s\b", "s", value)
    value = unicodedata.normalize("NFKD", value)
    value = "".join(ch for ch in value if not unicodedata.combining(ch))
    value = NON_WORD_PATTERN.sub(" ", value)

    words = [w for w in value.split() if w][:MAX_KEY_WORDS]
    if not words:
        return FALLBACK_KEY

    key = words[0].lower() + "".join(w[0].upper() + w[1:].lower() for w in words[1:])
    # A key must not start with a digit.
    key = key.lstrip("0123456789")
    key = key[:1].lower() + key[1:]
    if len(key) < MIN_KEY_LENGTH or not is_valid_key(key):
        return FALLBACK_KEY
    return key


def unique_key(base: str, used_keys: Iterable[str]) -> str:
    """Return base, or base followed by the first free number starting at 2."""
    used = used_keys if isinstance(used_keys, (set, frozenset, dict)) else set(used_keys)
    if base not in used:
        return base
    suffix = 2
    while f"{base}{suffix}" in used:
        suffix += 1
    return f"{base}{suffix}"
