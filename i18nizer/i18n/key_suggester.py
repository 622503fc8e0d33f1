import json
from abc import ABC, abstractmethod
from typing import Dict, List

from i18nizer.lib.llm import LLM
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("key_suggester")


class KeySuggester(ABC):
    """Batch source of readable keys for texts that have none yet."""

    @abstractmethod
    def suggest_keys(self, texts: List[str]) -> Dict[str, str]:
        """Suggest a key for each text.

        Args:
            texts (List[str]): Texts that need keys

        Returns:
            Dict[str, str]: Text to suggested key. Texts may be missing from the result.
        """
        pass


def build_key_prompt(texts: List[str]) -> str:
    numbered = "\n".join(f"{i + 1}. {json.dumps(text, ensure_ascii=False)}" for i, text in enumerate(texts))
    return f"""You are an i18n key generator. Generate concise, meaningful camelCase keys in English for the following texts.

RULES:
- Output ONLY a JSON object mapping each text to its camelCase key
- Keys should be 2-4 words maximum
- Keys must be in English
- Keys should describe the content/purpose
- Do NOT include explanations, comments, or any other text
- Output format: {{ "original text": "camelCaseKey" }}

TEXTS:
{numbered}

EXAMPLES:
{{ "Bienvenido de nuevo": "welcomeBack", "Por favor inicia sesión": "pleaseSignIn" }}

OUTPUT (JSON only):"""


class LLMKeySuggester(KeySuggester):
    """Asks an LLM for English keys. Failures are logged and produce no suggestions."""

    def __init__(self, llm: LLM):
        self.llm = llm

    def suggest_keys(self, texts: List[str]) -> Dict[str, str]:
        if not texts:
            return {}
        try:
            result = self.llm.generate_json(build_key_prompt(texts))
        except Exception as e:
            logger.warning(f"Could not generate keys with {self.llm.provider}: {e}")
            return {}
        if not isinstance(result, dict):
            logger.warning(f"Unexpected key suggestion response type: {type(result).__name__}")
            return {}
        return {text: key for text, key in result.items() if isinstance(key, str) and text in texts}
