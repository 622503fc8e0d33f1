import json
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Sequence, Tuple

from i18nizer.lib.llm import LLM, LLMResponseError
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("translation_service")


class TranslationService:
    MAX_BATCH_SIZE = 40

    def __init__(self, llm: LLM, default_locale='en', max_workers=4):
        """Initialize the translation service.

        Args:
            llm (LLM): Client used for translation requests
            default_locale (str, optional): Locale of the source messages. Defaults to 'en'.
            max_workers (int, optional): Concurrent batch requests. Defaults to 4.
        """
        self.llm = llm
        self.default_locale = default_locale
        self.max_workers = max_workers

    def translate_batch(self, component_name: str, locales: Sequence[str],
                        items: List[Tuple[str, str]]) -> Dict[str, Dict[str, str]]:
        """Translate messages of one component into every requested locale.

        Args:
            component_name (str): Namespace the messages belong to, given to the model as context
            locales (Sequence[str]): Target locale codes
            items (List[Tuple[str, str]]): (temp_id, source message) pairs

        Returns:
            Dict[str, Dict[str, str]]: temp_id to locale to translated message.
                Items the model skipped are absent.
        """
        if not items or not locales:
            return {}
        batches = [items[i:i + self.MAX_BATCH_SIZE] for i in range(0, len(items), self.MAX_BATCH_SIZE)]
        results: Dict[str, Dict[str, str]] = {}
        if len(batches) == 1:
            results.update(self._translate_chunk(component_name, locales, batches[0]))
            return results
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for chunk_result in executor.map(lambda b: self._translate_chunk(component_name, locales, b), batches):
                results.update(chunk_result)
        return results

    def _translate_chunk(self, component_name, locales, items) -> Dict[str, Dict[str, str]]:
        prompt = build_translation_prompt(component_name, self.default_locale, locales, items)
        logger.debug(f"Translating {len(items)} messages of {component_name} into {', '.join(locales)}")
        data = self.llm.generate_json(prompt)
        return parse_translation_response(data, [temp_id for temp_id, _ in items], locales)


def build_translation_prompt(component_name, source_locale, locales, items) -> str:
    """Create the prompt for translating a batch of messages."""
    messages = {temp_id: text for temp_id, text in items}
    example = {items[0][0]: {locale: "..." for locale in locales}}
    return f"""You are an i18n automation tool translating the UI messages of the React component "{component_name}".

Translate each message from {source_locale} into: {", ".join(locales)}.

Rules:
1. Keep every placeholder like {{name}} exactly as written
2. Keep inline tags like <a>...</a> and translate only the text between them
3. Keep ICU plural syntax like {{count, plural, one {{...}} other {{...}}}} and translate only the inner texts
4. Do NOT invent or modify meaning
5. Do NOT add explanations or markdown

Return ONLY a JSON object mapping each message id to an object of locale code to translation, for example:
{json.dumps(example, ensure_ascii=False)}

Messages:
{json.dumps(messages, ensure_ascii=False, indent=2)}"""


def parse_translation_response(data, temp_ids, locales) -> Dict[str, Dict[str, str]]:
    """Keep only well-formed translations for the requested ids and locales."""
    if not isinstance(data, dict):
        raise LLMResponseError(f"Expected a JSON object of translations, got {type(data).__name__}")
    # Some models nest the answer under the component name.
    if len(data) == 1 and not any(temp_id in data for temp_id in temp_ids):
        nested = next(iter(data.values()))
        if isinstance(nested, dict):
            data = nested
    results: Dict[str, Dict[str, str]] = {}
    for temp_id in temp_ids:
        translations = data.get(temp_id)
        if not isinstance(translations, dict):
            continue
        valid = {locale: text for locale, text in translations.items()
                 if locale in locales and isinstance(text, str) and text.strip()}
        if valid:
            results[temp_id] = valid
    return results
