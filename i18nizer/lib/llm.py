import json
import re
from typing import Any, Dict, List, Optional

import requests

from i18nizer.utils.globals import AiProvider
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("llm")

JSON_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```\s*$", re.DOTALL)


class LLMError(Exception):
    """Raised when a provider request fails."""


class LLMResponseError(LLMError):
    """Raised when a provider answers with something that is not the expected JSON."""


PROVIDER_SETTINGS = {
    AiProvider.OPENAI: {
        "endpoint": "https://api.openai.com/v1/chat/completions",
        "model": "gpt-4o-mini",
    },
    AiProvider.GEMINI: {
        "endpoint": "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
        "model": "gemini-2.5-flash",
    },
    AiProvider.HUGGINGFACE: {
        "endpoint": "https://router.huggingface.co/v1/chat/completions",
        "model": "deepseek-ai/DeepSeek-V3.2",
    },
}


def strip_code_fences(text: str) -> str:
    text = text.strip()
    match = JSON_FENCE_PATTERN.match(text)
    if match:
        return match.group(1).strip()
    return text


class LLM:
    """Minimal chat client for the supported providers.

    Args:
        provider (AiProvider): Which API to call
        api_key (str): Key or token for the provider
        model (str, optional): Overrides the provider's default model
        timeout (int): Request timeout in seconds
    """

    def __init__(self, provider: AiProvider, api_key: str, model: Optional[str] = None, timeout: int = 120,
                 session: Optional[requests.Session] = None):
        self.provider = AiProvider(provider)
        self.api_key = api_key
        self.model = model or PROVIDER_SETTINGS[self.provider]["model"]
        self.timeout = timeout
        self.session = session or requests.Session()

    def __str__(self):
        return f"{self.provider.value}:{self.model}"

    def _chat_request(self, prompt: str) -> Dict[str, Any]:
        endpoint = PROVIDER_SETTINGS[self.provider]["endpoint"]
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.2,
        }
        return self._post(endpoint, payload, headers)

    def _gemini_request(self, prompt: str) -> Dict[str, Any]:
        endpoint = PROVIDER_SETTINGS[self.provider]["endpoint"].format(model=self.model)
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        return self._post(endpoint, payload, headers)

    def _post(self, endpoint: str, payload: dict, headers: dict) -> Dict[str, Any]:
        logger.debug(f"Sending request to {endpoint} with model {self.model}")
        try:
            response = self.session.post(endpoint, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            details = ""
            if getattr(e, "response", None) is not None:
                details = f" (status {e.response.status_code}: {e.response.text[:200]})"
            raise LLMError(f"{self} request failed: {e}{details}") from e
        except ValueError as e:
            raise LLMResponseError(f"{self} returned a non-JSON body: {e}") from e

    def generate(self, prompt: str) -> str:
        """Send a single prompt and return the text of the first answer."""
        if not self.api_key:
            raise LLMError(f"No API key configured for {self.provider.value}")
        if self.provider == AiProvider.GEMINI:
            data = self._gemini_request(prompt)
            try:
                parts: List[dict] = data["candidates"][0]["content"]["parts"]
                return "".join(part.get("text", "") for part in parts)
            except (KeyError, IndexError, TypeError) as e:
                raise LLMResponseError(f"Unexpected response from {self}: {e}") from e
        data = self._chat_request(prompt)
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise LLMResponseError(f"Unexpected response from {self}: {e}") from e

    def generate_json(self, prompt: str) -> Any:
        """Send a prompt and parse the answer as JSON, tolerating markdown code fences.

        Raises:
            LLMResponseError: If the answer is not valid JSON
        """
        return parse_json_response(self.generate(prompt))


def parse_json_response(text: str) -> Any:
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        # Models sometimes wrap the object in prose.
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                pass
        raise LLMResponseError(f"Response is not valid JSON: {cleaned[:200]}")
