import json
import os
from pathlib import Path
from typing import Dict, Optional

from i18nizer.utils.globals import AiProvider, Globals
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("settings_manager")


class SettingsManager:
    """Stores provider API keys in the user's i18nizer directory."""

    def __init__(self, settings_dir: Optional[str] = None):
        self.settings_dir = Path(settings_dir or Globals.USER_DIR)
        self.api_keys_file = self.settings_dir / 'api-keys.json'

    def _load_api_keys(self) -> Dict[str, str]:
        if not self.api_keys_file.exists():
            return {}
        try:
            with open(self.api_keys_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except Exception as e:
            logger.error(f"Error loading API keys from {self.api_keys_file}: {e}")
            return {}

    def get_api_key(self, provider: AiProvider) -> Optional[str]:
        """Get the API key for a provider.

        Args:
            provider (AiProvider): The provider

        Returns:
            str: The stored key, else the provider's environment variable, else None
        """
        stored = self._load_api_keys().get(provider.value)
        if stored:
            return stored
        return os.environ.get(provider.env_var) or None

    def set_api_key(self, provider: AiProvider, api_key: str) -> bool:
        """Save an API key for a provider.

        Returns:
            bool: True if saved successfully, False otherwise
        """
        keys = self._load_api_keys()
        keys[provider.value] = api_key.strip()
        try:
            self.settings_dir.mkdir(parents=True, exist_ok=True)
            with open(self.api_keys_file, 'w', encoding='utf-8') as f:
                json.dump(keys, f, indent=2)
            os.chmod(self.api_keys_file, 0o600)
            return True
        except Exception as e:
            logger.error(f"Error saving API key: {e}")
            return False

    def masked_keys(self) -> Dict[str, str]:
        masked = {}
        for provider in AiProvider:
            key = self.get_api_key(provider)
            if not key:
                masked[provider.value] = "not set"
            elif len(key) <= 8:
                masked[provider.value] = "*" * len(key)
            else:
                masked[provider.value] = f"{key[:4]}...{key[-4:]}"
        return masked
