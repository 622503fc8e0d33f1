import copy
import os
from typing import Any, Optional

import yaml
from ruamel.yaml import YAML

from i18nizer.utils.globals import Framework, Globals, I18nLibrary
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("config")

DEFAULT_CONFIG = {
    "framework": Framework.REACT.value,
    "ai": {
        "provider": "openai",
        "model": "gpt-4o-mini",
    },
    "behavior": {
        "allowedFunctions": ["alert", "confirm", "prompt"],
        "allowedMemberFunctions": ["toast.error", "toast.info", "toast.success", "toast.warn"],
        "allowedProps": [
            "alt",
            "aria-label",
            "aria-placeholder",
            "helperText",
            "label",
            "placeholder",
            "text",
            "title",
            "tooltip",
        ],
        "autoInjectT": True,
        "detectDuplicates": True,
        "opinionatedStructure": True,
        "useAiForKeys": True,
    },
    "i18n": {
        "function": "t",
        "import": {
            "named": "useTranslations",
            "source": "next-intl",
        },
    },
    "messages": {
        "defaultLocale": "en",
        "format": "json",
        "locales": ["en", "es"],
        "path": "messages",
    },
    "paths": {
        "src": "src",
        "i18n": "i18n",
    },
}

FRAMEWORK_PRESETS = {
    Framework.CUSTOM: {},
    Framework.NEXTJS: {
        "framework": Framework.NEXTJS.value,
        "i18n": {"function": "t", "import": {"named": "useTranslations", "source": "next-intl"}},
        "i18nLibrary": I18nLibrary.NEXT_INTL.value,
    },
    Framework.REACT: {
        "framework": Framework.REACT.value,
        "i18n": {"function": "t", "import": {"named": "useTranslation", "source": "react-i18next"}},
        "i18nLibrary": I18nLibrary.REACT_I18NEXT.value,
    },
}

I18N_LIBRARY_PRESETS = {
    I18nLibrary.CUSTOM: {
        "i18n": {"function": "t", "import": {"named": "useTranslations", "source": "next-intl"}},
        "i18nLibrary": I18nLibrary.CUSTOM.value,
    },
    I18nLibrary.I18NEXT: {
        "i18n": {"function": "t", "import": {"named": "useTranslation", "source": "react-i18next"}},
        "i18nLibrary": I18nLibrary.I18NEXT.value,
    },
    I18nLibrary.NEXT_INTL: {
        "i18n": {"function": "t", "import": {"named": "useTranslations", "source": "next-intl"}},
        "i18nLibrary": I18nLibrary.NEXT_INTL.value,
    },
    I18nLibrary.REACT_I18NEXT: {
        "i18n": {"function": "t", "import": {"named": "useTranslation", "source": "react-i18next"}},
        "i18nLibrary": I18nLibrary.REACT_I18NEXT.value,
    },
}


def merge_configs(default, user):
    """Recursively merge user config with default config."""
    merged = copy.deepcopy(default)
    for key, value in user.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def generate_config(framework: Framework = Framework.REACT, i18n_library: Optional[I18nLibrary] = None) -> dict:
    """Build a full config from the defaults and the presets for a framework and i18n library."""
    config = merge_configs(DEFAULT_CONFIG, FRAMEWORK_PRESETS[framework])
    if i18n_library is not None:
        config = merge_configs(config, I18N_LIBRARY_PRESETS[i18n_library])
    if framework == Framework.NEXTJS:
        config["paths"]["src"] = "app"
    return config


class ConfigManager:
    def __init__(self, project_root: Optional[str] = None):
        self.project_root = project_root or os.getcwd()
        self.config_path = os.path.join(self.project_root, Globals.CONFIG_FILE_NAME)
        self.user_config = {}
        self.config = self.load_config()

    @property
    def exists(self) -> bool:
        return os.path.isfile(self.config_path)

    def load_config(self) -> dict:
        """Load i18nizer.config.yml, merging it over the defaults."""
        self.user_config = {}
        if os.path.isfile(self.config_path):
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
                if isinstance(loaded, dict):
                    self.user_config = loaded
                elif loaded is not None:
                    logger.warning(f"Ignoring config at {self.config_path}: top level is not a mapping")
            except yaml.YAMLError as e:
                logger.error(f"Could not parse config {self.config_path}: {e}")
        return merge_configs(DEFAULT_CONFIG, self.user_config)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation."""
        try:
            value = self.config
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any, save: bool = False):
        """Set a configuration value using dot notation."""
        for target in (self.config, self.user_config):
            keys = key.split('.')
            current = target
            for k in keys[:-1]:
                if k not in current or not isinstance(current[k], dict):
                    current[k] = {}
                current = current[k]
            current[keys[-1]] = copy.deepcopy(value)
        if save:
            return self.save()
        return True

    def save(self, config: Optional[dict] = None) -> bool:
        """Write the config file, keeping comments and quoting of an existing file.

        Args:
            config (dict, optional): Values to write. Defaults to the values set on this manager.

        Returns:
            bool: True if the file was written
        """
        data = config if config is not None else self.user_config
        ruamel_yaml = YAML()
        ruamel_yaml.preserve_quotes = True
        ruamel_yaml.indent(mapping=2, sequence=4, offset=2)
        try:
            document = None
            if os.path.isfile(self.config_path):
                with open(self.config_path, "r", encoding="utf-8") as f:
                    document = ruamel_yaml.load(f)
            if document is None:
                document = data
            else:
                _update_document(document, data)
            with open(self.config_path, "w", encoding="utf-8") as f:
                ruamel_yaml.dump(document, f)
            self.config = self.load_config()
            return True
        except Exception as e:
            logger.error(f"Error saving config {self.config_path}: {e}")
            return False

    def ensure_in_gitignore(self) -> bool:
        """Add the config file name to the project's .gitignore. Returns True if it was added."""
        if not self.exists:
            return False
        gitignore_path = os.path.join(self.project_root, ".gitignore")
        content = ""
        if os.path.exists(gitignore_path):
            with open(gitignore_path, "r", encoding="utf-8") as f:
                content = f.read()
        name = Globals.CONFIG_FILE_NAME
        if any(line.strip() in (name, f"/{name}", f"**/{name}") for line in content.splitlines()):
            return False
        if content and not content.endswith("\n"):
            content += "\n"
        with open(gitignore_path, "w", encoding="utf-8") as f:
            f.write(content + name + "\n")
        return True


def _update_document(document, data):
    """Recursively copy values into a round-trip document without replacing its mappings."""
    for key, value in data.items():
        if key in document and isinstance(document[key], dict) and isinstance(value, dict):
            _update_document(document[key], value)
        elif key not in document or document[key] != value:
            document[key] = value
