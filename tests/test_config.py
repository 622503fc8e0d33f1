import json
import os
import stat

import yaml

from i18nizer.utils.config import DEFAULT_CONFIG, ConfigManager, generate_config, merge_configs
from i18nizer.utils.globals import AiProvider, Framework, Globals, I18nLibrary
from i18nizer.utils.project_detector import ProjectDetector
from i18nizer.utils.runner_app_config import RunnerAppConfig
from i18nizer.utils.settings_manager import SettingsManager


class Args:
    def __init__(self, **kwargs):
        self.__dict__.update(kwargs)


def write_package_json(path, dependencies=None, dev_dependencies=None):
    package = {"name": "demo", "dependencies": dependencies or {}, "devDependencies": dev_dependencies or {}}
    (path / "package.json").write_text(json.dumps(package), encoding="utf-8")


class TestMergeConfigs:
    def test_nested_values_override(self):
        merged = merge_configs(DEFAULT_CONFIG, {"messages": {"locales": ["en", "fr"]}})
        assert merged["messages"]["locales"] == ["en", "fr"]
        assert merged["messages"]["defaultLocale"] == "en"
        assert DEFAULT_CONFIG["messages"]["locales"] == ["en", "es"]

    def test_generate_config_for_next(self):
        config = generate_config(Framework.NEXTJS, I18nLibrary.NEXT_INTL)
        assert config["framework"] == "nextjs"
        assert config["i18n"]["import"] == {"named": "useTranslations", "source": "next-intl"}
        assert config["paths"]["src"] == "app"

    def test_generate_config_for_react(self):
        config = generate_config(Framework.REACT)
        assert config["i18n"]["import"]["named"] == "useTranslation"
        assert config["paths"]["src"] == "src"


class TestConfigManager:
    def test_defaults_without_file(self, tmp_path):
        manager = ConfigManager(str(tmp_path))
        assert not manager.exists
        assert manager.get("messages.defaultLocale") == "en"
        assert manager.get("missing.key", "fallback") == "fallback"

    def test_user_values_merge_over_defaults(self, tmp_path):
        (tmp_path / Globals.CONFIG_FILE_NAME).write_text(
            "messages:\n  locales:\n    - en\n    - de\n", encoding="utf-8")
        manager = ConfigManager(str(tmp_path))
        assert manager.exists
        assert manager.get("messages.locales") == ["en", "de"]
        assert manager.get("messages.path") == "messages"

    def test_invalid_yaml_uses_defaults(self, tmp_path):
        (tmp_path / Globals.CONFIG_FILE_NAME).write_text("messages: [unclosed\n", encoding="utf-8")
        assert ConfigManager(str(tmp_path)).get("messages.locales") == ["en", "es"]

    def test_set_and_save_keeps_comments(self, tmp_path):
        config_path = tmp_path / Globals.CONFIG_FILE_NAME
        config_path.write_text(
            "# project translation settings\n"
            "messages:\n"
            "  path: 'locales'\n",
            encoding="utf-8",
        )
        manager = ConfigManager(str(tmp_path))
        assert manager.set("messages.defaultLocale", "fr", save=True)

        content = config_path.read_text(encoding="utf-8")
        assert "# project translation settings" in content
        assert "'locales'" in content
        assert yaml.safe_load(content)["messages"] == {"path": "locales", "defaultLocale": "fr"}
        assert ConfigManager(str(tmp_path)).get("messages.defaultLocale") == "fr"

    def test_save_new_config(self, tmp_path):
        manager = ConfigManager(str(tmp_path))
        assert manager.save(generate_config(Framework.REACT))
        assert manager.exists
        assert manager.get("i18n.import.source") == "react-i18next"

    def test_ensure_in_gitignore(self, tmp_path):
        manager = ConfigManager(str(tmp_path))
        assert not manager.ensure_in_gitignore()

        manager.save({"framework": "react"})
        (tmp_path / ".gitignore").write_text("node_modules", encoding="utf-8")
        assert manager.ensure_in_gitignore()
        assert not manager.ensure_in_gitignore()
        assert (tmp_path / ".gitignore").read_text(encoding="utf-8") == f"node_modules\n{Globals.CONFIG_FILE_NAME}\n"


class TestProjectDetector:
    def test_detects_next_and_next_intl(self, tmp_path):
        write_package_json(tmp_path, {"next": "14.0.0", "next-intl": "3.0.0", "react-i18next": "13.0.0"})
        assert ProjectDetector.detect_framework(str(tmp_path)) == Framework.NEXTJS
        assert ProjectDetector.detect_i18n_library(str(tmp_path)) == I18nLibrary.NEXT_INTL

    def test_detects_react_with_dev_dependency(self, tmp_path):
        write_package_json(tmp_path, {"react": "18.0.0"}, {"i18next": "23.0.0"})
        assert ProjectDetector.detect_framework(str(tmp_path)) == Framework.REACT
        assert ProjectDetector.detect_i18n_library(str(tmp_path)) == I18nLibrary.I18NEXT

    def test_without_package_json(self, tmp_path):
        assert ProjectDetector.detect_framework(str(tmp_path)) == Framework.REACT
        assert ProjectDetector.detect_i18n_library(str(tmp_path)) is None

    def test_find_project_components(self, tmp_path):
        for relative in ("src/App.tsx", "src/ui/Button.jsx", "src/util.ts", "app/page.tsx",
                         "src/node_modules/lib/Index.tsx", "src/.cache/Hidden.tsx", "other/Skip.tsx"):
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("", encoding="utf-8")

        found = ProjectDetector.find_project_components(str(tmp_path))
        relative_paths = sorted(os.path.relpath(p, tmp_path).replace(os.sep, "/") for p in found)
        assert relative_paths == ["app/page.tsx", "src/App.tsx", "src/ui/Button.jsx"]


class TestSettingsManager:
    def test_set_and_get_api_key(self, tmp_path, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        settings = SettingsManager(str(tmp_path / "settings"))
        assert settings.get_api_key(AiProvider.OPENAI) is None

        assert settings.set_api_key(AiProvider.OPENAI, " sk-1234567890abcd \n")
        assert settings.get_api_key(AiProvider.OPENAI) == "sk-1234567890abcd"
        if os.name == "posix":
            assert stat.S_IMODE(os.stat(settings.api_keys_file).st_mode) == 0o600

    def test_environment_fallback(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HF_TOKEN", "hf_from_env")
        settings = SettingsManager(str(tmp_path))
        assert settings.get_api_key(AiProvider.HUGGINGFACE) == "hf_from_env"

    def test_masked_keys(self, tmp_path, monkeypatch):
        for provider in AiProvider:
            monkeypatch.delenv(provider.env_var, raising=False)
        settings = SettingsManager(str(tmp_path))
        settings.set_api_key(AiProvider.OPENAI, "sk-1234567890abcd")
        settings.set_api_key(AiProvider.GEMINI, "short")
        assert settings.masked_keys() == {
            "gemini": "*****",
            "huggingface": "not set",
            "openai": "sk-1...abcd",
        }


class TestRunnerAppConfig:
    def test_from_config_manager(self, tmp_path):
        (tmp_path / Globals.CONFIG_FILE_NAME).write_text(
            "ai:\n  provider: gemini\n"
            "behavior:\n  useAiForKeys: false\n  allowedProps: [title]\n"
            "i18n:\n  import:\n    named: useTranslation\n    source: react-i18next\n",
            encoding="utf-8",
        )
        config = RunnerAppConfig.from_config_manager(ConfigManager(str(tmp_path)))
        assert config.provider == "gemini"
        assert config.use_ai_for_keys is False
        assert config.allowed_props == ["title"]
        assert config.hook_name == "useTranslation"
        assert config.import_source == "react-i18next"

    def test_set_from_args(self):
        config = RunnerAppConfig()
        config.model = "gpt-4o"
        config.set_from_args(Args(locales="es, fr", provider="hf", dry_run=True, workers=0,
                                  no_ai_keys=True, no_inject=False))
        assert config.locales == ["en", "es", "fr"]
        assert config.target_locales == ["es", "fr"]
        assert config.provider == "huggingface"
        assert config.model is None
        assert config.dry_run
        assert config.use_ai_for_keys is False
        assert config.auto_inject_t is True

    def test_workers_are_at_least_one(self):
        config = RunnerAppConfig()
        config.set_from_args(Args(workers=-3))
        assert config.max_workers == 1

    def test_dict_round_trip(self):
        config = RunnerAppConfig()
        config.locales = ["en", "ja"]
        copy = RunnerAppConfig.from_dict(config.to_dict())
        assert copy == config
        assert hash(copy) == hash(config)
        copy.locales.append("ko")
        assert config.locales == ["en", "ja"]
