import json
import os
import threading
import time

from i18nizer.i18n.i18n_manager import I18NManager
from i18nizer.i18n.key_suggester import LLMKeySuggester
from i18nizer.lib.llm import LLM
from i18nizer.lib.translation_service import TranslationService
from i18nizer.utils.config import ConfigManager
from i18nizer.utils.globals import AiProvider, Globals
from i18nizer.utils.logging_setup import get_logger
from i18nizer.utils.project_detector import ProjectDetector
from i18nizer.utils.runner_app_config import RunnerAppConfig
from i18nizer.utils.settings_manager import SettingsManager

logger = get_logger("run")


class Run:
    """One invocation of the translate command."""

    def __init__(self, args, project_root=None, settings_manager=None):
        self.id = str(time.time())
        self.is_complete = False
        self.is_cancelled = False
        self.args = args
        self.project_root = os.path.abspath(project_root or os.getcwd())
        self.settings_manager = settings_manager or SettingsManager()
        self.manager = None
        self.results = None
        self._progress_lock = threading.Lock()
        self._files_done = 0
        self._files_total = 0

    def build_config(self) -> RunnerAppConfig:
        config_manager = ConfigManager(self.project_root)
        config = RunnerAppConfig.from_config_manager(config_manager)
        if not config_manager.exists:
            config.messages_dir = os.path.join(Globals.USER_DIR, "messages")
            logger.info(f"No {Globals.CONFIG_FILE_NAME} found, writing messages to {config.messages_dir}")
        config.set_from_args(self.args)
        return config

    def build_llm(self, config: RunnerAppConfig):
        provider = AiProvider.from_value(config.provider)
        api_key = self.settings_manager.get_api_key(provider)
        if not api_key:
            logger.warning(f"No API key for {provider.value}. Set one with: i18nizer keys --set-{provider.value} <key>")
            return None
        return LLM(provider, api_key, model=config.model)

    def collect_paths(self):
        if getattr(self.args, "all", False):
            return ProjectDetector.find_project_components(self.project_root)
        if getattr(self.args, "file", None):
            return [os.path.abspath(self.args.file)]
        return []

    def execute(self):
        self.is_complete = False
        self.is_cancelled = False
        config = self.build_config()
        paths = self.collect_paths()
        self._files_done = 0
        self._files_total = len(paths)
        if not paths:
            logger.warning("No component files to translate")

        llm = self.build_llm(config)
        translator = TranslationService(llm, default_locale=config.default_locale) if llm else None
        key_suggester = LLMKeySuggester(llm) if llm and config.use_ai_for_keys else None
        self.manager = I18NManager(config, translator=translator, key_suggester=key_suggester)
        try:
            self.results = self.manager.manage_translations(paths, progress_callback=self.log_progress)
        except KeyboardInterrupt:
            self.cancel()
            raise

        if getattr(self.args, "show_json", False):
            for file_result in self.results.file_results:
                if file_result.messages:
                    print(json.dumps({file_result.component_name: file_result.messages},
                                     ensure_ascii=False, indent=2))
        self.is_complete = True
        return self.results

    def log_progress(self, file_result):
        with self._progress_lock:
            self._files_done += 1
            done = self._files_done
        logger.info(f"[{done}/{self._files_total}] {file_result.status.value}: {file_result.path}")

    def cancel(self):
        logger.info("Canceling...")
        self.is_cancelled = True
        if self.manager is not None:
            self.manager.cancel()


def main(args):
    run = Run(args)
    return run.execute()
