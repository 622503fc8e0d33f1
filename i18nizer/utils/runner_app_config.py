from copy import deepcopy
import json

from i18nizer.utils.globals import AiProvider, Globals


class RunnerAppConfig:
    """Options of one translate run, resolved from the config file and the command line."""

    def __init__(self):
        self.project_root = "."
        self.messages_dir = "messages"
        self.locales = ["en", "es"]
        self.default_locale = "en"
        self.provider = AiProvider.OPENAI.value
        self.model = None
        self.allowed_functions = ["alert", "confirm", "prompt"]
        self.allowed_member_functions = ["toast.error", "toast.info", "toast.success", "toast.warn"]
        self.allowed_props = ["alt", "aria-label", "aria-placeholder", "helperText", "label",
                              "placeholder", "text", "title", "tooltip"]
        self.reuse_cache = True
        self.use_ai_for_keys = True
        self.auto_inject_t = True
        self.function_name = "t"
        self.hook_name = "useTranslations"
        self.import_source = "next-intl"
        self.dry_run = False
        self.max_workers = Globals.DEFAULT_MAX_WORKERS

    @staticmethod
    def from_config_manager(config_manager) -> 'RunnerAppConfig':
        app_config = RunnerAppConfig()
        app_config.project_root = config_manager.project_root
        app_config.messages_dir = config_manager.get("messages.path", app_config.messages_dir)
        app_config.locales = list(config_manager.get("messages.locales", app_config.locales))
        app_config.default_locale = config_manager.get("messages.defaultLocale", app_config.default_locale)
        app_config.provider = config_manager.get("ai.provider", app_config.provider)
        app_config.model = config_manager.get("ai.model", app_config.model)
        app_config.allowed_functions = list(config_manager.get("behavior.allowedFunctions", app_config.allowed_functions))
        app_config.allowed_member_functions = list(
            config_manager.get("behavior.allowedMemberFunctions", app_config.allowed_member_functions))
        app_config.allowed_props = list(config_manager.get("behavior.allowedProps", app_config.allowed_props))
        app_config.reuse_cache = bool(config_manager.get("behavior.detectDuplicates", True))
        app_config.use_ai_for_keys = bool(config_manager.get("behavior.useAiForKeys", True))
        app_config.auto_inject_t = bool(config_manager.get("behavior.autoInjectT", True))
        app_config.function_name = config_manager.get("i18n.function", app_config.function_name)
        app_config.hook_name = config_manager.get("i18n.import.named", app_config.hook_name)
        app_config.import_source = config_manager.get("i18n.import.source", app_config.import_source)
        return app_config

    def set_from_args(self, args):
        if getattr(args, "locales", None):
            self.locales = [locale.strip() for locale in args.locales.split(",") if locale.strip()]
        if getattr(args, "provider", None):
            provider = AiProvider.from_value(args.provider).value
            if provider != self.provider:
                # The configured model belongs to the configured provider.
                self.model = None
            self.provider = provider
        if getattr(args, "dry_run", False):
            self.dry_run = True
        if getattr(args, "workers", None):
            self.max_workers = max(1, int(args.workers))
        if getattr(args, "no_ai_keys", False):
            self.use_ai_for_keys = False
        if getattr(args, "no_inject", False):
            self.auto_inject_t = False
        if self.default_locale not in self.locales:
            self.locales.insert(0, self.default_locale)

    @property
    def target_locales(self):
        return [locale for locale in self.locales if locale != self.default_locale]

    @staticmethod
    def from_dict(_dict):
        app_config = RunnerAppConfig()
        app_config.__dict__.update(deepcopy(_dict))
        return app_config

    def to_dict(self):
        return deepcopy(self.__dict__)

    def __eq__(self, other):
        return isinstance(other, RunnerAppConfig) and self.__dict__ == other.__dict__

    def __hash__(self):
        return hash(json.dumps(self.__dict__, sort_keys=True))
