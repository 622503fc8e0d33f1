from enum import Enum
import os


class Globals:
    HOME = os.path.expanduser("~")
    APP_DIR_NAME = ".i18nizer"
    USER_DIR = os.path.join(HOME, APP_DIR_NAME)
    CONFIG_FILE_NAME = "i18nizer.config.yml"
    DEFAULT_MAX_WORKERS = 4
    SKIP_DIRECTORIES = ("node_modules", "dist", "build", ".next", "coverage")
    COMPONENT_EXTENSIONS = (".tsx", ".jsx")
    PROJECT_SOURCE_DIRECTORIES = ("src", "app", "pages", "components", "lib", "features", "modules")

    @staticmethod
    def project_dir_for(project_root: str) -> str:
        return os.path.join(project_root, Globals.APP_DIR_NAME)


class Framework(Enum):
    CUSTOM = "custom"
    NEXTJS = "nextjs"
    REACT = "react"


class I18nLibrary(Enum):
    CUSTOM = "custom"
    I18NEXT = "i18next"
    NEXT_INTL = "next-intl"
    REACT_I18NEXT = "react-i18next"


class AiProvider(Enum):
    GEMINI = "gemini"
    HUGGINGFACE = "huggingface"
    OPENAI = "openai"

    @property
    def env_var(self) -> str:
        if self == AiProvider.GEMINI:
            return "GEMINI_API_KEY"
        elif self == AiProvider.HUGGINGFACE:
            return "HF_TOKEN"
        return "OPENAI_API_KEY"

    @classmethod
    def from_value(cls, value: str) -> 'AiProvider':
        """Accept provider names case-insensitively, plus the "hf" shorthand."""
        normalized = (value or "").strip().lower()
        if normalized == "hf":
            return cls.HUGGINGFACE
        return cls(normalized)

