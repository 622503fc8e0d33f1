import json
import os
from typing import List, Optional, Sequence

from i18nizer.utils.globals import Framework, Globals, I18nLibrary
from i18nizer.utils.logging_setup import get_logger

logger = get_logger("project_detector")


class ProjectDetector:
    """Detects the framework, i18n library and component files of a JavaScript project."""

    @staticmethod
    def _read_dependencies(project_path: str) -> dict:
        package_json = os.path.join(project_path, "package.json")
        if not os.path.isfile(package_json):
            return {}
        try:
            with open(package_json, "r", encoding="utf-8") as f:
                package = json.load(f)
        except Exception as e:
            logger.warning(f"Could not read {package_json}: {e}")
            return {}
        dependencies = {}
        for section in ("dependencies", "devDependencies", "peerDependencies"):
            dependencies.update(package.get(section) or {})
        return dependencies

    @staticmethod
    def detect_framework(project_path: str) -> Framework:
        """Detect the framework from package.json.

        Args:
            project_path (str): Path to the project directory

        Returns:
            Framework: NEXTJS if next is a dependency, otherwise REACT
        """
        dependencies = ProjectDetector._read_dependencies(project_path)
        if "next" in dependencies:
            logger.info(f"Detected Next.js project: {project_path}")
            return Framework.NEXTJS
        return Framework.REACT

    @staticmethod
    def detect_i18n_library(project_path: str) -> Optional[I18nLibrary]:
        dependencies = ProjectDetector._read_dependencies(project_path)
        for library in (I18nLibrary.NEXT_INTL, I18nLibrary.REACT_I18NEXT, I18nLibrary.I18NEXT):
            if library.value in dependencies:
                logger.info(f"Detected i18n library {library.value}")
                return library
        return None

    @staticmethod
    def find_component_files(directory: str, extensions: Sequence[str] = Globals.COMPONENT_EXTENSIONS) -> List[str]:
        """Recursively find component files, skipping build output and hidden directories.

        Args:
            directory (str): Directory to search
            extensions (Sequence[str]): File extensions to include

        Returns:
            List[str]: Sorted file paths
        """
        if not os.path.isdir(directory):
            return []
        found = []
        for root, dirs, files in os.walk(directory):
            dirs[:] = [d for d in dirs if not d.startswith(".") and d not in Globals.SKIP_DIRECTORIES]
            for filename in files:
                if filename.endswith(tuple(extensions)):
                    found.append(os.path.join(root, filename))
        return sorted(found)

    @staticmethod
    def find_project_components(project_path: str,
                                extensions: Sequence[str] = Globals.COMPONENT_EXTENSIONS) -> List[str]:
        found = []
        for source_dir in Globals.PROJECT_SOURCE_DIRECTORIES:
            found.extend(ProjectDetector.find_component_files(os.path.join(project_path, source_dir), extensions))
        logger.debug(f"Found {len(found)} component files in {project_path}")
        return sorted(set(found))
