"""Worker pool for processing component files."""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from i18nizer.utils.logging_setup import get_logger

logger = get_logger("translation_worker")


class TranslationWorker:
    """Runs I18NManager.process_file over many files on a thread pool.

    Results come back in the order of the input paths, whatever order the
    files finish in.
    """

    def __init__(self, manager, max_workers: int = 4, progress_callback: Optional[Callable] = None):
        self.manager = manager
        self.max_workers = max(1, max_workers)
        self.progress_callback = progress_callback
        logger.debug(f"Initialized TranslationWorker with {self.max_workers} workers")

    def _process(self, path):
        result = self.manager.process_file(path)
        if self.progress_callback is not None:
            self.progress_callback(result)
        return result

    def run(self, paths: List[str]) -> List:
        if not paths:
            return []
        if self.max_workers == 1 or len(paths) == 1:
            return [self._process(path) for path in paths]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._process, path) for path in paths]
            return [future.result() for future in futures]
