import os
import tempfile
import threading
from typing import Dict, List, Optional

from i18nizer.i18n.deduplicator import Deduplicator, KeyResolution
from i18nizer.i18n.jsx.candidate_span import CandidateSpan
from i18nizer.i18n.jsx.classifier import Classifier, ExtractOptions
from i18nizer.i18n.jsx.component_binding import insert_translation_binding
from i18nizer.i18n.jsx.rewriter import rewrite
from i18nizer.i18n.jsx.syntax_tree import ParseError, parse_source
from i18nizer.i18n.key_suggester import KeySuggester
from i18nizer.i18n.locale_file_writer import write_locale_files
from i18nizer.i18n.translation_manager_results import (
    FileResult, FileStatus, TranslationAction, TranslationManagerResults,
)
from i18nizer.utils.logging_setup import get_logger
from i18nizer.utils.runner_app_config import RunnerAppConfig
from i18nizer.utils.translation_cache import TranslationCache
from i18nizer.workers.translation_worker import TranslationWorker

logger = get_logger("i18n_manager")


class MissingTranslationError(Exception):
    """Raised when the translation step returns nothing for a span or locale."""


def component_name_for(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]


def write_source_atomically(path: str, content: str):
    directory = os.path.dirname(os.path.abspath(path))
    fd, temp_path = tempfile.mkstemp(prefix=".i18nizer-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        if os.path.exists(path):
            os.chmod(temp_path, os.stat(path).st_mode & 0o7777)
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise


class I18NManager:
    """Runs the extract, key, translate and rewrite pipeline over component files.

    One manager is shared by all worker threads of a run. It owns the
    deduplicator and the cache, and flushes the cache once at the end of
    manage_translations().
    """

    def __init__(self, config: RunnerAppConfig, cache: Optional[TranslationCache] = None,
                 translator=None, key_suggester: Optional[KeySuggester] = None):
        """Initialize the manager.

        Args:
            config (RunnerAppConfig): Resolved options for the run
            cache (TranslationCache, optional): Key store. Loaded from the project if not given.
            translator: Object with translate_batch(component_name, locales, items)
            key_suggester (KeySuggester, optional): Used when config.use_ai_for_keys is set
        """
        self.config = config
        self.cache = cache if cache is not None else TranslationCache(config.project_root)
        self.deduplicator = Deduplicator(self.cache)
        self.translator = translator
        self.key_suggester = key_suggester
        self.extract_options = ExtractOptions.from_config(config)
        self.messages_dir = os.path.join(config.project_root, config.messages_dir)
        self.is_cancelled = False
        self._write_lock = threading.Lock()

    def cancel(self):
        self.is_cancelled = True

    def extract_spans(self, path: str) -> List[CandidateSpan]:
        """Classify a file without modifying anything.

        Raises:
            ParseError: If the file does not parse
        """
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
        tree = parse_source(source, path)
        return Classifier(self.extract_options).classify(tree)

    def _locale_table(self, component_name: str, spans: List[CandidateSpan],
                      resolutions: Dict[str, KeyResolution]) -> Dict[str, Dict[str, str]]:
        """Build key -> locale -> message for a file, translating what the cache does not cover."""
        default_locale = self.config.default_locale
        target_locales = self.config.target_locales
        table: Dict[str, Dict[str, str]] = {}
        pending: Dict[str, tuple] = {}

        for span in spans:
            key = resolutions[span.source_text].key
            if key in table:
                continue
            table[key] = {default_locale: span.source_text}
            if not target_locales:
                continue
            entry = self.cache.get(span.source_text) if self.config.reuse_cache else None
            if entry is not None and entry.has_locales(target_locales):
                for locale in target_locales:
                    table[key][locale] = entry.locales[locale]
            else:
                pending[span.temp_id] = (key, span.source_text)

        if not pending:
            return table
        if self.translator is None:
            raise MissingTranslationError(f"No translator configured for {len(pending)} new texts")

        items = [(temp_id, text) for temp_id, (_, text) in pending.items()]
        translated = self.translator.translate_batch(component_name, target_locales, items)
        for temp_id, (key, text) in pending.items():
            translations = translated.get(temp_id)
            if not translations:
                raise MissingTranslationError(f"No translation returned for \"{text}\"")
            missing = [locale for locale in target_locales if locale not in translations]
            if missing:
                raise MissingTranslationError(f"Missing {', '.join(missing)} translation for \"{text}\"")
            for locale in target_locales:
                table[key][locale] = translations[locale]
        return table

    def process_file(self, path: str) -> FileResult:
        """Run the whole pipeline for one file.

        The source file and locale files are written only if every step
        succeeded and this is not a dry run.

        Args:
            path (str): Path to a component file

        Returns:
            FileResult: The outcome, never raises for per-file problems
        """
        component_name = component_name_for(path)
        result = FileResult(path=path, status=FileStatus.FAILED, component_name=component_name)
        if self.is_cancelled:
            result.status = FileStatus.SKIPPED
            result.message = "cancelled"
            return result

        try:
            with open(path, "r", encoding="utf-8") as f:
                source = f.read()
            tree = parse_source(source, path)
        except ParseError as e:
            logger.warning(f"Skipping {path}: {e}")
            result.status = FileStatus.SKIPPED
            result.message = str(e)
            return result
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read {path}: {e}")
            result.message = str(e)
            return result

        spans = Classifier(self.extract_options).classify(tree)
        if not spans:
            logger.info(f"No translatable texts in {path}")
            result.status = FileStatus.NO_TEXTS
            return result
        result.spans = len(spans)

        try:
            suggester = self.key_suggester if self.config.use_ai_for_keys else None
            resolutions, result.key_stats = self.deduplicator.resolve_with_stats(
                [span.source_text for span in spans],
                reuse_across_cache=self.config.reuse_cache,
                key_suggester=suggester,
            )
            keys = {text: resolution.key for text, resolution in resolutions.items()}
            result.keys = keys
            result.reused_keys = sum(1 for r in resolutions.values() if r.is_cache_hit)
            result.new_keys = len(resolutions) - result.reused_keys

            table = self._locale_table(component_name, spans, resolutions)
            result.messages = table

            if self.config.auto_inject_t:
                insert_translation_binding(
                    tree,
                    namespace=component_name,
                    hook_name=self.config.hook_name,
                    import_source=self.config.import_source,
                    function_name=self.config.function_name,
                    component_name=component_name,
                )
            rewrite(tree, spans, keys, self.config.function_name)
            output = tree.serialize()
            try:
                parse_source(output, path)
            except ParseError as e:
                raise ParseError(f"rewritten output does not parse ({e})", path=path) from e

            if not self.config.dry_run:
                with self._write_lock:
                    result.written_files = write_locale_files(
                        component_name, table, self.config.locales, self.messages_dir)
                    write_source_atomically(path, output)
                for text, key in keys.items():
                    self.cache.set(text, key, component_name, locales=table.get(key))
        except Exception as e:
            logger.error(f"Failed to process {path}: {e}")
            logger.debug("Failure details", exc_info=True)
            result.status = FileStatus.FAILED
            result.message = str(e)
            return result

        result.status = FileStatus.SUCCESS
        logger.info(f"Processed {path}: {result.spans} texts, {result.new_keys} new keys")
        return result

    def manage_translations(self, paths: List[str], progress_callback=None) -> TranslationManagerResults:
        """Process files on the worker pool and store the cache once at the end.

        Args:
            paths (List[str]): Component files to process
            progress_callback (callable, optional): Called with each FileResult as it finishes

        Returns:
            TranslationManagerResults: Per-file results and overall status
        """
        results = TranslationManagerResults.create(
            self.config.project_root, TranslationAction.TRANSLATE,
            locales=self.config.locales, dry_run=self.config.dry_run)
        worker = TranslationWorker(self, max_workers=self.config.max_workers, progress_callback=progress_callback)
        for file_result in worker.run(paths):
            results.add(file_result)

        if not self.config.dry_run and self.cache.is_dirty:
            try:
                self.cache.store()
                results.cache_stored = True
            except Exception as e:
                results.extend_error_message(f"Could not store cache: {e}")
        results.determine_action_successful()
        return results
