import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from i18nizer.i18n.key_generator import generate_key, is_valid_key, unique_key
from i18nizer.i18n.key_suggester import KeySuggester
from i18nizer.utils.logging_setup import get_logger
from i18nizer.utils.translation_cache import TranslationCache, normalize_text

logger = get_logger("deduplicator")


@dataclass
class KeyResolution:
    key: str
    is_cache_hit: bool = False


@dataclass
class DeduplicationStats:
    total_texts: int = 0
    unique_texts: int = 0
    cache_hits: int = 0
    suggester_called: bool = False
    suggester_returned: bool = False


class Deduplicator:
    """Assigns one key per normalized text for the lifetime of a run.

    Lookups and allocations happen under a lock shared by every file of the
    run. The key suggester is called outside the lock, at most once per
    resolve() call, with only the texts that still need a key.
    """

    def __init__(self, cache: TranslationCache):
        self.cache = cache
        self._lock = threading.Lock()
        self._run_keys: Dict[str, str] = {}
        # Keys already stored for other texts are never handed out again.
        self._used_keys = set(cache.used_keys())

    @property
    def used_keys(self) -> set:
        with self._lock:
            return set(self._used_keys)

    def _lookup(self, text: str, reuse_across_cache: bool) -> Optional[KeyResolution]:
        normalized = normalize_text(text)
        if normalized in self._run_keys:
            return KeyResolution(self._run_keys[normalized], is_cache_hit=False)
        if reuse_across_cache:
            entry = self.cache.get(text)
            if entry is not None:
                self._run_keys[normalized] = entry.key
                self._used_keys.add(entry.key)
                return KeyResolution(entry.key, is_cache_hit=True)
        return None

    def resolve(self, texts: Iterable[str], reuse_across_cache: bool = True,
                key_suggester: Optional[KeySuggester] = None) -> Dict[str, KeyResolution]:
        """Resolve a key for every text. See resolve_with_stats()."""
        resolved, _ = self.resolve_with_stats(texts, reuse_across_cache, key_suggester)
        return resolved

    def resolve_with_stats(self, texts: Iterable[str], reuse_across_cache: bool = True,
                           key_suggester: Optional[KeySuggester] = None
                           ) -> Tuple[Dict[str, KeyResolution], DeduplicationStats]:
        """Resolve a key for every text and report how the keys were found.

        Args:
            texts: Source messages, duplicates allowed
            reuse_across_cache (bool): Reuse keys already stored in the cache
            key_suggester (KeySuggester, optional): Batch source of readable keys for new texts

        Returns:
            Tuple[Dict[str, KeyResolution], DeduplicationStats]: Resolution per distinct
                input text, and the statistics of this call only
        """
        texts = list(texts)
        stats = DeduplicationStats(total_texts=len(texts), unique_texts=len(set(texts)))
        resolved: Dict[str, KeyResolution] = {}
        misses: List[str] = []
        seen_misses = set()

        with self._lock:
            for text in texts:
                if text in resolved:
                    continue
                resolution = self._lookup(text, reuse_across_cache)
                if resolution is not None:
                    resolved[text] = resolution
                    if resolution.is_cache_hit:
                        stats.cache_hits += 1
                    continue
                normalized = normalize_text(text)
                if normalized not in seen_misses:
                    seen_misses.add(normalized)
                    misses.append(text)

        suggestions: Dict[str, str] = {}
        if misses and key_suggester is not None:
            stats.suggester_called = True
            try:
                suggestions = key_suggester.suggest_keys(misses) or {}
            except Exception as e:
                logger.warning(f"Key suggestion failed, using generated keys: {e}")
                suggestions = {}
            stats.suggester_returned = len(suggestions) > 0

        with self._lock:
            for text in texts:
                if text in resolved:
                    continue
                # Another file may have allocated this text while the suggester ran.
                resolution = self._lookup(text, reuse_across_cache)
                if resolution is not None:
                    resolved[text] = resolution
                    if resolution.is_cache_hit:
                        stats.cache_hits += 1
                    continue
                suggested = suggestions.get(text)
                if suggested is not None and not is_valid_key(suggested):
                    logger.debug(f"Ignoring invalid suggested key \"{suggested}\" for \"{text}\"")
                    suggested = None
                base = suggested or generate_key(text)
                key = unique_key(base, self._used_keys)
                self._used_keys.add(key)
                self._run_keys[normalize_text(text)] = key
                resolved[text] = KeyResolution(key, is_cache_hit=False)

        logger.debug(f"Resolved {stats.unique_texts} texts, {stats.cache_hits} from cache")
        return resolved, stats
