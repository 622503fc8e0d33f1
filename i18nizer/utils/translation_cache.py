import hashlib
import json
import os
import shutil
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from i18nizer.utils.logging_setup import get_logger

logger = get_logger("translation_cache")


def normalize_text(text: str) -> str:
    return text.strip().lower()


def text_hash(text: str) -> str:
    """Hash of the normalized text, used as the cache identity of a message."""
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    text: str
    key: str
    component_name: str = ""
    locales: Dict[str, str] = field(default_factory=dict)
    hash: str = ""

    def __post_init__(self):
        if not self.hash:
            self.hash = text_hash(self.text)

    def to_dict(self) -> dict:
        return {
            "hash": self.hash,
            "key": self.key,
            "text": self.text,
            "componentName": self.component_name,
            "translations": dict(self.locales),
        }

    @staticmethod
    def from_dict(_dict: dict) -> 'CacheEntry':
        return CacheEntry(
            text=_dict["text"],
            key=_dict["key"],
            component_name=_dict.get("componentName", ""),
            locales=dict(_dict.get("translations", {})),
            hash=_dict.get("hash", ""),
        )

    def has_locales(self, locales) -> bool:
        return all(locale in self.locales for locale in locales)


class TranslationCache:
    """Persistent store of text -> key assignments and their translations.

    Entries are keyed by the hash of the normalized text. A key, once stored
    for a text, is never changed by set(). The file is written only by
    store(), which callers invoke once per run.
    """
    CACHE_DIR_NAME = "cache"
    CACHE_FILE_NAME = "translations.json"
    NUM_BACKUPS = 3

    def __init__(self, project_dir: str, load: bool = True):
        self.json_loc = os.path.join(project_dir, ".i18nizer", self.CACHE_DIR_NAME, self.CACHE_FILE_NAME)
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._dirty = False
        if load:
            self.load()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def get(self, text: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(text_hash(text))

    def has(self, text: str) -> bool:
        with self._lock:
            return text_hash(text) in self._entries

    def set(self, text: str, key: str, component_name: str = "", locales: Optional[Dict[str, str]] = None) -> CacheEntry:
        """Record a key and translations for a text.

        Translations are merged into an existing entry. The key of an existing
        entry is kept even if a different key is passed.

        Args:
            text (str): The source message
            key (str): The key assigned to the message
            component_name (str): The component the message was first seen in
            locales (dict, optional): Locale code to translated text

        Returns:
            CacheEntry: The stored entry
        """
        with self._lock:
            entry_hash = text_hash(text)
            existing = self._entries.get(entry_hash)
            if existing is not None:
                if existing.key != key:
                    logger.warning(f"Keeping cached key \"{existing.key}\" for text \"{text}\" (ignored \"{key}\")")
                if locales and any(existing.locales.get(k) != v for k, v in locales.items()):
                    existing.locales.update(locales)
                    self._dirty = True
                return existing
            entry = CacheEntry(text=text, key=key, component_name=component_name,
                               locales=dict(locales or {}), hash=entry_hash)
            self._entries[entry_hash] = entry
            self._dirty = True
            return entry

    def get_all(self) -> List[CacheEntry]:
        with self._lock:
            return list(self._entries.values())

    def used_keys(self) -> set:
        with self._lock:
            return {entry.key for entry in self._entries.values()}

    def find_shared_keys(self) -> Dict[str, List[CacheEntry]]:
        """Keys that are stored for more than one distinct text."""
        with self._lock:
            by_key: Dict[str, List[CacheEntry]] = {}
            for entry in self._entries.values():
                by_key.setdefault(entry.key, []).append(entry)
            return {key: entries for key, entries in by_key.items() if len(entries) > 1}

    def clear(self):
        with self._lock:
            self._entries = {}
            self._dirty = True

    def store(self):
        with self._lock:
            data = {entry_hash: entry.to_dict() for entry_hash, entry in self._entries.items()}
            try:
                os.makedirs(os.path.dirname(self.json_loc), exist_ok=True)
                if os.path.exists(self.json_loc):
                    self._rotate_backups()
                temp_path = self.json_loc + ".tmp"
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(temp_path, self.json_loc)
                self._dirty = False
                logger.info(f"Stored {len(data)} cache entries to {self.json_loc}")
            except Exception as e:
                logger.error(f"Error storing cache: {e}")
                raise e

    def load(self):
        """Load entries from disk, falling back to backups if the main file is unreadable.

        If every existing file fails to load the store starts empty.
        """
        with self._lock:
            cache_paths = [self.json_loc] + self._get_backup_paths()
            if not any(os.path.exists(path) for path in cache_paths):
                logger.debug(f"No cache file found at {self.json_loc}, starting with an empty cache")
                return

            for path in cache_paths:
                if not os.path.exists(path):
                    continue
                try:
                    with open(path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                    if not isinstance(data, dict):
                        raise ValueError("cache root is not an object")
                    self._entries = {}
                    for entry_hash, entry_data in data.items():
                        entry = CacheEntry.from_dict(entry_data)
                        self._entries[entry.hash or entry_hash] = entry
                    if path == self.json_loc:
                        logger.debug(f"Loaded {len(self._entries)} cache entries from {path}")
                    else:
                        logger.warning(f"Loaded cache from backup: {path}")
                    return
                except Exception as e:
                    logger.error(f"Failed to load cache from {path}: {e}")
                    continue
            logger.error(f"Failed to load cache from all locations: {cache_paths}, starting with an empty cache")
            self._entries = {}

    def _get_backup_paths(self) -> List[str]:
        """Get list of backup file paths in order of preference"""
        backup_paths = []
        for i in range(1, self.NUM_BACKUPS + 1):
            index = "" if i == 1 else f"{i}"
            backup_paths.append(f"{self.json_loc}.bak{index}")
        return backup_paths

    def _rotate_backups(self) -> int:
        """Shift each backup one position back and copy the current file into the first slot."""
        backup_paths = self._get_backup_paths()
        rotated_count = 0
        if os.path.exists(backup_paths[-1]):
            os.remove(backup_paths[-1])
        for i in range(len(backup_paths) - 1, 0, -1):
            if os.path.exists(backup_paths[i - 1]):
                shutil.copy2(backup_paths[i - 1], backup_paths[i])
                rotated_count += 1
        shutil.copy2(self.json_loc, backup_paths[0])
        return rotated_count
