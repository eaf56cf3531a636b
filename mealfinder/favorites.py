"""
Favorite meals persisted through an injected key-value store.

The search core never reasons about favorites; the view layer toggles meal ids
and reads them back. Storage is injected so the same FavoritesStore works over
an in-memory dict in tests and a JSON file for the running service.

The favorites set is stored under a single key (FAVORITES_KEY) as a JSON list of
meal ids. A missing or unparseable value is read as an empty set; every change
writes the full list back.

Note: JsonFileKeyValueStore is a process-local, single-file implementation
suitable for one user. It is not meant for concurrent writers.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

FAVORITES_KEY = "ri:favorites"


class KeyValueStore(ABC):
    """Minimal durable key-value capability: get(key) -> value?, set(key, value)."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store, used in tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore(KeyValueStore):
    """
    Store backed by a single JSON object file ({key: value, ...}).

    A missing or corrupt file reads as empty; the file (and its parent
    directory) is created on the first write.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Could not read key-value file %s, treating as empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)


class FavoritesStore:
    """
    Set of favorite meal ids, in the order they were added.

    Args:
        store: Key-value store to persist into
        key: Storage key (default: FAVORITES_KEY)
    """

    def __init__(self, store: KeyValueStore, key: str = FAVORITES_KEY) -> None:
        self.store = store
        self.key = key
        self._lock = threading.Lock()
        self._ids: List[str] = self._load()

    def _load(self) -> List[str]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Favorites payload under %r is not valid JSON, starting empty", self.key)
            return []
        if not isinstance(data, list):
            logger.warning("Favorites payload under %r is not a list, starting empty", self.key)
            return []
        ids: List[str] = []
        for item in data:
            meal_id = str(item)
            if meal_id not in ids:
                ids.append(meal_id)
        return ids

    def _save(self) -> None:
        self.store.set(self.key, json.dumps(self._ids))

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._ids)

    def is_favorite(self, meal_id: str) -> bool:
        with self._lock:
            return meal_id in self._ids

    def toggle(self, meal_id: str) -> bool:
        """
        Add the meal id if absent, remove it if present, and persist.

        Returns:
            True if the meal is a favorite after the toggle
        """
        with self._lock:
            if meal_id in self._ids:
                self._ids.remove(meal_id)
                is_favorite = False
            else:
                self._ids.append(meal_id)
                is_favorite = True
            self._save()
        logger.debug("Favorite toggled: meal_id=%s is_favorite=%s", meal_id, is_favorite)
        return is_favorite
