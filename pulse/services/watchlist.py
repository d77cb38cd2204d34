"""
Keyword watch-lists: keywords an analyst wants re-run on a set of sources.
"""
from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import List, Optional, Protocol

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from pulse.config import Settings, get_settings
from pulse.errors import ValidationError, WatchStoreError
from pulse.schemas import KeywordWatch, KeywordWatchCreate
from pulse.utils import now_utc

logger = logging.getLogger(__name__)

_WATCH_LIST = TypeAdapter(List[KeywordWatch])


class KeywordWatchStore(Protocol):
    def load(self) -> List[KeywordWatch]:
        ...

    def save(self, watches: List[KeywordWatch]) -> None:
        ...


class InMemoryWatchStore:
    def __init__(self, watches: Optional[List[KeywordWatch]] = None):
        self._watches = list(watches or [])

    def load(self) -> List[KeywordWatch]:
        return list(self._watches)

    def save(self, watches: List[KeywordWatch]) -> None:
        self._watches = list(watches)


class JsonFileWatchStore:
    """Whole list stored as one JSON array; a missing file is an empty list."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> List[KeywordWatch]:
        if not self.path.exists():
            return []
        try:
            return _WATCH_LIST.validate_json(self.path.read_bytes())
        except (OSError, SchemaError) as e:
            raise WatchStoreError(f"Cannot read watch-list at {self.path}: {e}") from e

    def save(self, watches: List[KeywordWatch]) -> None:
        data = _WATCH_LIST.dump_python(watches, mode="json")
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise WatchStoreError(f"Cannot write watch-list at {self.path}: {e}") from e


class WatchList:
    """Add / remove / toggle operations on top of a KeywordWatchStore."""

    def __init__(self, store: KeywordWatchStore):
        self.store = store

    def all(self) -> List[KeywordWatch]:
        return self.store.load()

    def active(self) -> List[KeywordWatch]:
        return [watch for watch in self.store.load() if watch.is_active]

    def get(self, watch_id: str) -> Optional[KeywordWatch]:
        return next((watch for watch in self.store.load() if watch.id == watch_id), None)

    def add(self, new: KeywordWatchCreate) -> KeywordWatch:
        keyword = new.keyword.strip()
        if not keyword:
            raise ValidationError("Keyword must not be blank")
        watch = KeywordWatch(
            id=uuid.uuid4().hex,
            keyword=keyword,
            sources=list(dict.fromkeys(new.sources)),
            created_at=now_utc(),
        )
        self.store.save([*self.store.load(), watch])
        logger.info("Watching '%s' on %d source(s)", keyword, len(watch.sources))
        return watch

    def remove(self, watch_id: str) -> bool:
        watches = self.store.load()
        kept = [watch for watch in watches if watch.id != watch_id]
        if len(kept) == len(watches):
            return False
        self.store.save(kept)
        return True

    def toggle(self, watch_id: str) -> Optional[KeywordWatch]:
        """Flip ``is_active``; None when the id is unknown."""
        watches = self.store.load()
        toggled = None
        for i, watch in enumerate(watches):
            if watch.id == watch_id:
                toggled = watch.model_copy(update={"is_active": not watch.is_active})
                watches[i] = toggled
                break
        if toggled is not None:
            self.store.save(watches)
        return toggled


def build_watch_store(settings: Optional[Settings] = None) -> KeywordWatchStore:
    settings = settings or get_settings()
    return JsonFileWatchStore(settings.WATCHLIST_PATH)
