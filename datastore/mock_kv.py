from __future__ import annotations
import bisect
import json
import time
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, List, Optional, Protocol

from settings import get_settings


class KVStoreError(RuntimeError):
    """Raised when the key-value backend cannot serve a list/get/put call."""


@dataclass(frozen=True)
class ListPage:
    """One page of a cursor-based key listing."""

    keys: List[str] = field(default_factory=list)
    cursor: Optional[str] = None
    complete: bool = True


class KeyValueStore(Protocol):
    def list_page(self, cursor: Optional[str] = None) -> ListPage: ...

    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None: ...


@dataclass
class _Entry:
    value: str
    expires_at: Optional[float] = None


class MockKVNamespace:
    """In-process stand-in for a flat key-value namespace with TTL expiry.

    Keys are listed in lexicographic order, ``page_size`` at a time. The
    cursor returned with a page is the last key on it; the next page resumes
    strictly after that key, so writes landing between calls do not shift
    the listing.
    """

    def __init__(
        self,
        name: str,
        persistence_path: Optional[Path] = None,
        page_size: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.name = name
        self.page_size = page_size
        self.persistence_path = persistence_path
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        if not key:
            raise KVStoreError("Key must be a non-empty string.")
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=expires_at)
            self._drop_expired()
            self._persist()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._is_expired(entry):
                return None
            return entry.value

    def list_page(self, cursor: Optional[str] = None) -> ListPage:
        with self._lock:
            live_keys = sorted(
                key for key, entry in self._entries.items() if not self._is_expired(entry)
            )

        start = 0
        if cursor is not None:
            if not cursor.startswith("after:"):
                raise KVStoreError(f"Unknown list cursor {cursor!r} for namespace {self.name!r}.")
            start = bisect.bisect_right(live_keys, cursor[len("after:"):])

        keys = live_keys[start:start + self.page_size]
        complete = start + self.page_size >= len(live_keys)
        next_cursor = None if complete or not keys else f"after:{keys[-1]}"
        return ListPage(keys=keys, cursor=next_cursor, complete=complete)

    def purge_expired(self) -> int:
        """Drop expired entries from memory and disk; return how many were removed."""

        with self._lock:
            removed = self._drop_expired()
            if removed:
                self._persist()
        return removed

    def _drop_expired(self) -> int:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _is_expired(self, entry: _Entry) -> bool:
        return entry.expires_at is not None and entry.expires_at <= self._clock()

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            key: {"value": entry.value, "expires_at": entry.expires_at}
            for key, entry in self._entries.items()
        }
        try:
            self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))
        except OSError as exc:
            raise KVStoreError(f"Failed to persist namespace {self.name!r}: {exc}") from exc

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        for key, payload in data.items():
            if not isinstance(payload, dict) or not isinstance(payload.get("value"), str):
                continue
            entry = _Entry(value=payload["value"], expires_at=payload.get("expires_at"))
            if not self._is_expired(entry):
                self._entries[key] = entry


@lru_cache
def build_default_namespace(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> MockKVNamespace:
    settings = get_settings()
    namespace = settings.kv_namespace if name is None else name
    namespace_path = settings.kv_persistence_path if path is None else path
    persistence = Path(namespace_path) if namespace_path else None
    return MockKVNamespace(
        name=namespace,
        persistence_path=persistence,
        page_size=settings.kv_page_size,
    )
