from __future__ import annotations

import logging
import random
import string
import time
from abc import ABC, abstractmethod
from functools import lru_cache
from threading import RLock
from typing import Any, Iterable, List, Optional, Set

from .errors import NotFound, StorageError, ValidationError
from .models import TaskEntity
from .settings import get_settings

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LEN = 7


def generate_task_id(existing: Iterable[str] = ()) -> str:
    """
    Return '<epoch ms>-<7 base36 chars>', regenerating on the rare collision
    with an id already in the collection.
    """
    taken: Set[str] = set(existing)
    while True:
        suffix = "".join(random.choices(_ID_ALPHABET, k=_ID_SUFFIX_LEN))
        candidate = f"{time.time_ns() // 1_000_000}-{suffix}"
        if candidate not in taken:
            return candidate


def _clean_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title must be a non-empty string")
    return title.strip()


def _require_id(task_id: Any) -> str:
    if not isinstance(task_id, str) or not task_id:
        raise ValidationError("id is required")
    return task_id


def _index_of(items: List[TaskEntity], task_id: str) -> int:
    for i, item in enumerate(items):
        if item["id"] == task_id:
            return i
    raise NotFound("task not found", detail={"id": task_id})


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Task store contract.

    Every mutation is one read-modify-write cycle over the whole collection:
    read it, apply a single change, write it back. Validation and lookup
    happen before anything is written, so a failed call leaves the stored
    collection untouched.
    """

    def __init__(self) -> None:
        self._lock = RLock()

    @abstractmethod
    def _read(self, lenient: bool = False) -> List[TaskEntity]:
        """
        Return the whole collection. Missing storage reads as [].

        Storage that exists but cannot be read or parsed raises StorageError.
        Invalid records are skipped when lenient, and raise StorageError
        otherwise, so a mutation never writes them away.
        """

    @abstractmethod
    def _write(self, items: List[TaskEntity]) -> None:
        """Replace the whole collection."""

    def list(self) -> List[TaskEntity]:
        """Return the full collection in creation order; broken storage lists as empty."""
        with self._lock:
            try:
                items = self._read(lenient=True)
            except StorageError as e:
                logger.warning("task store unavailable (%s); listing as empty", e.message)
                return []
            return [t.copy() for t in items]

    def create(self, title: str) -> TaskEntity:
        clean = _clean_title(title)
        with self._lock:
            items = self._read()
            entity: TaskEntity = {
                "id": generate_task_id(t["id"] for t in items),
                "title": clean,
                "completed": False,
            }
            items.append(entity)
            self._write(items)
        logger.info("task created id=%s", entity["id"])
        return entity.copy()

    def update(self, task_id: str, completed: bool) -> TaskEntity:
        task_id = _require_id(task_id)
        if not isinstance(completed, bool):
            raise ValidationError("completed must be a boolean")
        with self._lock:
            items = self._read()
            i = _index_of(items, task_id)
            updated = items[i].copy()
            updated["completed"] = completed
            items[i] = updated
            self._write(items)
        logger.info("task updated id=%s completed=%s", task_id, completed)
        return updated.copy()

    def delete(self, task_id: str) -> TaskEntity:
        task_id = _require_id(task_id)
        with self._lock:
            items = self._read()
            removed = items.pop(_index_of(items, task_id))
            self._write(items)
        logger.info("task deleted id=%s", task_id)
        return removed


class InMemoryRepository(Repository):
    """
    Process-local task store suitable for testing and ephemeral runs.
    """

    def __init__(self, items: Optional[Iterable[TaskEntity]] = None) -> None:
        super().__init__()
        self._items: List[TaskEntity] = [t.copy() for t in (items or [])]

    def _read(self, lenient: bool = False) -> List[TaskEntity]:
        return [t.copy() for t in self._items]

    def _write(self, items: List[TaskEntity]) -> None:
        self._items = [t.copy() for t in items]


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the configured repository, one per process.
    - file: JsonFileRepository at TASKS_FILE_PATH
    - memory: InMemoryRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .storage import JsonFileRepository

    return JsonFileRepository(settings.tasks_file_path)
