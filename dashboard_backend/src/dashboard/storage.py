"""
JSON file backend for the task store.

The file holds one JSON array of {id, title, completed} records with no
envelope or schema version. A missing file is an empty collection. A file that
exists but cannot be read or parsed raises StorageError; Repository.list turns
that into an empty listing, while mutations refuse to overwrite it. Records
that fail validation are skipped by list and block mutations the same way.

Writes go to a temporary file in the same directory and are then moved over
the target with os.replace, so a reader sees either the previous collection
or the complete new one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import List

from pydantic import ValidationError as SchemaError

from .errors import StorageError
from .models import TaskEntity
from .repositories import Repository
from .schemas import TaskOut

logger = logging.getLogger(__name__)


class JsonFileRepository(Repository):
    """
    Durable task store backed by a single JSON file.
    """

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = os.path.abspath(path)

    @property
    def path(self) -> str:
        return self._path

    def _read(self, lenient: bool = False) -> List[TaskEntity]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                raw = f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError("task store is unreadable", detail={"path": self._path}) from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StorageError("task store is not valid JSON", detail={"path": self._path}) from e
        if not isinstance(data, list):
            raise StorageError("task store is not a JSON array", detail={"path": self._path})

        items: List[TaskEntity] = []
        rejected: List[int] = []
        for index, record in enumerate(data):
            try:
                items.append(TaskOut.model_validate(record).model_dump())  # type: ignore[arg-type]
            except SchemaError:
                rejected.append(index)
        if rejected:
            if not lenient:
                raise StorageError(
                    "task store holds invalid records",
                    detail={"path": self._path, "indexes": rejected},
                )
            logger.warning("skipping invalid records %s in task store at %s", rejected, self._path)
        return items

    def _write(self, items: List[TaskEntity]) -> None:
        directory = os.path.dirname(self._path) or "."
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".todos-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
            tmp_path = None
        except OSError as e:
            logger.exception("failed to write task store at %s", self._path)
            raise StorageError("failed to write task store", detail={"path": self._path}) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
