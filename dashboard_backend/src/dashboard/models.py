from __future__ import annotations

from typing import TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task record as stored and returned by the repositories.

    Fields:
    - id: Opaque string identifier, unique and immutable for the task's lifetime
    - title: Non-empty, trimmed title
    - completed: Boolean completion flag
    """

    id: str
    title: str
    completed: bool
