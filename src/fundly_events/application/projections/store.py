"""Application projections – ProjectionStore port and in-memory implementation."""
from __future__ import annotations

import abc
from typing import Generic, TypeVar

R = TypeVar("R")


class ProjectionStore(Generic[R], abc.ABC):
    """Port — read-model rows keyed by aggregate id.

    Rows are disposable: everything here can be rebuilt from the event store.
    """

    @abc.abstractmethod
    async def get(self, key: str) -> R | None: ...

    @abc.abstractmethod
    async def put(self, key: str, row: R) -> None: ...

    @abc.abstractmethod
    async def delete(self, key: str) -> None: ...

    @abc.abstractmethod
    async def clear(self) -> None: ...

    @abc.abstractmethod
    async def keys(self) -> list[str]: ...


class InMemoryProjectionStore(ProjectionStore[R]):
    def __init__(self) -> None:
        self._rows: dict[str, R] = {}

    async def get(self, key: str) -> R | None:
        return self._rows.get(key)

    async def put(self, key: str, row: R) -> None:
        self._rows[key] = row

    async def delete(self, key: str) -> None:
        self._rows.pop(key, None)

    async def clear(self) -> None:
        self._rows.clear()

    async def keys(self) -> list[str]:
        return sorted(self._rows)

    def snapshot(self) -> dict[str, R]:
        """Copy of every row (useful in tests)."""
        return dict(self._rows)


__all__ = ["InMemoryProjectionStore", "ProjectionStore"]
