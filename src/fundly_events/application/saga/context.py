"""Application saga – SagaContext."""
from __future__ import annotations

from typing import Any, Mapping


class SagaContext:
    """Accumulated data passed through each step of one saga run.

    Starts from the initial context given to ``start`` and grows with the
    mapping each step returns.  :meth:`snapshot` is what gets persisted as
    the instance ``data``.
    """

    def __init__(
        self,
        saga_id: str,
        aggregate_id: str,
        initial: Mapping[str, Any] | None = None,
    ) -> None:
        self.saga_id = saga_id
        self.aggregate_id = aggregate_id
        self._data: dict[str, Any] = dict(initial or {})

    def set(self, key: str, value: Any) -> None:  # noqa: ANN401
        self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:  # noqa: ANN401
        return self._data.get(key, default)

    def update(self, values: Mapping[str, Any]) -> None:
        self._data.update(values)

    def __getitem__(self, key: str) -> Any:  # noqa: ANN401
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"SagaContext(saga_id={self.saga_id!r}, data={self._data!r})"

    def snapshot(self) -> dict[str, Any]:
        """Return a shallow copy of the current data."""
        return dict(self._data)


__all__ = ["SagaContext"]
