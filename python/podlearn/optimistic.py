from __future__ import annotations

import logging
from typing import Awaitable, Callable, Generic, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class OptimisticUpdateError(RuntimeError):
    pass


class OptimisticValue(Generic[T]):
    """A locally held value updated in two phases.

    ``commit`` applies the new value right away, then awaits the server. The
    server's answer becomes the value on success; on failure the stored
    snapshot is restored.
    """

    def __init__(self, initial: T, *, on_change: Callable[[T], None] | None = None):
        self._value = initial
        self._snapshot: T | None = None
        self._pending = False
        self._on_change = on_change

    @property
    def value(self) -> T:
        return self._value

    @property
    def pending(self) -> bool:
        return self._pending

    def _apply(self, value: T) -> None:
        self._value = value
        if self._on_change is not None:
            self._on_change(value)

    async def commit(self, new_value: T, remote: Callable[[T], Awaitable[T]]) -> T:
        if self._pending:
            raise OptimisticUpdateError("En opdatering er allerede i gang")

        self._snapshot = self._value
        self._pending = True
        self._apply(new_value)
        try:
            confirmed = await remote(new_value)
        except Exception as exc:  # noqa: BLE001 - any server failure rolls back
            snapshot = self._snapshot
            LOGGER.warning("Optimistisk opdatering rullet tilbage: %s", exc)
            self._apply(snapshot)  # type: ignore[arg-type]
            raise OptimisticUpdateError(str(exc)) from exc
        finally:
            self._snapshot = None
            self._pending = False

        if confirmed != new_value:
            self._apply(confirmed)
        return self._value
