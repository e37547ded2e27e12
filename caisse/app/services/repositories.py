"""Storage seams for products, customers, shifts and ticket sequences.

The engine only needs ``get``, ``update`` and ``list``. Repositories hand out
copies: mutating a returned object has no effect until it is passed back to
``update``.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import Generic, Protocol, TypeVar

from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.audit import AuditEntry, AuditTrail
from caisse.app.services.errors import ValidationError
from caisse.app.services.shift import Shift

T = TypeVar("T")

MAX_TICKETS_PER_DAY = 9999


class Repository(Protocol[T]):
    def get(self, key: str) -> T | None: ...

    def update(self, item: T) -> None: ...

    def list(self) -> list[T]: ...


class TicketSequence(Protocol):
    def next(self, day: date) -> int: ...


class Store(Protocol):
    """Bundle of repositories sharing one unit of work."""

    products: Repository[Product]
    customers: Repository[Customer]
    shifts: Repository[Shift]
    tickets: TicketSequence
    audit: AuditTrail

    def transaction(self): ...


# ─── In-memory backend ──────────────────────────────────────────────────────


class InMemoryRepository(Generic[T]):
    def __init__(self, key_attr: str) -> None:
        self._key_attr = key_attr
        self._items: dict[str, T] = {}

    def get(self, key: str) -> T | None:
        item = self._items.get(key)
        return copy.deepcopy(item) if item is not None else None

    def update(self, item: T) -> None:
        self._items[getattr(item, self._key_attr)] = copy.deepcopy(item)

    def list(self) -> list[T]:
        return [copy.deepcopy(item) for item in self._items.values()]

    def _dump(self) -> dict[str, T]:
        return copy.deepcopy(self._items)

    def _restore(self, items: dict[str, T]) -> None:
        self._items = items


class InMemoryTicketSequence:
    """Per-day counter; restarts at 1 every settlement date."""

    def __init__(self) -> None:
        self._counters: dict[date, int] = {}

    def next(self, day: date) -> int:
        value = self._counters.get(day, 0) + 1
        if value > MAX_TICKETS_PER_DAY:
            raise ValidationError(f"Ticket sequence exhausted for {day.isoformat()}")
        self._counters[day] = value
        return value


class InMemoryAuditTrail:
    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def append(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    def list(self) -> list[AuditEntry]:
        return list(self._entries)

    def _truncate(self, size: int) -> None:
        del self._entries[size:]


class InMemoryStore:
    def __init__(self) -> None:
        self.products: InMemoryRepository[Product] = InMemoryRepository("code")
        self.customers: InMemoryRepository[Customer] = InMemoryRepository("id")
        self.shifts: InMemoryRepository[Shift] = InMemoryRepository("id")
        self.tickets = InMemoryTicketSequence()
        self.audit = InMemoryAuditTrail()
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[InMemoryStore]:
        """Serialise the unit of work and restore every repository on failure."""
        with self._lock:
            saved = (
                self.products._dump(),
                self.customers._dump(),
                self.shifts._dump(),
            )
            audit_size = len(self.audit.list())
            try:
                yield self
            except BaseException:
                self.products._restore(saved[0])
                self.customers._restore(saved[1])
                self.shifts._restore(saved[2])
                self.audit._truncate(audit_size)
                raise
