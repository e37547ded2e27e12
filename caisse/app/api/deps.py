from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from caisse.app.core.config import settings
from caisse.app.core.database import Base, SessionLocal, engine
from caisse.app.services.errors import (
    CheckoutInProgress,
    CreditLimitExceeded,
    InsufficientStock,
    NoOpenShift,
    NotFound,
    PosError,
    ShiftAlreadyOpen,
    ShiftClosed,
)
from caisse.app.services.pos import PosTerminal
from caisse.app.services.repositories import InMemoryStore, Store
from caisse.app.services.sql_repositories import SqlStore
from caisse.scripts.seed import seed_store

logger = logging.getLogger(__name__)

_terminal: PosTerminal | None = None

_CONFLICTS = (
    CheckoutInProgress,
    InsufficientStock,
    CreditLimitExceeded,
    ShiftClosed,
    ShiftAlreadyOpen,
    NoOpenShift,
)


def build_store() -> Store:
    if settings.STORAGE_BACKEND == "sql":
        Base.metadata.create_all(bind=engine)
        # One register per process: the terminal keeps its session for its lifetime
        return SqlStore(SessionLocal())
    if settings.STORAGE_BACKEND != "memory":
        raise ValueError(f"Unknown STORAGE_BACKEND {settings.STORAGE_BACKEND!r}")
    return InMemoryStore()


def get_terminal() -> PosTerminal:
    """Return the process-wide terminal, creating (and seeding) it on first use."""
    global _terminal
    if _terminal is None:
        store = build_store()
        if settings.SEED_DEMO_DATA:
            seed_store(store)
        _terminal = PosTerminal.from_settings(store, settings)
        logger.info(
            "Terminal %s ready (%s storage)", settings.REGISTER_ID, settings.STORAGE_BACKEND
        )
    return _terminal


def get_language(request: Request) -> str:
    return getattr(request.state, "language", "fr")


def http_error(exc: PosError) -> HTTPException:
    """Translate an engine error into an HTTP error with structured detail."""
    if isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, _CONFLICTS):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=exc.to_dict())
