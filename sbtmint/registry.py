"""Identifier registry - the duplicate-submission guard.

An identifier enters the accepted set only after its credential was minted.
Submissions in flight hold a *reservation* instead, so two concurrent
submissions for the same identifier cannot both pass the check and both
mint. Reservations are released on every exit path that does not end in
``add``.

Two backends share the ``IdentifierRegistry`` interface:

    InMemoryIdentifierRegistry  - process-wide sets, lost on restart
    SQLiteIdentifierRegistry    - accepted set persisted in a SQLite table
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sbtmint.config import Config

logger = logging.getLogger(__name__)


class IdentifierRegistry(ABC):
    """Key-presence store with atomic check-and-reserve."""

    def __init__(self) -> None:
        self._reserved: set[str] = set()
        self._lock = threading.Lock()

    # -- Accepted set ---------------------------------------------------------

    @abstractmethod
    def _contains(self, identifier: str) -> bool:
        """Backend membership test. Called with ``self._lock`` held."""

    @abstractmethod
    def _insert(self, identifier: str) -> None:
        """Backend insertion. Called with ``self._lock`` held."""

    @abstractmethod
    def _snapshot(self) -> list[str]:
        """All accepted identifiers. Called with ``self._lock`` held."""

    def has(self, identifier: str) -> bool:
        """Return True if a credential was already minted for *identifier*."""
        with self._lock:
            return self._contains(identifier)

    def add(self, identifier: str) -> None:
        """Record *identifier* as accepted and drop its reservation.

        Only the orchestrator calls this, and only after a successful mint.
        """
        with self._lock:
            self._insert(identifier)
            self._reserved.discard(identifier)
        logger.info("Registry: accepted %s", identifier)

    def identifiers(self) -> list[str]:
        with self._lock:
            return sorted(self._snapshot())

    # -- Reservations ---------------------------------------------------------

    def try_reserve(self, identifier: str) -> bool:
        """Claim *identifier* for one in-flight submission.

        Fails if the identifier is already accepted or reserved by another
        submission. Check and claim happen under one lock acquisition.
        """
        with self._lock:
            if identifier in self._reserved or self._contains(identifier):
                return False
            self._reserved.add(identifier)
            return True

    def release(self, identifier: str) -> None:
        """Drop a reservation. No-op if none is held."""
        with self._lock:
            self._reserved.discard(identifier)

    def is_reserved(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._reserved

    @contextmanager
    def reservation(self, identifier: str) -> Iterator[bool]:
        """Hold a reservation for the duration of the block.

        Yields whether the reservation was acquired. On exit the reservation
        is released unless ``add`` already converted it into membership.
        """
        acquired = self.try_reserve(identifier)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(identifier)


class InMemoryIdentifierRegistry(IdentifierRegistry):
    """Thread-safe set of accepted identifiers, scoped to the process."""

    def __init__(self, identifiers: list[str] | None = None) -> None:
        super().__init__()
        self._accepted: set[str] = set(identifiers or [])

    def _contains(self, identifier: str) -> bool:
        return identifier in self._accepted

    def _insert(self, identifier: str) -> None:
        self._accepted.add(identifier)

    def _snapshot(self) -> list[str]:
        return list(self._accepted)


class SQLiteIdentifierRegistry(IdentifierRegistry):
    """Accepted identifiers persisted in SQLite.

    Reservations stay in process memory: they describe in-flight work that
    must not outlive the process. Each operation opens its own connection so
    the registry can be shared across FastAPI worker threads.
    """

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS submitted_identifiers (
            identifier TEXT PRIMARY KEY,
            accepted_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: str | Path) -> None:
        super().__init__()
        self.db_path = str(db_path)
        with closing(self._connect()) as conn, conn:
            conn.execute(self._SCHEMA)
        logger.info("SQLiteIdentifierRegistry: using %s", self.db_path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=30)

    def _contains(self, identifier: str) -> bool:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT 1 FROM submitted_identifiers WHERE identifier = ?",
                (identifier,),
            ).fetchone()
        return row is not None

    def _insert(self, identifier: str) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT OR IGNORE INTO submitted_identifiers (identifier) VALUES (?)",
                (identifier,),
            )

    def _snapshot(self) -> list[str]:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT identifier FROM submitted_identifiers").fetchall()
        return [r[0] for r in rows]


def create_registry(config: Config) -> IdentifierRegistry:
    """Build the registry backend selected by ``registry_backend``."""
    if config.registry_backend == "sqlite":
        return SQLiteIdentifierRegistry(config.registry_db)
    return InMemoryIdentifierRegistry()
