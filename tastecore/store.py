from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import closing
from pathlib import Path
from typing import Protocol

from .errors import ProfileNotFoundError
from .params import VisualParameters

_LOGGER = logging.getLogger("tastecore.store")

DEFAULT_SQLITE_FILE_NAME = "tastecore.sqlite3"
_TABLE = "visual_parameters"
_COLUMNS: tuple[str, ...] = tuple(VisualParameters.model_fields)


class ProfileStore(Protocol):
    """Persistence collaborator keyed by an opaque user identity."""

    def get(self, identity: str) -> VisualParameters:
        """Return the stored record or raise ProfileNotFoundError."""
        ...

    def put(self, identity: str, params: VisualParameters) -> None:
        """Overwrite an existing record or raise ProfileNotFoundError."""
        ...

    def insert(self, identity: str, params: VisualParameters) -> None:
        """Create or replace the record for `identity`."""
        ...


class InMemoryProfileStore:
    def __init__(self) -> None:
        self._records: dict[str, dict[str, int]] = {}
        self._lock = threading.Lock()

    def get(self, identity: str) -> VisualParameters:
        with self._lock:
            record = self._records.get(identity)
        if record is None:
            raise ProfileNotFoundError(identity)
        return VisualParameters.model_validate(record)

    def put(self, identity: str, params: VisualParameters) -> None:
        with self._lock:
            if identity not in self._records:
                raise ProfileNotFoundError(identity)
            self._records[identity] = params.stored_values()

    def insert(self, identity: str, params: VisualParameters) -> None:
        with self._lock:
            self._records[identity] = params.stored_values()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class SqliteProfileStore:
    """One row per identity, one integer column per stored visual field."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        with closing(self._connect()) as connection, connection:
            self._ensure_schema(connection)

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(str(self.path), timeout=4.0)

    def _ensure_schema(self, connection: sqlite3.Connection) -> None:
        columns = ",\n".join(f"{name} integer not null" for name in _COLUMNS)
        connection.execute(
            f"""
            create table if not exists {_TABLE} (
                user_id text primary key,
                {columns}
            )
            """
        )

    def get(self, identity: str) -> VisualParameters:
        with closing(self._connect()) as connection:
            row = connection.execute(
                f"select {', '.join(_COLUMNS)} from {_TABLE} where user_id = ? limit 1",
                (identity,),
            ).fetchone()
        if row is None:
            raise ProfileNotFoundError(identity)
        return VisualParameters.model_validate(dict(zip(_COLUMNS, row)))

    def put(self, identity: str, params: VisualParameters) -> None:
        values = params.stored_values()
        assignments = ", ".join(f"{name} = ?" for name in _COLUMNS)
        with self._lock, closing(self._connect()) as connection, connection:
            cursor = connection.execute(
                f"update {_TABLE} set {assignments} where user_id = ?",
                (*(values[name] for name in _COLUMNS), identity),
            )
            if cursor.rowcount == 0:
                raise ProfileNotFoundError(identity)

    def insert(self, identity: str, params: VisualParameters) -> None:
        values = params.stored_values()
        placeholders = ", ".join("?" for _ in range(len(_COLUMNS) + 1))
        with self._lock, closing(self._connect()) as connection, connection:
            connection.execute(
                f"insert or replace into {_TABLE} (user_id, {', '.join(_COLUMNS)}) "
                f"values ({placeholders})",
                (identity, *(values[name] for name in _COLUMNS)),
            )
        _LOGGER.debug("Inserted profile %r into %s", identity, self.path)
