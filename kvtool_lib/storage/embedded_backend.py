"""Embedded single-file store backed by SQLite.

All data lives in one database file organised as named containers, each an
independent ordered map of item -> value. Keys are split into container and
item with `parse_address`, so `"users/42"` is item `42` of container
`users` and `"42"` is item `42` of the `default` container.

`list_keys("")` lists container names and `list_keys(name)` lists the items
of one container. `delete_tree(name)` drops a whole container.
"""
from __future__ import annotations
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from kvtool_lib.errors import ConfigError, NoSuchContainerError, NotFoundError, StorageError
from .address import DEFAULT_CONTAINER, parse_address
from .base import Store, to_bytes
from .registry import ContainerRegistry

logger = logging.getLogger(__name__)

# Seconds a writer waits for another process holding the file lock.
BUSY_TIMEOUT = 5.0
FILE_MODE = 0o600

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS containers (
        name TEXT PRIMARY KEY NOT NULL
    ) WITHOUT ROWID
    """,
    """
    CREATE TABLE IF NOT EXISTS items (
        container TEXT NOT NULL REFERENCES containers(name) ON DELETE CASCADE,
        item TEXT NOT NULL,
        value BLOB NOT NULL,
        PRIMARY KEY (container, item)
    ) WITHOUT ROWID
    """,
)


class EmbeddedStore(Store):
    """Store over a local SQLite file with named containers.

    One connection per handle, guarded by a re-entrant lock: concurrent
    callers are serialized and every operation runs in its own transaction,
    so readers always see a consistent snapshot.
    """

    def __init__(self) -> None:
        self.path: Optional[Path] = None
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._registry = ContainerRegistry()

    @property
    def registry(self) -> ContainerRegistry:
        return self._registry

    def init(self, opts: Sequence[str]) -> None:
        if not opts or not opts[0]:
            raise ConfigError("file path required to init embedded store")
        with self._lock:
            if self._conn is not None:
                raise StorageError(f"embedded store already open at {self.path}")
            path = Path(opts[0])
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.touch(mode=FILE_MODE, exist_ok=True)
                conn = sqlite3.connect(
                    str(path),
                    timeout=BUSY_TIMEOUT,
                    isolation_level=None,
                    check_same_thread=False,
                )
            except (OSError, sqlite3.Error) as exc:
                raise StorageError(f"cannot open embedded store {path}: {exc}") from exc
            self.path = path
            self._conn = conn
            try:
                conn.execute("PRAGMA foreign_keys = ON")
                with self._transaction(write=True) as tx:
                    for stmt in _SCHEMA:
                        tx.execute(stmt)
                self.create_container(DEFAULT_CONTAINER)
                self._registry.reset(self.containers())
            except sqlite3.Error as exc:
                self._abandon()
                raise StorageError(f"cannot open embedded store {path}: {exc}") from exc
            except StorageError:
                self._abandon()
                raise
        logger.info("Opened embedded store %s (%d containers)", path, len(self._registry))

    def create_container(self, name: str) -> None:
        """Create container `name` if missing and remember it."""
        with self._transaction(write=True) as tx:
            tx.execute("INSERT OR IGNORE INTO containers (name) VALUES (?)", (name,))
        self._registry.remember(name)
        logger.debug("Ensured container %r", name)

    def containers(self) -> List[str]:
        """Return the names of all containers physically present."""
        with self._transaction() as tx:
            rows = tx.execute("SELECT name FROM containers ORDER BY name").fetchall()
        return [r[0] for r in rows]

    def get(self, key: str) -> bytes:
        container, item = parse_address(key)
        with self._transaction() as tx:
            row = tx.execute(
                "SELECT value FROM items WHERE container = ? AND item = ?",
                (container, item),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"key not found: {key!r}")
        return bytes(row[0])

    def put(self, key: str, value: bytes) -> None:
        data = to_bytes(value)
        container, item = parse_address(key)
        if not self._registry.exists(container):
            self.create_container(container)
        try:
            self._write(container, item, data)
        except NoSuchContainerError:
            # registry was stale, e.g. another process dropped the container
            logger.info("Container %r missing from %s, recreating", container, self.path)
            self._registry.forget(container)
            self.create_container(container)
            self._write(container, item, data)
        logger.debug("Put %s/%s (%d bytes)", container, item, len(data))

    def _write(self, container: str, item: str, data: bytes) -> None:
        with self._transaction(write=True) as tx:
            try:
                tx.execute(
                    "INSERT INTO items (container, item, value) VALUES (?, ?, ?) "
                    "ON CONFLICT (container, item) DO UPDATE SET value = excluded.value",
                    (container, item, data),
                )
            except sqlite3.IntegrityError as exc:
                raise NoSuchContainerError(f"no such container: {container!r}") from exc

    def delete(self, key: str) -> None:
        container, item = parse_address(key)
        with self._transaction(write=True) as tx:
            tx.execute(
                "DELETE FROM items WHERE container = ? AND item = ?",
                (container, item),
            )
        logger.debug("Deleted %s/%s", container, item)

    def list_keys(self, prefix: str = "") -> List[str]:
        """List container names (empty argument) or the items of one container.

        Raises `NoSuchContainerError` for a container that does not exist,
        unlike `put`, which creates it.
        """
        if not prefix:
            return self.containers()
        with self._transaction() as tx:
            found = tx.execute(
                "SELECT 1 FROM containers WHERE name = ?", (prefix,)
            ).fetchone()
            if found is None:
                raise NoSuchContainerError(f"no such container: {prefix!r}")
            rows = tx.execute(
                "SELECT item FROM items WHERE container = ? ORDER BY item", (prefix,)
            ).fetchall()
        return [r[0] for r in rows]

    def delete_tree(self, prefix: str) -> None:
        """Drop container `prefix` and every item in it."""
        with self._transaction(write=True) as tx:
            removed = tx.execute(
                "DELETE FROM containers WHERE name = ?", (prefix,)
            ).rowcount
        self._registry.forget(prefix)
        logger.debug("Deleted container %r (existed=%s)", prefix, bool(removed))

    def close(self) -> None:
        with self._lock:
            conn = self._conn
            if conn is None:
                return
            self._conn = None
            try:
                conn.close()
            except sqlite3.Error as exc:
                raise StorageError(f"failed to close embedded store {self.path}: {exc}") from exc
        logger.info("Closed embedded store %s", self.path)

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("embedded store is not open")
        return self._conn

    def _abandon(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error:
            logger.exception("Rollback failed")

    @contextmanager
    def _transaction(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """Run the body in one transaction; engine errors become StorageError."""
        with self._lock:
            conn = self._connection()
            try:
                conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
                yield conn
                conn.execute("COMMIT")
            except sqlite3.Error as exc:
                self._rollback(conn)
                raise StorageError(f"embedded store {self.path}: {exc}") from exc
            except BaseException:
                self._rollback(conn)
                raise
