"""String keyed rows in a single SQLite table.

See :py:class:`PersistentKeyValueStore`
"""

import sqlite3
from pathlib import Path
from threading import get_ident
from typing import Any, Iterable


class PersistentKeyValueStore:
    """Rows of ``(key, value)`` text in one ``kv`` table.

    - Subclasses turn objects into text and back in :py:meth:`encode_value` and :py:meth:`decode_value`
    - Keys sharing a prefix can be listed with :py:meth:`iterkeys`
    - Each thread opens its own connection on first use
    """

    def __init__(self, filename: Path, autocommit=True):
        """
        :param filename: SQLite database file, created if missing

        :param autocommit: Commit after every write
        """
        assert isinstance(filename, Path)
        self.filename = filename
        self.autocommit = autocommit
        self.connections: dict[int, sqlite3.Connection] = {}

    @property
    def conn(self) -> sqlite3.Connection:
        thread_id = get_ident()
        conn = self.connections.get(thread_id)
        if conn is None:
            conn = sqlite3.connect(self.filename)
            conn.execute("CREATE TABLE IF NOT EXISTS kv (key text unique, value text)")
            self.connections[thread_id] = conn
        return conn

    def encode_value(self, value: Any) -> str:
        return value

    def decode_value(self, value: str) -> Any:
        return value

    def close(self):
        """Commit and close this thread's connection."""
        conn = self.connections.pop(get_ident(), None)
        if conn is not None:
            conn.commit()
            conn.close()

    def iterkeys(self, prefix: str = "") -> Iterable[str]:
        for row in self.conn.execute("SELECT key FROM kv WHERE key LIKE ?", (f"{prefix}%",)):
            yield row[0]

    def __contains__(self, key: str) -> bool:
        return self.conn.execute("SELECT 1 FROM kv WHERE key = ?", (key,)).fetchone() is not None

    def __getitem__(self, key: str) -> Any:
        assert type(key) == str, f"Only string keys allowed, got {key}"
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            raise KeyError(key)
        return self.decode_value(row[0])

    def __setitem__(self, key: str, value: Any):
        assert type(key) == str, f"Only string keys allowed, got {key}"
        encoded = self.encode_value(value)
        assert type(encoded) == str, f"Only string values allowed, got {encoded}"
        self.conn.execute("REPLACE INTO kv (key, value) VALUES (?,?)", (key, encoded))
        if self.autocommit:
            self.conn.commit()

    def get(self, key: str, default=None) -> Any:
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return default
        return self.decode_value(row[0])
