# Core - SQLite Connection Helper
#
# Every credvault SQLite database is opened through `connect()` instead of
# raw `sqlite3.connect()`, so each connection gets:
#
#   - WAL journal mode (concurrent readers + one writer)
#   - busy_timeout to avoid SQLITE_BUSY under contention
#
# WAL does not make the vault's read-modify-write cycle atomic: two
# writers racing on the same key still resolve last-write-wins.

import sqlite3
from pathlib import Path
from typing import Union


def connect(
    db_path: Union[str, Path],
    *,
    row_factory: bool = False,
    check_same_thread: bool = True,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and safe PRAGMAs.

    Args:
        db_path: Path to the database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
        check_same_thread: Passed to sqlite3.connect().

    Returns:
        sqlite3.Connection with WAL mode and busy_timeout.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=check_same_thread)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn
