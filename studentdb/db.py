"""Keyring database: a single SQLite `meta` table holding the passphrase salt,
KDF iteration count and verifier token."""

import os
import sqlite3

from .paths import ensure_dir_for


def connect(keyring_path: str) -> sqlite3.Connection:
    ensure_dir_for(keyring_path)
    return sqlite3.connect(keyring_path)


def open_existing(keyring_path: str) -> sqlite3.Connection:
    """Connect to a keyring that must already exist."""
    if not os.path.exists(keyring_path):
        raise FileNotFoundError(keyring_path)
    return sqlite3.connect(keyring_path)


def init_db(conn: sqlite3.Connection, kdf_iters: int):
    cur = conn.cursor()
    cur.execute("""
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value BLOB
        );
    """)
    cur.execute("SELECT value FROM meta WHERE key='salt';")
    if cur.fetchone() is None:
        salt = os.urandom(16)
        cur.execute("INSERT INTO meta(key, value) VALUES('salt', ?);", (salt,))
        cur.execute("INSERT OR REPLACE INTO meta(key, value) VALUES('kdf_iters', ?);", (str(kdf_iters).encode(),))
        # verifier is written once a passphrase has been chosen
        cur.execute("INSERT OR REPLACE INTO meta(key, value) VALUES('verifier', ?);", (b'',))
        conn.commit()


def get_meta(conn: sqlite3.Connection, key: str):
    cur = conn.cursor()
    try:
        cur.execute("SELECT value FROM meta WHERE key=?;", (key,))
    except sqlite3.OperationalError:
        # no meta table yet
        return None
    row = cur.fetchone()
    return row[0] if row else None


def set_meta(conn: sqlite3.Connection, key: str, value: bytes):
    cur = conn.cursor()
    cur.execute("INSERT OR REPLACE INTO meta(key, value) VALUES(?, ?);", (key, value))
    conn.commit()
