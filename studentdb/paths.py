import os
from datetime import datetime
from typing import Optional

from .text import file_stem

DEFAULT_KEYRING = os.path.expanduser("~/.studentdb/keyring.db")


def ensure_dir_for(path: str):
    d = os.path.dirname(os.path.abspath(path))
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def resolve_home(cli_home: Optional[str]) -> str:
    # Priority: CLI arg > env var > current directory
    if cli_home:
        return cli_home
    return os.getenv("STUDENTDB_HOME") or os.getcwd()


def resolve_keyring_path(cli_path: Optional[str]) -> str:
    if cli_path:
        return cli_path
    env = os.getenv("STUDENTDB_KEYRING")
    return env if env else DEFAULT_KEYRING


def resolve_log_path(cli_path: Optional[str]) -> Optional[str]:
    return cli_path or os.getenv("STUDENTDB_LOG") or None


def path_for_read(file_name: str, home: str) -> str:
    """The name as typed if it exists, else the same relative name under home."""
    if os.path.exists(file_name) or os.path.isabs(file_name):
        return file_name
    candidate = os.path.join(home, file_name)
    return candidate if os.path.exists(candidate) else file_name


def path_for_write(file_name: str, home: str) -> str:
    if os.path.isabs(file_name):
        return file_name
    return os.path.join(home, file_name)


def backup_name(db_file: str, now: Optional[datetime] = None) -> str:
    """'db.txt' -> 'db.bak-20251125-153012.txt'."""
    now = now or datetime.now()
    return f"{file_stem(db_file)}.bak-{now.strftime('%Y%m%d-%H%M%S')}.txt"
