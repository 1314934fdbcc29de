"""vnshelf file path constants and utilities."""

import os
from datetime import date
from typing import Optional


# vnshelf data directory (override with VNSHELF_DATA_DIR)
VNSHELF_DATA_DIR = os.environ.get(
    "VNSHELF_DATA_DIR", os.path.expanduser("~/.local/share/vnshelf")
)

DATABASE_NAME = "database.db"


def get_database_path(data_dir: Optional[str] = None) -> str:
    """Path of the SQLite catalog: ``<data_dir>/db/database.db``."""
    return os.path.join(data_dir or VNSHELF_DATA_DIR, "db", DATABASE_NAME)


def get_log_path(data_dir: Optional[str] = None, day: Optional[date] = None) -> str:
    """Dated log file path: ``<data_dir>/logs/YYYY-MM-DD-log.txt``."""
    day = day or date.today()
    return os.path.join(data_dir or VNSHELF_DATA_DIR, "logs", f"{day.isoformat()}-log.txt")


def ensure_parent_dir(file_path: str) -> None:
    """Create the directory that will hold ``file_path`` if it is missing."""
    parent = os.path.dirname(file_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
