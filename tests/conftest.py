from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from vnshelf.registry.catalog_store import CatalogStore  # noqa: E402


def make_game_dir(root: Path, name: str, *files: str) -> Path:
    """Create ``root/name`` holding empty ``files``."""
    game_dir = root / name
    game_dir.mkdir(parents=True)
    for filename in files:
        (game_dir / filename).write_bytes(b"")
    return game_dir


@pytest.fixture
def store(tmp_path):
    """A fresh catalog store in a temporary directory."""
    catalog = CatalogStore.open(str(tmp_path / "db" / "database.db"))
    yield catalog
    catalog.close()
