"""Filesystem discovery of installed games.

Each configured library directory holds one folder per game, named like
``Title-1.2.3``. A folder's direct files decide which platforms it supports.
"""
import logging
import os
import re
from typing import Dict, Iterable, List, Optional

from vnshelf.models.catalog import Installation

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r'\d+\.\d+(?:\.\d+)?')

# Launcher extension -> Installation flag
PLATFORM_EXTENSIONS = {
    '.mac': 'supports_mac',
    '.sh': 'supports_unix',
    '.exe': 'supports_win',
}


def extract_title(name: str) -> str:
    """Folder name up to the first ``-``: ``"VN1-1.0"`` -> ``"VN1"``."""
    return name.split('-', 1)[0]


def extract_version(name: str) -> Optional[str]:
    """First dotted version number in ``name``, e.g. ``"1.0"`` or ``"2.1.3"``."""
    match = _VERSION_RE.search(name)
    return match.group(0) if match else None


def detect_platforms(path: str) -> Dict[str, bool]:
    """Platform flags for the game folder at ``path``.

    Only files directly inside ``path`` are considered.
    """
    flags = {flag: False for flag in PLATFORM_EXTENSIONS.values()}
    with os.scandir(path) as entries:
        for entry in entries:
            if not entry.is_file():
                continue
            ext = os.path.splitext(entry.name)[1].lower()
            flag = PLATFORM_EXTENSIONS.get(ext)
            if flag:
                flags[flag] = True
    return flags


class GameScanner:
    """Lists the game folders found one level below each library directory."""

    def __init__(self, directories: Iterable[str]):
        self.directories = list(directories)
        # Folders and roots the last scan could not read; their games may still exist
        self.unreadable: List[str] = []

    def _classify(self, entry: os.DirEntry) -> Optional[Installation]:
        if not entry.is_dir():
            return None
        installation = Installation(
            path=entry.path,
            title=extract_title(entry.name),
            version=extract_version(entry.name),
            **detect_platforms(entry.path),
        )
        logger.debug(f"[Scanner] Found '{installation.title}' "
                     f"(version {installation.version}) at {installation.path}")
        return installation

    def _scan_root(self, root: str, found: List[Installation]) -> None:
        with os.scandir(root) as entries:
            for entry in entries:
                try:
                    installation = self._classify(entry)
                except OSError as e:
                    logger.error(f"[Scanner] Could not read game folder {entry.path}: {e}")
                    self.unreadable.append(entry.path)
                    continue
                if installation is not None:
                    found.append(installation)

    def scan(self) -> List[Installation]:
        """All installations under the configured directories.

        Missing directories are skipped with a warning. A game folder or
        directory that cannot be read is logged, recorded in ``unreadable``
        and the rest are still scanned.
        """
        logger.info(f"[Scanner] Indexing directories: {self.directories}")
        installations: List[Installation] = []
        self.unreadable = []

        for root in self.directories:
            if not os.path.isdir(root):
                logger.warning(f"[Scanner] Directory does not exist: '{root}', skipping")
                continue
            try:
                self._scan_root(root, installations)
            except OSError as e:
                logger.error(f"[Scanner] Error accessing directory {root}: {e}")
                self.unreadable.append(root)

        logger.info(f"[Scanner] Found {len(installations)} installation(s)"
                    + (f", {len(self.unreadable)} unreadable" if self.unreadable else ""))
        return installations


def is_under(path: str, locations: Iterable[str]) -> bool:
    """True if ``path`` is one of ``locations`` or directly inside one of them."""
    path = os.path.normpath(path)
    for location in locations:
        location = os.path.normpath(location)
        if path == location or os.path.dirname(path) == location:
            return True
    return False
