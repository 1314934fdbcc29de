"""Library controller.

The object front ends hold: owns the in-memory game list, the selection and
the library directory settings, and routes edits to the catalog store.
"""

import asyncio
import logging
import os
import random
import shutil
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from vnshelf.discovery.scanner import GameScanner
from vnshelf.models.catalog import CatalogEntry
from vnshelf.models.metadata import Character, ImageBlob, RemoteMetadata
from vnshelf.services.sync_service import SyncResult, SyncService

logger = logging.getLogger(__name__)

# Names accepted by update_selected_game(reset=[...])
OVERRIDE_FIELDS = ("title", "launch_path", "cover", "banner")
REMOTE_RESETTABLE_FIELDS = ("remote_cover", "remote_banner", "remote_tags",
                            "remote_developers", "remote_rating")


class LibraryController:
    """Catalog facade: loading, selection, edits and deletion of games.

    - Loads once, then serves the cached list until ``resync()``
    - Persists library directory changes and rescans
    - Never re-fetches metadata for known games unless asked via ``refresh_metadata()``
    """

    def __init__(self, store, metadata_service,
                 scanner_factory: Callable[[List[str]], GameScanner] = GameScanner):
        self.store = store
        self.metadata_service = metadata_service
        self.scanner_factory = scanner_factory

        self._settings = store.get_settings()
        self.sync_service = SyncService(store, scanner_factory(self.library_directories),
                                        metadata_service)

        self._games: List[CatalogEntry] = []
        self._selected: Optional[CatalogEntry] = None
        self._is_loading = False
        self._loaded = False

    @property
    def games(self) -> List[CatalogEntry]:
        return self._games

    @property
    def selected_game(self) -> Optional[CatalogEntry]:
        return self._selected

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def library_directories(self) -> List[str]:
        return list(self._settings.library_directories)

    # ------------------------------------------------------------------
    # Library directories
    # ------------------------------------------------------------------

    async def set_library_directories(self, directories: Iterable[str]) -> SyncResult:
        """Replace the library directories, save them and rescan."""
        # Keep order, drop duplicates
        self._settings.library_directories = list(dict.fromkeys(directories))
        self.store.upsert_settings(self._settings)
        logger.info(f"[Library] Library directories set to {self._settings.library_directories}")
        return await self.resync()

    async def add_library_directory(self, directory: str) -> SyncResult:
        return await self.set_library_directories(self.library_directories + [directory])

    async def remove_library_directory(self, directory: str) -> SyncResult:
        if directory not in self._settings.library_directories:
            logger.warning(f"[Library] '{directory}' is not a library directory")
        return await self.set_library_directories(
            [d for d in self.library_directories if d != directory]
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_games(self) -> Optional[SyncResult]:
        """Scan, sync and reload the game list. No-op once loaded."""
        if self._loaded:
            return None

        self._is_loading = True
        try:
            self.sync_service.scanner = self.scanner_factory(self.library_directories)
            result = await self.sync_service.sync_library()
            self._games = list(self.store.get_entries())
            self._loaded = True
            logger.info(f"[Library] Loaded {len(self._games)} games")
            return result
        finally:
            self._is_loading = False

    async def resync(self) -> SyncResult:
        """Forget the cached list and load again."""
        self._games = []
        self._loaded = False
        return await self.load_games()

    # ------------------------------------------------------------------
    # Selection and edits
    # ------------------------------------------------------------------

    def _find(self, path: str) -> Optional[CatalogEntry]:
        for entry in self._games:
            if entry.path == path:
                return entry
        return self.store.get_entry(path)

    def _replace_in_list(self, entry: CatalogEntry) -> None:
        for index, game in enumerate(self._games):
            if game.path == entry.path:
                self._games[index] = entry
                return
        logger.warning(f"[Library] '{entry.display_title}' not found in the game list")

    def select(self, path: Optional[str]) -> Optional[CatalogEntry]:
        """Select the game at ``path``; None clears the selection."""
        self._selected = self._find(path) if path else None
        if path and self._selected is None:
            logger.warning(f"[Library] No game at {path} to select")
        else:
            logger.debug(f"[Library] Selected {self._selected.display_title if self._selected else None}")
        return self._selected

    def update_selected_game(self,
                             title: Optional[str] = None,
                             launch_path: Optional[str] = None,
                             cover: Optional[ImageBlob] = None,
                             banner: Optional[ImageBlob] = None,
                             remote_title: Optional[str] = None,
                             remote_description: Optional[str] = None,
                             remote_rating: Optional[float] = None,
                             remote_tags: Optional[list] = None,
                             remote_developers: Optional[list] = None,
                             remote_cover: Optional[ImageBlob] = None,
                             remote_banner: Optional[ImageBlob] = None,
                             reset: Optional[Iterable[str]] = None) -> Optional[CatalogEntry]:
        """Apply edits to the selected game and save it.

        A value sets the field; a name in ``reset`` clears it (see
        OVERRIDE_FIELDS and REMOTE_RESETTABLE_FIELDS). ``remote_*`` edits are
        ignored when the game has no VNDB metadata. Returns the saved entry,
        or None when nothing is selected.
        """
        entry = self._selected
        if entry is None:
            logger.warning("[Library] update_selected_game called without a selection")
            return None
        reset = set(reset or ())

        # Edit a copy so a failed save leaves the cached entry untouched
        overrides = replace(entry.overrides)
        for name, value, setter in (
            ("title", title, overrides.set_title),
            ("launch_path", launch_path, overrides.set_launch_path),
            ("cover", cover, overrides.set_cover),
            ("banner", banner, overrides.set_banner),
        ):
            if value is not None:
                setter(value)
            elif name in reset:
                setter(None)

        remote = entry.remote
        if remote is not None:
            remote = self._edit_remote(remote, reset,
                                       title=remote_title, description=remote_description,
                                       rating=remote_rating, tags=remote_tags,
                                       developers=remote_developers,
                                       cover=remote_cover, banner=remote_banner)

        updated = replace(entry, remote=remote, overrides=overrides)
        self.store.update_entry(updated)
        self._replace_in_list(updated)
        self._selected = updated
        logger.info(f"[Library] Saved changes to '{updated.display_title}'")
        return updated

    @staticmethod
    def _edit_remote(remote: RemoteMetadata, reset: set, **changes) -> RemoteMetadata:
        edits = {name: value for name, value in changes.items() if value is not None}
        for name in ("cover", "banner", "rating"):
            if name not in edits and f"remote_{name}" in reset:
                edits[name] = None
        for name in ("tags", "developers"):
            if name not in edits and f"remote_{name}" in reset:
                edits[name] = []
        if not edits:
            return remote
        return replace(remote, **edits)

    async def delete_selected_game(self, delete_files: bool = True) -> bool:
        """Remove the selected game from the catalog, and its folder when asked.

        Returns False (and keeps the entry) when the folder cannot be deleted.
        """
        entry = self._selected
        if entry is None:
            return False

        if delete_files:
            if os.path.isdir(entry.path):
                loop = asyncio.get_running_loop()
                try:
                    await loop.run_in_executor(None, shutil.rmtree, entry.path)
                    logger.info(f"[Library] Deleted game files for '{entry.display_title}'")
                except OSError as e:
                    logger.error(f"[Library] Error deleting files for '{entry.display_title}' "
                                 f"in {entry.path}: {e}")
                    return False
            else:
                logger.warning(f"[Library] Files for '{entry.display_title}' do not exist in {entry.path}")

        self.store.delete_entry(entry.path)
        self._games = [game for game in self._games if game.path != entry.path]
        self._selected = None
        logger.info(f"[Library] Removed '{entry.display_title}' from the library")
        return True

    async def refresh_metadata(self, path: str) -> Optional[CatalogEntry]:
        """Fetch VNDB metadata again for the game at ``path`` and save it.

        Uses the stored VNDB id when there is one, the folder title otherwise.
        Returns the updated entry, or None when nothing was found.
        """
        entry = self._find(path)
        if entry is None:
            logger.warning(f"[Library] No game at {path} to refresh")
            return None

        if entry.remote is not None:
            remote = await self.metadata_service.fetch_for_id(entry.remote.vndb_id)
        else:
            remote = await self.metadata_service.fetch_for_title(entry.installation.title)
        if remote is None:
            logger.info(f"[Library] No metadata found for '{entry.display_title}', keeping current data")
            return None

        updated = replace(entry, remote=remote)
        self.store.update_entry(updated)
        self._replace_in_list(updated)
        if self._selected is not None and self._selected.path == path:
            self._selected = updated
        return updated

    # ------------------------------------------------------------------
    # Discovery helpers
    # ------------------------------------------------------------------

    def random_game(self) -> Optional[CatalogEntry]:
        if not self._games:
            return None
        return random.choice(self._games)

    async def random_remote_entry(self) -> RemoteMetadata:
        """A random VNDB entry. Raises NoRandomEntryFoundError."""
        return await self.metadata_service.fetch_random()

    async def get_characters(self, path: str) -> List[Character]:
        entry = self._find(path)
        if entry is None or entry.remote is None:
            return []
        return await self.metadata_service.fetch_characters(entry.remote.vndb_id)

    def wipe(self) -> None:
        """Delete every stored game and setting. Irreversible."""
        self.store.wipe()
        self._settings = self.store.get_settings()
        self._games = []
        self._selected = None
        self._loaded = False
        logger.warning("[Library] Catalog wiped")
