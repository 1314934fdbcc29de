"""
SyncService - Reconciles the catalog store with the library directories.

Responsibilities:
- Scan the library directories for installations
- Insert new installations, fetching their VNDB metadata once
- Refresh identity fields of installations whose folder changed
- Delete entries whose folder is gone
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from vnshelf.discovery.scanner import is_under
from vnshelf.exceptions import StoreWriteError
from vnshelf.models.catalog import CatalogEntry, UserOverrides

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Paths touched by one sync pass."""
    inserted: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    failed_deletes: List[str] = field(default_factory=list)
    # Stored entries kept because their folder could not be read
    unreadable: List[str] = field(default_factory=list)
    # True when the call returned without syncing because another pass was running
    skipped: bool = False

    @property
    def mutations(self) -> int:
        """Number of store writes performed."""
        return len(self.inserted) + len(self.updated) + len(self.deleted)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['mutations'] = self.mutations
        return data


class SyncService:
    """Service for reconciling stored entries with what is on disk."""

    def __init__(self, store, scanner, metadata_service):
        """Initialize SyncService with its collaborators.

        Args:
            store: CatalogStore instance
            scanner: GameScanner (``scan()`` plus ``unreadable``) for the library directories
            metadata_service: MetadataService used to enrich new entries
        """
        self.store = store
        self.scanner = scanner
        self.metadata_service = metadata_service

        # Sync state
        self._sync_lock = asyncio.Lock()
        self._is_syncing = False

    @property
    def is_syncing(self) -> bool:
        return self._is_syncing

    async def sync_library(self) -> SyncResult:
        """Bring the store in line with the scanned installations.

        Returns a SyncResult; ``skipped`` is set when another sync is running.
        Insert and update failures raise StoreWriteError. A failed delete is
        recorded in ``failed_deletes`` and retried by the next sync.
        """
        # Check if sync already running (non-blocking check)
        if self._is_syncing:
            logger.warning("[Sync] Sync already in progress, ignoring request")
            return SyncResult(skipped=True)

        async with self._sync_lock:
            self._is_syncing = True
            try:
                return await self._sync()
            finally:
                self._is_syncing = False

    async def _sync(self) -> SyncResult:
        result = SyncResult()
        loop = asyncio.get_running_loop()

        stored: Dict[str, CatalogEntry] = {entry.path: entry for entry in self.store.get_entries()}
        # Scanning touches the disk; keep it off the event loop
        candidates = await loop.run_in_executor(None, self.scanner.scan)
        logger.info(f"[Sync] {len(candidates)} installation(s) on disk, {len(stored)} in store")

        seen = set()
        for candidate in list(candidates):
            # The same folder reachable through two library directories
            if candidate.path in seen:
                continue
            seen.add(candidate.path)
            existing = stored.pop(candidate.path, None)

            if existing is None:
                logger.info(f"[Sync] New installation '{candidate.title}', fetching metadata")
                remote = await self.metadata_service.fetch_for_title(candidate.title)
                entry = CatalogEntry(installation=candidate, remote=remote, overrides=UserOverrides())
                self.store.insert_entry(entry)
                result.inserted.append(candidate.path)
                continue

            refreshed = existing.with_installation(candidate)
            if refreshed.local_data() == existing.local_data():
                logger.debug(f"[Sync] '{candidate.title}' is already up to date")
                result.unchanged.append(candidate.path)
                continue

            logger.info(f"[Sync] Installation '{candidate.title}' changed on disk, updating")
            self.store.update_entry(refreshed)
            result.updated.append(candidate.path)

        for path, entry in stored.items():
            if is_under(path, self.scanner.unreadable):
                logger.warning(f"[Sync] Could not read '{entry.display_title}' on disk, keeping it")
                result.unreadable.append(path)
                continue
            try:
                self.store.delete_entry(path)
                result.deleted.append(path)
                logger.info(f"[Sync] '{entry.display_title}' no longer on disk, removed")
            except StoreWriteError as e:
                logger.error(f"[Sync] Could not remove '{entry.display_title}', will retry next sync: {e}")
                result.failed_deletes.append(path)

        logger.info(f"[Sync] Done: {len(result.inserted)} added, {len(result.updated)} updated, "
                    f"{len(result.deleted)} removed, {len(result.unchanged)} unchanged")
        return result
