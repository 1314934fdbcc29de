"""Catalog records: installations found on disk and the persisted entries built from them."""

import ntpath
import posixpath
import sys
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .metadata import ImageBlob, RemoteMetadata, now_millis


def resolve_first(*sources: Any) -> Any:
    """Return the first source that is not None, or None when every source is empty.

    Used for override precedence, e.g.
    ``resolve_first(overrides.title, remote_title, installation.title)``.
    """
    for value in sources:
        if value is not None:
            return value
    return None


@dataclass
class Installation:
    """A game folder as found by the scanner. ``path`` is its identity."""
    path: str
    title: str
    supports_mac: bool = False
    supports_unix: bool = False
    supports_win: bool = False
    version: Optional[str] = None


@dataclass
class UserOverrides:
    """Per-entry settings made by the user.

    Mutate through the ``set_*`` methods so ``last_updated`` moves forward.
    """
    title: Optional[str] = None
    launch_path: Optional[str] = None
    cover: Optional[ImageBlob] = None
    banner: Optional[ImageBlob] = None
    last_updated: int = field(default_factory=now_millis)

    def _touch(self) -> None:
        # Strictly increasing, even for two edits inside the same millisecond
        self.last_updated = max(now_millis(), self.last_updated + 1)

    def set_title(self, title: Optional[str]) -> None:
        self.title = title
        self._touch()

    def set_launch_path(self, launch_path: Optional[str]) -> None:
        self.launch_path = launch_path
        self._touch()

    def set_cover(self, cover: Optional[ImageBlob]) -> None:
        self.cover = cover
        self._touch()

    def set_banner(self, banner: Optional[ImageBlob]) -> None:
        self.banner = banner
        self._touch()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "launch_path": self.launch_path,
            "cover": self.cover.to_dict() if self.cover else None,
            "banner": self.banner.to_dict() if self.banner else None,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserOverrides":
        if not data:
            return cls()
        return cls(
            title=data.get("title"),
            launch_path=data.get("launch_path"),
            cover=ImageBlob.from_dict(data.get("cover")),
            banner=ImageBlob.from_dict(data.get("banner")),
            last_updated=data.get("last_updated") or now_millis(),
        )


@dataclass
class CatalogEntry:
    """A persisted catalog record: identity, optional VNDB metadata and user overrides."""
    installation: Installation
    remote: Optional[RemoteMetadata] = None
    overrides: UserOverrides = field(default_factory=UserOverrides)

    @property
    def path(self) -> str:
        return self.installation.path

    @property
    def display_title(self) -> str:
        remote_title = self.remote.title if self.remote else None
        return resolve_first(self.overrides.title, remote_title, self.installation.title)

    @property
    def cover(self) -> Optional[ImageBlob]:
        return resolve_first(self.overrides.cover, self.remote.cover if self.remote else None)

    @property
    def banner(self) -> Optional[ImageBlob]:
        return resolve_first(self.overrides.banner, self.remote.banner if self.remote else None)

    def local_data(self) -> "CatalogEntry":
        """The entry without remote metadata; the part that sync compares."""
        return CatalogEntry(installation=self.installation, remote=None, overrides=self.overrides)

    def with_installation(self, installation: Installation) -> "CatalogEntry":
        """Copy of this entry with refreshed identity fields; metadata and overrides kept."""
        return replace(self, installation=installation)

    def launch_path(self, platform: Optional[str] = None) -> Optional[str]:
        """Executable to launch on ``platform`` (defaults to ``sys.platform``).

        Returns None when the platform is unsupported or the game has no
        launcher for it.
        """
        platform = platform or sys.platform
        inst = self.installation
        if platform.startswith("linux") and inst.supports_unix:
            return self.overrides.launch_path or posixpath.join(inst.path, f"{inst.title}.sh")
        if platform.startswith("win") and inst.supports_win:
            return self.overrides.launch_path or ntpath.join(inst.path, f"{inst.title}.exe")
        return None
