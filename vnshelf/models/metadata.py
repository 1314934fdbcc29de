"""Typed records for metadata fetched from VNDB.

All records keep the JSON shape they are stored with, so a record written by
``to_dict()`` reads back unchanged through ``from_dict()``.
"""

import base64
import os
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

from vnshelf.exceptions import ImageLoadError


def now_millis() -> int:
    """Milliseconds since the UNIX epoch."""
    return int(time.time() * 1000)


class DevStatus(IntEnum):
    """Development status as reported by VNDB (``devstatus`` field)."""
    UNKNOWN = -1
    FINISHED = 0
    IN_DEVELOPMENT = 1
    ABORTED = 2

    @classmethod
    def from_value(cls, value: Any) -> "DevStatus":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


@dataclass
class ImageBlob:
    """An image held in memory as base64 text, remembering where it came from."""
    data: str
    url: Optional[str] = None
    filepath: Optional[str] = None

    @classmethod
    def from_bytes(cls, raw: bytes, url: Optional[str] = None,
                   filepath: Optional[str] = None) -> "ImageBlob":
        return cls(data=base64.b64encode(raw).decode("ascii"), url=url, filepath=filepath)

    @classmethod
    def from_file(cls, filepath: str) -> "ImageBlob":
        """Read an image from disk. Raises ImageLoadError if it cannot be read."""
        if not os.path.isfile(filepath):
            raise ImageLoadError(f"Image file not found: {filepath}")
        try:
            with open(filepath, "rb") as f:
                return cls.from_bytes(f.read(), filepath=filepath)
        except OSError as e:
            raise ImageLoadError(f"Error loading image from file {filepath}: {e}") from e

    @property
    def raw_bytes(self) -> bytes:
        """Raw image bytes. Accepts data-URI style payloads (``data:...;base64,xxx``)."""
        payload = self.data
        if "," in payload:
            payload = payload.split(",")[-1]
        return base64.b64decode(payload)

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "filepath": self.filepath, "data": self.data}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ImageBlob"]:
        if not data:
            return None
        return cls(data=data["data"], url=data.get("url"), filepath=data.get("filepath"))


@dataclass
class Tag:
    id: str
    name: str
    rating: float
    spoiler: int = 0

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Tag":
        return cls(
            id=str(raw["id"]),
            name=raw.get("name", ""),
            rating=float(raw.get("rating") or 0.0),
            spoiler=int(raw.get("spoiler") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "rating": self.rating, "spoiler": self.spoiler}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(
            id=data["id"],
            name=data["name"],
            rating=data["rating"],
            spoiler=data.get("spoiler", 0),
        )


@dataclass
class Developer:
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Developer":
        return cls(id=str(data.get("id", "")), name=str(data.get("name", "")))


@dataclass
class Character:
    id: str
    first_name: str
    last_name: str
    image_url: str = ""

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Character":
        """Build a character from a ``/character`` result.

        The name is split on the first space; everything after it is the last name.
        """
        first_name, _, last_name = (raw.get("name") or "").partition(" ")
        image = raw.get("image") or {}
        return cls(
            id=str(raw["id"]),
            first_name=first_name,
            last_name=last_name,
            image_url=image.get("url") or "",
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "image_url": self.image_url,
        }


@dataclass
class RemoteMetadata:
    """Descriptive data for one catalog entry, as resolved from VNDB."""
    vndb_id: str
    title: str
    dev_status: DevStatus = DevStatus.UNKNOWN
    cover: Optional[ImageBlob] = None
    banner: Optional[ImageBlob] = None
    description: Optional[str] = None
    tags: List[Tag] = field(default_factory=list)
    developers: List[Developer] = field(default_factory=list)
    rating: Optional[float] = None
    # Not part of equality: two fetches of the same data compare equal.
    last_updated: int = field(default_factory=now_millis, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vndb_id": self.vndb_id,
            "title": self.title,
            "dev_status": int(self.dev_status),
            "cover": self.cover.to_dict() if self.cover else None,
            "banner": self.banner.to_dict() if self.banner else None,
            "description": self.description,
            "tags": [tag.to_dict() for tag in self.tags],
            "developers": [dev.to_dict() for dev in self.developers],
            "rating": self.rating,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteMetadata":
        return cls(
            vndb_id=data["vndb_id"],
            title=data["title"],
            dev_status=DevStatus.from_value(data.get("dev_status")),
            cover=ImageBlob.from_dict(data.get("cover")),
            banner=ImageBlob.from_dict(data.get("banner")),
            description=data.get("description"),
            tags=[Tag.from_dict(t) for t in data.get("tags", [])],
            developers=[Developer.from_dict(d) for d in data.get("developers", [])],
            rating=data.get("rating"),
            last_updated=data.get("last_updated") or now_millis(),
        )
