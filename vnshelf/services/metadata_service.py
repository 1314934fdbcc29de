"""
MetadataService - Builds RemoteMetadata records from VNDB.

Responsibilities:
- Look up an entry by title or VNDB id
- Resolve artwork through ArtworkService
- Filter spoiler tags and rescale the rating
- Fetch characters and random entries

Network failures never escape ``fetch_for_title``/``fetch_for_id``; they are
logged and reported as None.
"""

import logging
from typing import Any, Dict, List, Optional

from vnshelf.metadata.vndb import DEFAULT_FIELDS, filter_tags, normalize_rating
from vnshelf.models.metadata import Character, Developer, DevStatus, RemoteMetadata, Tag

logger = logging.getLogger(__name__)


class MetadataService:
    """Service for fetching and shaping remote metadata."""

    def __init__(self, vndb_client, artwork_service):
        """Initialize MetadataService.

        Args:
            vndb_client: VndbClient instance for API lookups
            artwork_service: ArtworkService instance for cover/banner resolution
        """
        self.client = vndb_client
        self.artwork_service = artwork_service

    async def fetch_for_title(self, title: str) -> Optional[RemoteMetadata]:
        """Metadata for the best VNDB match of ``title``, or None.

        A lookup error or a malformed result is logged and gives None.
        """
        try:
            raw = await self.client.fetch_by_title(title, DEFAULT_FIELDS)
            if not raw:
                logger.info(f"[Metadata] No VNDB match for '{title}'")
                return None
            return await self.build_metadata(raw)
        except Exception as e:
            logger.error(f"[Metadata] Error looking up '{title}': {e}")
            return None

    async def fetch_for_id(self, vndb_id: str) -> Optional[RemoteMetadata]:
        """Metadata for VNDB id ``vndb_id``, or None."""
        try:
            raw = await self.client.fetch_by_id(vndb_id, DEFAULT_FIELDS)
            if not raw:
                return None
            return await self.build_metadata(raw)
        except Exception as e:
            logger.error(f"[Metadata] Error looking up {vndb_id}: {e}")
            return None

    async def fetch_random(self) -> RemoteMetadata:
        """Metadata of a random VNDB entry. Raises NoRandomEntryFoundError."""
        raw = await self.client.fetch_random_entry(DEFAULT_FIELDS)
        return await self.build_metadata(raw)

    async def fetch_characters(self, vndb_id: str) -> List[Character]:
        try:
            return await self.client.fetch_characters(vndb_id)
        except Exception as e:
            logger.error(f"[Metadata] Error fetching characters for {vndb_id}: {e}")
            return []

    async def _resolve_tags(self, raw_tags: List[Dict[str, Any]]) -> List[Tag]:
        tags = []
        for raw in raw_tags or []:
            try:
                tag = Tag.from_api(raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"[Metadata] Skipping malformed tag {raw}: {e}")
                continue
            if not tag.name:
                tag.name = await self.client.fetch_tag_name(tag.id) or ""
            tags.append(tag)
        return filter_tags(tags)

    async def build_metadata(self, raw: Dict[str, Any]) -> RemoteMetadata:
        """Turn a raw ``/vn`` result into a RemoteMetadata record with images."""
        vndb_id = raw["id"]
        title = raw.get("title") or ""
        fallback_cover_url = (raw.get("image") or {}).get("url")

        try:
            cover, banner = await self.artwork_service.resolve_images(vndb_id, fallback_cover_url)
        except Exception as e:
            logger.warning(f"[Metadata] Artwork resolution failed for '{title}': {e}")
            cover, banner = None, None

        tags = await self._resolve_tags(raw.get("tags"))
        developers = [Developer.from_dict(d) for d in raw.get("developers") or []]

        metadata = RemoteMetadata(
            vndb_id=vndb_id,
            title=title,
            dev_status=DevStatus.from_value(raw.get("devstatus")),
            cover=cover,
            banner=banner,
            description=raw.get("description"),
            tags=tags,
            developers=developers,
            rating=normalize_rating(raw.get("rating")),
        )
        logger.info(f"[Metadata] Resolved '{title}' ({vndb_id}): {len(tags)} tags, "
                    f"cover={'yes' if cover else 'no'}, banner={'yes' if banner else 'no'}")
        return metadata
