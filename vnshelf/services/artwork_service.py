"""
ArtworkService - Resolves cover and banner art for a VNDB entry.

Responsibilities:
- Scrape the covers page for a portrait cover and a landscape banner
- Fall back to the API's main image when no portrait was scraped
- Download the chosen images into ImageBlobs
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from vnshelf.exceptions import ImageLoadError
from vnshelf.metadata.covers import LANDSCAPE, PORTRAIT, parse_cover_links
from vnshelf.models.metadata import ImageBlob

logger = logging.getLogger(__name__)


@dataclass
class ArtUrls:
    cover: Optional[str] = None
    banner: Optional[str] = None


class ArtworkService:
    """Service for choosing and downloading entry artwork."""

    def __init__(self, vndb_client):
        """Initialize ArtworkService.

        Args:
            vndb_client: VndbClient used for the covers page and image downloads
        """
        self.client = vndb_client

    async def resolve_urls(self, vndb_id: str, fallback_cover_url: Optional[str] = None) -> ArtUrls:
        """Pick cover and banner URLs for ``vndb_id``.

        Cover: first scraped portrait, else ``fallback_cover_url``.
        Banner: first scraped landscape, else None.
        """
        links = {}
        try:
            html = await self.client.fetch_cover_page(vndb_id)
            if html:
                links = parse_cover_links(html)
        except Exception as e:
            logger.warning(f"[Artwork] Could not scrape covers for {vndb_id}: {e}")

        urls = ArtUrls(
            cover=links.get(PORTRAIT) or fallback_cover_url,
            banner=links.get(LANDSCAPE),
        )
        logger.debug(f"[Artwork] {vndb_id}: cover={urls.cover} banner={urls.banner}")
        return urls

    async def load_image(self, url: str) -> ImageBlob:
        """Download ``url``. Raises ImageLoadError on any failure."""
        try:
            raw = await self.client.download_image(url)
        except Exception as e:
            raise ImageLoadError(f"Error loading image from {url}: {e}") from e
        if not raw:
            raise ImageLoadError(f"Image download from {url} returned nothing")
        return ImageBlob.from_bytes(raw, url=url)

    async def _try_load(self, url: Optional[str]) -> Optional[ImageBlob]:
        if not url:
            return None
        try:
            return await self.load_image(url)
        except ImageLoadError as e:
            logger.warning(f"[Artwork] {e}")
            return None

    async def resolve_images(self, vndb_id: str, fallback_cover_url: Optional[str] = None
                             ) -> Tuple[Optional[ImageBlob], Optional[ImageBlob]]:
        """Downloaded (cover, banner) for ``vndb_id``; a slot that fails stays None.

        A scraped portrait that cannot be downloaded is retried with the
        fallback cover URL.
        """
        urls = await self.resolve_urls(vndb_id, fallback_cover_url)

        cover = await self._try_load(urls.cover)
        if cover is None and fallback_cover_url and urls.cover != fallback_cover_url:
            logger.info(f"[Artwork] Falling back to main image for {vndb_id}")
            cover = await self._try_load(fallback_cover_url)

        banner = await self._try_load(urls.banner)
        return cover, banner
