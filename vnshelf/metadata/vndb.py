"""VNDB Kana API client.

Looks up visual novels by title or id, resolves tag names, pages through the
characters of a title and picks random entries.
Reference: https://api.vndb.org/kana
"""
import json
import logging
import random
import re
import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp
import certifi

from vnshelf.exceptions import NoRandomEntryFoundError
from vnshelf.models.metadata import Character, Tag

logger = logging.getLogger(__name__)

# VNDB API configuration
VNDB_API_BASE = "https://api.vndb.org/kana"
VNDB_SITE_BASE = "https://vndb.org"

# Fields requested for every catalog lookup
DEFAULT_FIELDS = [
    "id",
    "title",
    "devstatus",
    "image.url",
    "description",
    "tags.spoiler",
    "tags.rating",
    "tags.name",
    "developers.name",
    "rating",
]

CHARACTER_FIELDS = ["name", "image.url"]

# A tag is dropped when it is both spoilery and weakly voted
SPOILER_THRESHOLD = 1
RATING_THRESHOLD = 1.8

# VNDB ratings are 10-100; the catalog shows 0-5
RATING_SCALE = 0.05

# The covers page refuses requests that do not look like a browser
BROWSER_HEADERS = {
    "User-Agent": ("Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
                   "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def filter_tags(tags: List[Tag], spoiler_threshold: int = SPOILER_THRESHOLD,
                rating_threshold: float = RATING_THRESHOLD) -> List[Tag]:
    """Drop tags that are spoilers and poorly rated at the same time.

    A tag is kept unless ``spoiler > spoiler_threshold`` and
    ``rating < rating_threshold``; values equal to a threshold are kept.
    """
    return [
        tag for tag in tags
        if not (tag.spoiler > spoiler_threshold and tag.rating < rating_threshold)
    ]


def normalize_rating(rating: Optional[float]) -> Optional[float]:
    """Rescale a VNDB rating (10-100) to the 0-5 range."""
    if rating is None:
        return None
    return rating * RATING_SCALE


def parse_vn_number(vndb_id: str) -> Optional[int]:
    """``"v17"`` -> 17; None if the id has no numeric part."""
    match = re.search(r'\d+', vndb_id or '')
    return int(match.group(0)) if match else None


@dataclass
class VndbQuery:
    """Request body for the Kana API's POST endpoints."""
    filters: List[Any] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    sort: str = "id"
    reverse: bool = False
    results: int = 10
    page: int = 1
    user: Optional[str] = None
    count: bool = False
    compact_filters: bool = False
    normalized_filters: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filters": self.filters,
            "fields": ", ".join(self.fields),
            "sort": self.sort,
            "reverse": self.reverse,
            "results": self.results,
            "page": self.page,
            "user": self.user,
            "count": self.count,
            "compact_filters": self.compact_filters,
            "normalized_filters": self.normalized_filters,
        }


class VndbClient:
    """Async client for the VNDB Kana API and the vndb.org covers pages."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context, limit_per_host=5)
            timeout = aiohttp.ClientTimeout(total=self.timeout) if self.timeout else None
            kwargs = {"timeout": timeout} if timeout else {}
            self.session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": "vnshelf (+https://vndb.org/d11)"},
                **kwargs
            )
        return self.session

    async def _post(self, resource: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """POST ``query`` to ``/kana/<resource>``.

        Returns the decoded JSON body, or None on a non-200 status, a network
        error or an unparseable body.
        """
        url = f"{VNDB_API_BASE}/{resource}"
        session = await self._get_session()
        try:
            async with session.post(url, json=query) as resp:
                logger.debug(f"[VNDB] POST /{resource} -> {resp.status}")
                if resp.status != 200:
                    logger.warning(f"[VNDB] /{resource} request failed with status {resp.status}")
                    return None
                return json.loads(await resp.text())
        except (aiohttp.ClientError, ValueError) as e:
            logger.error(f"[VNDB] /{resource} request error: {e}")
            return None
        except Exception as e:
            logger.error(f"[VNDB] Unexpected error on /{resource}: {e}")
            return None

    @staticmethod
    def _first_result(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not data:
            return None
        results = data.get("results")
        if isinstance(results, list) and results:
            return results[0]
        return None

    async def fetch_by_title(self, title: str,
                             fields: Optional[List[str]] = None) -> Optional[Dict[str, Any]]:
        """Best search match for ``title``, or None."""
        query = VndbQuery(filters=["search", "=", title],
                          fields=fields or DEFAULT_FIELDS, results=1)
        result = self._first_result(await self._post("vn", query.to_dict()))
        if result is None:
            logger.info(f"[VNDB] No results found for title '{title}'")
        return result

    async def fetch_by_id(self, vndb_id: str,
                          fields: Optional[List[str]] = None) -> Optional[Dict[str, Any]]:
        """The entry with id ``vndb_id`` (e.g. ``"v17"``), or None."""
        query = VndbQuery(filters=["id", "=", vndb_id],
                          fields=fields or DEFAULT_FIELDS, results=1)
        result = self._first_result(await self._post("vn", query.to_dict()))
        if result is None:
            logger.info(f"[VNDB] No results found for id {vndb_id}")
        else:
            logger.debug(f"[VNDB] Properties retrieved for id {vndb_id}")
        return result

    async def fetch_tag_name(self, tag_id: str) -> Optional[str]:
        query = VndbQuery(filters=["id", "=", tag_id], fields=["name"], results=1)
        result = self._first_result(await self._post("tag", query.to_dict()))
        if result is None:
            logger.info(f"[VNDB] No results found for tag {tag_id}")
            return None
        return result.get("name")

    async def fetch_characters(self, vndb_id: str) -> List[Character]:
        """All characters of ``vndb_id``, following ``more`` page by page.

        A failed first page gives an empty list; a failed later page ends the
        walk and returns the characters collected so far.
        """
        query = VndbQuery(filters=["vn", "=", ["id", "=", vndb_id]],
                          fields=CHARACTER_FIELDS, results=10, page=1)
        characters: List[Character] = []

        while True:
            data = await self._post("character", query.to_dict())
            if data is None:
                if query.page > 1:
                    logger.warning(f"[VNDB] Character page {query.page} for {vndb_id} failed, "
                                   f"returning {len(characters)} characters")
                return characters

            for raw in data.get("results") or []:
                try:
                    characters.append(Character.from_api(raw))
                except (KeyError, TypeError) as e:
                    logger.debug(f"[VNDB] Skipping malformed character for {vndb_id}: {e}")

            if data.get("more") is not True:
                break
            query.page += 1

        logger.debug(f"[VNDB] Returning {len(characters)} characters for {vndb_id}")
        return characters

    async def fetch_random_entry(self, fields: Optional[List[str]] = None) -> Dict[str, Any]:
        """Properties of a random entry.

        Looks up the highest id, picks a number in ``[0, max]`` and fetches it.
        Raises NoRandomEntryFoundError when any step comes back empty.
        """
        query = VndbQuery(fields=["id"], sort="id", reverse=True, results=1)
        newest = self._first_result(await self._post("vn", query.to_dict()))
        max_number = parse_vn_number(newest.get("id", "")) if newest else None
        if max_number is None:
            raise NoRandomEntryFoundError("Could not determine the highest VNDB id")

        vndb_id = f"v{random.randint(0, max_number)}"
        logger.debug(f"[VNDB] Picked random id {vndb_id} (max v{max_number})")

        result = await self.fetch_by_id(vndb_id, fields)
        if result is None:
            raise NoRandomEntryFoundError(f"No VNDB entry found for random id {vndb_id}")
        return result

    async def fetch_cover_page(self, vndb_id: str) -> Optional[str]:
        """HTML of the covers page for ``vndb_id``, or None."""
        url = f"{VNDB_SITE_BASE}/{vndb_id}/cv#cv"
        session = await self._get_session()
        try:
            async with session.get(url, headers=BROWSER_HEADERS) as resp:
                if resp.status != 200:
                    logger.warning(f"[VNDB] Covers page for {vndb_id} returned {resp.status}")
                    return None
                return await resp.text()
        except Exception as e:
            logger.error(f"[VNDB] Error fetching covers page for {vndb_id}: {e}")
            return None

    async def download_image(self, url: str) -> Optional[bytes]:
        session = await self._get_session()
        try:
            async with session.get(url) as resp:
                if resp.status != 200:
                    logger.warning(f"[VNDB] Image download failed ({resp.status}): {url}")
                    return None
                return await resp.read()
        except Exception as e:
            logger.error(f"[VNDB] Error downloading image {url}: {e}")
            return None

    async def close(self):
        """Close the session."""
        if self.session and not self.session.closed:
            await self.session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
