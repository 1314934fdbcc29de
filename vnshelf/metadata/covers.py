"""Scraping of the vndb.org covers page (``/<id>/cv``)."""
import logging
import re
from typing import Dict

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

PORTRAIT = "portrait"
LANDSCAPE = "landscape"

_WIDTH_RE = re.compile(r'width:\s*(\d+)px')
_HEIGHT_RE = re.compile(r'height:\s*(\d+)px')


def parse_cover_links(html: str) -> Dict[str, str]:
    """Image links found on a covers page, keyed by orientation.

    Each ``div.imghover`` inside ``div.vncovers`` carries its size as inline
    style; it is portrait when taller than wide, landscape otherwise. The
    first link of each orientation wins. Returns ``{}`` when nothing is found.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    covers = soup.select_one("div.vncovers")
    if covers is None:
        logger.warning("[Covers] Could not find any covers in the page")
        return {}

    links: Dict[str, str] = {}
    for box in covers.select("div.imghover"):
        style = box.get("style") or ""
        width = _WIDTH_RE.search(style)
        height = _HEIGHT_RE.search(style)
        if not width or not height:
            continue

        orientation = PORTRAIT if int(height.group(1)) > int(width.group(1)) else LANDSCAPE
        if orientation in links:
            continue

        anchor = box.find("a")
        href = anchor.get("href") if anchor else None
        if href:
            links[orientation] = href
            logger.debug(f"[Covers] Found {orientation} image: {href}")

    logger.debug(f"[Covers] Parsed {len(links)} image link(s)")
    return links
