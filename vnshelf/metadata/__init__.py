# Metadata sources
from .vndb import VndbClient, VndbQuery, DEFAULT_FIELDS, filter_tags, normalize_rating
from .covers import parse_cover_links
