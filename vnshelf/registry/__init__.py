# Registry package
from .catalog_store import CatalogStore
