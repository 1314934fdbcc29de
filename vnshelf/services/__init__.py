# Services
from .artwork_service import ArtworkService, ArtUrls
from .metadata_service import MetadataService
from .sync_service import SyncService, SyncResult
