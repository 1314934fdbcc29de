"""Exception types raised by the vnshelf catalog."""


class VnshelfError(Exception):
    """Base class for all vnshelf errors."""


class StoreError(VnshelfError):
    """Raised when the catalog store cannot be opened or used."""


class StoreNotInitializedError(StoreError):
    """Raised when an operation is attempted on a closed or uninitialized store."""

    def __init__(self, message: str = "Catalog store is not initialized."):
        super().__init__(message)


class StoreWriteError(StoreError):
    """Raised when a write to the catalog store fails."""


class MetadataError(VnshelfError):
    """Raised for VNDB lookups that must signal failure instead of returning None."""


class NoRandomEntryFoundError(MetadataError):
    """Raised when no random VNDB entry could be resolved."""


class ImageLoadError(VnshelfError):
    """Raised when an image cannot be loaded from a URL or a file."""
