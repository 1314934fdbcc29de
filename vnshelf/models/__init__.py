# Models package
from .catalog import CatalogEntry, Installation, UserOverrides, resolve_first
from .metadata import (
    Character,
    Developer,
    DevStatus,
    ImageBlob,
    RemoteMetadata,
    Tag,
    now_millis,
)
from .settings import AppSettings, BannerAction, StartPage, ThemeType
