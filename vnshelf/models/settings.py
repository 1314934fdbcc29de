"""Application settings record stored next to the catalog."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List

# Fixed primary key of the single settings row
SETTINGS_KEY = 42

# "<*>" cannot occur in a filesystem path, so it is safe as a list separator
DIRECTORY_SEPARATOR = "<*>"


class StartPage(IntEnum):
    HOME = 0
    LIBRARY = 1
    SETTINGS = 2


class ThemeType(IntEnum):
    SYSTEM_DEFAULT = 0
    LIGHT = 1
    DARK = 2


class BannerAction(IntEnum):
    OPEN_LIBRARY_PAGE = 0
    START_GAME = 1


def serialize_directories(directories: List[str]) -> str:
    return DIRECTORY_SEPARATOR.join(directories)


def parse_directories(serialized: str) -> List[str]:
    if not serialized:
        return []
    return [d for d in serialized.split(DIRECTORY_SEPARATOR) if d]


@dataclass
class AppSettings:
    start_page: StartPage = StartPage.HOME
    default_theme: ThemeType = ThemeType.DARK
    banner_action: BannerAction = BannerAction.OPEN_LIBRARY_PAGE
    enable_internet_recommendations: bool = True
    library_directories: List[str] = field(default_factory=list)

    def to_row(self) -> Dict[str, Any]:
        return {
            "key": SETTINGS_KEY,
            "start_page": int(self.start_page),
            "default_theme": int(self.default_theme),
            "banner_action": int(self.banner_action),
            "enable_internet_recommendations": 1 if self.enable_internet_recommendations else 0,
            "library_directories": serialize_directories(self.library_directories),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AppSettings":
        return cls(
            start_page=StartPage(row["start_page"]),
            default_theme=ThemeType(row["default_theme"]),
            banner_action=BannerAction(row["banner_action"]),
            enable_internet_recommendations=row["enable_internet_recommendations"] == 1,
            library_directories=parse_directories(row["library_directories"] or ""),
        )
