"""
Tests for the filesystem scanner.
"""
import os

from unittest.mock import patch

from vnshelf.discovery.scanner import (GameScanner, detect_platforms, extract_title,
                                       extract_version, is_under)

from conftest import make_game_dir


def test_extract_title_takes_part_before_first_dash():
    assert extract_title("VN1-1.0") == "VN1"
    assert extract_title("Some Game-v2-final") == "Some Game"
    assert extract_title("NoDash") == "NoDash"


def test_extract_version():
    assert extract_version("VN1-1.0") == "1.0"
    assert extract_version("Game-2.1.3-linux") == "2.1.3"
    assert extract_version("Game-v10") is None
    assert extract_version("Game") is None


def test_detect_platforms_reads_direct_files_only(tmp_path):
    game = make_game_dir(tmp_path, "Game-1.0", "Game.sh", "readme.txt")
    make_game_dir(game, "sub", "Game.exe")

    flags = detect_platforms(str(game))

    assert flags == {"supports_mac": False, "supports_unix": True, "supports_win": False}


def test_scan_classifies_windows_game(tmp_path):
    """A folder 'VN1-1.0' holding VN1.exe is a Windows-only game, version 1.0."""
    make_game_dir(tmp_path, "VN1-1.0", "VN1.exe")

    installations = GameScanner([str(tmp_path)]).scan()

    assert len(installations) == 1
    inst = installations[0]
    assert inst.path == str(tmp_path / "VN1-1.0")
    assert inst.title == "VN1"
    assert inst.version == "1.0"
    assert inst.supports_win is True
    assert inst.supports_unix is False
    assert inst.supports_mac is False


def test_scan_ignores_files_in_root(tmp_path):
    make_game_dir(tmp_path, "Game-1.0", "Game.mac")
    (tmp_path / "notes.txt").write_text("not a game")

    installations = GameScanner([str(tmp_path)]).scan()

    assert [i.title for i in installations] == ["Game"]
    assert installations[0].supports_mac is True


def test_scan_skips_missing_root(tmp_path):
    library = tmp_path / "library"
    make_game_dir(library, "Game-1.0", "Game.sh")

    installations = GameScanner([str(tmp_path / "missing"), str(library)]).scan()

    assert [i.title for i in installations] == ["Game"]


def test_scan_empty_directory_list():
    assert GameScanner([]).scan() == []


def test_unreadable_game_folder_does_not_hide_siblings(tmp_path):
    make_game_dir(tmp_path, "A-1.0", "A.exe")
    locked = make_game_dir(tmp_path, "B-1.0", "B.exe")
    real_detect = detect_platforms

    def detect(path):
        if path == str(locked):
            raise PermissionError(13, "Permission denied", path)
        return real_detect(path)

    scanner = GameScanner([str(tmp_path)])
    with patch("vnshelf.discovery.scanner.detect_platforms", side_effect=detect):
        installations = scanner.scan()

    assert [i.title for i in installations] == ["A"]
    assert scanner.unreadable == [str(locked)]


def test_unreadable_root_does_not_stop_other_roots(tmp_path):
    broken = tmp_path / "broken"
    library = tmp_path / "library"
    make_game_dir(broken, "A-1.0", "A.exe")
    make_game_dir(library, "B-1.0", "B.sh")
    real_scandir = os.scandir

    def scandir(path="."):
        if os.fspath(path) == str(broken):
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    scanner = GameScanner([str(broken), str(library)])
    with patch("vnshelf.discovery.scanner.os.scandir", side_effect=scandir):
        installations = scanner.scan()

    assert [i.title for i in installations] == ["B"]
    assert scanner.unreadable == [str(broken)]


def test_unreadable_list_resets_each_scan(tmp_path):
    make_game_dir(tmp_path, "A-1.0", "A.exe")
    scanner = GameScanner([str(tmp_path)])
    scanner.unreadable = ["/stale"]

    scanner.scan()

    assert scanner.unreadable == []


def test_is_under():
    assert is_under("/lib/B-1.0", ["/lib/B-1.0"])
    assert is_under("/lib/B-1.0", ["/other", "/lib/"])
    assert not is_under("/lib/B-1.0", ["/lib/A-1.0"])
    assert not is_under("/lib/sub/B-1.0", ["/lib"])
    assert not is_under("/lib/B-1.0", [])
