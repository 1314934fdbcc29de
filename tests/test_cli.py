"""
Tests for the command line front end.
"""
import pytest

from vnshelf.cli import build_parser, format_entry, main
from vnshelf.models.catalog import CatalogEntry, Installation


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep main() from reconfiguring the root logger during tests."""
    monkeypatch.setattr("vnshelf.cli.setup_logging", lambda **kwargs: None)


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parser_rename_reset():
    args = build_parser().parse_args(["rename", "/games/VN1", "--reset"])
    assert args.command == "rename"
    assert args.reset is True
    assert args.title is None


def test_format_entry():
    entry = CatalogEntry(Installation(path="/g/VN1-1.0", title="VN1", supports_win=True, version="1.0"))
    assert format_entry(entry) == "VN1  [1.0]  (windows)  /g/VN1-1.0"


def test_dirs_list_on_fresh_catalog(tmp_path, capsys):
    db = tmp_path / "database.db"

    assert main(["--no-log-file", "--db", str(db), "dirs", "list"]) == 0
    assert capsys.readouterr().out == ""


def test_wipe_requires_confirmation(tmp_path, capsys):
    db = tmp_path / "database.db"

    assert main(["--no-log-file", "--db", str(db), "wipe"]) == 2
    assert "--yes" in capsys.readouterr().err


def test_random_on_empty_library(tmp_path):
    db = tmp_path / "database.db"
    assert main(["--no-log-file", "--db", str(db), "random"]) == 1


def test_show_unknown_game(tmp_path, capsys):
    db = tmp_path / "database.db"
    assert main(["--no-log-file", "--db", str(db), "show", "/no/such/game"]) == 1
    assert "No game at" in capsys.readouterr().err
