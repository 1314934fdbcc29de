"""
Tests for VNDB markup to Markdown conversion.
"""
from vnshelf.utils.markup import vndb_to_markdown


def test_empty_input():
    assert vndb_to_markdown("") == ""
    assert vndb_to_markdown(None) == ""


def test_inline_styles():
    assert vndb_to_markdown("[b]bold[/b]") == "**bold**"
    assert vndb_to_markdown("[i]it[/i]") == "*it*"
    assert vndb_to_markdown("[u]under[/u]") == "<u>under</u>"
    assert vndb_to_markdown("[s]gone[/s]") == "~~gone~~"


def test_links():
    assert vndb_to_markdown("[url=https://vndb.org/v17]Ever17[/url]") == "[Ever17](https://vndb.org/v17)"


def test_from_attribution():
    text = "Plot summary.\n\n[From [url=https://en.wikipedia.org/wiki/Ever17]Wikipedia[/url]]"
    assert vndb_to_markdown(text) == (
        "Plot summary.\n\n[From Wikipedia](https://en.wikipedia.org/wiki/Ever17)"
    )


def test_spoiler_becomes_details():
    assert vndb_to_markdown("[spoiler]twist[/spoiler]") == (
        "<details><summary>Spoiler</summary>\ntwist\n</details>"
    )


def test_quote_prefixes_each_line():
    assert vndb_to_markdown("[quote]one\ntwo[/quote]") == "> one\n> two"


def test_code_and_raw_contents_are_untouched():
    assert vndb_to_markdown("[code][b]x[/b][/code]") == "```\n[b]x[/b]\n```"
    assert vndb_to_markdown("[raw][url=a]b[/url][/raw] [b]y[/b]") == "```\n[url=a]b[/url]\n``` **y**"


def test_plain_text_unchanged():
    assert vndb_to_markdown("Nothing to see here.") == "Nothing to see here."


def test_nul_delimited_digits_in_text_are_left_alone():
    assert vndb_to_markdown("a\x005\x00b") == "a\x005\x00b"
    assert vndb_to_markdown("\x000\x00 [code]x[/code]") == "\x000\x00 ```\nx\n```"
    assert vndb_to_markdown("\x00\x00[raw][b]y[/b][/raw]\x00") == "\x00\x00```\n[b]y[/b]\n```\x00"
