"""Conversion of VNDB bracket markup to Markdown.

VNDB descriptions use a small BBCode-like dialect
(https://vndb.org/d9#4). The rules below are applied in order; ``[raw]`` and
``[code]`` blocks are lifted out first so nothing inside them is rewritten.
"""

import re
from typing import List

_RAW_RE = re.compile(r'\[raw\](.*?)\[/raw\]', re.DOTALL)
_CODE_RE = re.compile(r'\[code\](.*?)\[/code\]', re.DOTALL)
_FROM_RE = re.compile(r'\[From\s*\[url=(.+?)\](.+?)\[/url\]\]', re.DOTALL)
_QUOTE_RE = re.compile(r'\[quote\](.*?)\[/quote\]', re.DOTALL)
_NUL_RUN_RE = re.compile(r'\x00+')

# (pattern, replacement) pairs applied after the protected blocks are lifted out
_INLINE_RULES = [
    (re.compile(r'\[b\](.*?)\[/b\]', re.DOTALL), r'**\1**'),
    (re.compile(r'\[i\](.*?)\[/i\]', re.DOTALL), r'*\1*'),
    # Markdown has no underline
    (re.compile(r'\[u\](.*?)\[/u\]', re.DOTALL), r'<u>\1</u>'),
    (re.compile(r'\[s\](.*?)\[/s\]', re.DOTALL), r'~~\1~~'),
    (re.compile(r'\[url=(.+?)\](.*?)\[/url\]', re.DOTALL), r'[\2](\1)'),
    (re.compile(r'\[spoiler\](.*?)\[/spoiler\]', re.DOTALL),
     '<details><summary>Spoiler</summary>\n\\1\n</details>'),
]


def _quote_block(match: re.Match) -> str:
    return '\n'.join(f'> {line}' for line in match.group(1).split('\n'))


def vndb_to_markdown(text: str) -> str:
    """Convert VNDB formatting codes in ``text`` to Markdown.

    Examples:
        "[b]bold[/b]" -> "**bold**"
        "[url=https://x]X[/url]" -> "[X](https://x)"
        "[From [url=https://x]X[/url]]" -> "[From X](https://x)"
        "[code][b]x[/b][/code]" -> "```\\n[b]x[/b]\\n```"
    """
    if not text:
        return ''

    # Placeholders need a NUL run longer than any already in the text
    longest_run = max((len(run) for run in _NUL_RUN_RE.findall(text)), default=0)
    marker = '\x00' * (longest_run + 1)
    placeholder_re = re.compile(f'{marker}(\\d+){marker}')
    protected: List[str] = []

    def _protect(match: re.Match) -> str:
        protected.append(f'```\n{match.group(1)}\n```')
        return f'{marker}{len(protected) - 1}{marker}'

    text = _RAW_RE.sub(_protect, text)
    text = _CODE_RE.sub(_protect, text)

    text = _FROM_RE.sub(r'[From \2](\1)', text)
    for pattern, replacement in _INLINE_RULES:
        text = pattern.sub(replacement, text)
    text = _QUOTE_RE.sub(_quote_block, text)

    return placeholder_re.sub(lambda m: protected[int(m.group(1))], text)
