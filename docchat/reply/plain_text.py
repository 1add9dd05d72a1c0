"""Converts lightweight markup in model output into plain prose.

Rewrites run as an ordered list of passes. Code is unwrapped before
emphasis is stripped. The whole list is re-applied until the text stops
changing, which unwraps nested markup fully and makes the conversion
idempotent. Every rewrite either shortens the text or produces a form
no rewrite touches again, so the loop always ends.
"""

import re

from docchat.logging.logger import Log

_TABLE_SEPARATOR = re.compile(r"^[ \t]*\|?(?:[ \t]*:?-+:?[ \t]*\|)+[ \t]*(?::?-+:?)?[ \t]*$", re.M)
_TABLE_ROW = re.compile(r"^[ \t]*\|(.*)\|[ \t]*$", re.M)

_PASSES: list[tuple[re.Pattern[str], str]] = [
    # Fenced code blocks keep their body; the info string line goes.
    (re.compile(r"```[^\n`]*\n([\s\S]*?)```"), r"\1"),
    (re.compile(r"`([^`\n]+)`"), r"\1"),
    (re.compile(r"^[ \t]*#{1,6}[ \t]+(.+)$", re.M), r"\1"),
    (re.compile(r"\*\*\*(?!\s)([^*\n]+?)(?<!\s)\*\*\*"), r"\1"),
    (re.compile(r"\*\*(?!\s)([^*\n]+?)(?<!\s)\*\*"), r"\1"),
    (re.compile(r"(?<!\*)\*(?![\s*])([^*\n]+?)(?<![\s*])\*(?!\*)"), r"\1"),
    (re.compile(r"(?<!\w)__(?!\s)([^_\n]+?)(?<!\s)__(?!\w)"), r"\1"),
    (re.compile(r"(?<!\w)_(?![\s_])([^_\n]+?)(?<![\s_])_(?!\w)"), r"\1"),
    (re.compile(r"^[ \t]*[*+-][ \t]+(.+)$", re.M), r"- \1"),
    (re.compile(r"^[ \t]*\d+[.)][ \t]+(.+)$", re.M), r"- \1"),
    (re.compile(r"\[([^\]\n]+)\]\([^)\n]*\)"), r"\1"),
    (re.compile(r"\[([^\]\n]+)\]"), r"\1"),
    (re.compile(r"^[ \t]*>[ \t]*(.+)$", re.M), r'"\1"'),
    (re.compile(r"^[ \t]*[*_]{3,}[ \t]*$", re.M), "---"),
    (re.compile(r"\\([*_`~#])"), r"\1"),
]

_LINE_ENDINGS = re.compile(r"\r\n?")
_BLANK_RUNS = re.compile(r"\n[ \t]*(?:\n[ \t]*){2,}")
_TRAILING_SPACE = re.compile(r"[ \t]+$", re.M)
_LEADING_SPACE = re.compile(r"^[ \t]+", re.M)


def _flatten_table_row(match: re.Match[str]) -> str:
    return " | ".join(cell.strip() for cell in match.group(1).split("|"))


def _single_pass(text: str) -> str:
    for pattern, replacement in _PASSES:
        text = pattern.sub(replacement, text)
    text = _TABLE_SEPARATOR.sub("", text)
    text = _TABLE_ROW.sub(_flatten_table_row, text)
    text = _TRAILING_SPACE.sub("", text)
    text = _LEADING_SPACE.sub("", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip()


def normalize(markup: str) -> str:
    """Strip markup from ``markup`` and return clean plain text.

    Never raises: on an internal failure the input is returned unchanged.
    """
    if not markup:
        return ""
    try:
        text = _LINE_ENDINGS.sub("\n", markup)
        while True:
            cleaned = _single_pass(text)
            if cleaned == text:
                break
            text = cleaned
    except Exception as exc:
        Log.warning(f"Plain-text conversion failed, keeping original: {exc}")
        return markup
    Log.debug(f"Markup converted: {len(markup)} -> {len(text)} chars")
    return text
