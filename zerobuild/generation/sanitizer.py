"""Strip non-code wrapping from generated text and reject stub output.

Every step is textual and order-sensitive; the result of `sanitize` is a
fixed point (sanitizing it again returns it unchanged).
"""

import logging
import re

from zerobuild.errors import InsufficientOutputError

logger = logging.getLogger(__name__)

DEFAULT_MIN_CHARS = 100
DEFAULT_MIN_LINES = 5

# Opening (```jsx) or closing (```) marker at the start of a line
_FENCE_LINE = re.compile(r"^[ \t]*`{3,}[\w+-]*[ \t]*")

# Tried in order; the first pattern that matches anywhere decides the cut
_START_MARKERS = [
    re.compile(r"^[ \t]*import\s+React\b", re.MULTILINE),
    re.compile(r"^[ \t]*(?:import\s|['\"]use strict['\"])", re.MULTILINE),
    re.compile(r"^[ \t]*(?:export|function|const|class)\s", re.MULTILINE),
]

_CLOSING_STRUCTURE = "});"
_EXPORT_STATEMENT = re.compile(r"^[ \t]*export\s+default\s+[A-Za-z_$][\w$]*\s*;?[ \t]*$", re.MULTILINE)
_DECLARATION_START = re.compile(r"^(?:export|const|let|var|function|class)\b")


def strip_fences(text: str) -> str:
    """Remove fenced-block markers, tagged or bare.

    Repeats until no line starts with a fence so that nested or doubled
    fences cannot survive a single pass.
    """
    while True:
        lines = []
        changed = False
        for line in text.split("\n"):
            match = _FENCE_LINE.match(line)
            if match is None:
                lines.append(line)
                continue
            changed = True
            rest = line[match.end():]
            if rest.strip():
                lines.append(rest)
        text = "\n".join(lines)
        if not changed:
            return text


def strip_leading_prose(text: str) -> str:
    """Drop anything before the first start-of-program marker."""
    for marker in _START_MARKERS:
        match = marker.search(text)
        if match:
            return text[match.start():]
    return text


def terminal_marker_end(text: str) -> int:
    """End offset of the last closing structure or export statement, or -1."""
    end = -1
    closing = text.rfind(_CLOSING_STRUCTURE)
    if closing >= 0:
        end = closing + len(_CLOSING_STRUCTURE)
    for match in _EXPORT_STATEMENT.finditer(text):
        end = max(end, match.end())
    return end


def strip_trailing_prose(text: str) -> str:
    """Drop trailing content after the terminal marker unless it looks like code."""
    end = terminal_marker_end(text)
    if end <= 0:
        return text
    trailing = text[end:].strip()
    if trailing and not _DECLARATION_START.match(trailing):
        logger.debug(f"Discarding {len(trailing)} chars after terminal marker")
        return text[:end]
    return text


def sanitize(
    raw: str,
    min_chars: int = DEFAULT_MIN_CHARS,
    min_lines: int = DEFAULT_MIN_LINES,
) -> str:
    """Turn a raw model reply into candidate source text.

    Raises:
        InsufficientOutputError: The remaining text is too short to be an app
    """
    text = strip_fences(raw)
    text = strip_leading_prose(text)
    text = strip_trailing_prose(text)
    text = text.strip()

    if len(text) < min_chars:
        raise InsufficientOutputError(f"only {len(text)} chars of code (minimum {min_chars})")
    line_count = len(text.splitlines())
    if line_count < min_lines:
        raise InsufficientOutputError(f"only {line_count} lines of code (minimum {min_lines})")

    return text
