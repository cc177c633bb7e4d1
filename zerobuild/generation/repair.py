"""Deterministic, parser-free repair of common defects in generated code.

The engine never fails and never touches text inside string or template
literals. Passes run in a fixed order:

1. trailing commas before `}` / `]`
2. CSS unit suffixes on bare numbers (`16px` -> `16`)
3. quoting of object keys that start with a digit (`2xl:` -> `"2xl":`)
4. bracket balancing by appending missing closers
5. a single canonical `export default` statement

The balancer appends closers in the fixed order `}`, `)`, `]` whatever the
nesting at the truncation point, so interleaved nesting can still come out
invalid.
"""

import logging
import re
from typing import Callable

from zerobuild.models import RepairReport

logger = logging.getLogger(__name__)

NORMAL = "normal"
SINGLE = "single"
DOUBLE = "double"
TEMPLATE = "template"

_OPEN_MODES = {"'": SINGLE, '"': DOUBLE, "`": TEMPLATE}
_CLOSING_QUOTE = {SINGLE: "'", DOUBLE: '"', TEMPLATE: "`"}

_PAIRS = {"{": "}", "(": ")", "[": "]"}
_CLOSERS = {"}": "{", ")": "(", "]": "["}

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_UNIT_SUFFIX = re.compile(r"(?<![\w$.])(\d+(?:\.\d+)?)(?:px|rem|em|pt|dp|sp|vh|vw)\b")
_NUMERIC_KEY = re.compile(r"([{,]\s*)(\d+[A-Za-z_$][\w$]*)(\s*:)")

_EXPORT_DEFAULT = re.compile(r"\bexport\s+default\b")
_STANDALONE_EXPORT = re.compile(
    r"^[ \t]*export\s+default\s+[A-Za-z_$][\w$]*[ \t]*;?[ \t]*(?:\n|\Z)", re.MULTILINE
)
_APP_DECLARATION = re.compile(
    r"^(?:function|class)\s+App\b|^(?:const|let|var)\s+App\s*=", re.MULTILINE
)
_COMPONENT_DECLARATION = re.compile(
    r"^(?:function|class)\s+([A-Z][\w$]*)"
    r"|^(?:const|let|var)\s+([A-Z][\w$]*)\s*=\s*(?:\([^)\n]*\)|[\w$]+)\s*=>",
    re.MULTILINE,
)


def _scan(text: str) -> tuple[list[tuple[bool, str]], str]:
    """Split text into spans and report the mode the scan ends in."""
    spans: list[tuple[bool, str]] = []
    mode = NORMAL
    start = 0
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if mode == NORMAL:
            if ch in _OPEN_MODES:
                if i > start:
                    spans.append((False, text[start:i]))
                start = i
                mode = _OPEN_MODES[ch]
            i += 1
            continue

        if ch == "\\":
            i += 2
            continue
        if ch == _CLOSING_QUOTE[mode]:
            spans.append((True, text[start:i + 1]))
            start = i + 1
            mode = NORMAL
        elif ch == "\n" and mode != TEMPLATE:
            spans.append((True, text[start:i]))
            start = i
            mode = NORMAL
            continue
        i += 1

    if start < n:
        spans.append((mode != NORMAL, text[start:]))
    return spans, mode


def split_spans(text: str) -> list[tuple[bool, str]]:
    """Split text into (is_literal, chunk) spans in one left-to-right scan.

    Literal spans are single-quoted, double-quoted or template literals,
    quotes included. Escapes are honored. A single- or double-quoted literal
    left open at a line break ends there; template literals may span lines.
    Joining the chunks reproduces the input exactly.
    """
    return _scan(text)[0]


def open_literal(text: str) -> str | None:
    """Mode of the literal left open at the end of text, or None."""
    mode = _scan(text)[1]
    return None if mode == NORMAL else mode


def _map_code(text: str, fn: Callable[[str], tuple[str, int]]) -> tuple[str, int]:
    """Apply fn to every non-literal span; return new text and total changes."""
    parts = []
    total = 0
    for is_literal, chunk in split_spans(text):
        if is_literal:
            parts.append(chunk)
            continue
        new_chunk, count = fn(chunk)
        parts.append(new_chunk)
        total += count
    return "".join(parts), total


def _mask_literals(text: str) -> str:
    """Same-length copy of text with literal contents blanked (newlines kept)."""
    return "".join(
        re.sub(r"[^\n]", " ", chunk) if is_literal else chunk
        for is_literal, chunk in split_spans(text)
    )


def remove_trailing_commas(text: str) -> tuple[str, int]:
    return _map_code(text, lambda chunk: _TRAILING_COMMA.subn(r"\1", chunk))


def strip_unit_suffixes(text: str) -> tuple[str, int]:
    return _map_code(text, lambda chunk: _UNIT_SUFFIX.subn(r"\1", chunk))


def quote_numeric_keys(text: str) -> tuple[str, int]:
    return _map_code(text, lambda chunk: _NUMERIC_KEY.subn(r'\1"\2"\3', chunk))


def count_unclosed(text: str) -> dict[str, int]:
    """Net open count per bracket kind outside literals (negative = extra closers)."""
    counts = {"{": 0, "(": 0, "[": 0}
    for is_literal, chunk in split_spans(text):
        if is_literal:
            continue
        for ch in chunk:
            if ch in _PAIRS:
                counts[ch] += 1
            elif ch in _CLOSERS:
                counts[_CLOSERS[ch]] -= 1
    return counts


def close_open_literal(text: str, report: RepairReport) -> str:
    """Terminate a literal cut off by truncation so later appends land in code."""
    mode = open_literal(text)
    if mode is None:
        return text

    # A dangling backslash would escape the closing quote
    trailing = len(text) - len(text.rstrip("\\"))
    if trailing % 2:
        text = text[:-1]

    closing = _CLOSING_QUOTE[mode]
    if mode == TEMPLATE:
        literal = split_spans(text)[-1][1]
        placeholder = literal.rfind("${")
        if placeholder != -1 and "}" not in literal[placeholder:]:
            closing = "}" + closing
        report.fixes_applied.append("closed unterminated template literal")
    else:
        report.fixes_applied.append("closed unterminated string literal")
    return text + closing


def balance_brackets(text: str, report: RepairReport) -> str:
    """Append closers for every bracket kind left open."""
    counts = count_unclosed(text)
    report.braces_appended = max(0, counts["{"])
    report.parens_appended = max(0, counts["("])
    report.brackets_appended = max(0, counts["["])

    closers = (
        "}" * report.braces_appended
        + ")" * report.parens_appended
        + "]" * report.brackets_appended
    )
    if not closers:
        return text

    if report.braces_appended:
        report.fixes_applied.append(f"appended {report.braces_appended} closing brace(s)")
    if report.parens_appended:
        report.fixes_applied.append(f"appended {report.parens_appended} closing paren(s)")
    if report.brackets_appended:
        report.fixes_applied.append(f"appended {report.brackets_appended} closing bracket(s)")
    return text.rstrip() + "\n" + closers


def main_component_name(masked: str) -> str | None:
    """Name of the declaration that should be the default export."""
    if _APP_DECLARATION.search(masked):
        return "App"
    name = None
    for match in _COMPONENT_DECLARATION.finditer(masked):
        name = match.group(1) or match.group(2)
    return name


def ensure_single_export(text: str, report: RepairReport) -> str:
    masked = _mask_literals(text)
    exports = list(_EXPORT_DEFAULT.finditer(masked))

    if not exports:
        name = main_component_name(masked)
        if name is None:
            return text
        report.fixes_applied.append(f"appended export default {name}")
        return text.rstrip() + f"\n\nexport default {name};\n"

    if len(exports) == 1:
        return text

    standalone = list(_STANDALONE_EXPORT.finditer(masked))
    # An inline `export default function App` wins over every standalone one
    keep_last = len(standalone) == len(exports)
    to_remove = standalone[:-1] if keep_last else standalone
    if not to_remove:
        return text

    parts = []
    cursor = 0
    for match in to_remove:
        parts.append(text[cursor:match.start()])
        cursor = match.end()
    parts.append(text[cursor:])
    report.fixes_applied.append(f"removed {len(to_remove)} duplicate export default statement(s)")
    return "".join(parts)


def repair(text: str) -> tuple[str, RepairReport]:
    """Best-effort repair. Never raises."""
    report = RepairReport()

    text, count = remove_trailing_commas(text)
    if count:
        report.fixes_applied.append(f"removed {count} trailing comma(s)")

    text, count = strip_unit_suffixes(text)
    if count:
        report.fixes_applied.append(f"stripped {count} unit suffix(es)")

    text, count = quote_numeric_keys(text)
    if count:
        report.fixes_applied.append(f"quoted {count} numeric key(s)")

    text = close_open_literal(text, report)
    text = balance_brackets(text, report)
    text = ensure_single_export(text, report)

    if report.changed:
        logger.info(f"Repair applied: {'; '.join(report.fixes_applied)}")
    return text, report
