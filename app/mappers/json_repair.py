"""Repair and parse near-JSON text returned by a language model.

Model output is frequently wrapped in prose, truncated mid-array, or written
in a JavaScript-ish dialect (single quotes, bare keys, trailing commas).
``parse_json_with_fallback`` runs an ordered list of parse strategies and
returns the first non-null result, or ``None`` when every strategy fails.
It never raises.
"""

import json
import logging
import re
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")

# Adjacent values split only by a newline: `"a"\n"b"`, `}\n{`, `]\n[`, `3\n"x"`
_MISSING_COMMA_RE = re.compile(r'(["}\]\d]|\btrue|\bfalse|\bnull)(\s*\n\s*)(["{\[])')

_TITLE_RE = re.compile(r"""["']title["']\s*:\s*(?:"([^"]*)"|'([^']*)')""")

_CLOSERS = {"[": "]", "{": "}"}
_PY_LITERALS = {"True": "true", "False": "false", "None": "null"}


def extract_json(text: str) -> str:
    """Return the span from the first opening bracket to the last matching closer."""
    starts = [i for i in (text.find("["), text.find("{")) if i >= 0]
    if not starts:
        return text
    start = min(starts)
    end = text.rfind(_CLOSERS[text[start]])
    if end <= start:
        return text
    return text[start:end + 1]


def _strip_surroundings(text: str) -> str:
    """Drop prose before the first bracket and after the top-level value closes.

    A truncated value never closes, so everything after the preamble is kept.
    """
    starts = [i for i in (text.find("["), text.find("{")) if i >= 0]
    if not starts:
        return text
    text = text[min(starts):]

    depth = 0
    quote: str | None = None
    escaped = False
    for i, ch in enumerate(text):
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote or ch in "\r\n":
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
            if depth == 0:
                return text[:i + 1]
    return text


def _drop_trailing_comma(out: list[str]) -> None:
    i = len(out) - 1
    while i >= 0 and out[i].isspace():
        i -= 1
    if i >= 0 and out[i] == ",":
        del out[i]


def _next_significant(text: str, pos: int) -> str:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return text[pos] if pos < len(text) else ""


def _normalize_tokens(text: str) -> str:
    """Single pass over the text, tracking string state and bracket nesting.

    Closes strings left open at a line break, rewrites single-quoted strings
    and bare keys in JSON syntax, drops commas before a closing bracket, and
    closes brackets still open at the end in nesting order.
    """
    out: list[str] = []
    stack: list[str] = []
    quote: str | None = None
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if quote is not None:
            if ch == "\\" and i + 1 < n:
                nxt = text[i + 1]
                if quote == "'" and nxt == "'":
                    out.append("'")
                else:
                    out.append(ch + nxt)
                i += 2
                continue
            if ch == quote:
                out.append('"')
                quote = None
            elif ch in "\r\n":
                out.append('"' + ch)
                quote = None
            elif ch == '"':
                # only reachable inside a single-quoted string
                out.append('\\"')
            else:
                out.append(ch)
            i += 1
            continue

        if ch in "\"'":
            out.append('"')
            quote = ch
        elif ch in _CLOSERS:
            stack.append(ch)
            out.append(ch)
        elif ch in "]}":
            _drop_trailing_comma(out)
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()
            out.append(ch)
        elif ch.isalpha() or ch in "_$":
            j = i + 1
            while j < n and (text[j].isalnum() or text[j] in "_$"):
                j += 1
            word = text[i:j]
            if _next_significant(text, j) == ":":
                out.append(f'"{word}"')
            else:
                out.append(_PY_LITERALS.get(word, word))
            i = j
            continue
        else:
            out.append(ch)
        i += 1

    if quote is not None:
        out.append('"')
    while stack:
        _drop_trailing_comma(out)
        out.append(_CLOSERS[stack.pop()])

    return "".join(out)


def fix_json(text: str) -> str:
    """Apply structural repairs to malformed JSON text."""
    fixed = _strip_surroundings(text)
    fixed = _normalize_tokens(fixed)
    return _MISSING_COMMA_RE.sub(r"\1,\2\3", fixed)


def _scan_titles(text: str) -> list[dict[str, str]] | None:
    """Last resort: recover bare ``{"title": ...}`` records from quoted title fields."""
    titles = [m.group(1) if m.group(1) is not None else m.group(2) for m in _TITLE_RE.finditer(text)]
    return [{"title": title} for title in titles] or None


_STRATEGIES: list[tuple[str, Callable[[str], Any]]] = [
    ("direct", json.loads),
    ("extract", lambda text: json.loads(extract_json(text))),
    ("repair", lambda text: json.loads(fix_json(text))),
    ("extract_repair", lambda text: json.loads(fix_json(extract_json(text)))),
    ("strip_control_chars", lambda text: json.loads(_CONTROL_CHARS_RE.sub("", text))),
    ("title_scan", _scan_titles),
]


def parse_json_with_fallback(text: str) -> Any | None:
    if not isinstance(text, str) or not text.strip():
        return None

    for name, strategy in _STRATEGIES:
        try:
            result = strategy(text)
        except (ValueError, TypeError, RecursionError):
            continue
        if result is not None:
            if name != "direct":
                logger.info("Parsed model output with fallback strategy %r", name)
            return result

    logger.warning("All JSON parse strategies failed (length=%d)", len(text))
    return None
