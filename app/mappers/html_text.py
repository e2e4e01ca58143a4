import re

from bs4 import BeautifulSoup

_TAG_RE = re.compile(r"<\s*(html|body|div|p|a|span|table|br|script|!doctype)\b", re.IGNORECASE)
_SPACES_RE = re.compile(r"[ \t\f\v\xa0]+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")
_WHITESPACE_RE = re.compile(r"\s+")

_DROPPED_TAGS = ("script", "style", "noscript", "template")


def looks_like_html(text: str) -> bool:
    return bool(_TAG_RE.search(text))


def html_to_text(html: str, preserve_lines: bool = False) -> str:
    """Strip markup, scripts and styles, returning readable text.

    With ``preserve_lines`` block boundaries become newlines (useful for
    itineraries); otherwise all whitespace collapses to single spaces.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_DROPPED_TAGS):
        tag.decompose()

    if not preserve_lines:
        return _WHITESPACE_RE.sub(" ", soup.get_text(separator=" ")).strip()

    text = soup.get_text(separator="\n")
    lines = (_SPACES_RE.sub(" ", line).strip() for line in text.splitlines())
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()
