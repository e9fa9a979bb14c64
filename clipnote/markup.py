"""Helpers for the rich-text bodies of comments and library items."""

from typing import Optional

from markupsafe import Markup

from .errors import ValidationError


def plain_text(html: str) -> str:
    """Strip tags and entities from rich text, collapsing whitespace."""
    if not html:
        return ""
    return Markup(html).striptags().strip()


def is_blank(html: str) -> bool:
    """True when rich text has no visible text, e.g. ``<p><br></p>`` or ``&nbsp;``."""
    return not plain_text(html)


def shorten(text: str, length: int, ellipsis: str = "...") -> str:
    """Truncate plain text to ``length`` characters, breaking on a word if possible."""
    if len(text) <= length:
        return text
    cut = text[:length]
    space = cut.rfind(" ")
    if space > length // 2:
        cut = cut[:space]
    return cut.rstrip() + ellipsis


def summary(html: str, length: int) -> str:
    """Plain-text excerpt of a rich-text body."""
    return shorten(plain_text(html), length)


def require_text(html: Optional[str], message: str) -> str:
    """
    Return ``html`` stripped of surrounding whitespace.

    Raises:
        ValidationError: With ``message`` if there is no visible text.
    """
    html = (html or "").strip()
    if is_blank(html):
        raise ValidationError(message)
    return html
