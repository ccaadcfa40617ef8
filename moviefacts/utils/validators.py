"""
Input Validation Utilities

This module cleans user-supplied movie titles before they reach the services:
1. sanitize_input: strip markup, trim and bound the length
2. is_valid_movie_title: reject titles that look like script injection

The services themselves only trim and dedupe; everything that is about
safety rather than meaning lives here.
"""

import html
import re


# Longest title accepted, after sanitizing
MAX_TITLE_LENGTH = 200

# Anything shaped like an HTML/XML tag
TAG_PATTERN = re.compile(r"<[^>]*>")

# Patterns that have no business in a movie title
SUSPICIOUS_PATTERNS = [
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+=", re.IGNORECASE),
    re.compile(r"data:", re.IGNORECASE),
]


def sanitize_input(value: str | None) -> str:
    """
    Remove markup from free text and bound its length.

    Args:
        value: Raw user input (may be None)

    Returns:
        Plain text, trimmed, without angle brackets, at most MAX_TITLE_LENGTH characters

    Examples:
        >>> sanitize_input("  <b>Alien</b> ")
        'Alien'
        >>> sanitize_input(None)
        ''
    """
    if not value:
        return ""

    # Drop tags first, then decode entities so "&amp;" reads as "&"
    text = TAG_PATTERN.sub("", value)
    text = html.unescape(text)

    # Entities may have decoded into new brackets
    text = text.replace("<", "").replace(">", "")

    return text.strip()[:MAX_TITLE_LENGTH]


def sanitize_title_list(value: str | None) -> str:
    """
    Sanitize comma-separated titles piece by piece.

    The length bound applies to each title, not to the whole list.
    """
    if not value:
        return ""
    return ",".join(sanitize_input(piece) for piece in value.split(","))


def is_valid_movie_title(title: str | None) -> bool:
    """
    Check a raw title for length and suspicious content.

    Examples:
        >>> is_valid_movie_title("The Matrix")
        True
        >>> is_valid_movie_title("<script>alert(1)</script>")
        False
    """
    if not title or len(title) > MAX_TITLE_LENGTH:
        return False
    return not any(pattern.search(title) for pattern in SUSPICIOUS_PATTERNS)
