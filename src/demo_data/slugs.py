"""
URL slug helpers.
"""

import re
import unicodedata
from typing import Callable


def slugify(text: str) -> str:
    """
    Lowercase, ASCII-only, hyphen-separated form of ``text``.

    'Marcus "The Magnificent" Johnson' -> 'marcus-the-magnificent-johnson'
    """
    normalized = unicodedata.normalize("NFKD", text or "")
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    ascii_text = re.sub(r"[^a-z0-9\s_-]", "", ascii_text)
    ascii_text = re.sub(r"[\s_]+", "-", ascii_text)
    ascii_text = re.sub(r"-{2,}", "-", ascii_text)
    return ascii_text.strip("-")


def unique_slug(base_slug: str, is_taken: Callable[[str], bool]) -> str:
    """Append -1, -2, ... to ``base_slug`` until ``is_taken`` says no."""
    slug = base_slug
    counter = 1
    while is_taken(slug):
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug
