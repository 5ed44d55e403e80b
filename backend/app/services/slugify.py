"""URL slug generation and format checks.

Usage::

    from backend.app.services.slugify import generate_slug_from_title

    generate_slug_from_title("Hello & World!!")  # "hello-and-world"
"""

import re
import time

SLUG_MAX_LENGTH = 200

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

_DISALLOWED_CHARS = re.compile(r"[^0-9A-Za-z_\s-]")
_SEPARATOR_RUNS = re.compile(r"[\s_]+")
_HYPHEN_RUNS = re.compile(r"-+")


def slugify(text: str) -> str:
    """Convert *text* to a URL-friendly slug.

    Each step works on the previous step's output:

    1. lowercase and trim
    2. ``&`` becomes ``and``
    3. drop everything except word characters, whitespace and hyphens
    4. runs of whitespace/underscores become one hyphen
    5. runs of hyphens become one hyphen
    6. leading/trailing hyphens are removed

    Letters are restricted to ASCII so accented letters are dropped rather
    than producing a slug that :func:`is_valid_slug` would reject. Whitespace
    is matched in full Unicode, so a non-breaking or ideographic space still
    separates words.
    """
    text = text.lower().strip()
    text = text.replace("&", "and")
    text = _DISALLOWED_CHARS.sub("", text)
    text = _SEPARATOR_RUNS.sub("-", text)
    text = _HYPHEN_RUNS.sub("-", text)
    return text.strip("-")


def is_valid_slug(slug: str) -> bool:
    """Return True if *slug* matches the slug pattern and is 1–200 chars long."""
    return 0 < len(slug) <= SLUG_MAX_LENGTH and SLUG_PATTERN.match(slug) is not None


def fallback_slug() -> str:
    """Time-based slug used when a title has no sluggable characters."""
    return f"post-{time.time_ns() // 1_000_000}"


def generate_slug_from_title(title: str) -> str:
    """Slugify *title*, falling back to ``post-<epoch-millis>`` when empty.

    The fallback is only probably unique; collisions surface later as the
    store's unique-constraint error on ``slug``.
    """
    slug = slugify(title)[:SLUG_MAX_LENGTH].strip("-")
    if not slug:
        return fallback_slug()
    return slug
