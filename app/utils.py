# app/utils.py
import re
from slugify import slugify as _slugify

# --- Slug Constants ---
# Column widths of the slug columns; a slug is never longer than its column.
CATEGORY_SLUG_LENGTH = 150
THREAD_SLUG_LENGTH = 300
ARTICLE_SLUG_LENGTH = 255
TAG_SLUG_LENGTH = 50

_NON_ALNUM_RUN = r'[^a-z0-9]+'
_NON_ALNUM_RUN_RE = re.compile(_NON_ALNUM_RUN)


def slugify(text, max_length=ARTICLE_SLUG_LENGTH):
    """
    Derive a URL-safe slug for an article or tag.

    'Hello, World!  Bees & Honey' -> 'hello-world-bees-honey'
    Already-normalized input is returned unchanged (apart from truncation).
    Accented letters are transliterated ('Crème Brûlée' -> 'creme-brulee').
    """
    if not text:
        return ''

    # Cut at max_length exactly, then strip the separator the cut may expose
    return _slugify(
        str(text),
        max_length=max_length or 0,
        word_boundary=False,
        regex_pattern=_NON_ALNUM_RUN,
    )


def forum_slugify(text, max_length):
    """
    Derive the slug of a forum category or thread.

    Every character outside a-z and 0-9 counts as a separator, with no
    transliteration or entity decoding:
    'Crème' -> 'cr-me', '1,000 bees' -> '1-000-bees', 'Bees &amp; Honey' -> 'bees-amp-honey'.
    """
    if not text:
        return ''

    # After this pass only [a-z0-9-] is left, which python-slugify keeps as is
    prepared = _NON_ALNUM_RUN_RE.sub('-', str(text).lower())
    return _slugify(
        prepared,
        max_length=max_length or 0,
        word_boundary=False,
        entities=False,
        decimal=False,
        hexadecimal=False,
        regex_pattern=_NON_ALNUM_RUN,
    )


def resolve_slug(requested_slug, source_text, max_length):
    """
    Pick the slug for a new forum category or thread: the caller's slug if
    given (normalized), otherwise one derived from the name/title.
    Returns '' if neither is usable.
    """
    if requested_slug:
        return forum_slugify(requested_slug, max_length)
    if source_text:
        return forum_slugify(source_text, max_length)
    return ''


# --- Text Utilities ---
def make_excerpt(text, length=200):
    """First `length` characters of `text` followed by '...', or the whole text if shorter."""
    if not text:
        return ''
    text = text.strip()
    if len(text) <= length:
        return text
    return text[:length] + '...'


def isoformat(value):
    """Serialize an optional datetime for JSON output."""
    return value.isoformat() if value else None
