"""Match scoring between canonical media and provider search results.

The score is a fixed-weight sum so that the same inputs always rank the same way:

    exact normalized title      +30  (substring containment +15 instead)
    media type agreement        +10
    release year agreement      +10
    season count agreement       +5  (shows only)

The maximum is therefore 55.
"""

import re
from collections.abc import Iterable

from unidecode import unidecode

from sourcebridge.models.media import CanonicalMedia, MediaType, ProviderSearchItem
from sourcebridge.models.resolution import MatchCandidate

__all__ = [
    "DEFAULT_MIN_SCORE",
    "MAX_SCORE",
    "extract_year",
    "normalize_media_type",
    "normalize_title",
    "score",
    "score_candidates",
    "select_best",
]

EXACT_TITLE_POINTS = 30
PARTIAL_TITLE_POINTS = 15
TYPE_POINTS = 10
YEAR_POINTS = 10
SEASONS_POINTS = 5
MAX_SCORE = EXACT_TITLE_POINTS + TYPE_POINTS + YEAR_POINTS + SEASONS_POINTS
DEFAULT_MIN_SCORE = 20

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_YEAR_RE = re.compile(r"\d{4}")
_SHOW_MARKERS = ("tv", "show", "series")


def normalize_title(title: str | None) -> str:
    """Reduce a title to lowercase ASCII words.

    Transliteration runs first so accented letters survive as their ASCII
    base ("Amélie" -> "amelie") instead of being stripped as punctuation.

    Args:
        title (str | None): Raw title

    Returns:
        str: Normalized title; empty when nothing alphanumeric remains
    """
    if not title:
        return ""
    text = unidecode(title).lower()
    text = _NON_ALNUM_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_media_type(value: str | None) -> MediaType | None:
    """Map a provider's free-form type label onto a MediaType.

    Args:
        value (str | None): Provider type label such as "Movie" or "TV Series"

    Returns:
        MediaType | None: The recognised type, or None when the label is unknown
    """
    if not value:
        return None
    label = value.lower()
    if "movie" in label:
        return MediaType.MOVIE
    if any(marker in label for marker in _SHOW_MARKERS):
        return MediaType.SHOW
    return None


def extract_year(value: str | int | None) -> str | None:
    """Return the first four-digit year found in a value.

    Args:
        value (str | int | None): A year, a date string or any provider label

    Returns:
        str | None: The year as four digits, or None if there is none
    """
    if value is None:
        return None
    if isinstance(value, int):
        return f"{value:04d}" if 0 <= value <= 9999 else None
    match = _YEAR_RE.search(value)
    return match.group(0) if match else None


def _title_points(item_title: str, media_title: str) -> int:
    if not item_title or not media_title:
        return 0
    if item_title == media_title:
        return EXACT_TITLE_POINTS
    if item_title in media_title or media_title in item_title:
        return PARTIAL_TITLE_POINTS
    return 0


def score(item: ProviderSearchItem, media: CanonicalMedia) -> int:
    """Compute how well a provider search item matches the canonical media.

    Args:
        item (ProviderSearchItem): Provider search result
        media (CanonicalMedia): Media being resolved

    Returns:
        int: Score in the range [0, 55]
    """
    total = _title_points(normalize_title(item.title), normalize_title(media.title))

    if normalize_media_type(item.type) == media.type:
        total += TYPE_POINTS

    item_year = extract_year(item.year)
    media_year = extract_year(media.release_year)
    if item_year is not None and item_year == media_year:
        total += YEAR_POINTS

    if (
        media.type == MediaType.SHOW
        and item.seasons is not None
        and media.total_seasons is not None
        and item.seasons == media.total_seasons
    ):
        total += SEASONS_POINTS

    return total


def score_candidates(
    items: Iterable[ProviderSearchItem], media: CanonicalMedia
) -> list[MatchCandidate]:
    """Score every item that has a non-blank title, preserving input order."""
    return [
        MatchCandidate(item=item, score=score(item, media))
        for item in items
        if item.title and item.title.strip()
    ]


def select_best(
    items: Iterable[ProviderSearchItem], media: CanonicalMedia
) -> MatchCandidate | None:
    """Pick the highest scoring candidate, keeping the first one on ties.

    Selection ignores the acceptance threshold; callers decide whether the
    winner is good enough.

    Args:
        items (Iterable[ProviderSearchItem]): Provider search results
        media (CanonicalMedia): Media being resolved

    Returns:
        MatchCandidate | None: The best candidate, or None if no item had a title
    """
    best: MatchCandidate | None = None
    for candidate in score_candidates(items, media):
        if best is None or candidate.score > best.score:
            best = candidate
    return best
