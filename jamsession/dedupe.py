"""Exact and near-duplicate detection for album titles and artists.

Exact duplicates compare labels after normalization (trim, case-fold,
collapse whitespace). Near duplicates are labels within a small
Levenshtein distance of the typed input; they only drive a
confirmation prompt and never block an add.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from jamsession.models import (
    MAX_EDIT_DISTANCE,
    MAX_SUGGESTIONS,
    Album,
    SimilarityMatch,
)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize(label: str) -> str:
    """Trim, case-fold and collapse internal whitespace runs.

    Args:
        label: Raw title or artist text.

    Returns:
        The normalized label.
    """
    return _WHITESPACE_RE.sub(" ", label.strip()).casefold()


def pair_key(title: str, artist: str) -> tuple[str, str]:
    """Build the normalized (title, artist) identity of an album."""
    return normalize(title), normalize(artist)


def levenshtein(a: str, b: str) -> int:
    """Compute the edit distance between two strings.

    Insertions, deletions and substitutions each cost 1. Transpositions
    get no discount.

    Args:
        a: First string.
        b: Second string.

    Returns:
        Minimum number of single-character edits turning *a* into *b*.
    """
    m, n = len(a), len(b)
    if m == 0:
        return n
    if n == 0:
        return m

    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m + 1):
        dp[i][0] = i
    for j in range(n + 1):
        dp[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            dp[i][j] = min(
                dp[i - 1][j] + 1,  # delete
                dp[i][j - 1] + 1,  # insert
                dp[i - 1][j - 1] + cost,  # substitute
            )
    return dp[m][n]


def compute_suggestions(
    text: str,
    candidates: Iterable[str],
    max_distance: int = MAX_EDIT_DISTANCE,
    limit: int = MAX_SUGGESTIONS,
) -> list[SimilarityMatch]:
    """Find existing labels that look like the typed input.

    Args:
        text: The label being typed.
        candidates: Existing labels (all titles, or all artists).
        max_distance: Largest edit distance still reported.
        limit: Maximum number of matches returned.

    Returns:
        Matches sorted by distance, then by label; empty for blank input.
    """
    needle = normalize(text)
    if not needle:
        return []

    scored = [
        SimilarityMatch(label=label, distance=levenshtein(needle, normalize(label)))
        for label in set(candidates)
    ]
    scored.sort(key=lambda m: (m.distance, m.label))
    return [m for m in scored if m.distance <= max_distance][:limit]


def is_exact_duplicate(
    title: str,
    artist: str,
    existing_pairs: Iterable[tuple[str, str]],
) -> bool:
    """Check whether (title, artist) already exists, ignoring case and spacing.

    Args:
        title: New album title.
        artist: New album artist.
        existing_pairs: (title, artist) pairs of the active albums.

    Returns:
        True if the normalized pair is already present.
    """
    key = pair_key(title, artist)
    return any(pair_key(t, a) == key for t, a in existing_pairs)


def build_label_pools(
    albums: Iterable[Album],
    extra_pairs: Iterable[tuple[str, str]] = (),
) -> tuple[list[str], list[str]]:
    """Collect the unique titles and unique artists to suggest from.

    Args:
        albums: Albums currently in the session.
        extra_pairs: Additional (title, artist) pairs, e.g. the starter list.

    Returns:
        (titles, artists), each de-duplicated in first-seen order.
    """
    titles: dict[str, None] = {}
    artists: dict[str, None] = {}
    for album in albums:
        titles.setdefault(album.title, None)
        artists.setdefault(album.artist, None)
    for title, artist in extra_pairs:
        titles.setdefault(title, None)
        artists.setdefault(artist, None)
    return list(titles), list(artists)


def find_near_duplicate(
    title: str,
    artist: str,
    albums: Iterable[Album],
) -> tuple[str, str] | None:
    """Find the closest existing (title, artist) when both labels look familiar.

    A new album only warrants a prompt when its title is close to some
    existing title *and* its artist is close to some existing artist.

    Args:
        title: New album title.
        artist: New album artist.
        albums: Active albums in the session.

    Returns:
        (closest title, closest artist), or None when either has no match.
    """
    albums = list(albums)
    near_title = compute_suggestions(title, [a.title for a in albums])
    near_artist = compute_suggestions(artist, [a.artist for a in albums])
    if near_title and near_artist:
        return near_title[0].label, near_artist[0].label
    return None
