"""Weighted, vetoable lottery over the active albums of a session.

Each album earns tickets from its aggregated votes: five per "most
wanted", three per "somewhat wanted", and a floor of one ticket so
unvoted albums keep a chance. Any veto removes the album from the pool.
If every album is vetoed the draw falls back to a uniform choice over
all of them.

The random source is injected; anything with ``randint(a, b)``
(inclusive on both ends) works, e.g. ``random.Random(seed)``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from jamsession.models import (
    METHOD_FALLBACK,
    METHOD_SINGLE,
    METHOD_WEIGHTED,
    MIN_WEIGHT,
    NO_CANDIDATES,
    WEIGHT_MOST_WANTED,
    WEIGHT_SOMEWHAT_WANTED,
    Album,
    LotteryOutcome,
    PreferenceTally,
)

_UNVOTED = PreferenceTally()


class RandomSource(Protocol):
    """Uniform integer source used for the draw."""

    def randint(self, a: int, b: int) -> int: ...


def is_vetoed(tally: PreferenceTally | None) -> bool:
    """Return True if at least one participant vetoed the album.

    Args:
        tally: Aggregated counts, or None for an unvoted album.

    Returns:
        Whether the album is excluded from the weighted pool.
    """
    if tally is None:
        return False
    return max(tally.vetoed, 0) > 0


def ticket_weight(tally: PreferenceTally | None) -> int:
    """Compute the number of lottery tickets an album holds.

    Negative counts are treated as zero.

    Args:
        tally: Aggregated counts, or None for an unvoted album.

    Returns:
        0 for a vetoed album, otherwise at least ``MIN_WEIGHT``.
    """
    tally = tally or _UNVOTED
    if is_vetoed(tally):
        return 0
    weight = WEIGHT_MOST_WANTED * max(tally.most_wanted, 0)
    weight += WEIGHT_SOMEWHAT_WANTED * max(tally.somewhat_wanted, 0)
    return weight if weight > 0 else MIN_WEIGHT


def build_pool(
    albums: Sequence[Album],
    tallies: Mapping[str, PreferenceTally],
) -> list[tuple[Album, int]]:
    """Collect the non-vetoed albums with their ticket weights.

    Args:
        albums: Active albums in a stable order (creation order).
        tallies: Aggregated counts keyed by album id; missing means unvoted.

    Returns:
        (album, weight) pairs in the order the albums were supplied.
    """
    pool: list[tuple[Album, int]] = []
    for album in albums:
        tally = tallies.get(album.album_id)
        if is_vetoed(tally):
            continue
        pool.append((album, ticket_weight(tally)))
    return pool


def draw_pick(
    albums: Sequence[Album],
    tallies: Mapping[str, PreferenceTally],
    rng: RandomSource,
) -> LotteryOutcome:
    """Draw one album proportionally to its tickets.

    Consumes at most one value from *rng*, and none at all when there are
    no albums or only one eligible album.

    Args:
        albums: Active albums in a stable order.
        tallies: Aggregated counts keyed by album id.
        rng: Uniform integer source.

    Returns:
        The chosen album id, or ``NO_CANDIDATES`` when *albums* is empty.
    """
    if not albums:
        return NO_CANDIDATES

    pool = build_pool(albums, tallies)

    if not pool:
        # Everyone objects to everything, so just pick something.
        if len(albums) == 1:
            return LotteryOutcome(albums[0].album_id, METHOD_FALLBACK)
        index = rng.randint(1, len(albums)) - 1
        return LotteryOutcome(albums[index].album_id, METHOD_FALLBACK)

    if len(pool) == 1:
        return LotteryOutcome(pool[0][0].album_id, METHOD_SINGLE)

    total = sum(weight for _, weight in pool)
    remaining = rng.randint(1, total)
    for album, weight in pool:
        remaining -= weight
        if remaining <= 0:
            return LotteryOutcome(album.album_id, METHOD_WEIGHTED)

    # Unreachable while randint honours its bounds
    return LotteryOutcome(pool[-1][0].album_id, METHOD_WEIGHTED)
