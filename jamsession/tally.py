"""Fold raw per-user vote rows into aggregated tallies."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from jamsession.models import Preference, PreferenceTally

logger = logging.getLogger(__name__)


def tally_votes(rows: Iterable[tuple[str, int]]) -> dict[str, PreferenceTally]:
    """Aggregate (album_id, preference value) rows into per-album counts.

    Rows with a value outside the three preference levels are skipped.

    Args:
        rows: One row per (album, voter).

    Returns:
        Mapping of album id to its PreferenceTally. Albums without any
        valid vote are absent.
    """
    counts: dict[str, list[int]] = {}
    for album_id, value in rows:
        try:
            pref = Preference(value)
        except ValueError:
            logger.warning("Ignoring vote with unknown value %r for %s", value, album_id)
            continue
        bucket = counts.setdefault(album_id, [0, 0, 0])
        bucket[pref - 1] += 1

    return {
        album_id: PreferenceTally(
            most_wanted=c[0],
            somewhat_wanted=c[1],
            vetoed=c[2],
        )
        for album_id, c in counts.items()
    }
