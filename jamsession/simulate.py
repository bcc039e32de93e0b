"""Repeat the draw many times to show how often each album comes up."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence

from tqdm import tqdm

from jamsession.lottery import RandomSource, draw_pick
from jamsession.models import Album, PreferenceTally


def simulate_draws(
    albums: Sequence[Album],
    tallies: Mapping[str, PreferenceTally],
    rng: RandomSource,
    trials: int,
    progress: bool = False,
) -> dict[str, float]:
    """Estimate each album's selection probability empirically.

    Args:
        albums: Active albums in a stable order.
        tallies: Aggregated counts keyed by album id.
        rng: Uniform integer source (seed it for reproducible runs).
        trials: Number of draws.
        progress: Show a progress bar.

    Returns:
        Mapping of album id to observed frequency; every supplied album
        appears, including those never drawn. Empty when there are no
        albums or no trials.
    """
    if not albums or trials <= 0:
        return {}

    counts: Counter[str] = Counter()
    for _ in tqdm(range(trials), desc="Simulating draws", unit="draw", disable=not progress):
        outcome = draw_pick(albums, tallies, rng)
        if outcome.album_id is not None:
            counts[outcome.album_id] += 1

    return {a.album_id: counts[a.album_id] / trials for a in albums}
