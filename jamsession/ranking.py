"""Personal ordering of albums by the current user's own votes.

Only the caller's vote map is consulted; other participants' votes and
the aggregated tallies never influence a user's order.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from jamsession.models import Album, Preference

# Sorts after every real preference value
UNVOTED_RANK = max(Preference) + 1


def rank_key(album: Album, my_votes: Mapping[str, int]) -> tuple[int, str, str]:
    """Sort key: own preference (unvoted last), then title, then artist."""
    return (
        my_votes.get(album.album_id, UNVOTED_RANK),
        album.title,
        album.artist,
    )


def rank_for_user(
    albums: Sequence[Album],
    my_votes: Mapping[str, int],
) -> list[Album]:
    """Order albums for one participant.

    Args:
        albums: Active albums.
        my_votes: The current user's preference value per album id.

    Returns:
        A new list, keenest first; ties broken by title then artist as
        typed (case-sensitive).
    """
    return sorted(albums, key=lambda album: rank_key(album, my_votes))
