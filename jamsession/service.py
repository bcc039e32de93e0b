"""Application layer: reads repository snapshots and hands them to the core.

The lottery, duplicate detector and ranking are pure functions; this
module is where snapshots are fetched, albums admitted and outcomes
logged.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from jamsession import db
from jamsession.dedupe import (
    build_label_pools,
    compute_suggestions,
    find_near_duplicate,
    is_exact_duplicate,
)
from jamsession.lottery import RandomSource, draw_pick
from jamsession.models import Album, LotteryOutcome, SimilarityMatch
from jamsession.ranking import rank_for_user
from jamsession.seeds import JAM_SEEDS

logger = logging.getLogger(__name__)


class DuplicateAlbumError(ValueError):
    """An active album with the same title and artist already exists."""


@dataclass
class AddResult:
    """Outcome of an add attempt.

    Attributes:
        album: The stored album, or None if the add was held back.
        near_duplicate: (title, artist) of a similar existing album when
            the add needs confirmation.
    """

    album: Album | None = None
    near_duplicate: tuple[str, str] | None = None


def add_album(
    conn: sqlite3.Connection,
    session_id: int,
    title: str,
    artist: str,
    cover: str | None = None,
    force: bool = False,
) -> AddResult:
    """Admit a new album to a session.

    Exact duplicates are rejected. Near duplicates are held back with a
    warning unless *force* is set.

    Args:
        conn: Database connection.
        session_id: Target session.
        title: Album title.
        artist: Album artist.
        cover: Optional cover URL.
        force: Add even if a near duplicate exists.

    Returns:
        An AddResult carrying either the new album or the near match.

    Raises:
        ValueError: If title or artist is blank.
        DuplicateAlbumError: If the album is already on the list.
    """
    if not title.strip() or not artist.strip():
        raise ValueError("Both title and artist are required.")

    existing = db.fetch_albums(conn, session_id)
    if is_exact_duplicate(title, artist, ((a.title, a.artist) for a in existing)):
        raise DuplicateAlbumError(f"{title.strip()} by {artist.strip()} is already on the list.")

    if not force:
        near = find_near_duplicate(title, artist, existing)
        if near is not None:
            logger.info("Holding back %r: looks close to %r by %r", title, *near)
            return AddResult(near_duplicate=near)

    try:
        album = db.insert_album(conn, session_id, title, artist, cover)
    except sqlite3.IntegrityError as exc:
        raise DuplicateAlbumError(str(exc)) from exc
    conn.commit()
    logger.info("Added %s by %s (%s)", album.title, album.artist, album.album_id)
    return AddResult(album=album)


def restore_album(conn: sqlite3.Connection, album_id: str) -> None:
    """Restore an archived album unless an identical one is active.

    Raises:
        KeyError: If the album does not exist.
        DuplicateAlbumError: If the labels clash with an active album.
    """
    try:
        db.restore_album(conn, album_id)
    except sqlite3.IntegrityError as exc:
        raise DuplicateAlbumError(
            f"An album matching {album_id} is already active."
        ) from exc
    conn.commit()


def cast_vote(
    conn: sqlite3.Connection,
    session_id: int,
    album_id: str,
    user_id: str,
    value: int,
) -> None:
    """Record *user_id*'s vote on an active album of this session.

    Raises:
        KeyError: If the album does not exist in the session.
        ValueError: If the album is archived or *value* is not a
            preference level.
    """
    album = db.get_album(conn, album_id)
    if album.session_id != session_id:
        raise KeyError(album_id)
    if not album.active:
        raise ValueError(f"{album.title} by {album.artist} is in the pantry.")
    db.upsert_vote(conn, album_id, user_id, value)
    conn.commit()


def pick_album(
    conn: sqlite3.Connection,
    session_id: int,
    rng: RandomSource,
) -> tuple[LotteryOutcome, Album | None]:
    """Draw this round's album from the session's current snapshot.

    Args:
        conn: Database connection.
        session_id: The session to draw from.
        rng: Uniform integer source.

    Returns:
        The outcome and the chosen Album (None when nothing is available).
    """
    albums = db.fetch_albums(conn, session_id)
    tallies = db.fetch_stats(conn, session_id)
    outcome = draw_pick(albums, tallies, rng)

    if outcome.is_empty:
        logger.info("No albums available to pick from.")
        return outcome, None

    chosen = next(a for a in albums if a.album_id == outcome.album_id)
    logger.info(
        "Picked %s by %s (%s draw over %d albums).",
        chosen.title,
        chosen.artist,
        outcome.method,
        len(albums),
    )
    return outcome, chosen


def ranked_albums(
    conn: sqlite3.Connection,
    session_id: int,
    user_id: str,
) -> list[Album]:
    """Order the active albums by *user_id*'s own votes only."""
    albums = db.fetch_albums(conn, session_id)
    my_votes = db.fetch_my_votes(conn, session_id, user_id)
    return rank_for_user(albums, my_votes)


def suggest(
    conn: sqlite3.Connection,
    session_id: int,
    title: str = "",
    artist: str = "",
) -> tuple[list[SimilarityMatch], list[SimilarityMatch]]:
    """Suggest existing titles and artists close to what is being typed.

    Suggestions draw on the session's albums plus the starter list.

    Returns:
        (title matches, artist matches).
    """
    albums = db.fetch_albums(conn, session_id)
    titles, artists = build_label_pools(
        albums, ((s.title, s.artist) for s in JAM_SEEDS)
    )
    return compute_suggestions(title, titles), compute_suggestions(artist, artists)
