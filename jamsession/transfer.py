"""JSON export and import of a session's albums and votes.

The file holds the session code and one entry per album with its votes
keyed by user id, so a list can be shared between machines by hand.
"""

from __future__ import annotations

import logging
import pathlib
import sqlite3
from typing import Any

import orjson

from jamsession.db import (
    fetch_album_votes,
    fetch_albums,
    get_session_code,
    insert_album,
    upsert_vote,
)
from jamsession.dedupe import pair_key

logger = logging.getLogger(__name__)


def export_session(conn: sqlite3.Connection, session_id: int) -> dict[str, Any]:
    """Build a JSON-ready snapshot of a session's active albums.

    Args:
        conn: Database connection.
        session_id: The session to export.

    Returns:
        ``{"session": code, "albums": [...]}``.
    """
    albums = [
        {
            "id": a.album_id,
            "title": a.title,
            "artist": a.artist,
            "cover": a.cover,
            "createdAt": a.created_at,
            "votes": fetch_album_votes(conn, a.album_id),
        }
        for a in fetch_albums(conn, session_id)
    ]
    return {"session": get_session_code(conn, session_id), "albums": albums}


def save_export(conn: sqlite3.Connection, session_id: int, path: str) -> int:
    """Write a session export to disk.

    Returns:
        Number of albums written.
    """
    data = export_session(conn, session_id)
    pathlib.Path(path).write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
    logger.info("Exported %d albums to %s", len(data["albums"]), path)
    return len(data["albums"])


def import_session(
    conn: sqlite3.Connection,
    session_id: int,
    data: dict[str, Any],
) -> int:
    """Merge exported albums (and their votes) into a session.

    Albums already on the list and malformed entries are skipped.

    Args:
        conn: Database connection.
        session_id: Target session.
        data: Parsed export document.

    Returns:
        Number of albums added.
    """
    entries = data.get("albums")
    if not isinstance(entries, list):
        logger.warning("Import has no album list; nothing to do.")
        return 0

    seen = {pair_key(a.title, a.artist) for a in fetch_albums(conn, session_id)}
    added = 0
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed entry: %r", entry)
            continue
        title = entry.get("title")
        artist = entry.get("artist")
        if not isinstance(title, str) or not isinstance(artist, str):
            logger.warning("Skipping entry without text title/artist: %r", entry)
            continue
        title, artist = title.strip(), artist.strip()
        if not title or not artist:
            logger.warning("Skipping entry without title/artist: %r", entry)
            continue
        key = pair_key(title, artist)
        if key in seen:
            logger.info("Skipping duplicate %s by %s", title, artist)
            continue

        cover = entry.get("cover")
        if cover is not None and not isinstance(cover, str):
            logger.warning("Dropping non-text cover %r for %s", cover, title)
            cover = None
        created_at = entry.get("createdAt")
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            created_at = None
        album = insert_album(
            conn,
            session_id,
            title,
            artist,
            cover,
            created_at=None if created_at is None else float(created_at),
        )
        seen.add(key)
        added += 1

        votes = entry.get("votes") or {}
        if not isinstance(votes, dict):
            continue
        for user_id, value in votes.items():
            try:
                upsert_vote(conn, album.album_id, str(user_id), value)
            except (ValueError, TypeError):
                logger.warning(
                    "Skipping vote %r from %s on %s", value, user_id, title
                )

    conn.commit()
    logger.info("Imported %d albums.", added)
    return added


def load_import(conn: sqlite3.Connection, session_id: int, path: str) -> int:
    """Read an export file from disk and merge it into a session.

    Raises:
        orjson.JSONDecodeError: If the file is not valid JSON.
    """
    data = orjson.loads(pathlib.Path(path).read_bytes())
    if not isinstance(data, dict):
        logger.warning("%s does not hold an export object.", path)
        return 0
    return import_session(conn, session_id, data)
