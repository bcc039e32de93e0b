"""SQLite storage for sessions, albums and votes.

Serves as the album, tally and per-user vote repository the lottery and
ranking read snapshots from. All queries use parameterized statements.
"""

from __future__ import annotations

import logging
import sqlite3
import time
import uuid

from jamsession.dedupe import normalize
from jamsession.models import DB_FILENAME, Album, Preference, PreferenceTally
from jamsession.tally import tally_votes

logger = logging.getLogger(__name__)

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS sessions (
    session_id INTEGER PRIMARY KEY,
    code       TEXT    NOT NULL UNIQUE,
    created_at REAL    NOT NULL
);

CREATE TABLE IF NOT EXISTS albums (
    album_id   TEXT    PRIMARY KEY,
    session_id INTEGER NOT NULL REFERENCES sessions(session_id),
    title      TEXT    NOT NULL,
    artist     TEXT    NOT NULL,
    cover      TEXT,
    title_key  TEXT    NOT NULL,
    artist_key TEXT    NOT NULL,
    created_at REAL    NOT NULL,
    is_active  INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS votes (
    album_id TEXT    NOT NULL REFERENCES albums(album_id) ON DELETE CASCADE,
    user_id  TEXT    NOT NULL,
    value    INTEGER NOT NULL CHECK (value IN (1, 2, 3)),
    PRIMARY KEY (album_id, user_id)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_albums_active_pair
    ON albums(session_id, title_key, artist_key) WHERE is_active = 1;
CREATE INDEX IF NOT EXISTS idx_albums_session
    ON albums(session_id, created_at);
CREATE INDEX IF NOT EXISTS idx_votes_user
    ON votes(user_id);
"""


def open_db(path: str = DB_FILENAME) -> sqlite3.Connection:
    """Open (or create) the SQLite database with recommended pragmas.

    Args:
        path: Filesystem path to the database file.

    Returns:
        An open sqlite3.Connection with WAL mode and foreign keys enabled.
    """
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they do not exist.

    Args:
        conn: An open database connection.
    """
    conn.executescript(SCHEMA_SQL)
    conn.commit()


def _row_to_album(row: sqlite3.Row) -> Album:
    return Album(
        album_id=row["album_id"],
        title=row["title"],
        artist=row["artist"],
        cover=row["cover"],
        created_at=row["created_at"],
        active=bool(row["is_active"]),
        session_id=row["session_id"],
    )


# ── Sessions ───────────────────────────────────────────────────────────────


def ensure_session(conn: sqlite3.Connection, code: str) -> int:
    """Return the id of the session named *code*, creating it if needed.

    Args:
        conn: Database connection.
        code: Globally unique session name.

    Returns:
        The session_id (new or existing).
    """
    cursor = conn.execute(
        """\
        INSERT INTO sessions (code, created_at) VALUES (?, ?)
        ON CONFLICT(code) DO UPDATE SET code = excluded.code
        RETURNING session_id
        """,
        (code, time.time()),
    )
    session_id: int = cursor.fetchone()[0]
    return session_id


def get_session_code(conn: sqlite3.Connection, session_id: int) -> str:
    """Look up a session's code.

    Raises:
        KeyError: If the session does not exist.
    """
    row = conn.execute(
        "SELECT code FROM sessions WHERE session_id = ?", (session_id,)
    ).fetchone()
    if row is None:
        raise KeyError(session_id)
    return str(row[0])


# ── Albums ─────────────────────────────────────────────────────────────────


def insert_album(
    conn: sqlite3.Connection,
    session_id: int,
    title: str,
    artist: str,
    cover: str | None = None,
    created_at: float | None = None,
) -> Album:
    """Insert a new active album.

    Args:
        conn: Database connection.
        session_id: Owning session.
        title: Album title (stored as typed, trimmed).
        artist: Album artist (stored as typed, trimmed).
        cover: Optional cover URL.
        created_at: Ordering timestamp; defaults to now.

    Returns:
        The stored Album.

    Raises:
        sqlite3.IntegrityError: If an active album with the same
            normalized title and artist already exists in the session.
    """
    album = Album(
        album_id=str(uuid.uuid4()),
        title=title.strip(),
        artist=artist.strip(),
        cover=(cover or "").strip() or None,
        created_at=time.time() if created_at is None else created_at,
        active=True,
        session_id=session_id,
    )
    conn.execute(
        """\
        INSERT INTO albums
            (album_id, session_id, title, artist, cover,
             title_key, artist_key, created_at, is_active)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1)
        """,
        (
            album.album_id,
            session_id,
            album.title,
            album.artist,
            album.cover,
            normalize(album.title),
            normalize(album.artist),
            album.created_at,
        ),
    )
    return album


def get_album(conn: sqlite3.Connection, album_id: str) -> Album:
    """Fetch one album by id.

    Raises:
        KeyError: If no such album exists.
    """
    row = conn.execute("SELECT * FROM albums WHERE album_id = ?", (album_id,)).fetchone()
    if row is None:
        raise KeyError(album_id)
    return _row_to_album(row)


def fetch_albums(conn: sqlite3.Connection, session_id: int) -> list[Album]:
    """List the active albums of a session in creation order.

    Args:
        conn: Database connection.
        session_id: The session to list.

    Returns:
        Active albums, oldest first.
    """
    rows = conn.execute(
        """\
        SELECT * FROM albums
        WHERE session_id = ? AND is_active = 1
        ORDER BY created_at, rowid
        """,
        (session_id,),
    ).fetchall()
    return [_row_to_album(r) for r in rows]


def fetch_pantry(conn: sqlite3.Connection, session_id: int) -> list[Album]:
    """List every album of a session, archived ones included."""
    rows = conn.execute(
        "SELECT * FROM albums WHERE session_id = ? ORDER BY created_at, rowid",
        (session_id,),
    ).fetchall()
    return [_row_to_album(r) for r in rows]


def _set_active(conn: sqlite3.Connection, album_id: str, active: bool) -> None:
    cursor = conn.execute(
        "UPDATE albums SET is_active = ? WHERE album_id = ?",
        (int(active), album_id),
    )
    if cursor.rowcount == 0:
        raise KeyError(album_id)


def archive_album(conn: sqlite3.Connection, album_id: str) -> None:
    """Move an album to the pantry (out of the selectable pool).

    Raises:
        KeyError: If no such album exists.
    """
    _set_active(conn, album_id, False)


def restore_album(conn: sqlite3.Connection, album_id: str) -> None:
    """Bring an archived album back into the selectable pool.

    Raises:
        KeyError: If no such album exists.
        sqlite3.IntegrityError: If an active album with the same labels
            already exists.
    """
    _set_active(conn, album_id, True)


def delete_album(conn: sqlite3.Connection, album_id: str) -> None:
    """Delete an album and its votes.

    Raises:
        KeyError: If no such album exists.
    """
    cursor = conn.execute("DELETE FROM albums WHERE album_id = ?", (album_id,))
    if cursor.rowcount == 0:
        raise KeyError(album_id)


# ── Votes ──────────────────────────────────────────────────────────────────


def upsert_vote(
    conn: sqlite3.Connection,
    album_id: str,
    user_id: str,
    value: Preference | int,
) -> None:
    """Record or replace one user's vote on an album.

    Args:
        conn: Database connection.
        album_id: The album voted on.
        user_id: The voter.
        value: Preference level (1, 2 or 3).

    Raises:
        ValueError: If *value* is not a preference level (booleans included).
        sqlite3.IntegrityError: If the album does not exist.
    """
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not a preference level")
    pref = Preference(value)
    conn.execute(
        """\
        INSERT INTO votes (album_id, user_id, value) VALUES (?, ?, ?)
        ON CONFLICT(album_id, user_id) DO UPDATE SET value = excluded.value
        """,
        (album_id, user_id, int(pref)),
    )


def delete_vote(conn: sqlite3.Connection, album_id: str, user_id: str) -> None:
    """Remove one user's vote on an album, if any."""
    conn.execute(
        "DELETE FROM votes WHERE album_id = ? AND user_id = ?",
        (album_id, user_id),
    )


def clear_votes_for_user(
    conn: sqlite3.Connection,
    session_id: int,
    user_id: str,
) -> int:
    """Remove all of one user's votes within a session.

    Returns:
        Number of votes deleted.
    """
    cursor = conn.execute(
        """\
        DELETE FROM votes
        WHERE user_id = ?
          AND album_id IN (SELECT album_id FROM albums WHERE session_id = ?)
        """,
        (user_id, session_id),
    )
    return cursor.rowcount


def fetch_my_votes(
    conn: sqlite3.Connection,
    session_id: int,
    user_id: str,
) -> dict[str, int]:
    """Read one user's own votes for a session.

    Returns:
        Mapping of album id to preference value.
    """
    rows = conn.execute(
        """\
        SELECT v.album_id, v.value
        FROM votes v
        JOIN albums a ON v.album_id = a.album_id
        WHERE v.user_id = ? AND a.session_id = ?
        """,
        (user_id, session_id),
    ).fetchall()
    return {r["album_id"]: r["value"] for r in rows}


def fetch_album_votes(conn: sqlite3.Connection, album_id: str) -> dict[str, int]:
    """Read every user's vote on one album (used for export)."""
    rows = conn.execute(
        "SELECT user_id, value FROM votes WHERE album_id = ? ORDER BY user_id",
        (album_id,),
    ).fetchall()
    return {r["user_id"]: r["value"] for r in rows}


def fetch_stats(
    conn: sqlite3.Connection,
    session_id: int,
) -> dict[str, PreferenceTally]:
    """Read aggregated vote counts for every voted album in a session.

    Raw vote rows are folded into tallies by ``tally_votes``.

    Returns:
        Mapping of album id to PreferenceTally; unvoted albums are absent.
    """
    rows = conn.execute(
        """\
        SELECT v.album_id, v.value
        FROM votes v
        JOIN albums a ON v.album_id = a.album_id
        WHERE a.session_id = ?
        """,
        (session_id,),
    ).fetchall()
    return tally_votes((r["album_id"], r["value"]) for r in rows)
