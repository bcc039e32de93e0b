"""Unit tests for JSON export and import."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import orjson
import pytest

from jamsession.db import (
    ensure_session,
    fetch_albums,
    fetch_my_votes,
    init_schema,
    insert_album,
    upsert_vote,
)
from jamsession.transfer import export_session, import_session, load_import, save_export


@pytest.fixture()
def db() -> sqlite3.Connection:
    """Create an in-memory database with schema."""
    conn = sqlite3.connect(":memory:")
    conn.execute("PRAGMA foreign_keys = ON")
    conn.row_factory = sqlite3.Row
    init_schema(conn)
    return conn


class TestExportSession:
    """Tests for building the export document."""

    def test_shape(self, db: sqlite3.Connection) -> None:
        sid = ensure_session(db, "friday")
        album = insert_album(db, sid, "Blue", "Joni Mitchell", created_at=1.5)
        upsert_vote(db, album.album_id, "sam", 1)
        upsert_vote(db, album.album_id, "alex", 3)

        data = export_session(db, sid)
        assert data["session"] == "friday"
        assert data["albums"] == [
            {
                "id": album.album_id,
                "title": "Blue",
                "artist": "Joni Mitchell",
                "cover": None,
                "createdAt": 1.5,
                "votes": {"alex": 3, "sam": 1},
            }
        ]


class TestImportSession:
    """Tests for merging an export into a session."""

    def test_file_into_other_session(self, db: sqlite3.Connection, tmp_path: Path) -> None:
        src = ensure_session(db, "friday")
        dst = ensure_session(db, "saturday")
        album = insert_album(db, src, "Blue", "Joni Mitchell")
        upsert_vote(db, album.album_id, "sam", 2)
        path = str(tmp_path / "friday.json")

        assert save_export(db, src, path) == 1
        assert load_import(db, dst, path) == 1

        copied = fetch_albums(db, dst)
        assert [(a.title, a.artist) for a in copied] == [("Blue", "Joni Mitchell")]
        assert copied[0].album_id != album.album_id
        assert fetch_my_votes(db, dst, "sam") == {copied[0].album_id: 2}

    def test_skips_duplicates_and_malformed(self, db: sqlite3.Connection) -> None:
        sid = ensure_session(db, "friday")
        insert_album(db, sid, "Blue", "Joni Mitchell")
        data = {
            "albums": [
                {"title": "BLUE", "artist": "joni mitchell"},
                "not an album",
                {"title": "", "artist": "Nobody"},
                {"title": {"text": "Tapestry"}, "artist": "Carole King"},
                {"title": "Harvest", "artist": 7},
                {
                    "title": "Rumours",
                    "artist": "Fleetwood Mac",
                    "votes": {"sam": 9, "kim": 1, "alex": True},
                },
                {"title": "Rumours", "artist": "Fleetwood Mac"},
                {"title": "Nevermind", "artist": "Nirvana", "cover": 5},
            ]
        }
        assert import_session(db, sid, data) == 2
        albums = fetch_albums(db, sid)
        assert [a.title for a in albums] == ["Blue", "Rumours", "Nevermind"]
        assert albums[2].cover is None
        assert fetch_my_votes(db, sid, "alex") == {}
        assert list(fetch_my_votes(db, sid, "kim").values()) == [1]
        assert fetch_my_votes(db, sid, "sam") == {}

    def test_without_album_list(self, db: sqlite3.Connection) -> None:
        sid = ensure_session(db, "friday")
        assert import_session(db, sid, {"session": "x"}) == 0

    def test_non_object_file(self, db: sqlite3.Connection, tmp_path: Path) -> None:
        sid = ensure_session(db, "friday")
        path = tmp_path / "list.json"
        path.write_bytes(orjson.dumps([1, 2, 3]))
        assert load_import(db, sid, str(path)) == 0
