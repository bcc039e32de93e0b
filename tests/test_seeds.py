"""Unit tests for the starter list loader."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import polars as pl
import pytest

from jamsession.db import ensure_session, fetch_albums, init_schema, insert_album
from jamsession.seeds import (
    JAM_SEEDS,
    AlbumSeed,
    fresh_seeds,
    load_starter_list,
    read_seed_csv,
)


@pytest.fixture()
def db() -> sqlite3.Connection:
    """Create an in-memory database with schema."""
    conn = sqlite3.connect(":memory:")
    conn.execute("PRAGMA foreign_keys = ON")
    conn.row_factory = sqlite3.Row
    init_schema(conn)
    return conn


@pytest.fixture()
def sample_csv(tmp_path: Path) -> str:
    """Create a small starter-list CSV."""
    csv_path = str(tmp_path / "seeds.csv")
    pl.DataFrame(
        {
            "title": ["Blue", "Siamese Dream", "", "Ágætis byrjun"],
            "artist": ["Joni Mitchell", "The Smashing Pumpkins", "Nobody", "Sigur Rós"],
            "cover": ["", "https://img.example/siamese.jpg", "", None],
        }
    ).write_csv(csv_path)
    return csv_path


class TestReadSeedCsv:
    """Tests for CSV starter lists."""

    def test_reads_rows_in_order(self, sample_csv: str) -> None:
        seeds = read_seed_csv(sample_csv)
        assert [s.title for s in seeds] == ["Blue", "Siamese Dream", "Ágætis byrjun"]
        assert seeds[0].cover is None
        assert seeds[1].cover == "https://img.example/siamese.jpg"

    def test_missing_column(self, tmp_path: Path) -> None:
        path = str(tmp_path / "bad.csv")
        pl.DataFrame({"title": ["Blue"]}).write_csv(path)
        with pytest.raises(ValueError, match="artist"):
            read_seed_csv(path)


class TestFreshSeeds:
    """Tests for duplicate filtering against existing albums."""

    def test_drops_existing_and_repeated(self) -> None:
        seeds = [
            AlbumSeed("Blue", "Joni Mitchell"),
            AlbumSeed("BLUE", "joni  mitchell"),
            AlbumSeed("Rumours", "Fleetwood Mac"),
        ]
        assert fresh_seeds([], seeds) == [seeds[0], seeds[2]]


class TestLoadStarterList:
    """Tests for seeding a session."""

    def test_seeds_empty_session_in_order(self, db: sqlite3.Connection) -> None:
        sid = ensure_session(db, "friday")
        added = load_starter_list(db, sid)
        assert len(added) == len(JAM_SEEDS)
        assert [a.title for a in fetch_albums(db, sid)] == [s.title for s in JAM_SEEDS]

    def test_second_load_adds_nothing(self, db: sqlite3.Connection) -> None:
        sid = ensure_session(db, "friday")
        load_starter_list(db, sid)
        assert load_starter_list(db, sid) == []

    def test_skips_albums_already_listed(self, db: sqlite3.Connection) -> None:
        sid = ensure_session(db, "friday")
        insert_album(db, sid, "blue", "JONI MITCHELL")
        added = load_starter_list(db, sid)
        assert len(added) == len(JAM_SEEDS) - 1
        assert "Blue" not in {a.title for a in added}
