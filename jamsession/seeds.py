"""Starter album list and CSV loading for new sessions."""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Iterable
from dataclasses import dataclass

import polars as pl

from jamsession.db import fetch_albums, insert_album
from jamsession.dedupe import pair_key
from jamsession.models import Album

logger = logging.getLogger(__name__)

# Spacing between seeded created_at values so list order survives sorting
SEED_STEP_S: float = 0.001


@dataclass(frozen=True)
class AlbumSeed:
    """A starter album with no id or votes yet."""

    title: str
    artist: str
    cover: str | None = None


JAM_SEEDS: tuple[AlbumSeed, ...] = (
    AlbumSeed("Blue", "Joni Mitchell"),
    AlbumSeed("Rumours", "Fleetwood Mac"),
    AlbumSeed("What’s Going On", "Marvin Gaye"),
    AlbumSeed("OK Computer", "Radiohead"),
    AlbumSeed("Pet Sounds", "The Beach Boys"),
    AlbumSeed("To Pimp a Butterfly", "Kendrick Lamar"),
    AlbumSeed("In Rainbows", "Radiohead"),
    AlbumSeed("Back to Black", "Amy Winehouse"),
    AlbumSeed("Hounds of Love", "Kate Bush"),
    AlbumSeed("The Miseducation of Lauryn Hill", "Lauryn Hill"),
    AlbumSeed("Abbey Road", "The Beatles"),
    AlbumSeed("Nevermind", "Nirvana"),
    AlbumSeed("A Love Supreme", "John Coltrane"),
    AlbumSeed("Kind of Blue", "Miles Davis"),
    AlbumSeed("Modern Vampires of the City", "Vampire Weekend"),
)


def read_seed_csv(path: str) -> list[AlbumSeed]:
    """Read a starter list from a CSV with ``title`` and ``artist`` columns.

    An optional ``cover`` column is honoured. Rows missing a title or
    artist are skipped.

    Args:
        path: Path to the CSV file.

    Returns:
        Seeds in file order.

    Raises:
        ValueError: If the title or artist column is missing.
    """
    df = pl.read_csv(path, infer_schema_length=0)
    missing = {"title", "artist"} - set(df.columns)
    if missing:
        raise ValueError(f"{path} is missing column(s): {', '.join(sorted(missing))}")
    logger.info("Loaded %d rows from %s", len(df), path)

    seeds: list[AlbumSeed] = []
    for row in df.iter_rows(named=True):
        title = (row.get("title") or "").strip()
        artist = (row.get("artist") or "").strip()
        if not title or not artist:
            continue
        cover = (row.get("cover") or "").strip() or None
        seeds.append(AlbumSeed(title, artist, cover))
    return seeds


def fresh_seeds(
    existing: Iterable[Album],
    seeds: Iterable[AlbumSeed],
) -> list[AlbumSeed]:
    """Drop seeds that duplicate an existing album or an earlier seed."""
    seen = {pair_key(a.title, a.artist) for a in existing}
    fresh: list[AlbumSeed] = []
    for seed in seeds:
        key = pair_key(seed.title, seed.artist)
        if key in seen:
            continue
        seen.add(key)
        fresh.append(seed)
    return fresh


def load_starter_list(
    conn: sqlite3.Connection,
    session_id: int,
    seeds: Iterable[AlbumSeed] = JAM_SEEDS,
) -> list[Album]:
    """Add the starter albums a session does not already have.

    Args:
        conn: Database connection.
        session_id: Target session.
        seeds: Starter list; defaults to the built-in one.

    Returns:
        The albums inserted, in list order.
    """
    fresh = fresh_seeds(fetch_albums(conn, session_id), seeds)
    now = time.time()
    added = [
        insert_album(
            conn,
            session_id,
            seed.title,
            seed.artist,
            seed.cover,
            created_at=now + i * SEED_STEP_S,
        )
        for i, seed in enumerate(fresh)
    ]
    conn.commit()
    logger.info("Loaded %d starter albums.", len(added))
    return added
