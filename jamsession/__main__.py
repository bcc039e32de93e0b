"""CLI entry point for jamsession.

Usage::

    python -m jamsession --session friday add "Blue" "Joni Mitchell"
    python -m jamsession --session friday --user sam vote <album_id> 1
    python -m jamsession --session friday pick
    python -m jamsession --session friday --seed 7 simulate --trials 10000
"""

from __future__ import annotations

import argparse
import logging
import random
import sqlite3
import sys

from jamsession import db, service
from jamsession.lottery import build_pool
from jamsession.models import DB_FILENAME, DEFAULT_SESSION, Preference
from jamsession.seeds import JAM_SEEDS, load_starter_list, read_seed_csv
from jamsession.simulate import simulate_draws
from jamsession.transfer import load_import, save_export

logger = logging.getLogger("jamsession")


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jamsession",
        description="Propose albums, vote privately, and let a weighted draw pick one.",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=DB_FILENAME,
        help=f"SQLite database path (default: {DB_FILENAME})",
    )
    parser.add_argument(
        "--session",
        type=str,
        default=DEFAULT_SESSION,
        help=f'Session code (default: "{DEFAULT_SESSION}")',
    )
    parser.add_argument(
        "--user",
        type=str,
        default="me",
        help="Your participant id for votes and ranking (default: me)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed the random source for a reproducible draw",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Propose an album")
    add.add_argument("title")
    add.add_argument("artist")
    add.add_argument("--cover", default=None, help="Cover image URL")
    add.add_argument(
        "--force", action="store_true", help="Add even if a similar album exists"
    )

    for name, help_text in (
        ("archive", "Move an album to the pantry"),
        ("restore", "Bring an album back from the pantry"),
        ("remove", "Delete an album and its votes"),
        ("unvote", "Withdraw your vote on an album"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("album_id")

    vote = sub.add_parser("vote", help="Vote on an album")
    vote.add_argument("album_id")
    vote.add_argument(
        "value",
        type=int,
        choices=[int(p) for p in Preference],
        help="; ".join(f"{int(p)} = {p.label}" for p in Preference),
    )

    sub.add_parser("clear-votes", help="Withdraw all your votes in this session")
    sub.add_parser("list", help="List active albums with their tickets")
    sub.add_parser("pantry", help="List all albums, archived ones included")
    sub.add_parser("rank", help="List albums in your own order of preference")

    sug = sub.add_parser("suggest", help="Show existing labels close to the input")
    sug.add_argument("--title", default="")
    sug.add_argument("--artist", default="")

    sub.add_parser("pick", help="Draw this round's album")

    seed = sub.add_parser("seed", help="Load the starter list")
    seed.add_argument("--csv", default=None, help="Read the starter list from a CSV")

    exp = sub.add_parser("export", help="Write the session to JSON")
    exp.add_argument("path")
    imp = sub.add_parser("import", help="Merge a JSON export into the session")
    imp.add_argument("path")

    sim = sub.add_parser("simulate", help="Estimate pick odds by repeated draws")
    sim.add_argument("--trials", type=_positive_int, default=10_000)

    return parser


def _run(args: argparse.Namespace, conn: sqlite3.Connection) -> int:
    """Dispatch one subcommand against an open database."""
    session_id = db.ensure_session(conn, args.session)
    conn.commit()
    rng = random.Random(args.seed) if args.seed is not None else random.SystemRandom()

    if args.command == "add":
        result = service.add_album(
            conn, session_id, args.title, args.artist, args.cover, force=args.force
        )
        if result.near_duplicate is not None:
            title, artist = result.near_duplicate
            logger.warning(
                "Looks close to %s by %s. Re-run with --force to add anyway.",
                title,
                artist,
            )
            return 1
        if result.album is not None:
            print(result.album.album_id)

    elif args.command == "archive":
        db.archive_album(conn, args.album_id)
        conn.commit()
    elif args.command == "restore":
        service.restore_album(conn, args.album_id)
    elif args.command == "remove":
        db.delete_album(conn, args.album_id)
        conn.commit()

    elif args.command == "vote":
        service.cast_vote(conn, session_id, args.album_id, args.user, args.value)
    elif args.command == "unvote":
        db.delete_vote(conn, args.album_id, args.user)
        conn.commit()
    elif args.command == "clear-votes":
        removed = db.clear_votes_for_user(conn, session_id, args.user)
        conn.commit()
        logger.info("Cleared %d votes.", removed)

    elif args.command == "list":
        albums = db.fetch_albums(conn, session_id)
        tallies = db.fetch_stats(conn, session_id)
        weights = {a.album_id: w for a, w in build_pool(albums, tallies)}
        for album in albums:
            tickets = weights.get(album.album_id, 0)
            print(f"{album.album_id}  {tickets:>3}  {album.title} - {album.artist}")
    elif args.command == "pantry":
        for album in db.fetch_pantry(conn, session_id):
            state = "active" if album.active else "archived"
            print(f"{album.album_id}  {state:<8}  {album.title} - {album.artist}")
    elif args.command == "rank":
        my_votes = db.fetch_my_votes(conn, session_id, args.user)
        for album in service.ranked_albums(conn, session_id, args.user):
            mine = my_votes.get(album.album_id)
            print(f"{mine if mine is not None else '-'}  {album.title} - {album.artist}")

    elif args.command == "suggest":
        titles, artists = service.suggest(conn, session_id, args.title, args.artist)
        for m in titles:
            print(f"title   {m.distance}  {m.label}")
        for m in artists:
            print(f"artist  {m.distance}  {m.label}")

    elif args.command == "pick":
        outcome, chosen = service.pick_album(conn, session_id, rng)
        if chosen is None:
            print("No albums to pick from.")
            return 1
        tally = db.fetch_stats(conn, session_id).get(chosen.album_id)
        avg = tally.leaning if tally is not None else None
        leaning = "n/a" if avg is None else f"{avg:.2f}"
        print(f"{chosen.title} - {chosen.artist}")
        print(f"Leaning (avg): {leaning}  [{outcome.method}]")

    elif args.command == "seed":
        seeds = read_seed_csv(args.csv) if args.csv else JAM_SEEDS
        load_starter_list(conn, session_id, seeds)
    elif args.command == "export":
        save_export(conn, session_id, args.path)
    elif args.command == "import":
        load_import(conn, session_id, args.path)

    elif args.command == "simulate":
        albums = db.fetch_albums(conn, session_id)
        tallies = db.fetch_stats(conn, session_id)
        freqs = simulate_draws(albums, tallies, rng, args.trials, progress=True)
        for album in albums:
            print(f"{freqs.get(album.album_id, 0.0):7.2%}  {album.title} - {album.artist}")

    return 0


def main() -> None:
    """Parse CLI arguments and run one command."""
    args = _build_parser().parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    conn = db.open_db(args.db)
    db.init_schema(conn)
    try:
        status = _run(args, conn)
    except KeyError as exc:
        logger.error("No such album: %s", exc)
        status = 1
    except (ValueError, sqlite3.IntegrityError, OSError) as exc:
        logger.error("%s", exc)
        status = 1
    finally:
        conn.close()
    sys.exit(status)


if __name__ == "__main__":
    main()
