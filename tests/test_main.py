"""Tests for the jamsession command line."""

from __future__ import annotations

from pathlib import Path

import pytest

from jamsession.__main__ import main


def _run(monkeypatch: pytest.MonkeyPatch, db_path: str, *argv: str) -> int:
    monkeypatch.setattr("sys.argv", ["jamsession", "--db", db_path, *argv])
    with pytest.raises(SystemExit) as exc:
        main()
    return int(exc.value.code or 0)


class TestCli:
    """End-to-end runs against a temporary database."""

    def test_add_vote_and_pick(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        db_path = str(tmp_path / "jam.db")
        assert _run(monkeypatch, db_path, "add", "Blue", "Joni Mitchell") == 0
        blue_id = capsys.readouterr().out.strip()
        assert _run(monkeypatch, db_path, "add", "Rumours", "Fleetwood Mac") == 0
        capsys.readouterr()

        assert _run(monkeypatch, db_path, "--user", "sam", "vote", blue_id, "3") == 0
        assert _run(monkeypatch, db_path, "--seed", "1", "pick") == 0
        out = capsys.readouterr().out
        assert "Rumours - Fleetwood Mac" in out

    def test_pick_empty_session_fails(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        assert _run(monkeypatch, str(tmp_path / "jam.db"), "pick") == 1
        assert "No albums" in capsys.readouterr().out

    def test_duplicate_add_fails(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        db_path = str(tmp_path / "jam.db")
        assert _run(monkeypatch, db_path, "add", "Blue", "Joni Mitchell") == 0
        assert _run(monkeypatch, db_path, "add", "blue", "joni mitchell") == 1

    def test_unknown_album(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        assert _run(monkeypatch, str(tmp_path / "jam.db"), "archive", "nope") == 1

    def test_seed_and_list(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        db_path = str(tmp_path / "jam.db")
        assert _run(monkeypatch, db_path, "seed") == 0
        assert _run(monkeypatch, db_path, "list") == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 15
        assert lines[0].endswith("Blue - Joni Mitchell")

    def test_simulate_reports_every_album(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        db_path = str(tmp_path / "jam.db")
        assert _run(monkeypatch, db_path, "add", "Blue", "Joni Mitchell") == 0
        assert _run(monkeypatch, db_path, "add", "Rumours", "Fleetwood Mac") == 0
        capsys.readouterr()
        assert _run(monkeypatch, db_path, "--seed", "3", "simulate", "--trials", "100") == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2
        assert lines[0].endswith("Blue - Joni Mitchell")

    @pytest.mark.parametrize("trials", ["0", "-5"])
    def test_simulate_rejects_non_positive_trials(
        self,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
        tmp_path: Path,
        trials: str,
    ) -> None:
        db_path = str(tmp_path / "jam.db")
        assert _run(monkeypatch, db_path, "add", "Blue", "Joni Mitchell") == 0
        assert _run(monkeypatch, db_path, "simulate", "--trials", trials) == 2
        assert "No such album" not in caplog.text

    def test_vote_on_other_session_album_fails(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        db_path = str(tmp_path / "jam.db")
        saturday = ("--session", "saturday")
        assert _run(monkeypatch, db_path, *saturday, "add", "Blue", "Joni Mitchell") == 0
        blue_id = capsys.readouterr().out.strip()
        assert _run(monkeypatch, db_path, "--session", "friday", "vote", blue_id, "1") == 1
        assert _run(monkeypatch, db_path, *saturday, "archive", blue_id) == 0
        assert _run(monkeypatch, db_path, *saturday, "vote", blue_id, "1") == 1
