"""Shared data containers for the jamsession album picker."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Preference(IntEnum):
    """A participant's private preference for one album (lower is keener)."""

    MOST_WANTED = 1
    SOMEWHAT_WANTED = 2
    VETO = 3

    @property
    def label(self) -> str:
        return PREFERENCE_LABELS[self]


@dataclass
class Album:
    """A candidate album proposed in a session.

    Attributes:
        album_id: Opaque unique identifier (uuid4 string).
        title: Album title.
        artist: Album artist.
        cover: Optional cover image URL.
        created_at: Ordering timestamp (epoch seconds).
        active: False once the album has been archived to the pantry.
        session_id: Owning session (set by the repository).
    """

    album_id: str
    title: str
    artist: str
    cover: str | None = None
    created_at: float = 0.0
    active: bool = True
    session_id: int | None = None


@dataclass(frozen=True)
class PreferenceTally:
    """Aggregated vote counts for one album.

    Attributes:
        most_wanted: Voters who marked "want this".
        somewhat_wanted: Voters who marked "could do this".
        vetoed: Voters who marked "not this round".
    """

    most_wanted: int = 0
    somewhat_wanted: int = 0
    vetoed: int = 0

    @property
    def total(self) -> int:
        return self.most_wanted + self.somewhat_wanted + self.vetoed

    @property
    def leaning(self) -> float | None:
        """Mean preference value over all cast votes, or None if unvoted."""
        if self.total == 0:
            return None
        weighted = (
            Preference.MOST_WANTED * self.most_wanted
            + Preference.SOMEWHAT_WANTED * self.somewhat_wanted
            + Preference.VETO * self.vetoed
        )
        return weighted / self.total


@dataclass(frozen=True)
class LotteryOutcome:
    """Result of one draw.

    Attributes:
        album_id: The chosen album, or None when no albums were available.
        method: How the pick was made: "weighted", "single", "fallback"
            (every album vetoed, uniform choice) or "empty".
    """

    album_id: str | None
    method: str

    @property
    def is_empty(self) -> bool:
        return self.album_id is None


@dataclass(frozen=True)
class SimilarityMatch:
    """An existing label and its edit distance from the typed input."""

    label: str
    distance: int


PREFERENCE_LABELS: dict[Preference, str] = {
    Preference.MOST_WANTED: "I'm dying to listen to this",
    Preference.SOMEWHAT_WANTED: "I could listen to this this week",
    Preference.VETO: "I don't fancy this this week",
}

# Lottery tickets per vote
WEIGHT_MOST_WANTED = 5
WEIGHT_SOMEWHAT_WANTED = 3
MIN_WEIGHT = 1

# Near-duplicate suggestion limits
MAX_SUGGESTIONS = 5
MAX_EDIT_DISTANCE = 2

# Outcome methods
METHOD_WEIGHTED = "weighted"
METHOD_SINGLE = "single"
METHOD_FALLBACK = "fallback"
METHOD_EMPTY = "empty"

NO_CANDIDATES = LotteryOutcome(album_id=None, method=METHOD_EMPTY)

# Default database filename
DB_FILENAME = "jamsession.db"

# Session used when none is given on the command line
DEFAULT_SESSION = "demo session"
