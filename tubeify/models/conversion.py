"""Conversion session state: recognized candidates, matched songs, phases."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Phase(str, Enum):
    IDLE = "idle"
    RECOGNIZING = "recognizing"
    SEARCHING = "searching"
    PREVIEW = "preview"
    CREATING = "creating"


class Outcome(str, Enum):
    """How the last run ended; only set while phase is idle."""
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RecognizedCandidate:
    """A song reported by the recognition provider, before Spotify matching."""
    title: str
    artist: str = ""

    @property
    def search_query(self) -> str:
        """'<title> <artist>' when both are set, else the title alone."""
        title = self.title.strip()
        artist = self.artist.strip()
        return f"{title} {artist}" if title and artist else title


@dataclass(frozen=True)
class MatchedSong:
    """Candidate after a Spotify search. found is True iff catalog_uri is set."""
    title: str
    artist: str
    catalog_uri: Optional[str] = None
    found: bool = False

    def __post_init__(self) -> None:
        if self.found != (self.catalog_uri is not None):
            raise ValueError("found must be True exactly when catalog_uri is set")

    @classmethod
    def from_candidate(cls, candidate: RecognizedCandidate, catalog_uri: Optional[str]) -> "MatchedSong":
        return cls(
            title=candidate.title,
            artist=candidate.artist,
            catalog_uri=catalog_uri,
            found=catalog_uri is not None,
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "artist": self.artist,
            "catalog_uri": self.catalog_uri,
            "found": self.found,
        }


@dataclass(frozen=True)
class SpotifyCredentials:
    """Read-only token and profile id for the linked Spotify account."""
    access_token: str
    user_id: str


@dataclass
class ConversionSession:
    """State of one user-initiated conversion, owned by the orchestrator."""
    session_id: Optional[str] = None
    phase: Phase = Phase.IDLE
    youtube_url: str = ""
    matched_songs: List[MatchedSong] = field(default_factory=list)
    outcome: Optional[Outcome] = None
    message: str = ""
    error: Optional[str] = None
    tracks_added: int = 0
    playlist_id: Optional[str] = None
    playlist_url: Optional[str] = None

    @property
    def found_count(self) -> int:
        return sum(1 for s in self.matched_songs if s.found)

    @property
    def not_found_count(self) -> int:
        return len(self.matched_songs) - self.found_count

    @property
    def is_busy(self) -> bool:
        """True while a run is in progress or waiting for confirmation."""
        return self.phase != Phase.IDLE

    def found_uris(self) -> List[str]:
        return [s.catalog_uri for s in self.matched_songs if s.found]

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "outcome": self.outcome.value if self.outcome else None,
            "youtube_url": self.youtube_url,
            "matched_songs": [s.to_dict() for s in self.matched_songs],
            "found_count": self.found_count,
            "not_found_count": self.not_found_count,
            "message": self.message,
            "error": self.error,
            "tracks_added": self.tracks_added,
            "playlist_id": self.playlist_id,
            "playlist_url": self.playlist_url,
        }
