"""Data models for conversion sessions and Spotify credentials."""
from tubeify.models.conversion import (
    ConversionSession,
    MatchedSong,
    Outcome,
    Phase,
    RecognizedCandidate,
    SpotifyCredentials,
)

__all__ = [
    "ConversionSession",
    "MatchedSong",
    "Outcome",
    "Phase",
    "RecognizedCandidate",
    "SpotifyCredentials",
]
