"""Conversion pipeline errors. Each carries the message shown to the user."""
from typing import Any, Optional

GENERIC_MESSAGE = "Something went wrong. Please try again."
NO_MUSIC_MESSAGE = "No music detected. Try a different video."


class ConversionError(Exception):
    """Base class for every error raised by the conversion pipeline."""

    user_message = GENERIC_MESSAGE

    def __init__(self, message: str = "", user_message: Optional[str] = None) -> None:
        if user_message is not None:
            self.user_message = user_message
        super().__init__(message or self.user_message)


class ValidationError(ConversionError):
    """Missing or unusable input; nothing was attempted."""

    def __init__(self, message: str) -> None:
        super().__init__(message, user_message=message)


class ConversionStateError(ConversionError):
    """Operation not allowed in the current phase."""

    def __init__(self, message: str) -> None:
        super().__init__(message, user_message=message)


class TransportError(ConversionError):
    """Network failure or timeout talking to an external service."""


class RecognitionServiceError(ConversionError):
    """Recognition provider answered with a non-success status."""

    def __init__(self, provider: str, status: Any, payload: Any = None) -> None:
        super().__init__(f"{provider} recognition failed (status={status})")
        self.provider = provider
        self.status = status
        # Already redacted by the provider
        self.payload = payload


class NoSongsRecognized(ConversionError):
    """Provider succeeded but identified no music."""

    user_message = NO_MUSIC_MESSAGE


class CatalogSearchError(ConversionError):
    """Spotify search failed for one query. Never fatal to the pipeline."""

    def __init__(self, query: str, status: Any = None) -> None:
        super().__init__(f"Spotify search failed for {query!r} (status={status})")
        self.query = query
        self.status = status


class PlaylistCreateError(ConversionError):
    """Spotify refused to create the playlist."""

    user_message = "Could not create the Spotify playlist. Please try again."

    def __init__(self, status: Any = None, detail: str = "") -> None:
        super().__init__(f"Playlist creation failed (status={status}) {detail}".strip())
        self.status = status


class PlaylistPopulateError(ConversionError):
    """Playlist exists but adding tracks failed part way."""

    user_message = "The playlist was created but adding songs failed."

    def __init__(self, playlist_id: str, tracks_added: int, status: Any = None, detail: str = "") -> None:
        super().__init__(
            f"Adding tracks to {playlist_id} failed after {tracks_added} (status={status}) {detail}".strip()
        )
        self.playlist_id = playlist_id
        self.tracks_added = tracks_added
        self.status = status
