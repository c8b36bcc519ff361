"""Conversion pipeline: recognize songs in a YouTube URL, match them on Spotify, create a playlist.

The orchestrator is a small state machine:

    idle -> recognizing -> searching -> preview -> creating -> idle(success)

recognizing, searching and creating fall back to idle(error) on failure, and
preview goes to idle(cancelled) when the user cancels. Phase changes requested
by the user happen synchronously; the external calls for a phase run in a
background worker and are strictly sequential.
"""
import logging
import threading
import uuid
from dataclasses import replace
from typing import Callable, List, Optional, Protocol

from tubeify.config import APP_NAME, PLAYLIST_PUBLIC, SEARCH_LIMIT
from tubeify.core import spotify_client
from tubeify.core.errors import (
    GENERIC_MESSAGE,
    ConversionError,
    ConversionStateError,
    NoSongsRecognized,
    PlaylistPopulateError,
    ValidationError,
)
from tubeify.models.conversion import (
    ConversionSession,
    MatchedSong,
    Outcome,
    Phase,
    RecognizedCandidate,
    SpotifyCredentials,
)

logger = logging.getLogger(__name__)

NO_SONGS_TO_ADD_MESSAGE = "No songs found to add."
NO_TITLES_MESSAGE = "Recognized songs had no usable titles. Try a different video."
NOT_LINKED_MESSAGE = "Please connect your Spotify account first."


class Recognizer(Protocol):
    def recognize(self, youtube_url: str) -> List[RecognizedCandidate]:
        ...


SearchFn = Callable[[str, str, int], List[dict]]
CreatePlaylistFn = Callable[[str, str, str, str, bool], dict]
AddTracksFn = Callable[[str, str, List[str]], int]
SessionListener = Callable[[ConversionSession], None]


def run_in_thread(target: Callable[[], None]) -> None:
    """Default background runner: one daemon thread per phase run."""
    threading.Thread(target=target, daemon=True, name="conversion").start()


def playlist_name_for(songs: List[MatchedSong], app_name: str = APP_NAME) -> str:
    """'<app>: <first found title>' falling back to the first title, then 'Playlist'."""
    first = next((s.title for s in songs if s.found and s.title), None)
    if first is None:
        first = next((s.title for s in songs if s.title), None)
    return f"{app_name}: {first or 'Playlist'}"


def playlist_description_for(youtube_url: str) -> str:
    return f"Converted from YouTube: {youtube_url}"


class ConversionOrchestrator:
    """Owns the single ConversionSession and drives it through the pipeline."""

    def __init__(
        self,
        recognizer: Recognizer,
        token_provider: Callable[[], Optional[str]] = spotify_client.get_access_token,
        credentials_provider: Callable[[], Optional[SpotifyCredentials]] = spotify_client.get_credentials,
        search: SearchFn = spotify_client.search_tracks,
        create_playlist: CreatePlaylistFn = spotify_client.create_playlist,
        add_tracks: AddTracksFn = spotify_client.add_tracks,
        run_in_background: Callable[[Callable[[], None]], None] = run_in_thread,
        app_name: str = APP_NAME,
        search_limit: int = SEARCH_LIMIT,
        playlist_public: bool = PLAYLIST_PUBLIC,
    ) -> None:
        self._recognizer = recognizer
        self._token_provider = token_provider
        self._credentials_provider = credentials_provider
        self._search = search
        self._create_playlist = create_playlist
        self._add_tracks = add_tracks
        self._run_in_background = run_in_background
        self._app_name = app_name
        self._search_limit = max(1, search_limit)
        self._playlist_public = playlist_public

        self._lock = threading.Lock()
        self._session = ConversionSession()
        self._listeners: List[SessionListener] = []

    # --- observation ---

    def get_session(self) -> ConversionSession:
        """Snapshot of the current session (safe to read from any thread)."""
        with self._lock:
            return self._snapshot()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call listener with a snapshot after every state change. Returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _snapshot(self) -> ConversionSession:
        return replace(self._session, matched_songs=list(self._session.matched_songs))

    def _notify(self, snapshot: ConversionSession) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("conversion.listener_failed")

    def _update(self, session_id: str, **changes) -> bool:
        """Apply changes if session_id is still current. Returns False for a stale run."""
        with self._lock:
            if self._session.session_id != session_id:
                return False
            self._session = replace(self._session, **changes)
            snapshot = self._snapshot()
        logger.debug("conversion.state session=%s phase=%s", session_id, snapshot.phase.value)
        self._notify(snapshot)
        return True

    # --- entry points ---

    def start_conversion(self, youtube_url: str) -> ConversionSession:
        """Validate input, move to recognizing, then recognize and search in the background."""
        url = (youtube_url or "").strip()
        if not url:
            raise ValidationError("Please enter a YouTube URL.")
        with self._lock:
            if self._session.is_busy:
                raise ConversionStateError(
                    f"A conversion is already in progress ({self._session.phase.value})."
                )
        auth_token = self._token_provider()
        if not auth_token:
            raise ValidationError(NOT_LINKED_MESSAGE)

        session_id = uuid.uuid4().hex
        with self._lock:
            if self._session.is_busy:
                raise ConversionStateError(
                    f"A conversion is already in progress ({self._session.phase.value})."
                )
            self._session = ConversionSession(
                session_id=session_id,
                phase=Phase.RECOGNIZING,
                youtube_url=url,
            )
            snapshot = self._snapshot()
        logger.info("conversion.start session=%s url=%s", session_id, url)
        self._notify(snapshot)
        self._run_in_background(lambda: self._recognize_and_search(session_id, url, auth_token))
        return snapshot

    def confirm_create_playlist(self) -> ConversionSession:
        """From preview: move to creating, then create and fill the playlist in the background.

        Credentials are looked up again here so a preview left open past the
        token lifetime still creates the playlist with a fresh token.
        """
        with self._lock:
            if self._session.phase != Phase.PREVIEW:
                raise ConversionStateError(
                    f"Nothing to confirm (phase is {self._session.phase.value})."
                )
            session_id = self._session.session_id
        credentials = self._credentials_provider()
        if credentials is None or not credentials.access_token:
            raise ValidationError(NOT_LINKED_MESSAGE)

        with self._lock:
            if self._session.session_id != session_id or self._session.phase != Phase.PREVIEW:
                raise ConversionStateError(
                    f"Nothing to confirm (phase is {self._session.phase.value})."
                )
            self._session = replace(self._session, phase=Phase.CREATING)
            snapshot = self._snapshot()
        logger.info("conversion.confirm session=%s", session_id)
        self._notify(snapshot)
        self._run_in_background(lambda: self._create(session_id, credentials))
        return snapshot

    def cancel_preview(self) -> ConversionSession:
        """From preview: discard matched songs and return to idle without touching Spotify."""
        with self._lock:
            if self._session.phase != Phase.PREVIEW:
                raise ConversionStateError(
                    f"Nothing to cancel (phase is {self._session.phase.value})."
                )
            session_id = self._session.session_id
            self._session = replace(
                self._session,
                phase=Phase.IDLE,
                outcome=Outcome.CANCELLED,
                youtube_url="",
                matched_songs=[],
                message="Conversion cancelled.",
            )
            snapshot = self._snapshot()
        logger.info("conversion.cancel session=%s", session_id)
        self._notify(snapshot)
        return snapshot

    # --- background phases ---

    def _fail(self, session_id: str, error: Exception, **changes) -> None:
        if isinstance(error, ConversionError):
            message, kind = error.user_message, type(error).__name__
        else:
            message, kind = GENERIC_MESSAGE, "InternalError"
        self._update(
            session_id,
            phase=Phase.IDLE,
            outcome=Outcome.ERROR,
            message=message,
            error=kind,
            **changes,
        )

    def _recognize_and_search(self, session_id: str, url: str, auth_token: str) -> None:
        try:
            candidates = self._recognizer.recognize(url)
            if not candidates:
                raise NoSongsRecognized("recognizer returned no candidates")
            logger.info("conversion.recognized session=%s candidates=%d", session_id, len(candidates))
            if not self._update(session_id, phase=Phase.SEARCHING):
                return

            matched = self._match_candidates(candidates, auth_token)
            if not matched:
                self._fail(session_id, ConversionError(user_message=NO_TITLES_MESSAGE))
                return
            found = sum(1 for s in matched if s.found)
            logger.info(
                "conversion.preview session=%s found=%d not_found=%d",
                session_id, found, len(matched) - found,
            )
            self._update(
                session_id,
                phase=Phase.PREVIEW,
                matched_songs=matched,
                message=f"Found {found} of {len(matched)} songs on Spotify.",
            )
        except ConversionError as e:
            logger.warning("conversion.failed session=%s error=%s", session_id, e)
            self._fail(session_id, e)
        except Exception as e:
            logger.exception("conversion.crashed session=%s", session_id)
            self._fail(session_id, e)

    def _match_candidates(self, candidates: List[RecognizedCandidate], auth_token: str) -> List[MatchedSong]:
        """Search each candidate in order; a failed search marks that song not found."""
        matched: List[MatchedSong] = []
        for candidate in candidates:
            query = candidate.search_query
            if not query:
                logger.debug("conversion.skip_untitled artist=%s", candidate.artist)
                continue
            uri: Optional[str] = None
            try:
                results = self._search(auth_token, query, self._search_limit)
                top = results[0] if results else None
                if isinstance(top, dict) and top.get("uri"):
                    uri = str(top["uri"])
            except ConversionError as e:
                logger.warning("conversion.search_failed query=%s error=%s", query, e)
            matched.append(MatchedSong.from_candidate(candidate, uri))
        return matched

    def _create(self, session_id: str, credentials: SpotifyCredentials) -> None:
        session = self.get_session()
        try:
            uris = session.found_uris()
            if not uris:
                self._fail(session_id, ConversionError(user_message=NO_SONGS_TO_ADD_MESSAGE))
                return

            playlist = self._create_playlist(
                credentials.access_token,
                credentials.user_id,
                playlist_name_for(session.matched_songs, self._app_name),
                playlist_description_for(session.youtube_url),
                self._playlist_public,
            )
            playlist_id = playlist["id"]
            playlist_url = (playlist.get("external_urls") or {}).get("spotify")
            try:
                added = self._add_tracks(credentials.access_token, playlist_id, uris)
            except PlaylistPopulateError as e:
                logger.warning("conversion.populate_failed session=%s sent=%d", session_id, e.tracks_added)
                self._fail(
                    session_id,
                    e,
                    tracks_added=e.tracks_added,
                    playlist_id=playlist_id,
                    playlist_url=playlist_url,
                )
                return

            logger.info("conversion.done session=%s playlist=%s tracks=%d", session_id, playlist_id, added)
            self._update(
                session_id,
                phase=Phase.IDLE,
                outcome=Outcome.SUCCESS,
                youtube_url="",
                matched_songs=[],
                tracks_added=added,
                playlist_id=playlist_id,
                playlist_url=playlist_url,
                message=f"Added {added} songs to your Spotify playlist.",
                error=None,
            )
        except ConversionError as e:
            logger.warning("conversion.failed session=%s error=%s", session_id, e)
            self._fail(session_id, e)
        except Exception as e:
            logger.exception("conversion.crashed session=%s", session_id)
            self._fail(session_id, e)
