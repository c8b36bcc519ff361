"""Spotify API via Spotipy: cached OAuth token, track search, playlist creation."""
import logging
from typing import Dict, List, Optional

import requests
from spotipy import Spotify, SpotifyException
from spotipy.cache_handler import CacheFileHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from tubeify.config import (
    REQUEST_TIMEOUT_SEC,
    SPOTIFY_CLIENT_ID,
    SPOTIFY_CLIENT_SECRET,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_SCOPES,
    SPOTIFY_TOKEN_CACHE,
)
from tubeify.core.errors import (
    CatalogSearchError,
    PlaylistCreateError,
    PlaylistPopulateError,
    TransportError,
    ValidationError,
)
from tubeify.models.conversion import SpotifyCredentials

logger = logging.getLogger(__name__)

# Spotify rejects more URIs than this in one add-items request
ADD_TRACKS_BATCH_SIZE = 100
# Spotify playlist descriptions are capped at 300 characters
MAX_DESCRIPTION_LENGTH = 300

# access token -> Spotify user id, so a conversion start needs no profile round trip
_user_ids: Dict[str, str] = {}


def _oauth() -> Optional[SpotifyOAuth]:
    if not SPOTIFY_CLIENT_ID or not SPOTIFY_CLIENT_SECRET:
        return None
    cache = CacheFileHandler(cache_path=str(SPOTIFY_TOKEN_CACHE))
    return SpotifyOAuth(
        client_id=SPOTIFY_CLIENT_ID,
        client_secret=SPOTIFY_CLIENT_SECRET,
        redirect_uri=SPOTIFY_REDIRECT_URI,
        scope=SPOTIFY_SCOPES,
        cache_handler=cache,
    )


def get_authorize_url() -> Optional[str]:
    """Return the Spotify OAuth authorization URL, or None if the client id/secret are missing."""
    auth = _oauth()
    if auth is None:
        return None
    return auth.get_authorize_url()


def get_access_token() -> Optional[str]:
    """Return a valid access token from the cache (refreshed by Spotipy if expired), or None."""
    auth = _oauth()
    if auth is None:
        return None
    try:
        token_info = auth.validate_token(auth.cache_handler.get_cached_token())
    except (SpotifyOauthError, requests.RequestException) as e:
        logger.warning("spotify.token_invalid error=%s", type(e).__name__)
        return None
    if not token_info:
        return None
    return token_info.get("access_token")


def exchange_code_and_save_token(code: str) -> bool:
    """Exchange OAuth code for tokens and save to cache. Returns True on success."""
    auth = _oauth()
    if auth is None:
        return False
    try:
        auth.get_access_token(code=code, check_cache=False)
        logger.info("spotify.token_exchange ok")
        return True
    except (SpotifyOauthError, requests.RequestException) as e:
        logger.warning("spotify.token_exchange failed error=%s", type(e).__name__)
        return False


def clear_token() -> None:
    """Forget the cached token so the account is unlinked."""
    try:
        if SPOTIFY_TOKEN_CACHE.exists():
            SPOTIFY_TOKEN_CACHE.unlink()
        _user_ids.clear()
    except OSError as e:
        logger.warning("spotify.logout could not remove token cache: %s", e)


def get_spotify_client(auth_token: str) -> Spotify:
    """Spotipy client for one access token. No retries; every call times out."""
    return Spotify(
        auth=auth_token,
        requests_timeout=REQUEST_TIMEOUT_SEC,
        retries=0,
        status_retries=0,
    )


def get_profile(auth_token: str) -> Optional[dict]:
    """Return the current user's profile (id, display_name, email), or None on failure."""
    try:
        return get_spotify_client(auth_token).me()
    except (SpotifyException, requests.RequestException) as e:
        logger.warning("spotify.profile failed error=%s", type(e).__name__)
        return None


def get_credentials() -> Optional[SpotifyCredentials]:
    """Token plus profile id for the linked account, or None if not linked."""
    token = get_access_token()
    if not token:
        return None
    user_id = _user_ids.get(token)
    if user_id is None:
        profile = get_profile(token)
        if not profile or not profile.get("id"):
            return None
        user_id = profile["id"]
        _user_ids.clear()
        _user_ids[token] = user_id
    return SpotifyCredentials(access_token=token, user_id=user_id)


def search_tracks(auth_token: str, query: str, limit: int = 5) -> List[dict]:
    """Search tracks; returns up to limit items (each has 'uri'), best match first. Empty list means no match."""
    if not query or not query.strip():
        raise ValidationError("Search query must not be empty.")
    if limit < 1:
        raise ValidationError("Search limit must be at least 1.")
    sp = get_spotify_client(auth_token)
    try:
        result = sp.search(q=query, limit=limit, type="track")
    except SpotifyException as e:
        raise CatalogSearchError(query, e.http_status) from e
    except requests.RequestException as e:
        raise TransportError(f"Spotify search failed: {type(e).__name__}") from e
    items = ((result or {}).get("tracks") or {}).get("items") or []
    return [item for item in items if item and item.get("uri")]


def create_playlist(
    auth_token: str,
    owner_id: str,
    name: str,
    description: str = "",
    public: bool = True,
) -> dict:
    """Create an empty playlist owned by owner_id. Returns Spotify's playlist object (has 'id')."""
    sp = get_spotify_client(auth_token)
    try:
        playlist = sp.user_playlist_create(
            owner_id,
            name,
            public=public,
            description=description[:MAX_DESCRIPTION_LENGTH],
        )
    except SpotifyException as e:
        raise PlaylistCreateError(e.http_status, e.msg) from e
    except requests.RequestException as e:
        raise TransportError(f"Spotify playlist creation failed: {type(e).__name__}") from e
    if not playlist or not playlist.get("id"):
        raise PlaylistCreateError(None, "response had no playlist id")
    logger.info("spotify.playlist_created id=%s", playlist["id"])
    return playlist


def add_tracks(auth_token: str, playlist_id: str, track_uris: List[str]) -> int:
    """Append track URIs to a playlist in batches. Returns the number of tracks sent."""
    if not track_uris:
        raise ValidationError("No tracks to add.")
    sp = get_spotify_client(auth_token)
    sent = 0
    for start in range(0, len(track_uris), ADD_TRACKS_BATCH_SIZE):
        batch = track_uris[start:start + ADD_TRACKS_BATCH_SIZE]
        try:
            sp.playlist_add_items(playlist_id, batch)
        except SpotifyException as e:
            raise PlaylistPopulateError(playlist_id, sent, e.http_status, e.msg) from e
        except requests.RequestException as e:
            raise PlaylistPopulateError(playlist_id, sent, None, type(e).__name__) from e
        sent += len(batch)
    logger.info("spotify.tracks_added playlist=%s count=%d", playlist_id, sent)
    return sent
