"""Test configuration and fixtures"""

import pytest
from unittest.mock import Mock

from tubeify.core import spotify_client
from tubeify.core.conversion import ConversionOrchestrator
from tubeify.models.conversion import RecognizedCandidate, SpotifyCredentials


class ManualRunner:
    """Collects background work so tests decide when each phase runs"""

    def __init__(self):
        self.pending = []

    def __call__(self, target):
        self.pending.append(target)

    def run_all(self):
        while self.pending:
            self.pending.pop(0)()


class FakeSearch:
    """Spotify search stand-in: query -> list of results, or an exception to raise"""

    def __init__(self, results=None):
        self.results = results or {}
        self.queries = []

    def __call__(self, auth_token, query, limit):
        self.queries.append(query)
        outcome = self.results.get(query, [])
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def credentials():
    return SpotifyCredentials(access_token="test-token", user_id="user_123")


@pytest.fixture
def runner():
    return ManualRunner()


@pytest.fixture
def recognizer():
    recognizer = Mock()
    recognizer.recognize.return_value = [
        RecognizedCandidate(title="Song1", artist="Art1"),
        RecognizedCandidate(title="Song2", artist="Art2"),
    ]
    return recognizer


@pytest.fixture
def search():
    return FakeSearch({"Song1 Art1": [{"uri": "spotify:track:1"}, {"uri": "spotify:track:9"}]})


@pytest.fixture
def playlist_calls():
    """Mocks for create_playlist / add_tracks with Spotify-like return values"""
    create = Mock(return_value={
        "id": "playlist_1",
        "external_urls": {"spotify": "https://open.spotify.com/playlist/playlist_1"},
    })
    add = Mock(side_effect=lambda token, playlist_id, uris: len(uris))
    return create, add


@pytest.fixture
def orchestrator(recognizer, credentials, search, playlist_calls, runner):
    create, add = playlist_calls
    return ConversionOrchestrator(
        recognizer=recognizer,
        token_provider=lambda: credentials.access_token,
        credentials_provider=lambda: credentials,
        search=search,
        create_playlist=create,
        add_tracks=add,
        run_in_background=runner,
        app_name="Tubeify",
        search_limit=5,
        playlist_public=True,
    )


@pytest.fixture(autouse=True)
def clear_user_id_cache():
    spotify_client._user_ids.clear()
    yield
    spotify_client._user_ids.clear()


@pytest.fixture
def audd_multi_song_response():
    """AudD response for a long video: segments, each with songs"""
    return {
        "status": "success",
        "result": [
            {
                "offset": "00:12",
                "songs": [
                    {
                        "artist": "Daft Punk",
                        "title": "One More Time",
                        "album": "Discovery",
                        "release_date": "2000-11-30",
                        "timecode": "00:45",
                    }
                ],
            },
            {
                "offset": "03:40",
                "songs": [
                    {"artist": "Justice", "title": "D.A.N.C.E.", "timecode": "01:10"},
                ],
            },
        ],
    }
