"""Test conversion data models"""

import pytest

from tubeify.core.redaction import MASK, redact
from tubeify.models.conversion import (
    ConversionSession,
    MatchedSong,
    Outcome,
    Phase,
    RecognizedCandidate,
)


class TestRecognizedCandidate:
    """Test search query building"""

    def test_title_and_artist(self):
        assert RecognizedCandidate("Song1", "Art1").search_query == "Song1 Art1"

    def test_title_only(self):
        assert RecognizedCandidate(" Song1 ", "").search_query == "Song1"

    def test_no_title_gives_empty_query(self):
        assert RecognizedCandidate("", "Art1").search_query == ""


class TestMatchedSong:
    """Test the found / catalog_uri invariant"""

    def test_from_candidate(self):
        found = MatchedSong.from_candidate(RecognizedCandidate("A", "X"), "spotify:track:1")
        missing = MatchedSong.from_candidate(RecognizedCandidate("B", "Y"), None)

        assert found.found and found.catalog_uri == "spotify:track:1"
        assert not missing.found and missing.catalog_uri is None

    @pytest.mark.parametrize("uri, found", [("spotify:track:1", False), (None, True)])
    def test_inconsistent_fields_rejected(self, uri, found):
        with pytest.raises(ValueError):
            MatchedSong("A", "X", catalog_uri=uri, found=found)


class TestConversionSession:
    """Test session helpers used by the API"""

    def test_counts_and_dict(self):
        session = ConversionSession(
            session_id="s1",
            phase=Phase.PREVIEW,
            youtube_url="https://youtu.be/x",
            matched_songs=[
                MatchedSong("Song1", "Art1", "spotify:track:1", True),
                MatchedSong("Song2", "Art2"),
            ],
        )
        data = session.to_dict()

        assert session.found_uris() == ["spotify:track:1"]
        assert data["phase"] == "preview"
        assert data["outcome"] is None
        assert data["found_count"] == 1
        assert data["not_found_count"] == 1
        assert data["matched_songs"][1] == {
            "title": "Song2", "artist": "Art2", "catalog_uri": None, "found": False,
        }

    def test_idle_is_not_busy(self):
        assert not ConversionSession(outcome=Outcome.SUCCESS).is_busy
        assert ConversionSession(phase=Phase.PREVIEW).is_busy


class TestRedaction:
    """Test credential masking of provider payloads"""

    def test_nested_keys_are_masked(self):
        payload = {
            "status": "error",
            "request_params": {"api_token": "k", "url": "u"},
            "headers": [{"Authorization": "Bearer x"}],
        }
        clean = redact(payload)

        assert clean["request_params"] == {"api_token": MASK, "url": "u"}
        assert clean["headers"] == [{"Authorization": MASK}]
        assert payload["request_params"]["api_token"] == "k"

    def test_scalars_pass_through(self):
        assert redact("text") == "text"
        assert redact(None) is None

    def test_credentials_inside_text_are_masked(self):
        """Error messages that echo a query string do not leak the key"""
        payload = {
            "error": {
                "error_code": 900,
                "error_message": "Wrong api_token=abc123&url=https://youtu.be/x was sent",
            }
        }
        message = redact(payload)["error"]["error_message"]

        assert "abc123" not in message
        assert f"api_token={MASK}" in message
        assert "url=https://youtu.be/x" in message

    def test_bearer_token_in_text_is_masked(self):
        assert redact(["sent Authorization: Bearer eyJhbGci.x-y"]) == [f"sent Authorization: Bearer {MASK}"]
