"""Song recognition for a YouTube URL via AudD or ACRCloud File Scanning."""
import logging
from typing import Any, Iterable, List, Optional, Sequence

import requests

from tubeify.config import (
    ACR_FS_ACCESS_TOKEN,
    ACR_FS_BASE_URL,
    ACR_FS_CONTAINER_ID,
    AUDD_API_KEY,
    AUDD_API_URL,
    AUDD_RETURN,
    RECOGNITION_PROVIDERS,
    REQUEST_TIMEOUT_SEC,
)
from tubeify.core.errors import (
    NoSongsRecognized,
    RecognitionServiceError,
    TransportError,
    ValidationError,
)
from tubeify.core.redaction import redact
from tubeify.models.conversion import RecognizedCandidate

logger = logging.getLogger(__name__)


def _json_or_text(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text[:500]


def _require_url(youtube_url: str) -> str:
    url = (youtube_url or "").strip()
    if not url:
        raise ValidationError("Please enter a YouTube URL.")
    return url


class RecognitionProvider:
    """One external recognition service. Subclasses implement recognize()."""

    name = "provider"

    def is_configured(self) -> bool:
        raise NotImplementedError

    def recognize(self, youtube_url: str) -> List[RecognizedCandidate]:
        raise NotImplementedError

    def _post(self, url: str, **kwargs) -> requests.Response:
        """Single POST with timeout; network failures become TransportError."""
        try:
            return requests.post(url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            logger.warning("recognition.timeout provider=%s", self.name)
            raise TransportError(f"{self.name} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            logger.warning("recognition.transport_error provider=%s error=%s", self.name, type(e).__name__)
            raise TransportError(f"{self.name} request failed: {type(e).__name__}") from e


class AuddProvider(RecognitionProvider):
    """AudD (api.audd.io): accepts the video URL directly."""

    name = "audd"

    def __init__(
        self,
        api_token: str = AUDD_API_KEY,
        api_url: str = AUDD_API_URL,
        timeout: float = REQUEST_TIMEOUT_SEC,
    ) -> None:
        self.api_token = api_token
        self.api_url = api_url
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_token)

    def recognize(self, youtube_url: str) -> List[RecognizedCandidate]:
        url = _require_url(youtube_url)
        if not self.is_configured():
            raise RecognitionServiceError(self.name, "misconfigured", {"error": "AUDD_API_KEY not set"})

        logger.info("recognition.request provider=%s url=%s", self.name, url)
        resp = self._post(
            self.api_url,
            data={"api_token": self.api_token, "url": url, "return": AUDD_RETURN},
        )
        data = _json_or_text(resp)
        if not resp.ok:
            logger.warning("recognition.error provider=%s http_status=%s", self.name, resp.status_code)
            raise RecognitionServiceError(self.name, resp.status_code, redact(data))
        if not isinstance(data, dict):
            raise RecognitionServiceError(self.name, resp.status_code, {"body": redact(data)})
        # AudD reports most errors with HTTP 200 and status=error
        if data.get("status") == "error":
            error = data.get("error") or {}
            status = error.get("error_code", "error") if isinstance(error, dict) else "error"
            logger.warning("recognition.error provider=%s status=%s", self.name, status)
            raise RecognitionServiceError(self.name, status, redact(data))

        candidates = list(_candidates_from_audd(data.get("result")))
        logger.info("recognition.response provider=%s candidates=%d", self.name, len(candidates))
        if not candidates:
            raise NoSongsRecognized(f"{self.name} recognized no songs")
        return candidates


def _audd_song(song: Any) -> Optional[RecognizedCandidate]:
    if not isinstance(song, dict):
        return None
    return RecognizedCandidate(
        title=str(song.get("title") or "").strip(),
        artist=str(song.get("artist") or "").strip(),
    )


def _candidates_from_audd(result: Any) -> Iterable[RecognizedCandidate]:
    """Flatten AudD result shapes: one song, a list of songs, or [{offset, songs: [...]}]."""
    if not result:
        return
    items = result if isinstance(result, list) else [result]
    for item in items:
        if isinstance(item, dict) and isinstance(item.get("songs"), list):
            songs = item["songs"]
        else:
            songs = [item]
        for song in songs:
            candidate = _audd_song(song)
            if candidate is not None:
                yield candidate


class AcrCloudFileScanProvider(RecognitionProvider):
    """ACRCloud File Scanning: submits the URL to a container and reads music results."""

    name = "acrcloud"

    def __init__(
        self,
        container_id: str = ACR_FS_CONTAINER_ID,
        access_token: str = ACR_FS_ACCESS_TOKEN,
        base_url: str = ACR_FS_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SEC,
    ) -> None:
        self.container_id = container_id
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.container_id and self.access_token)

    def recognize(self, youtube_url: str) -> List[RecognizedCandidate]:
        url = _require_url(youtube_url)
        if not self.is_configured():
            raise RecognitionServiceError(
                self.name, "misconfigured", {"error": "ACR_FS_CONTAINER_ID / ACR_FS_ACCESS_TOKEN not set"}
            )

        logger.info("recognition.request provider=%s url=%s", self.name, url)
        resp = self._post(
            f"{self.base_url}/containers/{self.container_id}/files",
            headers={"Authorization": f"Bearer {self.access_token}"},
            json={"url": url, "platform": "youtube"},
        )
        data = _json_or_text(resp)
        if not resp.ok:
            logger.warning("recognition.error provider=%s http_status=%s", self.name, resp.status_code)
            raise RecognitionServiceError(self.name, resp.status_code, redact(data))

        files = _acrcloud_files(data)
        if not any(isinstance(f.get("results"), dict) for f in files):
            # upload accepted, scan not finished yet
            logger.warning("recognition.pending provider=%s", self.name)
            raise RecognitionServiceError(self.name, "pending", redact(data))

        candidates = list(_candidates_from_acrcloud(files))
        logger.info("recognition.response provider=%s candidates=%d", self.name, len(candidates))
        if not candidates:
            raise NoSongsRecognized(f"{self.name} recognized no songs")
        return candidates


def _acrcloud_files(data: Any) -> List[dict]:
    """data.data may be one file object or a list of them."""
    if not isinstance(data, dict):
        return []
    files = data.get("data")
    if isinstance(files, dict):
        files = [files]
    if not isinstance(files, list):
        return []
    return [f for f in files if isinstance(f, dict)]


def _candidates_from_acrcloud(files: List[dict]) -> Iterable[RecognizedCandidate]:
    """Read results.music[].result from each scanned file."""
    for f in files:
        results = f.get("results")
        if not isinstance(results, dict):
            continue
        music = results.get("music")
        for entry in music if isinstance(music, list) else []:
            song = entry.get("result") if isinstance(entry, dict) else None
            if not isinstance(song, dict):
                continue
            artists = song.get("artists")
            if not isinstance(artists, list):
                artists = []
            yield RecognizedCandidate(
                title=str(song.get("title") or "").strip(),
                artist=", ".join(str(a.get("name") or "") for a in artists if isinstance(a, dict)).strip(),
            )


class FallbackRecognizer:
    """Ordered providers, first success wins.

    RecognitionServiceError and TransportError move on to the next provider.
    NoSongsRecognized is a real answer about the audio and is raised at once.
    """

    def __init__(self, providers: Sequence[RecognitionProvider]) -> None:
        if not providers:
            raise ValueError("At least one recognition provider is required")
        self.providers = list(providers)

    @property
    def provider_names(self) -> List[str]:
        return [p.name for p in self.providers]

    def recognize(self, youtube_url: str) -> List[RecognizedCandidate]:
        url = _require_url(youtube_url)
        last_error: Optional[Exception] = None
        for provider in self.providers:
            try:
                return provider.recognize(url)
            except (RecognitionServiceError, TransportError) as e:
                logger.warning("recognition.fallback provider=%s error=%s", provider.name, e)
                last_error = e
        raise last_error


PROVIDER_FACTORIES = {
    AuddProvider.name: AuddProvider,
    AcrCloudFileScanProvider.name: AcrCloudFileScanProvider,
}


def build_recognizer(names: Optional[Sequence[str]] = None) -> FallbackRecognizer:
    """Build the recognizer for the configured provider names (TUBEIFY_RECOGNITION_PROVIDERS)."""
    names = list(names if names is not None else RECOGNITION_PROVIDERS)
    providers = []
    for name in names:
        factory = PROVIDER_FACTORIES.get(name)
        if factory is None:
            raise ValueError(
                f"Unknown recognition provider {name!r}; choose from {sorted(PROVIDER_FACTORIES)}"
            )
        providers.append(factory())
    return FallbackRecognizer(providers)
