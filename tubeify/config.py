"""Configuration: env, Spotify credentials, recognition providers, pipeline defaults."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of tubeify package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so SPOTIFY_CLIENT_ID, AUDD_API_KEY etc. are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = BASE_DIR / "data"
SPOTIFY_TOKEN_CACHE = DATA_DIR / ".spotify-token"

# API
API_HOST = os.getenv("TUBEIFY_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("TUBEIFY_API_PORT", "8000"))

# Spotify (OAuth; tokens stored in the cache file after first connect)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.getenv("SPOTIFY_REDIRECT_URI", "http://localhost:8000/api/spotify/callback")
SPOTIFY_SCOPES = (
    "playlist-read-private playlist-modify-public playlist-modify-private "
    "user-read-private user-read-email"
)
# After OAuth callback, redirect here (e.g. http://localhost:5173 for Vite dev)
TUBEIFY_WEB_ORIGIN = os.getenv("TUBEIFY_WEB_ORIGIN", "")

# Recognition: ordered provider names, first success wins
RECOGNITION_PROVIDERS = [
    name.strip().lower()
    for name in os.getenv("TUBEIFY_RECOGNITION_PROVIDERS", "audd").split(",")
    if name.strip()
]

# AudD
AUDD_API_KEY = os.getenv("AUDD_API_KEY", "")
AUDD_API_URL = os.getenv("AUDD_API_URL", "https://api.audd.io/")
AUDD_RETURN = "timecode,apple_music,spotify"

# ACRCloud File Scanning
ACR_FS_CONTAINER_ID = os.getenv("ACR_FS_CONTAINER_ID", "")
ACR_FS_ACCESS_TOKEN = os.getenv("ACR_FS_ACCESS_TOKEN", "")
ACR_FS_BASE_URL = os.getenv("ACR_FS_BASE_URL", "https://api.acrcloud.com/v1/fs")

# Every outbound call (recognition and Spotify) gives up after this many seconds
REQUEST_TIMEOUT_SEC = float(os.getenv("TUBEIFY_REQUEST_TIMEOUT_SEC", "30"))

# Conversion pipeline
APP_NAME = os.getenv("TUBEIFY_APP_NAME", "Tubeify")
SEARCH_LIMIT = int(os.getenv("TUBEIFY_SEARCH_LIMIT", "5"))
PLAYLIST_PUBLIC = os.getenv("TUBEIFY_PLAYLIST_PUBLIC", "1").lower() in ("1", "true", "yes")


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
