"""FastAPI app, CORS, and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from tubeify.api.state import AppState, get_state
from tubeify.config import ensure_data_dir

# Import routes after state to avoid circular imports
from tubeify.api.routes import conversion, recognition, spotify

__all__ = ["app", "AppState", "get_state"]

_state = get_state()


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_data_dir()
    # Build the recognizer now so a bad TUBEIFY_RECOGNITION_PROVIDERS fails at startup
    logging.getLogger(__name__).info(
        "Recognition providers: %s", ", ".join(_state.recognizer.provider_names)
    )
    yield


app = FastAPI(
    title="Tubeify API",
    description="Turn the songs in a YouTube video into a Spotify playlist",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(conversion.router, prefix="/api/conversion", tags=["conversion"])
app.include_router(recognition.router, prefix="/api/recognition", tags=["recognition"])
app.include_router(spotify.router, prefix="/api/spotify", tags=["spotify"])
