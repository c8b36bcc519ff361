"""Conversion pipeline: start, confirm, cancel, and current session."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tubeify.api.state import AppState, get_state
from tubeify.core.errors import ConversionStateError, ValidationError

router = APIRouter()


class StartConversionBody(BaseModel):
    youtube_url: Optional[str] = None


@router.get("")
def get_session(state: AppState = Depends(get_state)):
    """Return the current conversion session (phase, matched songs, outcome)."""
    return state.orchestrator.get_session().to_dict()


@router.post("/start", status_code=202)
def start_conversion(body: StartConversionBody, state: AppState = Depends(get_state)):
    """Start recognizing songs in a YouTube URL. Poll GET /api/conversion for progress."""
    try:
        session = state.orchestrator.start_conversion(body.youtube_url or "")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.user_message)
    except ConversionStateError as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    return session.to_dict()


@router.post("/confirm", status_code=202)
def confirm_create_playlist(state: AppState = Depends(get_state)):
    """Create the Spotify playlist from the previewed matches."""
    try:
        session = state.orchestrator.confirm_create_playlist()
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.user_message)
    except ConversionStateError as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    return session.to_dict()


@router.post("/cancel")
def cancel_preview(state: AppState = Depends(get_state)):
    """Discard the previewed matches without creating a playlist."""
    try:
        session = state.orchestrator.cancel_preview()
    except ConversionStateError as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    return session.to_dict()
