"""Spotify OAuth: auth URL, callback, profile and logout."""
import urllib.parse
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel

from tubeify.api.state import AppState, get_state
from tubeify.config import TUBEIFY_WEB_ORIGIN
from tubeify.core.spotify_client import (
    clear_token,
    exchange_code_and_save_token,
    get_access_token,
    get_authorize_url,
    get_profile,
)

router = APIRouter()


class CompleteLoginBody(BaseModel):
    """Either the full redirect URL (with ?code=...) or the code alone."""
    redirect_url: Optional[str] = None
    code: Optional[str] = None


@router.get("/auth-url")
def get_auth_url(state: AppState = Depends(get_state)):
    """Return Spotify OAuth authorization URL and whether the user is logged in."""
    url = get_authorize_url()
    if url is None:
        return {"auth_url": None, "error": "SPOTIFY_CLIENT_ID not set", "logged_in": False}
    return {"auth_url": url, "logged_in": get_access_token() is not None}


@router.get("/callback")
def spotify_callback(
    code: Optional[str] = None,
    error: Optional[str] = None,
    state: AppState = Depends(get_state),
):
    """Exchange code for tokens, store them, then redirect to web app or show success."""
    if error or not code:
        if TUBEIFY_WEB_ORIGIN:
            return RedirectResponse(
                url=f"{TUBEIFY_WEB_ORIGIN.rstrip('/')}/dashboard?spotify=error", status_code=302
            )
        return HTMLResponse(
            "<body><p>Spotify connection failed. Please try again.</p></body>",
            status_code=400,
        )
    if not exchange_code_and_save_token(code):
        return HTMLResponse(
            "<body><p>Failed to link Spotify. Check backend logs and try again.</p></body>",
            status_code=500,
        )
    if TUBEIFY_WEB_ORIGIN:
        redirect_url = f"{TUBEIFY_WEB_ORIGIN.rstrip('/')}/dashboard?spotify=success"
        return RedirectResponse(url=redirect_url, status_code=302)
    return HTMLResponse(
        "<body><p>Spotify linked successfully. You can close this window.</p></body>"
    )


@router.post("/complete-login")
def complete_login(body: CompleteLoginBody, state: AppState = Depends(get_state)):
    """
    Exchange an auth code for tokens and save (manual flow).
    Send either the full redirect URL (after Spotify redirected you and the page failed to load)
    or just the code.
    """
    code: Optional[str] = None
    if body.code:
        code = body.code.strip()
    elif body.redirect_url:
        url = body.redirect_url.strip()
        if "?" in url:
            parsed = urllib.parse.urlparse(url)
            params = urllib.parse.parse_qs(parsed.query)
            code = (params.get("code") or [None])[0]
        if not code:
            raise HTTPException(
                status_code=400,
                detail="No 'code' in redirect URL. Paste the full URL from the address bar after logging in.",
            )
    else:
        raise HTTPException(
            status_code=400,
            detail="Send either 'redirect_url' or 'code' in the request body.",
        )
    if not exchange_code_and_save_token(code):
        raise HTTPException(
            status_code=502,
            detail="Failed to exchange code for tokens. Check SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, and redirect_uri.",
        )
    return {"ok": True, "message": "Spotify linked successfully."}


@router.get("/profile")
def get_connection(state: AppState = Depends(get_state)):
    """Whether Spotify is linked, and as whom."""
    token = get_access_token()
    if token is None:
        return {"connected": False, "profile": None}
    profile = get_profile(token)
    if profile is None:
        raise HTTPException(status_code=502, detail="Could not load the Spotify profile.")
    return {
        "connected": True,
        "profile": {
            "id": profile.get("id"),
            "display_name": profile.get("display_name") or "User",
            "email": profile.get("email"),
        },
    }


@router.post("/logout")
def logout(state: AppState = Depends(get_state)):
    """Clear the Spotify token so the user is logged out."""
    clear_token()
    return {"ok": True}
