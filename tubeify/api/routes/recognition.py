"""Recognition provider configuration check."""
from fastapi import APIRouter, Depends

from tubeify.api.state import AppState, get_state

router = APIRouter()


@router.get("/providers")
def list_providers(state: AppState = Depends(get_state)):
    """Configured providers in fallback order and whether their credentials are set."""
    providers = [
        {"name": p.name, "configured": p.is_configured()}
        for p in state.recognizer.providers
    ]
    return {"providers": providers, "ready": any(p["configured"] for p in providers)}
