# app/entrypoints/api/routers/health.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..deps import require_api_key
from ....config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


def _token_state(token: str | None) -> dict[str, Any]:
    """Whether a bearer token is set, and only its last 4 characters."""
    if not token:
        return {"set": False}
    return {"set": True, "length": len(token), "tail": token[-4:] if len(token) > 8 else None}


@router.get("/debug/config", dependencies=[Depends(require_api_key)])
def debug_config() -> dict[str, Any]:
    """Settings as the running server sees them. Tokens are never echoed in full."""
    return {
        "ENV": settings.ENV,
        "PROPTX_BASE_URL": settings.PROPTX_BASE_URL,
        "PROPTX_IDX_TOKEN": _token_state(settings.PROPTX_IDX_TOKEN),
        "PROPTX_VOW_TOKEN": _token_state(settings.PROPTX_VOW_TOKEN),
        "PROPTX_DLA_TOKEN": _token_state(settings.PROPTX_DLA_TOKEN),
        "IMAGE_SERVICE_URL": settings.IMAGE_SERVICE_URL,
        "MEDIA_TIMEOUT_S": settings.MEDIA_TIMEOUT_S,
        "LOGO_TIMEOUT_S": settings.LOGO_TIMEOUT_S,
        "LOGO_MAX_LISTINGS": settings.LOGO_MAX_LISTINGS,
        "API_KEY_SET": bool(settings.API_KEY),
    }
