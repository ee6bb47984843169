"""Liveness endpoint."""

from fastapi import APIRouter, Depends

from config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "healthy",
        "configured": {
            "clickup": bool(settings.clickup_api_key and settings.clickup_team_id),
            "audit": bool(settings.audit_type_ids),
            "pixeldrain": bool(settings.pixeldrain_api_key),
        },
    }
