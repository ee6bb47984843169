"""
Media relay endpoint for test-run recordings.

Errors are answered as short plain-text bodies; the upstream credential and
server configuration never leak into them.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from config import Settings, get_settings
from exceptions import RelayError, ServerConfigurationError
from relay import MediaRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/automation", tags=["automation"])


def get_media_relay(settings: Settings = Depends(get_settings)) -> MediaRelay:
    return MediaRelay(
        settings.pixeldrain_api_key,
        base_url=settings.pixeldrain_base_url,
        content_type=settings.media_content_type,
        cache_control=settings.media_cache_control,
        timeout=settings.media_timeout,
    )


@router.get("/video")
async def stream_video(
    file_id: Optional[str] = Query(None, alias="id", description="Upstream file id"),
    range_header: Optional[str] = Header(None, alias="Range"),
    relay: MediaRelay = Depends(get_media_relay),
):
    """Stream a stored recording for inline playback."""
    try:
        stream = await relay.open(file_id, range_header)
    except ServerConfigurationError as e:
        logger.error("relay_misconfigured", extra={"provider": e.provider})
        return PlainTextResponse("Server misconfigured", status_code=e.status_code)
    except RelayError as e:
        logger.warning("relay_failed", extra={"provider": e.provider, "status": e.status_code})
        return PlainTextResponse(e.message, status_code=e.status_code)

    return StreamingResponse(
        stream.iter_bytes(),
        status_code=stream.status_code,
        headers=stream.headers,
        # releases the upstream connection even if the client hung up mid-body
        background=BackgroundTask(stream.aclose),
    )
