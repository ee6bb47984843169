import os
from dataclasses import dataclass

from app_logging import get_logger

CLICKUP_BASE_URL = "https://api.clickup.com/api/v2"
PIXELDRAIN_BASE_URL = "https://pixeldrain.com/api"

logger = get_logger("dashboard_relay.config")


@dataclass(frozen=True)
class Settings:
    clickup_api_key: str | None = None
    clickup_team_id: str | None = None
    clickup_base_url: str = CLICKUP_BASE_URL
    audit_type_ids: tuple[str, ...] = ()
    pixeldrain_api_key: str | None = None
    pixeldrain_base_url: str = PIXELDRAIN_BASE_URL
    media_content_type: str = "video/webm"
    media_cache_control: str = "public, max-age=3600"
    media_timeout: float = 60.0


def env_float(*names: str, default: float) -> float:
    """First set variable among ``names`` as a float; a malformed value falls back to ``default``."""
    for name in names:
        value = os.getenv(name)
        if not value:
            continue
        try:
            return float(value)
        except ValueError:
            logger.warning("invalid_setting", extra={"setting": name, "fallback": default})
            return default
    return default


def _audit_type_ids() -> tuple[str, ...]:
    ids: list[str] = []
    for name in ("BUG_TYPE_ID", "HOTFIX_TYPE_ID"):
        value = (os.getenv(name) or "").strip()
        if value:
            ids.append(value)
    extra = os.getenv("RELAY_AUDIT_TYPE_IDS", "")
    ids.extend(part.strip() for part in extra.split(",") if part.strip())
    # keep first occurrence order
    return tuple(dict.fromkeys(ids))


def get_settings() -> Settings:
    """Read settings from the environment. Cheap; called per request."""
    return Settings(
        clickup_api_key=os.getenv("CLICKUP_API_KEY") or None,
        clickup_team_id=os.getenv("CLICKUP_TEAM_ID") or None,
        clickup_base_url=os.getenv("CLICKUP_BASE_URL", CLICKUP_BASE_URL).rstrip("/"),
        audit_type_ids=_audit_type_ids(),
        pixeldrain_api_key=os.getenv("PIXELDRAIN_API_KEY") or None,
        pixeldrain_base_url=os.getenv("PIXELDRAIN_BASE_URL", PIXELDRAIN_BASE_URL).rstrip("/"),
        media_content_type=os.getenv("RELAY_MEDIA_CONTENT_TYPE", "video/webm"),
        media_cache_control=os.getenv("RELAY_MEDIA_CACHE_CONTROL", "public, max-age=3600"),
        media_timeout=env_float("RELAY_MEDIA_TIMEOUT", default=60.0),
    )


__all__ = ["env_float", "get_settings", "Settings"]
