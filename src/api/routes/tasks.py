"""
Task aggregation endpoints.

Both endpoints crawl the whole ClickUp team listing and answer with a bare
JSON array of task records. Whether the safety cap cut the crawl short is
reported in the ``X-Tasks-Truncated`` header so the body stays a plain list.
"""

import logging
from typing import List, Sequence

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from adapters import get_adapter
from aggregation import TaskAggregator
from config import Settings, get_settings
from exceptions import ClientInputError, RelayError, ServerConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

TRUNCATED_HEADER = "X-Tasks-Truncated"


def get_task_aggregator(settings: Settings = Depends(get_settings)) -> TaskAggregator:
    adapter = get_adapter(
        "clickup",
        api_key=settings.clickup_api_key,
        base_url=settings.clickup_base_url,
    )
    return TaskAggregator(adapter)


def _crawl(
    aggregator: TaskAggregator,
    settings: Settings,
    custom_item_types: Sequence[str],
    failure_message: str,
) -> JSONResponse:
    try:
        if not settings.clickup_team_id:
            raise ServerConfigurationError("clickup", "CLICKUP_TEAM_ID is not configured")
        result = aggregator.aggregate(settings.clickup_team_id, custom_item_types)
    except RelayError as e:
        logger.error(
            "aggregation_failed",
            extra={"provider": e.provider, "error": e.message, "status": e.status_code, "kind": type(e).__name__},
        )
        # callers only distinguish bad input from everything else
        status = 400 if isinstance(e, ClientInputError) else 500
        return JSONResponse({"error": failure_message}, status_code=status)
    except Exception:
        logger.exception("aggregation_crashed")
        return JSONResponse({"error": failure_message}, status_code=500)

    return JSONResponse(
        result.tasks,
        headers={TRUNCATED_HEADER: "true" if result.truncated else "false"},
    )


@router.get("")
def list_tasks(
    custom_items: List[str] = Query(default=[], description="Custom item type ids to narrow the crawl to"),
    settings: Settings = Depends(get_settings),
    aggregator: TaskAggregator = Depends(get_task_aggregator),
):
    """Every task of the configured team, closed tasks and subtasks included."""
    return _crawl(aggregator, settings, custom_items, "Failed to fetch")


@router.get("/audit")
def audit_tasks(
    settings: Settings = Depends(get_settings),
    aggregator: TaskAggregator = Depends(get_task_aggregator),
):
    """Defect-type tasks only (bug / hotfix custom item types)."""
    if not settings.audit_type_ids:
        logger.error("aggregation_failed", extra={"provider": "clickup", "error": "no audit type ids configured"})
        return JSONResponse({"error": "Deep Scan Connection Failed"}, status_code=500)
    return _crawl(aggregator, settings, settings.audit_type_ids, "Deep Scan Connection Failed")
