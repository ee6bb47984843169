"""ClickUp v2 task-listing adapter.

Lists one page of a team's tasks via ``GET /team/{team_id}/task``.
Env vars (read by ``config.get_settings``):
  CLICKUP_API_KEY   personal token, sent verbatim in ``Authorization``.
  CLICKUP_TEAM_ID   workspace (team) id.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from config import CLICKUP_BASE_URL
from exceptions import ServerConfigurationError, UpstreamFailure

from .base import APIAdapter, HTTPClient


@dataclass(frozen=True)
class PageRequest:
    team_id: str
    page_index: int = 0
    include_closed: bool = True
    subtasks: bool = True
    custom_item_types: tuple[str, ...] = ()

    def query(self) -> list[tuple[str, str]]:
        """Query pairs; ``custom_items[]`` repeats once per type, in order."""
        params = [
            ("page", str(self.page_index)),
            ("subtasks", _flag(self.subtasks)),
            ("include_closed", _flag(self.include_closed)),
        ]
        params.extend(("custom_items[]", str(t)) for t in self.custom_item_types)
        return params

    def next_page(self) -> "PageRequest":
        return replace(self, page_index=self.page_index + 1)


def _flag(value: bool) -> str:
    return "true" if value else "false"


class ClickUpAdapter(APIAdapter):
    name = "clickup"
    base_url = CLICKUP_BASE_URL

    def __init__(self, api_key: str | None, http: HTTPClient | None = None, *, timeout: float | None = None, base_url: str | None = None):
        super().__init__(http, timeout=timeout)
        self._api_key = api_key
        if base_url:
            self.base_url = base_url.rstrip("/")

    def fetch_page(self, page: PageRequest) -> list[Any]:
        """Return the task records of one page (possibly empty)."""
        return self.fetch(page=page)["data"]

    def _build_request(self, **kwargs):  # noqa: D401
        if not self._api_key:
            raise ServerConfigurationError(self.name, "CLICKUP_API_KEY is not configured")
        page: PageRequest = kwargs["page"]
        if not page.team_id:
            raise ServerConfigurationError(self.name, "CLICKUP_TEAM_ID is not configured")
        url = f"{self.base_url}/team/{page.team_id}/task"
        headers = {"Authorization": self._api_key}
        return url, page.query(), headers

    def _normalize(self, raw: Any, *, request_kwargs: dict[str, Any]) -> dict[str, Any]:  # noqa: D401
        if not isinstance(raw, dict):
            raise UpstreamFailure(self.name, f"unexpected payload type: {type(raw).__name__}")
        tasks = raw.get("tasks")
        if tasks is None:
            tasks = []
        if not isinstance(tasks, list):
            raise UpstreamFailure(self.name, f"'tasks' is {type(tasks).__name__}, expected list")
        page: PageRequest = request_kwargs["page"]
        return {"provider": self.name, "data": tasks, "page": page.page_index}


__all__ = ["ClickUpAdapter", "PageRequest"]
