"""Exhaustive page crawl over the ClickUp task listing.

The crawl is a small state machine: ``TaskAggregator.step`` takes an
immutable ``CrawlState`` and returns the next one, so nothing is shared
between concurrent aggregations. Pages are fetched strictly in order and
end-of-data is the first empty page. A 429 sleeps for a fixed cooldown and
retries the same page; every attempt, retried or not, counts against the
iteration cap.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence

from adapters.clickup import ClickUpAdapter, PageRequest
from app_logging import get_logger
from exceptions import RateLimited

RATE_LIMIT_COOLDOWN = 15.0
MAX_PAGE_ITERATIONS = 51

logger = get_logger("dashboard_relay.aggregation")


@dataclass(frozen=True)
class CrawlState:
    page: PageRequest
    tasks: tuple[Any, ...] = ()
    iterations: int = 0
    pages: int = 0
    rate_limited: int = 0
    finished: bool = False


@dataclass(frozen=True)
class AggregationResult:
    tasks: list[Any]
    truncated: bool
    pages: int
    iterations: int
    rate_limited: int


class TaskAggregator:
    def __init__(
        self,
        adapter: ClickUpAdapter,
        *,
        cooldown: float = RATE_LIMIT_COOLDOWN,
        max_iterations: int = MAX_PAGE_ITERATIONS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._adapter = adapter
        self._cooldown = cooldown
        self._max_iterations = max_iterations
        self._sleep = sleep

    def aggregate(self, team_id: str, custom_item_types: Sequence[str] = ()) -> AggregationResult:
        """Fetch every page for ``team_id``.

        Raises UpstreamTimeout / UpstreamFailure on the first failed page; no
        partial result is returned in that case.
        """
        state = CrawlState(page=PageRequest(team_id=team_id, custom_item_types=tuple(custom_item_types)))
        while not state.finished and state.iterations < self._max_iterations:
            state = self.step(state)

        truncated = not state.finished
        if truncated:
            logger.warning(
                "crawl_truncated",
                extra={"iterations": state.iterations, "pages": state.pages, "tasks": len(state.tasks)},
            )
        else:
            logger.info(
                "crawl_finished",
                extra={"iterations": state.iterations, "pages": state.pages, "tasks": len(state.tasks)},
            )
        return AggregationResult(
            tasks=list(state.tasks),
            truncated=truncated,
            pages=state.pages,
            iterations=state.iterations,
            rate_limited=state.rate_limited,
        )

    def step(self, state: CrawlState) -> CrawlState:
        """One fetch attempt. Returns the successor state."""
        iterations = state.iterations + 1
        try:
            tasks = self._adapter.fetch_page(state.page)
        except RateLimited:
            logger.warning(
                "rate_limited",
                extra={"page": state.page.page_index, "cooldown": self._cooldown},
            )
            # no point waiting if the cap leaves no further attempt
            if iterations < self._max_iterations:
                self._sleep(self._cooldown)
            return replace(state, iterations=iterations, rate_limited=state.rate_limited + 1)

        if not tasks:
            return replace(state, iterations=iterations, finished=True)

        logger.debug("page_fetched", extra={"page": state.page.page_index, "rows": len(tasks)})
        return replace(
            state,
            page=state.page.next_page(),
            tasks=state.tasks + tuple(tasks),
            iterations=iterations,
            pages=state.pages + 1,
        )


__all__ = [
    "AggregationResult",
    "CrawlState",
    "TaskAggregator",
    "RATE_LIMIT_COOLDOWN",
    "MAX_PAGE_ITERATIONS",
]
