"""
Resilient enumeration of every task in a collection.

Listing endpoints are not equally reliable across runtimes, so the collection
is gathered through an ordered chain of strategies. Each strategy is run to
completion and produces a ``StrategyResult``; the first successful result
wins. A failed strategy's partial pages are discarded and the next strategy
starts from its first page.

Strategy chain
==============

    project_tasks     - GET /projects/{gid}/tasks, fully paginated
    tasks_by_project  - GET /tasks?project={gid}, fully paginated
    current_task      - GET /tasks/{task_gid}, singleton
    (empty list when everything failed)

Enumeration never raises for a failed listing: a degraded snapshot only risks
a token that collides with a task outside the visible snapshot, which is
preferred over failing the run. A run deadline (``TimeoutException``) is not a
listing failure and aborts the chain.
"""

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, List, Optional, Sequence

from wf_ticket.core.logging_config import DiagnosticSink, logging_sink
from wf_ticket.core.models import LIST_OPT_FIELDS, Item, TasksApi
from wf_ticket.core.pagination import DEFAULT_PAGE_SIZE, collect_pages
from wf_ticket.core.resilience import TimeoutException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Strategy:
    """A named way of listing the collection."""

    name: str
    fetch: Callable[[], List[Item]]


@dataclass
class StrategyResult:
    """Outcome of running a single strategy.

    Attributes:
        name: Strategy name
        items: Collected items, None when the strategy failed
        error: Failure message, None on success
    """

    name: str
    items: Optional[List[Item]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.items is not None


@dataclass
class EnumerationResult:
    """Snapshot of the collection plus how it was obtained."""

    items: List[Item] = field(default_factory=list)
    strategy: Optional[str] = None
    attempts: List[StrategyResult] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.strategy != PRIMARY_STRATEGY


PRIMARY_STRATEGY = "project_tasks"
SECONDARY_STRATEGY = "tasks_by_project"
LAST_RESORT_STRATEGY = "current_task"


def run_strategy(strategy: Strategy) -> StrategyResult:
    """Run ``strategy`` and capture its outcome as a value."""
    try:
        items = strategy.fetch()
    except TimeoutException:
        raise
    except Exception as exc:
        return StrategyResult(name=strategy.name, error=str(exc) or type(exc).__name__)
    return StrategyResult(name=strategy.name, items=list(items))


def first_success(
    strategies: Sequence[Strategy],
    sink: DiagnosticSink = logging_sink,
) -> EnumerationResult:
    """Run strategies in order until one succeeds.

    Every failure is reported to ``sink`` as ``Fallback <a> -> <b>: <error>``.
    Returns an empty, strategy-less result when all strategies fail.
    """
    attempts: List[StrategyResult] = []
    for index, strategy in enumerate(strategies):
        result = run_strategy(strategy)
        attempts.append(result)
        if result.ok:
            return EnumerationResult(
                items=result.items or [],
                strategy=result.name,
                attempts=attempts,
            )

        following = strategies[index + 1].name if index + 1 < len(strategies) else "empty"
        message = f"Fallback {result.name} -> {following}: {result.error}"
        logger.warning(message)
        sink(message)

    return EnumerationResult(items=[], strategy=None, attempts=attempts)


def build_strategies(
    api: TasksApi,
    collection_id: str,
    item_id: str,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[Strategy]:
    """Build the default strategy chain for a collection."""
    return [
        Strategy(
            name=PRIMARY_STRATEGY,
            fetch=partial(
                collect_pages,
                partial(api.get_tasks_for_project, collection_id, opt_fields=LIST_OPT_FIELDS),
                page_size,
            ),
        ),
        Strategy(
            name=SECONDARY_STRATEGY,
            fetch=partial(
                collect_pages,
                partial(api.get_tasks, collection_id, opt_fields=LIST_OPT_FIELDS),
                page_size,
            ),
        ),
        Strategy(
            name=LAST_RESORT_STRATEGY,
            fetch=lambda: [api.get_task(item_id, opt_fields=LIST_OPT_FIELDS)],
        ),
    ]


def enumerate_collection(
    api: TasksApi,
    collection_id: str,
    item_id: str,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    sink: DiagnosticSink = logging_sink,
) -> EnumerationResult:
    """Gather every task in ``collection_id``, degrading instead of failing.

    Args:
        api: Task service
        collection_id: Project gid whose tasks are listed
        item_id: Gid of the task being tagged (used by the last-resort strategy)
        page_size: Items requested per page
        sink: Diagnostic sink receiving fallback messages

    Returns:
        EnumerationResult with the snapshot and the winning strategy
    """
    result = first_success(
        build_strategies(api, collection_id, item_id, page_size),
        sink=sink,
    )
    logger.debug(
        "Enumerated %d task(s) in %s via %s",
        len(result.items),
        collection_id,
        result.strategy or "nothing",
    )
    return result
