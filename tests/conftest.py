"""
Root pytest configuration and shared fixtures.

Provides the response-v2 envelope validator and an in-memory task service.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pytest
from mcp.types import TextContent

from wf_ticket.clients.asana import AsanaNotFoundError
from wf_ticket.config import set_config
from wf_ticket.core.logging_config import ROOT_LOGGER
from wf_ticket.core.models import (
    LIST_OPT_FIELDS,
    TARGET_OPT_FIELDS,
    CustomField,
    Item,
    Page,
)

# Response contract version from responses.py
RESPONSE_CONTRACT_VERSION = "response-v2"

PROJECT_GID = "1200000000001"


def extract_response_dict(result: Union[Dict[str, Any], TextContent]) -> Dict[str, Any]:
    """Extract dict from tool result, handling both dict and TextContent.

    Tools wrapped with canonical_tool return TextContent with minified JSON.
    """
    if isinstance(result, dict):
        return result
    if isinstance(result, TextContent):
        return json.loads(result.text)
    raise TypeError(
        f"Expected dict or TextContent, got {type(result).__name__}"
    )


def validate_response_envelope(response: Dict[str, Any]) -> bool:
    """Validate that a response dict conforms to response-v2 envelope.

    Raises:
        AssertionError: With detailed message on validation failure
    """
    required_keys = {"success", "data", "error", "meta"}
    missing = required_keys - set(response.keys())
    assert not missing, f"Response missing required keys: {missing}"

    assert isinstance(response["success"], bool), "success must be boolean"
    assert isinstance(response["data"], dict), "data must be dict"
    assert isinstance(response["meta"], dict), "meta must be dict"

    if response["success"]:
        assert response["error"] is None, "error must be null when success=True"
    else:
        assert isinstance(response["error"], str) and response["error"], (
            "error must be non-empty string when success=False"
        )
        assert "error_code" in response["data"], "error responses carry data.error_code"

    assert response["meta"].get("version") == RESPONSE_CONTRACT_VERSION, (
        f"meta.version must be '{RESPONSE_CONTRACT_VERSION}'"
    )

    return True


@pytest.fixture
def assert_response_contract():
    """Fixture for asserting response contract compliance.

    Usage:
        def test_tool_response(assert_response_contract):
            response = my_tool()
            validated = assert_response_contract(response)
            assert validated["data"]["token"] == "69237487"
    """
    def _assert(response: Union[Dict[str, Any], TextContent]) -> Dict[str, Any]:
        response = extract_response_dict(response)
        validate_response_envelope(response)
        return response

    return _assert


class FakeTasksApi:
    """In-memory task service with per-call failure injection.

    Listing offsets are stringified start indexes, so page N of a listing
    is fetched with ``offset=str((N - 1) * limit)``.
    """

    def __init__(self, project_gid: str = PROJECT_GID):
        self.project_gid = project_gid
        self.tasks: Dict[str, Item] = {}
        self.order: List[str] = []
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.updates: List[Dict[str, Any]] = []

        # Failure injection
        self.fail_project_tasks_on_page: Optional[int] = None
        self.fail_tasks_by_project = False
        self.fail_current_task = False
        self.target_error: Optional[Exception] = None
        self.update_error: Optional[Exception] = None
        self.closed = False

    def add(
        self,
        gid: str,
        name: Optional[str],
        custom_fields: Iterable[CustomField] = (),
    ) -> Item:
        item = Item(gid=gid, name=name or "", custom_fields=tuple(custom_fields))
        if gid not in self.tasks:
            self.order.append(gid)
        self.tasks[gid] = item
        return item

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    def close(self) -> None:
        self.closed = True

    # TasksApi ---------------------------------------------------------

    def get_task(self, task_gid: str, opt_fields: str = TARGET_OPT_FIELDS) -> Item:
        self.calls.append(("get_task", {"task_gid": task_gid, "opt_fields": opt_fields}))
        if opt_fields == LIST_OPT_FIELDS and self.fail_current_task:
            raise RuntimeError("task lookup unavailable")
        if opt_fields == TARGET_OPT_FIELDS and self.target_error is not None:
            raise self.target_error
        if task_gid not in self.tasks:
            raise AsanaNotFoundError(f"Not found: /tasks/{task_gid}", status_code=404)
        item = self.tasks[task_gid]
        if opt_fields == LIST_OPT_FIELDS:
            return Item(gid=item.gid, name=item.name)
        return item

    def get_tasks_for_project(
        self,
        project_gid: str,
        *,
        limit: int,
        offset: Optional[str] = None,
        opt_fields: str = LIST_OPT_FIELDS,
    ) -> Page:
        self.calls.append(
            ("get_tasks_for_project", {"project_gid": project_gid, "limit": limit, "offset": offset})
        )
        start = int(offset) if offset else 0
        page_number = start // limit + 1
        if self.fail_project_tasks_on_page == page_number:
            raise RuntimeError(f"HTTP 500 on page {page_number}")
        return self._page(project_gid, limit, start)

    def get_tasks(
        self,
        project_gid: str,
        *,
        limit: int,
        offset: Optional[str] = None,
        opt_fields: str = LIST_OPT_FIELDS,
    ) -> Page:
        self.calls.append(
            ("get_tasks", {"project_gid": project_gid, "limit": limit, "offset": offset})
        )
        if self.fail_tasks_by_project:
            raise RuntimeError("tasks endpoint unavailable")
        start = int(offset) if offset else 0
        return self._page(project_gid, limit, start)

    def update_task(
        self,
        task_gid: str,
        *,
        name: str,
        custom_fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.calls.append(
            ("update_task", {"task_gid": task_gid, "name": name, "custom_fields": custom_fields})
        )
        if self.update_error is not None:
            raise self.update_error
        self.updates.append(
            {"task_gid": task_gid, "name": name, "custom_fields": custom_fields}
        )
        current = self.tasks[task_gid]
        self.tasks[task_gid] = Item(
            gid=current.gid, name=name, custom_fields=current.custom_fields
        )

    def _page(self, project_gid: str, limit: int, start: int) -> Page:
        if project_gid != self.project_gid:
            return Page(items=[], next_offset=None)
        gids = self.order[start:start + limit]
        items = [Item(gid=g, name=self.tasks[g].name) for g in gids]
        end = start + limit
        next_offset = str(end) if end < len(self.order) else None
        return Page(items=items, next_offset=next_offset)


@pytest.fixture
def fake_api() -> FakeTasksApi:
    """Empty in-memory task service scoped to PROJECT_GID."""
    return FakeTasksApi()


@pytest.fixture
def project_gid() -> str:
    return PROJECT_GID


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Keep the process-wide config and WF_TICKET_* env out of every test."""
    for name in (
        "WF_TICKET_CONFIG_FILE",
        "WF_TICKET_ASANA_TOKEN",
        "ASANA_ACCESS_TOKEN",
        "WF_TICKET_ASANA_BASE_URL",
        "WF_TICKET_TIMEOUT",
        "WF_TICKET_PAGE_SIZE",
        "WF_TICKET_MAX_RETRIES",
        "WF_TICKET_FIELD_NAME",
        "WF_TICKET_MAX_ATTEMPTS",
        "WF_TICKET_RUN_TIMEOUT",
        "WF_TICKET_LOG_LEVEL",
        "WF_TICKET_STRUCTURED_LOGGING",
    ):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
