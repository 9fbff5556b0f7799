"""Asana REST client implementing the ``TasksApi`` protocol.

Wraps the subset of the Asana API a tagging run needs: reading one task,
listing a project's tasks two different ways, and updating a task.

Asana API documentation: https://developers.asana.com/reference/rest-api-reference

Example usage:
    client = AsanaTasksClient(access_token="1/1200...")
    task = client.get_task("1209876543210")
    page = client.get_tasks_for_project("1200000000001", limit=100)
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional

import httpx

from wf_ticket.core.models import (
    LIST_OPT_FIELDS,
    TARGET_OPT_FIELDS,
    Item,
    Page,
    items_from_payload,
)
from wf_ticket.core.pagination import DEFAULT_PAGE_SIZE, normalize_page_size
from wf_ticket.core.resilience import MEDIUM_TIMEOUT, retry_with_backoff

logger = logging.getLogger(__name__)

# Asana API constants
ASANA_API_BASE_URL = "https://app.asana.com/api/1.0"
DEFAULT_TIMEOUT = MEDIUM_TIMEOUT
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0


class AsanaApiError(Exception):
    """Error returned by (or while reaching) the Asana API.

    Attributes:
        status_code: HTTP status, None for transport failures
        retryable: Whether repeating the request may succeed
        original_error: Underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable
        self.original_error = original_error


class AsanaAuthenticationError(AsanaApiError):
    """The access token was rejected (401/403)."""


class AsanaNotFoundError(AsanaApiError):
    """The requested task or project does not exist (404)."""


class AsanaRateLimitError(AsanaApiError):
    """Too many requests (429).

    Attributes:
        retry_after: Seconds the server asked us to wait, if provided
    """

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message, status_code=429, retryable=True)
        self.retry_after = retry_after


def _is_retryable(exc: Exception) -> bool:
    return isinstance(exc, AsanaApiError) and exc.retryable


class AsanaTasksClient:
    """Synchronous Asana client for tagging runs.

    Read calls retry transient failures (429, 5xx, transport errors) with
    exponential backoff. ``update_task`` is sent exactly once.

    Attributes:
        base_url: API base URL (default: https://app.asana.com/api/1.0)
        timeout: Request timeout in seconds (default: 30.0)
        max_retries: Retry attempts for read calls (default: 3)
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        *,
        base_url: str = ASANA_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize the client.

        Args:
            access_token: Personal access token. If not provided, reads from
                WF_TICKET_ASANA_TOKEN, then ASANA_ACCESS_TOKEN.
            base_url: API base URL
            timeout: Request timeout in seconds
            max_retries: Retry attempts for read calls
            retry_delay: Base backoff delay in seconds
            http_client: Preconfigured httpx.Client (tests inject a MockTransport)

        Raises:
            ValueError: If no access token is provided or found in environment
        """
        self._access_token = (
            access_token
            or os.environ.get("WF_TICKET_ASANA_TOKEN")
            or os.environ.get("ASANA_ACCESS_TOKEN")
        )
        if not self._access_token:
            raise ValueError(
                "Asana access token required. Provide via access_token parameter "
                "or WF_TICKET_ASANA_TOKEN / ASANA_ACCESS_TOKEN environment variable."
            )

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "AsanaTasksClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # TasksApi
    # ------------------------------------------------------------------

    def get_task(self, task_gid: str, opt_fields: str = TARGET_OPT_FIELDS) -> Item:
        body = self._read(f"/tasks/{task_gid}", {"opt_fields": opt_fields})
        data = body.get("data")
        if not isinstance(data, Mapping):
            raise AsanaApiError(f"Malformed task payload for {task_gid}")
        return Item.from_dict(data)

    def get_tasks_for_project(
        self,
        project_gid: str,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: Optional[str] = None,
        opt_fields: str = LIST_OPT_FIELDS,
    ) -> Page:
        params = self._page_params(limit, offset, opt_fields)
        return self._parse_page(self._read(f"/projects/{project_gid}/tasks", params))

    def get_tasks(
        self,
        project_gid: str,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: Optional[str] = None,
        opt_fields: str = LIST_OPT_FIELDS,
    ) -> Page:
        params = self._page_params(limit, offset, opt_fields)
        params["project"] = project_gid
        return self._parse_page(self._read("/tasks", params))

    def update_task(
        self,
        task_gid: str,
        *,
        name: str,
        custom_fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        data: Dict[str, Any] = {"name": name}
        if custom_fields:
            data["custom_fields"] = dict(custom_fields)
        self._request("PUT", f"/tasks/{task_gid}", json={"data": data})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _page_params(
        limit: int,
        offset: Optional[str],
        opt_fields: str,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "limit": normalize_page_size(limit),
            "opt_fields": opt_fields,
        }
        # Only send the offset once the service has handed one out
        if offset:
            params["offset"] = offset
        return params

    @staticmethod
    def _parse_page(body: Mapping[str, Any]) -> Page:
        data = body.get("data")
        if not isinstance(data, list):
            raise AsanaApiError("Malformed listing payload: 'data' is not a list")
        next_page = body.get("next_page") or {}
        next_offset = next_page.get("offset") if isinstance(next_page, Mapping) else None
        return Page(items=items_from_payload(data), next_offset=next_offset or None)

    def _read(self, path: str, params: Mapping[str, Any]) -> Dict[str, Any]:
        return retry_with_backoff(
            lambda: self._request("GET", path, params=params),
            max_retries=self.max_retries,
            base_delay=self.retry_delay,
            retryable_exceptions=[AsanaApiError],
            should_retry=_is_retryable,
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers={
                    "Authorization": f"Bearer {self._access_token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise AsanaApiError(
                f"{method} {path} timed out after {self.timeout}s",
                retryable=True,
                original_error=e,
            ) from e
        except httpx.RequestError as e:
            raise AsanaApiError(
                f"{method} {path} failed: {e}",
                retryable=True,
                original_error=e,
            ) from e

        if response.status_code in (401, 403):
            raise AsanaAuthenticationError(
                f"Asana rejected credentials: {self._extract_error_message(response)}",
                status_code=response.status_code,
            )
        if response.status_code == 404:
            raise AsanaNotFoundError(
                f"Not found: {path}",
                status_code=404,
            )
        if response.status_code == 429:
            retry_after = self._parse_retry_after(response)
            logger.warning("Asana rate limit hit on %s %s (retry after %s)", method, path, retry_after)
            raise AsanaRateLimitError(
                f"Asana rate limit exceeded on {method} {path}",
                retry_after=retry_after,
            )
        if response.status_code >= 400:
            raise AsanaApiError(
                f"API error {response.status_code}: {self._extract_error_message(response)}",
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise AsanaApiError(
                f"Invalid JSON from {method} {path}",
                status_code=response.status_code,
                original_error=e,
            ) from e
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> Optional[float]:
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return None

    @staticmethod
    def _extract_error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:200] if response.text else "Unknown error"
        errors = data.get("errors") if isinstance(data, dict) else None
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return str(errors[0].get("message", "Unknown error"))
        return response.text[:200] if response.text else "Unknown error"
