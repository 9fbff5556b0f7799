"""Task service clients."""

from wf_ticket.clients.asana import (
    AsanaApiError,
    AsanaAuthenticationError,
    AsanaNotFoundError,
    AsanaRateLimitError,
    AsanaTasksClient,
)

__all__ = [
    "AsanaApiError",
    "AsanaAuthenticationError",
    "AsanaNotFoundError",
    "AsanaRateLimitError",
    "AsanaTasksClient",
]
