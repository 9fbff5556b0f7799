"""Commit an allocation back to the task service.

Writes the new title and, when the task carries the numeric ticket field,
mirrors the token's integer value into it. Exactly one update call per run;
the call is never retried here because a retry could commit a candidate that
is stale relative to a fresh snapshot.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from wf_ticket.core.allocator import Allocation
from wf_ticket.core.models import CustomField, Item, TasksApi

logger = logging.getLogger(__name__)

#: Name of the numeric custom field mirrored with the token value
DEFAULT_FIELD_NAME = "WF Ticket #"

#: Custom field type tag that accepts the token value
NUMBER_FIELD_TYPE = "number"


@dataclass
class TaskUpdate:
    """Payload for a single task update."""

    name: str
    custom_fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def syncs_field(self) -> bool:
        return bool(self.custom_fields)


def find_ticket_field(
    item: Item,
    field_name: str = DEFAULT_FIELD_NAME,
) -> Optional[CustomField]:
    """Return the numeric custom field named ``field_name``, if the task has one."""
    for custom_field in item.custom_fields:
        if custom_field.name == field_name and custom_field.type == NUMBER_FIELD_TYPE:
            return custom_field
    return None


def build_update(
    item: Item,
    allocation: Allocation,
    field_name: str = DEFAULT_FIELD_NAME,
) -> TaskUpdate:
    """Build the update payload for ``item``."""
    update = TaskUpdate(name=allocation.text)
    ticket_field = find_ticket_field(item, field_name)
    if ticket_field is not None:
        update.custom_fields[ticket_field.gid] = allocation.token_value
    return update


def apply_update(
    api: TasksApi,
    item: Item,
    allocation: Allocation,
    field_name: str = DEFAULT_FIELD_NAME,
) -> TaskUpdate:
    """Send the update for ``item`` and return the payload that was written.

    Raises:
        Exception: Whatever ``api.update_task`` raises, unchanged.
    """
    update = build_update(item, allocation, field_name)
    api.update_task(
        item.gid,
        name=update.name,
        custom_fields=update.custom_fields or None,
    )
    logger.info(
        "Updated task %s with token %s (field synced: %s)",
        item.gid,
        allocation.token,
        update.syncs_field,
    )
    return update
