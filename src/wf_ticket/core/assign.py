"""
Tag one task with a unique ``#WF-XXXXXXXX`` suffix.

A run is a straight sequence of service calls:

    1. fetch the target task (title + custom field metadata)
    2. enumerate the project snapshot (degrades, never fails)
    3. allocate a token against the snapshot (pure)
    4. commit the title and optional numeric field in one update

Uniqueness is relative to the snapshot. Two runs that read overlapping
snapshots before either writes can still pick the same token; there is no
cross-run coordination.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from wf_ticket.core.allocator import MAX_SALT_ATTEMPTS, allocate
from wf_ticket.core.enumeration import enumerate_collection
from wf_ticket.core.logging_config import CollectingSink, DiagnosticSink
from wf_ticket.core.models import TARGET_OPT_FIELDS, TasksApi
from wf_ticket.core.pagination import DEFAULT_PAGE_SIZE
from wf_ticket.core.scanner import format_tag
from wf_ticket.core.updater import DEFAULT_FIELD_NAME, apply_update, build_update

logger = logging.getLogger(__name__)

SKIP_MESSAGE = "Unique #WF-XXXXXXXX already present. Skipping."


@dataclass
class TicketAssignment:
    """Outcome of a tagging run."""

    task_gid: str
    project_gid: str
    original_text: str
    final_text: str
    token: str
    salt: Optional[int]
    updated: bool = False
    field_synced: bool = False
    dry_run: bool = False
    snapshot_size: int = 0
    snapshot_strategy: Optional[str] = None
    messages: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.final_text != self.original_text

    @property
    def tag(self) -> str:
        return format_tag(self.token)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_gid": self.task_gid,
            "project_gid": self.project_gid,
            "original_text": self.original_text,
            "final_text": self.final_text,
            "token": self.token,
            "tag": self.tag,
            "salt": self.salt,
            "changed": self.changed,
            "updated": self.updated,
            "field_synced": self.field_synced,
            "dry_run": self.dry_run,
            "snapshot_size": self.snapshot_size,
            "snapshot_strategy": self.snapshot_strategy,
            "messages": list(self.messages),
        }


def assign_ticket(
    api: TasksApi,
    task_gid: str,
    project_gid: str,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    field_name: str = DEFAULT_FIELD_NAME,
    max_attempts: int = MAX_SALT_ATTEMPTS,
    dry_run: bool = False,
    sink: Optional[DiagnosticSink] = None,
) -> TicketAssignment:
    """Ensure ``task_gid`` ends with a token unique within ``project_gid``.

    Args:
        api: Task service
        task_gid: Task to tag
        project_gid: Project whose tasks define the uniqueness scope
        page_size: Items per listing page
        field_name: Numeric custom field mirrored with the token value
        max_attempts: Salt probe bound
        dry_run: Compute the result without writing it
        sink: Diagnostic sink (messages are also kept on the result)

    Returns:
        TicketAssignment describing what happened

    Raises:
        AllocationExhaustedError: If no free token exists within the bound.
        Exception: Failures fetching or updating the target task propagate.
    """
    collector = CollectingSink(forward=sink) if sink is not None else CollectingSink()

    target = api.get_task(task_gid, opt_fields=TARGET_OPT_FIELDS)
    snapshot = enumerate_collection(
        api,
        project_gid,
        target.gid or task_gid,
        page_size=page_size,
        sink=collector,
    )

    allocation = allocate(
        target.gid or task_gid,
        target.name,
        snapshot.items,
        max_attempts=max_attempts,
    )

    result = TicketAssignment(
        task_gid=target.gid or task_gid,
        project_gid=project_gid,
        original_text=allocation.original_text,
        final_text=allocation.text,
        token=allocation.token,
        salt=allocation.salt,
        dry_run=dry_run,
        snapshot_size=len(snapshot.items),
        snapshot_strategy=snapshot.strategy,
        messages=collector.messages,
    )

    if allocation.kept_existing:
        collector(SKIP_MESSAGE)
        return result

    if dry_run:
        update = build_update(target, allocation, field_name)
        result.field_synced = update.syncs_field
        collector(f'Would update -> "{allocation.text}"')
        return result

    update = apply_update(api, target, allocation, field_name)
    result.updated = True
    result.field_synced = update.syncs_field
    suffix = f" + set {field_name}." if update.syncs_field else ""
    collector(f'Updated -> "{allocation.text}"{suffix}')
    return result
