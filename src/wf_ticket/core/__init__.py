"""Core token allocation and tagging operations for wf-ticket."""

from wf_ticket.core.allocator import (
    MAX_SALT_ATTEMPTS,
    Allocation,
    AllocationExhaustedError,
    allocate,
    build_ownership_index,
    probe_token,
)
from wf_ticket.core.assign import TicketAssignment, assign_ticket
from wf_ticket.core.digest import digest
from wf_ticket.core.enumeration import EnumerationResult, enumerate_collection
from wf_ticket.core.models import CustomField, Item, Page, TasksApi
from wf_ticket.core.scanner import match_canonical, strip_loose
from wf_ticket.core.updater import apply_update

__all__ = [
    "MAX_SALT_ATTEMPTS",
    "Allocation",
    "AllocationExhaustedError",
    "allocate",
    "build_ownership_index",
    "probe_token",
    "TicketAssignment",
    "assign_ticket",
    "digest",
    "EnumerationResult",
    "enumerate_collection",
    "CustomField",
    "Item",
    "Page",
    "TasksApi",
    "match_canonical",
    "strip_loose",
    "apply_update",
]
