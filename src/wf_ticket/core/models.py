"""Data model for tasks, custom fields and paginated listings.

Also defines ``TasksApi``, the protocol every task-tracking backend must
satisfy. ``wf_ticket.clients.asana.AsanaTasksClient`` is the production
implementation; tests use in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

#: Fields requested when listing the collection
LIST_OPT_FIELDS = "gid,name"

#: Fields requested for the target task (includes custom field metadata)
TARGET_OPT_FIELDS = "gid,name,custom_fields.name,custom_fields.gid,custom_fields.type"


@dataclass(frozen=True)
class CustomField:
    """A named, typed custom attribute attached to a task."""

    gid: str
    name: str = ""
    type: str = ""
    number_value: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CustomField":
        return cls(
            gid=str(data.get("gid") or ""),
            name=str(data.get("name") or ""),
            type=str(data.get("type") or data.get("resource_subtype") or ""),
            number_value=data.get("number_value"),
        )


@dataclass(frozen=True)
class Item:
    """A task in the collection.

    Attributes:
        gid: Stable, unique identity of the task
        name: Display text (title); missing values are normalised to ""
        custom_fields: Custom attributes, empty when not requested
    """

    gid: str
    name: str = ""
    custom_fields: Tuple[CustomField, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Item":
        fields = data.get("custom_fields") or []
        return cls(
            gid=str(data.get("gid") or ""),
            name=str(data.get("name") or ""),
            custom_fields=tuple(
                CustomField.from_dict(f) for f in fields if isinstance(f, Mapping)
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"gid": self.gid, "name": self.name}


@dataclass
class Page:
    """One page of a listing plus the opaque cursor for the next one."""

    items: List[Item] = field(default_factory=list)
    next_offset: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return bool(self.next_offset)


class TasksApi(Protocol):
    """External task-tracking service used by a tagging run."""

    def get_task(self, task_gid: str, opt_fields: str = TARGET_OPT_FIELDS) -> Item:
        ...

    def get_tasks_for_project(
        self,
        project_gid: str,
        *,
        limit: int,
        offset: Optional[str] = None,
        opt_fields: str = LIST_OPT_FIELDS,
    ) -> Page:
        ...

    def get_tasks(
        self,
        project_gid: str,
        *,
        limit: int,
        offset: Optional[str] = None,
        opt_fields: str = LIST_OPT_FIELDS,
    ) -> Page:
        ...

    def update_task(
        self,
        task_gid: str,
        *,
        name: str,
        custom_fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        ...


def items_from_payload(data: Optional[Sequence[Mapping[str, Any]]]) -> List[Item]:
    """Convert a raw ``data`` array into Items, skipping non-objects."""
    return [Item.from_dict(entry) for entry in (data or []) if isinstance(entry, Mapping)]
