"""End-to-end tests for a tagging run against an in-memory service."""

import pytest

from wf_ticket.core import allocator
from wf_ticket.core.allocator import AllocationExhaustedError
from wf_ticket.core.assign import SKIP_MESSAGE, assign_ticket
from wf_ticket.core.digest import digest
from wf_ticket.core.logging_config import CollectingSink
from wf_ticket.core.models import CustomField
from wf_ticket.core.resilience import TimeoutException

TICKET_FIELD = CustomField(gid="cf-1", name="WF Ticket #", type="number")


class TestAssignTicket:
    """Tests for assign_ticket."""

    def test_tags_untagged_task(self, fake_api, project_gid):
        fake_api.add("A", "Add feature", [TICKET_FIELD])

        result = assign_ticket(fake_api, "A", project_gid)

        assert result.updated
        assert result.field_synced
        assert result.final_text == "Add feature #WF-89118412"
        assert fake_api.tasks["A"].name == "Add feature #WF-89118412"
        assert fake_api.updates[0]["custom_fields"] == {"cf-1": 89118412}
        assert result.messages[-1] == (
            'Updated -> "Add feature #WF-89118412" + set WF Ticket #.'
        )

    def test_second_run_skips(self, fake_api, project_gid):
        """Should leave a uniquely tagged task untouched on re-run."""
        fake_api.add("A", "Add feature")
        assign_ticket(fake_api, "A", project_gid)

        result = assign_ticket(fake_api, "A", project_gid)

        assert not result.updated
        assert not result.changed
        assert result.salt is None
        assert result.messages == [SKIP_MESSAGE]
        assert len(fake_api.updates) == 1

    def test_collision_scenario(self, fake_api, project_gid, monkeypatch):
        """Task B colliding with A's token gets the next salt."""
        def fake_digest(identity, salt=0):
            table = {("B", 0): "12345678", ("B", 1): "99999999"}
            return table.get((identity, salt), digest(identity, salt))

        monkeypatch.setattr(allocator, "digest", fake_digest)
        fake_api.add("A", "Fix bug #WF-12345678")
        fake_api.add("B", "Add feature")

        result_a = assign_ticket(fake_api, "A", project_gid)
        result_b = assign_ticket(fake_api, "B", project_gid)

        assert not result_a.updated
        assert result_b.final_text == "Add feature #WF-99999999"
        assert result_b.salt == 1
        assert fake_api.tasks["A"].name == "Fix bug #WF-12345678"
        assert fake_api.tasks["B"].name == "Add feature #WF-99999999"

    def test_dry_run_does_not_write(self, fake_api, project_gid):
        fake_api.add("A", "Add feature #wf 7", [TICKET_FIELD])

        result = assign_ticket(fake_api, "A", project_gid, dry_run=True)

        assert result.dry_run
        assert not result.updated
        assert result.field_synced
        assert result.final_text == "Add feature #WF-89118412"
        assert fake_api.calls_to("update_task") == []
        assert result.messages == ['Would update -> "Add feature #WF-89118412"']

    def test_degraded_snapshot_still_tags(self, fake_api, project_gid):
        fake_api.add("A", "Add feature")
        fake_api.fail_project_tasks_on_page = 1
        fake_api.fail_tasks_by_project = True
        sink = CollectingSink(forward=None)

        result = assign_ticket(fake_api, "A", project_gid, sink=sink)

        assert result.snapshot_strategy == "current_task"
        assert result.snapshot_size == 1
        assert result.updated
        assert sink.messages[0].startswith("Fallback project_tasks -> tasks_by_project:")
        assert sink.messages == result.messages

    def test_target_fetch_failure_propagates(self, fake_api, project_gid):
        fake_api.target_error = RuntimeError("HTTP 500")
        with pytest.raises(RuntimeError, match="HTTP 500"):
            assign_ticket(fake_api, "A", project_gid)
        assert fake_api.calls_to("get_tasks_for_project") == []

    def test_update_failure_propagates(self, fake_api, project_gid):
        fake_api.add("A", "Add feature")
        fake_api.update_error = RuntimeError("HTTP 503")
        with pytest.raises(RuntimeError, match="HTTP 503"):
            assign_ticket(fake_api, "A", project_gid)
        assert len(fake_api.calls_to("update_task")) == 1

    def test_deadline_during_listing_aborts_run(self, fake_api, project_gid, monkeypatch):
        """A timeout in the primary listing stops the run before any fallback or write."""
        fake_api.add("A", "Add feature")

        def expired(*args, **kwargs):
            raise TimeoutException("Ticket assignment timed out", timeout_seconds=120.0)

        monkeypatch.setattr(fake_api, "get_tasks_for_project", expired)

        with pytest.raises(TimeoutException):
            assign_ticket(fake_api, "A", project_gid)
        assert fake_api.calls_to("get_tasks") == []
        assert fake_api.calls_to("update_task") == []

    def test_exhaustion_propagates_without_update(self, fake_api, project_gid, monkeypatch):
        monkeypatch.setattr(allocator, "digest", lambda identity, salt=0: "12345678")
        fake_api.add("A", "Fix bug #WF-12345678")
        fake_api.add("B", "Add feature")

        with pytest.raises(AllocationExhaustedError):
            assign_ticket(fake_api, "B", project_gid, max_attempts=5)
        assert fake_api.calls_to("update_task") == []

    def test_to_dict(self, fake_api, project_gid):
        fake_api.add("A", "Add feature")
        data = assign_ticket(fake_api, "A", project_gid, dry_run=True).to_dict()
        assert data["tag"] == "#WF-89118412"
        assert data["token"] == "89118412"
        assert data["changed"] is True
        assert data["snapshot_strategy"] == "project_tasks"
