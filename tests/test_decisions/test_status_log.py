"""
Status Transition Log Tests.
"""

from datetime import timedelta

import pytest

from revcast.decisions import ledger
from revcast.decisions.schemas import DecisionStatus
from revcast.decisions.status import StatusTransitionPolicy
from revcast.errors import ConflictError, ValidationError
from tests.factories import T0, make_new_decision


def _decision():
    return ledger.create_decision(make_new_decision(), now=T0)


class TestPermissivePolicy:
    def setup_method(self):
        self.policy = StatusTransitionPolicy()

    def test_transition_appends_event(self):
        decision = _decision()
        updated = self.policy.transition(decision, "in_review", reason="sent to CFO", actor="u1")
        assert updated.status == DecisionStatus.IN_REVIEW
        assert len(updated.status_events) == 2
        event = updated.status_events[-1]
        assert event.status == DecisionStatus.IN_REVIEW
        assert event.reason == "sent to CFO"
        assert event.created_by == "u1"

    def test_any_to_any(self):
        """Without a whitelist every status is reachable from every other."""
        decision = _decision()
        for status in ["rejected", "implemented", "proposed", "rolled_back", "approved"]:
            decision = self.policy.transition(decision, status)
        assert decision.status == DecisionStatus.APPROVED
        assert [e.status.value for e in decision.status_events] == [
            "proposed", "rejected", "implemented", "proposed", "rolled_back", "approved",
        ]

    def test_status_matches_last_event(self):
        decision = self.policy.transition(_decision(), "approved")
        assert decision.status == decision.status_events[-1].status

    def test_unknown_status_rejected(self):
        decision = _decision()
        with pytest.raises(ValidationError):
            self.policy.transition(decision, "shipped")
        assert len(decision.status_events) == 1

    def test_timestamps_recorded(self):
        implemented_at = T0 + timedelta(days=3)
        updated = self.policy.transition(_decision(), "implemented", implemented_at=implemented_at)
        assert updated.status_events[-1].implemented_at == implemented_at
        assert updated.status_events[-1].rollback_at is None

    def test_missing_implemented_at_is_allowed(self):
        """The timestamp convention is not enforced."""
        updated = self.policy.transition(_decision(), "implemented")
        assert updated.status == DecisionStatus.IMPLEMENTED


class TestWhitelistPolicy:
    def setup_method(self):
        self.policy = StatusTransitionPolicy({
            "proposed": ["in_review", "rejected"],
            "in_review": ["approved", "rejected"],
            "approved": ["implemented"],
            "implemented": ["rolled_back"],
        })

    def test_allowed_path(self):
        decision = _decision()
        for status in ["in_review", "approved", "implemented", "rolled_back"]:
            decision = self.policy.transition(decision, status)
        assert decision.status == DecisionStatus.ROLLED_BACK

    def test_disallowed_transition_raises_conflict(self):
        with pytest.raises(ConflictError):
            self.policy.transition(_decision(), "implemented")

    def test_status_without_entry_is_terminal(self):
        decision = self.policy.transition(_decision(), "rejected")
        with pytest.raises(ConflictError):
            self.policy.transition(decision, "proposed")

    def test_invalid_whitelist_rejected(self):
        with pytest.raises(ValidationError):
            StatusTransitionPolicy({"proposed": ["launched"]})
