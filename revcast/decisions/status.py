"""
Status Transition Log.

Every status change appends an event; the decision's ``status`` is always
the last event's status. By default any status may follow any other. A
whitelist ({from: [to, ...]}) can restrict the graph; a from-status missing
from the whitelist has no outgoing transitions.
"""

from datetime import datetime
from typing import Iterable, Mapping, Optional

import structlog

from revcast.config import settings
from revcast.decisions.ledger import new_id, utcnow
from revcast.decisions.schemas import Decision, DecisionStatus, StatusEvent
from revcast.errors import ConflictError, ValidationError

logger = structlog.get_logger(__name__)


def parse_status(value: str) -> DecisionStatus:
    try:
        return DecisionStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid status: '{value}'",
            field="status",
            details={"allowed": [s.value for s in DecisionStatus]},
        ) from None


class StatusTransitionPolicy:
    """Decides which status changes are allowed and records them."""

    def __init__(self, whitelist: Optional[Mapping[str, Iterable[str]]] = None):
        self.whitelist: Optional[dict[DecisionStatus, frozenset[DecisionStatus]]] = None
        if whitelist is not None:
            self.whitelist = {
                parse_status(src): frozenset(parse_status(dst) for dst in targets)
                for src, targets in whitelist.items()
            }

    @classmethod
    def from_settings(cls) -> "StatusTransitionPolicy":
        return cls(settings.status_transition_whitelist)

    def allows(self, current: DecisionStatus, target: DecisionStatus) -> bool:
        if self.whitelist is None:
            return True
        return target in self.whitelist.get(current, frozenset())

    def transition(
        self,
        decision: Decision,
        new_status: str,
        reason: str = "",
        implemented_at: Optional[datetime] = None,
        rollback_at: Optional[datetime] = None,
        actor: str = "",
        now: Optional[datetime] = None,
    ) -> Decision:
        """Append a status event and move the decision to ``new_status``."""
        target = parse_status(new_status)
        if not self.allows(decision.status, target):
            raise ConflictError(
                f"Transition {decision.status} → {target} is not allowed",
                details={"from": decision.status.value, "to": target.value},
            )

        # Conventions only; not enforced
        if target == DecisionStatus.IMPLEMENTED and implemented_at is None:
            logger.warning("status_missing_implemented_at", decision_id=decision.decision_id)
        if target == DecisionStatus.ROLLED_BACK and rollback_at is None:
            logger.warning("status_missing_rollback_at", decision_id=decision.decision_id)

        now = now or utcnow()
        updated = decision.model_copy(deep=True)
        updated.status_events.append(
            StatusEvent(
                event_id=new_id("evt"),
                status=target,
                reason=reason,
                implemented_at=implemented_at,
                rollback_at=rollback_at,
                created_by=actor,
                created_at=now,
            )
        )
        updated.status = target
        updated.updated_at = now
        return updated
