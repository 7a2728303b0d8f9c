"""
Document Store Tests — round trips, soft deletes and compare-and-swap.
"""

import pytest

from revcast.db.repositories import DecisionRepository, MeasurableOutcomeRepository
from revcast.decisions import ledger
from revcast.errors import ConcurrencyConflictError, ErrorCode
from revcast.outcomes.schemas import KPIKey, KPIUnit, MeasurableOutcome, OutcomeKPI, OutcomeStatus
from tests.factories import T0, make_new_decision


@pytest.fixture
def decisions() -> DecisionRepository:
    return DecisionRepository()


class TestDecisionDocuments:
    @pytest.mark.asyncio
    async def test_round_trip(self, db, decisions):
        decision = ledger.create_decision(make_new_decision(), now=T0)
        await decisions.insert(db, decision)
        loaded = await decisions.get(db, decision.decision_id)
        assert loaded == decision.model_copy(update={"revision": 1})
        assert loaded.created_at == T0

    @pytest.mark.asyncio
    async def test_save_bumps_revision(self, db, decisions):
        decision = await decisions.insert(db, ledger.create_decision(make_new_decision(), now=T0))
        saved = await decisions.save(
            db, decision.model_copy(update={"company_name": "Renamed"}), expected_revision=1
        )
        assert saved.revision == 2
        loaded = await decisions.get(db, decision.decision_id)
        assert loaded.company_name == "Renamed"
        assert loaded.revision == 2

    @pytest.mark.asyncio
    async def test_stale_save_rejected(self, db, decisions):
        decision = await decisions.insert(db, ledger.create_decision(make_new_decision(), now=T0))
        await decisions.save(db, decision, expected_revision=1)
        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await decisions.save(db, decision, expected_revision=1)
        assert exc_info.value.code == ErrorCode.STALE_REVISION
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_save_of_missing_document_rejected(self, db, decisions):
        decision = ledger.create_decision(make_new_decision(), now=T0)
        with pytest.raises(ConcurrencyConflictError):
            await decisions.save(db, decision, expected_revision=1)

    @pytest.mark.asyncio
    async def test_soft_deleted_hidden_unless_asked(self, db, decisions):
        decision = await decisions.insert(db, ledger.create_decision(make_new_decision(), now=T0))
        await decisions.save(db, ledger.soft_delete(decision, now=T0), expected_revision=1)
        assert await decisions.get(db, decision.decision_id) is None
        hidden = await decisions.get(db, decision.decision_id, include_deleted=True)
        assert hidden.is_deleted is True
        assert await decisions.count_for_user(db, "user_1") == 0


class TestOutcomeDocuments:
    @pytest.mark.asyncio
    async def test_status_column_follows_document(self, db):
        repo = MeasurableOutcomeRepository()
        outcome = await repo.insert(db, MeasurableOutcome(
            outcome_id="mo_1",
            decision_id="dec_1",
            user_id="user_1",
            chosen_scenario_id="balanced",
            kpis=[OutcomeKPI(key=KPIKey.MRR, unit=KPIUnit.EUR, baseline=100)],
            created_at=T0,
            updated_at=T0,
        ))
        assert await repo.list_by_status(db, [OutcomeStatus.ACHIEVED]) == []

        await repo.save(
            db, outcome.model_copy(update={"status": OutcomeStatus.ACHIEVED}), expected_revision=1
        )
        [achieved] = await repo.list_by_status(db, [OutcomeStatus.ACHIEVED])
        assert achieved.outcome_id == "mo_1"
        assert achieved.kpis[0].key == KPIKey.MRR
        assert (await repo.get_by_decision(db, "dec_1")).revision == 2
