"""
Decision Service Tests — persistence, versioning and concurrency.
"""

import pytest

from revcast.decisions.schemas import ContextChanges, DecisionStatus, EpisodeStatus
from revcast.errors import ConcurrencyConflictError, NotFoundError, ValidationError
from tests.factories import make_new_decision, make_verdict


class TestCreateAndRead:
    @pytest.mark.asyncio
    async def test_create_then_get(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision())
        loaded = await decision_service.get_decision(db, created.decision_id)
        assert loaded.decision_id == created.decision_id
        assert loaded.revision == 1
        assert loaded.verdict.headline == created.verdict.headline
        assert loaded.status == DecisionStatus.PROPOSED

    @pytest.mark.asyncio
    async def test_unknown_decision_not_found(self, db, decision_service):
        with pytest.raises(NotFoundError):
            await decision_service.get_decision(db, "dec_missing")

    @pytest.mark.asyncio
    async def test_foreign_user_not_found(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision(user_id="alice"))
        with pytest.raises(NotFoundError):
            await decision_service.get_decision(db, created.decision_id, user_id="bob")

    @pytest.mark.asyncio
    async def test_invalid_context_not_persisted(self, db, decision_service):
        with pytest.raises(ValidationError):
            await decision_service.create_decision(db, make_new_decision(stage="unicorn"))
        assert await decision_service.list_episodes(db, "user_1") == []


class TestVersionedUpdates:
    @pytest.mark.asyncio
    async def test_context_update_persisted(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision())
        updated = await decision_service.update_context(
            db, created.decision_id, ContextChanges(company_stage="series_a"), reason="raised"
        )
        assert updated.revision == 2

        loaded = await decision_service.get_decision(db, created.decision_id)
        assert loaded.context.company_stage.value == "series_a"
        assert loaded.context_version == 2
        assert len(loaded.context_versions) == 1
        assert loaded.context_versions[0].context.company_stage.value == "seed"

    @pytest.mark.asyncio
    async def test_regenerate_verdict_persisted(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision())
        await decision_service.regenerate_verdict(
            db, created.decision_id, make_verdict(confidence=0.9, headline="Hold prices")
        )
        loaded = await decision_service.get_decision(db, created.decision_id)
        assert loaded.verdict.headline == "Hold prices"
        assert loaded.verdict_version == 2
        assert loaded.verdict_versions[0].verdict.headline == created.verdict.headline

    @pytest.mark.asyncio
    async def test_stale_revision_rejected(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision())
        await decision_service.transition_status(
            db, created.decision_id, "in_review", expected_revision=1
        )
        with pytest.raises(ConcurrencyConflictError):
            await decision_service.transition_status(
                db, created.decision_id, "approved", expected_revision=1
            )
        loaded = await decision_service.get_decision(db, created.decision_id)
        assert loaded.status == DecisionStatus.IN_REVIEW
        assert loaded.revision == 2

    @pytest.mark.asyncio
    async def test_cas_write_rejects_lost_update(self, db, decision_service):
        """Two writers read revision 1; only the first write lands."""
        created = await decision_service.create_decision(db, make_new_decision())
        first, rev = await decision_service.load_for_update(db, created.decision_id, None)
        second, _ = await decision_service.load_for_update(db, created.decision_id, None)

        await decision_service.save(db, first.model_copy(update={"company_name": "One"}), rev)
        with pytest.raises(ConcurrencyConflictError):
            await decision_service.save(db, second.model_copy(update={"company_name": "Two"}), rev)

        loaded = await decision_service.get_decision(db, created.decision_id)
        assert loaded.company_name == "One"

    @pytest.mark.asyncio
    async def test_status_log_persisted(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision())
        await decision_service.transition_status(db, created.decision_id, "approved", reason="go")
        loaded = await decision_service.get_decision(db, created.decision_id)
        assert [e.status for e in loaded.status_events] == [
            DecisionStatus.PROPOSED,
            DecisionStatus.APPROVED,
        ]


class TestDeleteAndList:
    @pytest.mark.asyncio
    async def test_soft_deleted_decision_disappears(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision())
        await decision_service.delete_decision(db, created.decision_id)
        with pytest.raises(NotFoundError):
            await decision_service.get_decision(db, created.decision_id)
        with pytest.raises(NotFoundError):
            await decision_service.update_context(
                db, created.decision_id, ContextChanges(company_stage="series_a")
            )

    @pytest.mark.asyncio
    async def test_list_episodes_newest_first(self, db, decision_service):
        first = await decision_service.create_decision(db, make_new_decision())
        second = await decision_service.create_decision(db, make_new_decision())
        await decision_service.create_decision(db, make_new_decision(user_id="someone_else"))
        deleted = await decision_service.create_decision(db, make_new_decision())
        await decision_service.delete_decision(db, deleted.decision_id)

        episodes = await decision_service.list_episodes(db, "user_1")
        assert [e.decision.decision_id for e in episodes] == [
            second.decision_id,
            first.decision_id,
        ]
        assert all(e.episode_status == EpisodeStatus.DRAFT for e in episodes)


class TestOwnership:
    @pytest.mark.asyncio
    async def test_foreign_user_cannot_write(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision(user_id="user_1"))
        decision_id = created.decision_id

        with pytest.raises(NotFoundError):
            await decision_service.update_context(
                db, decision_id, ContextChanges(company_stage="series_a"), user_id="intruder"
            )
        with pytest.raises(NotFoundError):
            await decision_service.regenerate_verdict(
                db, decision_id, make_verdict(headline="Hijacked"), user_id="intruder"
            )
        with pytest.raises(NotFoundError):
            await decision_service.transition_status(db, decision_id, "approved", user_id="intruder")
        with pytest.raises(NotFoundError):
            await decision_service.delete_decision(db, decision_id, user_id="intruder")

        loaded = await decision_service.get_decision(db, decision_id, user_id="user_1")
        assert loaded.revision == 1
        assert loaded.is_deleted is False
        assert loaded.context.company_stage.value == "seed"

    @pytest.mark.asyncio
    async def test_owner_can_write(self, db, decision_service):
        created = await decision_service.create_decision(db, make_new_decision(user_id="user_1"))
        updated = await decision_service.transition_status(
            db, created.decision_id, "in_review", user_id="user_1"
        )
        assert updated.status == DecisionStatus.IN_REVIEW
