"""
Context Resolution Tests.
"""

from revcast.decisions.context import ContextResolver, InferredContext, InferredField
from revcast.decisions.schemas import ContextChanges, ContextSource


class TestContextResolver:
    def setup_method(self):
        self.resolver = ContextResolver(confidence_floor=0.6)

    def test_user_beats_workspace_and_inference(self):
        field = self.resolver.resolve_field(
            "series_a", "seed", InferredField(value="pre_seed", confidence=0.9)
        )
        assert field.value == "series_a"
        assert field.source == ContextSource.USER

    def test_workspace_beats_inference(self):
        field = self.resolver.resolve_field(
            None, "seed", InferredField(value="pre_seed", confidence=0.9)
        )
        assert field.value == "seed"
        assert field.source == ContextSource.WORKSPACE

    def test_confident_inference_used(self):
        field = self.resolver.resolve_field(
            None, None, InferredField(value="saas", confidence=0.6, signal="pricing page")
        )
        assert field.value == "saas"
        assert field.source == ContextSource.INFERRED
        assert field.confidence_score == 0.6
        assert field.inferred_signal == "pricing page"

    def test_weak_inference_left_unset_with_confidence(self):
        field = self.resolver.resolve_field(None, None, InferredField(value="saas", confidence=0.59))
        assert field.value is None
        assert field.confidence_score == 0.59

    def test_nothing_known(self):
        field = self.resolver.resolve_field(None, None, None)
        assert field.value is None
        assert field.confidence_score is None

    def test_resolve_full_context(self):
        context = self.resolver.resolve(
            user=ContextChanges(primary_kpi="churn_reduction"),
            workspace=ContextChanges(company_stage="seed", market_type="b2b"),
            inferred=InferredContext(
                business_model=InferredField(value="saas", confidence=0.8),
                market_segment=InferredField(value="fintech", confidence=0.3),
            ),
        )
        assert context.primary_kpi.source == ContextSource.USER
        assert context.company_stage.source == ContextSource.WORKSPACE
        assert context.market.type.value == "b2b"
        assert context.business_model.value == "saas"
        assert context.market.segment.value is None
