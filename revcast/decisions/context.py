"""
Context resolution for new decisions.

Each context field takes the first available value from:
user input > workspace defaults > inferred (only above a confidence floor).
Anything below the floor stays unset but keeps its confidence so the UI can
ask the user to confirm.
"""

from typing import Optional

from pydantic import BaseModel, Field

from revcast.config import settings
from revcast.decisions.schemas import (
    ContextChanges,
    ContextField,
    ContextSource,
    DecisionContext,
    MarketContext,
)


class InferredField(BaseModel):
    value: str
    confidence: float = Field(ge=0.0, le=1.0)
    signal: str = ""


class InferredContext(BaseModel):
    """Context fields as guessed by the inference service."""
    company_stage: Optional[InferredField] = None
    business_model: Optional[InferredField] = None
    primary_kpi: Optional[InferredField] = None
    market_type: Optional[InferredField] = None
    market_segment: Optional[InferredField] = None


class ContextResolver:
    """Merges user, workspace and inferred context values field by field."""

    def __init__(self, confidence_floor: float | None = None):
        self.confidence_floor = (
            settings.inferred_confidence_floor if confidence_floor is None else confidence_floor
        )

    def resolve_field(
        self,
        user_value: Optional[str],
        workspace_value: Optional[str],
        inferred: Optional[InferredField],
    ) -> ContextField:
        if user_value:
            return ContextField(value=user_value, source=ContextSource.USER)
        if workspace_value:
            return ContextField(value=workspace_value, source=ContextSource.WORKSPACE)
        if inferred is not None and inferred.value and inferred.confidence >= self.confidence_floor:
            return ContextField(
                value=inferred.value,
                source=ContextSource.INFERRED,
                confidence_score=inferred.confidence,
                inferred_signal=inferred.signal,
            )
        if inferred is not None and inferred.confidence > 0:
            return ContextField(
                value=None,
                source=ContextSource.INFERRED,
                confidence_score=inferred.confidence,
            )
        return ContextField(value=None, source=ContextSource.INFERRED)

    def resolve(
        self,
        user: Optional[ContextChanges] = None,
        workspace: Optional[ContextChanges] = None,
        inferred: Optional[InferredContext] = None,
    ) -> DecisionContext:
        user = user or ContextChanges()
        workspace = workspace or ContextChanges()
        inferred = inferred or InferredContext()

        def pick(name: str) -> ContextField:
            return self.resolve_field(
                getattr(user, name), getattr(workspace, name), getattr(inferred, name)
            )

        return DecisionContext(
            company_stage=pick("company_stage"),
            business_model=pick("business_model"),
            primary_kpi=pick("primary_kpi"),
            market=MarketContext(type=pick("market_type"), segment=pick("market_segment")),
        )
