from revcast.db.repositories.decisions import DecisionRepository
from revcast.db.repositories.learning import LearningInsightRepository
from revcast.db.repositories.outcomes import MeasurableOutcomeRepository
from revcast.db.repositories.scenarios import ScenarioSetRepository

__all__ = [
    "DecisionRepository",
    "LearningInsightRepository",
    "MeasurableOutcomeRepository",
    "ScenarioSetRepository",
]
