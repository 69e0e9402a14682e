"""Estimate provider interface and the built-in history provider."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..models.estimate import TaskEstimate
from ..models.task import Task
from .methods import HistoricalSample, analogy_estimate, parametric_estimate


class EstimateProvider(ABC):
    """Abstract base class for sources of per-method task estimates.

    Language-model backed estimators (expert judgment, PERT triads,
    bottom-up breakdowns) live outside the engine and implement this
    interface; the engine only consumes the estimates they produce.
    """

    def __init__(self, config: dict):
        """Initialize provider with configuration."""
        self.config = config

    @abstractmethod
    def estimate(self, task: Task, history: Sequence[HistoricalSample]) -> List[TaskEstimate]:
        """Produce zero or more estimates for a task."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the name of this provider."""
        pass


class HistoryEstimateProvider(EstimateProvider):
    """Analogy and parametric estimates learned from completed tasks."""

    def __init__(self, config: dict):
        """Initialize provider with configuration."""
        super().__init__(config)
        estimation_config = config.get('estimation', {})
        self.similarity_threshold = estimation_config.get('analogy_similarity_threshold', 0.3)
        self.max_matches = estimation_config.get('analogy_max_matches', 5)
        self.min_samples = estimation_config.get('parametric_min_samples', 5)

    def estimate(self, task: Task, history: Sequence[HistoricalSample]) -> List[TaskEstimate]:
        """Run both history methods, keeping whichever had enough data."""
        estimates = [
            analogy_estimate(task, history, self.similarity_threshold, self.max_matches),
            parametric_estimate(task, history, self.min_samples),
        ]
        return [estimate for estimate in estimates if estimate is not None]

    def get_provider_name(self) -> str:
        """Return the name of this provider."""
        return "History"
