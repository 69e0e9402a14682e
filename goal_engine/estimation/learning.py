"""Accuracy tracking once a task completes."""

from datetime import datetime
from typing import Optional, Tuple

from ..engine.errors import InvalidInput
from ..models.estimate import EstimationHistoryEntry, FinalEstimate
from ..models.task import optional_hours


def accuracy_score(estimated: float, actual: float) -> float:
    """Score an estimate against the actual hours, in [0, 1]."""
    if actual <= 0:
        return 0.0
    score = 1 - abs(estimated - actual) / actual
    return min(1.0, max(0.0, score))


def record_actual(
    final_estimate: FinalEstimate,
    actual_hours: float,
    recorded_at: Optional[datetime] = None,
) -> Tuple[EstimationHistoryEntry, ...]:
    """Build one history entry per method that contributed to the estimate.

    The final estimate itself is left untouched; callers append the entries
    to their history store.
    """
    actual = optional_hours(actual_hours, 'actual_hours')
    if actual is None:
        raise InvalidInput("actual_hours is required", field='actual_hours')

    return tuple(
        EstimationHistoryEntry(
            task_id=final_estimate.task_id,
            method=contribution.method,
            estimated_hours=contribution.hours,
            actual_hours=actual,
            accuracy_score=accuracy_score(contribution.hours, actual),
            recorded_at=recorded_at,
        )
        for contribution in final_estimate.contributions
    )
