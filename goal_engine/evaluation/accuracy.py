"""Estimation accuracy summary over the history."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from ..models.estimate import EstimationHistoryEntry, EstimationMethod


@dataclass(frozen=True)
class MethodAccuracy:
    """How well one estimation method has performed."""

    method: EstimationMethod
    samples: int
    mean_accuracy: float
    bias: float  # mean of (estimated - actual) / actual; positive means overestimation

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for JSON export."""
        return {
            'method': self.method.value,
            'samples': self.samples,
            'mean_accuracy': round(self.mean_accuracy, 6),
            'bias': round(self.bias, 6),
        }


def summarize_accuracy(history: Iterable[EstimationHistoryEntry]) -> List[MethodAccuracy]:
    """Per-method accuracy and bias, in method declaration order."""
    by_method: Dict[EstimationMethod, List[EstimationHistoryEntry]] = {}
    for entry in history:
        by_method.setdefault(entry.method, []).append(entry)

    summary = []
    for method in EstimationMethod:
        entries = by_method.get(method)
        if not entries:
            continue
        errors = [
            (entry.estimated_hours - entry.actual_hours) / entry.actual_hours
            for entry in entries
            if entry.actual_hours > 0
        ]
        summary.append(MethodAccuracy(
            method=method,
            samples=len(entries),
            mean_accuracy=sum(entry.accuracy_score for entry in entries) / len(entries),
            bias=sum(errors) / len(errors) if errors else 0.0,
        ))
    return summary
