"""Risk assessment and recommendations for a fused estimate."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from ..models.estimate import FinalEstimate
from ..models.task import Complexity, Task
from .methods import HistoricalSample, rank_similar, task_similarity

IMPACT_PENALTY = {"HIGH": 0.2, "MEDIUM": 0.1, "LOW": 0.05}
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95


@dataclass(frozen=True)
class RiskFactor:
    """Something that makes an estimate less trustworthy."""

    factor: str
    impact: str
    probability: float
    mitigation: str
    adjustment_factor: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert risk factor to dictionary for JSON export."""
        return {
            'factor': self.factor,
            'impact': self.impact,
            'probability': self.probability,
            'mitigation': self.mitigation,
            'adjustment_factor': self.adjustment_factor,
        }


@dataclass(frozen=True)
class HistoricalComparison:
    """A similar past task shown next to an estimate."""

    task_id: str
    title: str
    similarity: float
    estimated_hours: float
    actual_hours: float
    accuracy: float
    lessons: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert comparison to dictionary for JSON export."""
        return {
            'task_id': self.task_id,
            'title': self.title,
            'similarity': round(self.similarity, 6),
            'estimated_hours': self.estimated_hours,
            'actual_hours': self.actual_hours,
            'accuracy': round(self.accuracy, 6),
            'lessons': list(self.lessons),
        }


@dataclass(frozen=True)
class EstimateAssessment:
    """Fused estimate together with its risk review."""

    estimate: FinalEstimate
    risk_factors: Tuple[RiskFactor, ...]
    confidence: float
    recommendations: Tuple[str, ...]
    data_quality: str
    comparisons: Tuple[HistoricalComparison, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert assessment to dictionary for JSON export."""
        return {
            'estimate': self.estimate.to_dict(),
            'risk_factors': [risk.to_dict() for risk in self.risk_factors],
            'confidence': round(self.confidence, 6),
            'recommendations': list(self.recommendations),
            'data_quality': self.data_quality,
            'comparisons': [comparison.to_dict() for comparison in self.comparisons],
        }


def identify_risk_factors(task: Task, samples: Sequence[HistoricalSample]) -> List[RiskFactor]:
    """Flag complexity, skill breadth and poor past accuracy on similar work."""
    risks = []

    if task.complexity == Complexity.COMPLEX:
        risks.append(RiskFactor(
            factor="High Complexity",
            impact="HIGH",
            probability=0.7,
            mitigation="Break down into smaller tasks, add buffer time",
            adjustment_factor=1.3,
        ))

    if len(task.skills) > 3:
        risks.append(RiskFactor(
            factor="Multiple Skills Required",
            impact="MEDIUM",
            probability=0.5,
            mitigation="Ensure skill availability, consider training time",
            adjustment_factor=1.2,
        ))

    similar = [
        sample for sample in samples
        if sample.task_id != task.task_id and task_similarity(task, sample.task) > 0.5
    ]
    if similar:
        average_accuracy = sum(sample.accuracy for sample in similar) / len(similar)
        if average_accuracy < 0.7:
            risks.append(RiskFactor(
                factor="Poor Historical Accuracy",
                impact="HIGH",
                probability=0.8,
                mitigation="Add significant buffer, improve estimation process",
                adjustment_factor=1.4,
            ))

    return risks


def overall_confidence(estimate: FinalEstimate, risks: Sequence[RiskFactor]) -> float:
    """Weighted method confidence reduced by the expected risk impact."""
    if not estimate.contributions:
        return 0.0
    base = sum(c.confidence * c.weight for c in estimate.contributions)
    penalty = sum(IMPACT_PENALTY.get(risk.impact, 0.0) * risk.probability for risk in risks)
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, base - penalty))


def recommendations(
    estimate: FinalEstimate,
    risks: Sequence[RiskFactor],
    sample_count: int,
) -> List[str]:
    """Plain-language advice for improving the estimate."""
    advice = []

    if not any(c.confidence > 0.7 for c in estimate.contributions):
        advice.append("Consider gathering more historical data to improve estimation accuracy")

    if any(risk.impact == "HIGH" for risk in risks):
        advice.append("Add 20-30% buffer time due to identified high-risk factors")

    if sample_count < 10:
        advice.append("Start collecting more detailed task completion data for better future estimates")

    hours = [c.hours for c in estimate.contributions if c.hours > 0]
    if len(hours) > 1:
        mean = sum(hours) / len(hours)
        variance = sum((h - mean) ** 2 for h in hours) / len(hours)
        if math.sqrt(variance) / mean > 0.3:
            advice.append("High variance between estimation methods - consider breaking down the task further")

    return advice


def data_quality(sample_count: int) -> str:
    """Rate the amount of history behind an estimate."""
    if sample_count >= 20:
        return "HIGH"
    if sample_count >= 5:
        return "MEDIUM"
    return "LOW"


def historical_comparisons(
    task: Task,
    samples: Sequence[HistoricalSample],
    threshold: float = 0.3,
    limit: int = 5,
) -> List[HistoricalComparison]:
    """Similar past tasks with the lessons they teach."""
    comparisons = []
    for sample, similarity in rank_similar(task, samples, threshold, limit):
        estimated = sample.task.estimated_hours or 0.0
        lessons = []
        if sample.accuracy < 0.7:
            lessons.append("Previous similar task was significantly underestimated")
        if estimated and sample.actual_hours > estimated * 1.5:
            lessons.append("Consider additional complexity factors and dependencies")
        comparisons.append(HistoricalComparison(
            task_id=sample.task_id,
            title=sample.task.title,
            similarity=similarity,
            estimated_hours=estimated,
            actual_hours=sample.actual_hours,
            accuracy=sample.accuracy,
            lessons=tuple(lessons),
        ))
    return comparisons


def assess_estimate(
    task: Task,
    estimate: FinalEstimate,
    samples: Sequence[HistoricalSample],
) -> EstimateAssessment:
    """Run every assessment over one fused estimate."""
    risks = identify_risk_factors(task, samples)
    return EstimateAssessment(
        estimate=estimate,
        risk_factors=tuple(risks),
        confidence=overall_confidence(estimate, risks),
        recommendations=tuple(recommendations(estimate, risks, len(samples))),
        data_quality=data_quality(len(samples)),
        comparisons=tuple(historical_comparisons(task, samples)),
    )
