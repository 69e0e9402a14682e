"""Fusion of independent per-method estimates into one final estimate."""

import math
from typing import Dict, Iterable, List, Optional, Tuple

from ..engine.errors import InsufficientEstimates, InvalidInput
from ..models.estimate import (
    EstimationMethod,
    FinalEstimate,
    MethodContribution,
    TaskEstimate,
    validate_confidence,
)

# Two-sided z-scores keyed by confidence level
Z_SCORES = {
    0.5: 0.674,
    0.6: 0.842,
    0.7: 1.036,
    0.8: 1.282,
    0.9: 1.645,
    0.95: 1.96,
    0.99: 2.576,
}
DEFAULT_Z_SCORE = 1.645

METHOD_ORDER = list(EstimationMethod)


def pert_estimate(optimistic: float, most_likely: float, pessimistic: float) -> Tuple[float, float, float]:
    """Three-point estimate.

    Returns ``(expected, std_dev, confidence)`` where the confidence shrinks
    as the spread grows relative to the expected value.
    """
    expected = (optimistic + 4 * most_likely + pessimistic) / 6
    std_dev = (pessimistic - optimistic) / 6
    if expected <= 0:
        return expected, std_dev, 0.0
    confidence = 1 - min(1.0, std_dev / expected)
    return expected, std_dev, min(1.0, max(0.0, confidence))


def z_score(confidence_level: float) -> float:
    """Look up the z-score for a confidence level."""
    return Z_SCORES.get(round(confidence_level, 2), DEFAULT_Z_SCORE)


def latest_per_method(estimates: Iterable[TaskEstimate]) -> Dict[EstimationMethod, TaskEstimate]:
    """Keep the most recent estimate for each method.

    Recency is ``created_at``; estimates without a timestamp are older than
    any timestamped one, and later list positions win ties.
    """
    latest: Dict[EstimationMethod, TaskEstimate] = {}
    for estimate in estimates:
        current = latest.get(estimate.method)
        if current is None or _recency(estimate) >= _recency(current):
            latest[estimate.method] = estimate
    return latest


def fuse_estimates(estimates: Iterable[TaskEstimate], confidence_level: float = 0.8) -> FinalEstimate:
    """Combine the latest estimate of every method into a ``FinalEstimate``.

    Each method contributes ``(hours, confidence)``; a PERT estimate with a
    full triad contributes its expected value with a spread-derived
    confidence. Hours are the confidence-weighted mean (plain mean when all
    confidences are zero) and the fused confidence is the mean confidence.
    A single method passes through unmodified.

    The range spans the method hours widened by the PERT deviation. The
    interval at ``confidence_level`` uses the weighted dispersion of method
    hours combined with the PERT deviation.
    """
    estimates = list(estimates)
    if not estimates:
        raise InsufficientEstimates()

    task_ids = sorted({estimate.task_id for estimate in estimates})
    if len(task_ids) > 1:
        raise InvalidInput(
            "Estimates for more than one task cannot be fused",
            field='task_id',
            task_ids=task_ids,
        )
    task_id = task_ids[0]

    if isinstance(confidence_level, bool) or not isinstance(confidence_level, (int, float)) \
            or not 0 < confidence_level < 1:
        raise InvalidInput("confidence_level must lie in (0, 1)", field='confidence_level')

    latest = latest_per_method(estimates)
    pert_std: Optional[float] = None
    points: List[Tuple[EstimationMethod, float, float]] = []
    for method in METHOD_ORDER:
        if method not in latest:
            continue
        estimate = latest[method]
        if method == EstimationMethod.THREE_POINT_PERT and estimate.has_triad:
            hours, pert_std, confidence = pert_estimate(
                estimate.optimistic, estimate.most_likely, estimate.pessimistic,
            )
        else:
            hours = estimate.estimated_hours
            confidence = validate_confidence(estimate.confidence, task_id)
        points.append((method, hours, confidence))

    total_confidence = sum(confidence for _, _, confidence in points)
    if total_confidence > 0:
        weights = [confidence / total_confidence for _, _, confidence in points]
    else:
        weights = [1.0 / len(points)] * len(points)

    if len(points) == 1:
        _, hours, confidence = points[0]
    else:
        hours = sum(weight * point[1] for weight, point in zip(weights, points))
        confidence = total_confidence / len(points)

    spread = pert_std or 0.0
    values = [point[1] for point in points]
    range_low = max(0.0, min(values) - spread)
    range_high = max(values) + spread

    variance = sum(weight * (point[1] - hours) ** 2 for weight, point in zip(weights, points))
    std_dev = math.sqrt(variance + spread ** 2)
    margin = z_score(confidence_level) * std_dev

    return FinalEstimate(
        task_id=task_id,
        hours=hours,
        confidence=confidence,
        range_low=range_low,
        range_high=range_high,
        std_dev=std_dev,
        interval_low=max(0.0, hours - margin),
        interval_high=hours + margin,
        interval_level=float(confidence_level),
        pert_std_dev=pert_std,
        contributions=tuple(
            MethodContribution(method=method, hours=value, confidence=conf, weight=weight)
            for (method, value, conf), weight in zip(points, weights)
        ),
    )


def _recency(estimate: TaskEstimate):
    if estimate.created_at is None:
        return (0,)
    return (1, estimate.created_at)
