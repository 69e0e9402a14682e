"""Estimate, fused estimate and estimation history models."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..engine.errors import InvalidConfidence, InvalidInput
from .task import coerce_enum, optional_hours, require_id


class EstimationMethod(str, Enum):
    """Independent estimation techniques that can be fused."""

    EXPERT_JUDGMENT = "expert_judgment"
    ANALOGY = "analogy"
    THREE_POINT_PERT = "three_point_pert"
    PARAMETRIC = "parametric"
    BOTTOM_UP = "bottom_up"


def validate_confidence(value, task_id: Optional[str] = None) -> float:
    """Ensure a confidence score lies in [0, 1]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput("confidence must be a number", field='confidence')
    if not 0.0 <= value <= 1.0:
        raise InvalidConfidence(value, task_id)
    return float(value)


@dataclass(frozen=True)
class TaskEstimate:
    """One estimate for a task produced by a single method."""

    task_id: str
    method: EstimationMethod
    estimated_hours: float
    confidence: float
    optimistic: Optional[float] = None
    most_likely: Optional[float] = None
    pessimistic: Optional[float] = None
    rationale: str = ""
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate and normalize fields."""
        require_id(self.task_id, 'task_id')
        object.__setattr__(self, 'method', coerce_enum(EstimationMethod, self.method, 'method'))
        hours = optional_hours(self.estimated_hours, 'estimated_hours')
        if hours is None:
            raise InvalidInput("estimated_hours is required", field='estimated_hours')
        object.__setattr__(self, 'estimated_hours', hours)
        object.__setattr__(self, 'confidence', validate_confidence(self.confidence, self.task_id))

        triad = (self.optimistic, self.most_likely, self.pessimistic)
        present = [value is not None for value in triad]
        if any(present) and not all(present):
            raise InvalidInput("PERT triad must be complete", field='optimistic')
        if all(present):
            o, m, p = (optional_hours(v, name) for v, name in zip(
                triad, ('optimistic', 'most_likely', 'pessimistic')))
            if not o <= m <= p:
                raise InvalidInput(
                    "PERT triad must satisfy optimistic <= most_likely <= pessimistic",
                    field='most_likely',
                )
            object.__setattr__(self, 'optimistic', o)
            object.__setattr__(self, 'most_likely', m)
            object.__setattr__(self, 'pessimistic', p)

    @property
    def has_triad(self) -> bool:
        """Whether optimistic/most-likely/pessimistic are all present."""
        return self.optimistic is not None


@dataclass(frozen=True)
class MethodContribution:
    """What a single method contributed to a fused estimate."""

    method: EstimationMethod
    hours: float
    confidence: float
    weight: float


@dataclass(frozen=True)
class FinalEstimate:
    """Fused estimate with its uncertainty range."""

    task_id: str
    hours: float
    confidence: float
    range_low: float
    range_high: float
    std_dev: float
    interval_low: float
    interval_high: float
    interval_level: float
    pert_std_dev: Optional[float] = None
    contributions: Tuple[MethodContribution, ...] = field(default_factory=tuple)

    @property
    def methods_used(self) -> List[str]:
        """Methods that contributed, in fusion order."""
        return [c.method.value for c in self.contributions]

    def to_dict(self) -> Dict[str, Any]:
        """Convert estimate to dictionary for JSON export."""
        data = asdict(self)
        data['contributions'] = [
            {**asdict(c), 'method': c.method.value} for c in self.contributions
        ]
        data['methods_used'] = self.methods_used
        return data


@dataclass(frozen=True)
class EstimationHistoryEntry:
    """Append-only accuracy record written once a task completes."""

    task_id: str
    method: EstimationMethod
    estimated_hours: float
    actual_hours: float
    accuracy_score: float
    recorded_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate and normalize fields."""
        require_id(self.task_id, 'task_id')
        object.__setattr__(self, 'method', coerce_enum(EstimationMethod, self.method, 'method'))
        for name in ('estimated_hours', 'actual_hours'):
            if optional_hours(getattr(self, name), name) is None:
                raise InvalidInput(f"{name} is required", field=name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary for JSON export."""
        data = asdict(self)
        data['method'] = self.method.value
        data['recorded_at'] = self.recorded_at.isoformat() if self.recorded_at else None
        return data
