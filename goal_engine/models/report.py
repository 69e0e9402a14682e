"""Analysis report models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class TaskTiming:
    """Forward/backward pass results for one task (day offsets)."""

    task_id: str
    duration_hours: float
    earliest_start: float
    earliest_finish: float
    latest_start: float
    latest_finish: float
    slack_hours: float
    is_critical: bool

    def to_dict(self) -> Dict[str, Any]:
        """Convert timing to dictionary for JSON export."""
        return {
            'task_id': self.task_id,
            'duration_hours': _r(self.duration_hours),
            'earliest_start': _r(self.earliest_start),
            'earliest_finish': _r(self.earliest_finish),
            'latest_start': _r(self.latest_start),
            'latest_finish': _r(self.latest_finish),
            'slack_hours': _r(self.slack_hours),
            'is_critical': self.is_critical,
        }


@dataclass(frozen=True)
class CriticalPathReport:
    """Result of the critical path analysis."""

    critical_path: List[str]
    slack: Dict[str, float]
    violates_deadline: bool
    unestimated: List[str]
    timings: Dict[str, TaskTiming]
    project_start: float
    project_finish: float
    project_duration_hours: float
    critical_path_duration_hours: float
    hours_per_day: float
    deadline: Optional[float] = None
    deadline_overrun_hours: float = 0.0

    def is_critical(self, task_id: str) -> bool:
        """Whether the task has minimal slack."""
        return self.timings[task_id].is_critical

    @property
    def critical_tasks(self) -> List[str]:
        """All tasks with minimal slack, sorted by id."""
        return sorted(task_id for task_id, timing in self.timings.items() if timing.is_critical)

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary for JSON export."""
        return {
            'critical_path': list(self.critical_path),
            'slack': {task_id: _r(self.slack[task_id]) for task_id in sorted(self.slack)},
            'violates_deadline': self.violates_deadline,
            'unestimated': list(self.unestimated),
            'timings': [self.timings[task_id].to_dict() for task_id in sorted(self.timings)],
            'project_start': _r(self.project_start),
            'project_finish': _r(self.project_finish),
            'project_duration_hours': _r(self.project_duration_hours),
            'critical_path_duration_hours': _r(self.critical_path_duration_hours),
            'hours_per_day': self.hours_per_day,
            'deadline': self.deadline,
            'deadline_overrun_hours': _r(self.deadline_overrun_hours),
        }


@dataclass(frozen=True)
class ParallelTrack:
    """Independent group of non-critical tasks."""

    track_id: str
    task_ids: Tuple[str, ...]
    critical_path: Tuple[str, ...]
    total_slack_hours: float
    start: float
    finish: float
    total_hours: float
    chain_hours: float
    skills: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def parallelizable_hours(self) -> float:
        """Hours in the track that do not sit on its internal chain."""
        return max(0.0, self.total_hours - self.chain_hours)

    def to_dict(self) -> Dict[str, Any]:
        """Convert track to dictionary for JSON export."""
        return {
            'track_id': self.track_id,
            'task_ids': list(self.task_ids),
            'critical_path': list(self.critical_path),
            'total_slack_hours': _r(self.total_slack_hours),
            'start': _r(self.start),
            'finish': _r(self.finish),
            'total_hours': _r(self.total_hours),
            'chain_hours': _r(self.chain_hours),
            'skills': list(self.skills),
        }


@dataclass(frozen=True)
class OptimizationSuggestion:
    """Actionable hint derived from the analyses."""

    kind: str
    description: str
    task_ids: Tuple[str, ...]
    estimated_savings_hours: float
    effort: str
    priority: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert suggestion to dictionary for JSON export."""
        return {
            'kind': self.kind,
            'description': self.description,
            'task_ids': list(self.task_ids),
            'estimated_savings_hours': _r(self.estimated_savings_hours),
            'effort': self.effort,
            'priority': self.priority,
        }


@dataclass(frozen=True)
class ScheduleMetrics:
    """Headline numbers for a milestone schedule."""

    total_tasks: int
    critical_tasks: int
    parallelizable_hours: float
    sequential_hours: float
    buffer_hours: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary for JSON export."""
        return {
            'total_tasks': self.total_tasks,
            'critical_tasks': self.critical_tasks,
            'parallelizable_hours': _r(self.parallelizable_hours),
            'sequential_hours': _r(self.sequential_hours),
            'buffer_hours': _r(self.buffer_hours),
        }


def _r(value: float) -> float:
    """Round away float noise for stable output."""
    return round(value, 6) + 0.0
