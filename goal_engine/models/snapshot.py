"""Milestone snapshot: the immutable input of one analysis run."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..engine.errors import InvalidInput
from .capacity import FocusWindow, TeamCapacity
from .estimate import EstimationHistoryEntry, TaskEstimate
from .task import Task, TaskDependency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MilestoneSnapshot:
    """Tasks, dependencies, estimates, capacities and history for one milestone."""

    milestone_id: str
    tasks: Tuple[Task, ...] = field(default_factory=tuple)
    dependencies: Tuple[TaskDependency, ...] = field(default_factory=tuple)
    estimates: Tuple[TaskEstimate, ...] = field(default_factory=tuple)
    capacities: Tuple[TeamCapacity, ...] = field(default_factory=tuple)
    history: Tuple[EstimationHistoryEntry, ...] = field(default_factory=tuple)
    start: Optional[datetime] = None
    deadline: Optional[datetime] = None

    @property
    def assignments(self) -> Dict[str, str]:
        """Task id to assignee id for assigned tasks."""
        return {task.task_id: task.assignee_id for task in self.tasks if task.assignee_id}

    @property
    def capacity_index(self) -> Dict[str, TeamCapacity]:
        """Capacity profiles keyed by person id."""
        return {capacity.person_id: capacity for capacity in self.capacities}

    def estimates_for(self, task_id: str) -> List[TaskEstimate]:
        """Estimates recorded for one task, in input order."""
        return [estimate for estimate in self.estimates if estimate.task_id == task_id]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MilestoneSnapshot':
        """Parse a plain JSON payload, raising ``InvalidInput`` when malformed."""
        if not isinstance(data, dict):
            raise InvalidInput("Snapshot must be a mapping", field='snapshot')

        snapshot = cls(
            milestone_id=data.get('milestone_id') or 'milestone',
            tasks=_records(data, 'tasks', _task),
            dependencies=_records(data, 'dependencies', _dependency),
            estimates=_records(data, 'estimates', _estimate),
            capacities=_records(data, 'capacities', _capacity),
            history=_records(data, 'history', _history_entry),
            start=_datetime(data.get('start'), 'start'),
            deadline=_datetime(data.get('deadline'), 'deadline'),
        )
        logger.debug(
            "Loaded snapshot %s: %d tasks, %d dependencies, %d estimates",
            snapshot.milestone_id,
            len(snapshot.tasks),
            len(snapshot.dependencies),
            len(snapshot.estimates),
        )
        return snapshot

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to dictionary for JSON export."""
        return {
            'milestone_id': self.milestone_id,
            'start': self.start.isoformat() if self.start else None,
            'deadline': self.deadline.isoformat() if self.deadline else None,
            'tasks': [
                {
                    'task_id': task.task_id,
                    'title': task.title,
                    'estimated_hours': task.estimated_hours,
                    'actual_hours': task.actual_hours,
                    'status': task.status.value,
                    'priority': task.priority.value,
                    'complexity': task.complexity.value,
                    'parent_id': task.parent_id,
                    'milestone_id': task.milestone_id,
                    'assignee_id': task.assignee_id,
                    'skills': list(task.skills),
                }
                for task in self.tasks
            ],
            'dependencies': [
                {
                    'predecessor_id': dep.predecessor_id,
                    'successor_id': dep.successor_id,
                    'dependency_type': dep.dependency_type.value,
                    'lag_hours': dep.lag_hours,
                    'is_hard': dep.is_hard,
                }
                for dep in self.dependencies
            ],
            'estimates': [
                {
                    'task_id': est.task_id,
                    'method': est.method.value,
                    'estimated_hours': est.estimated_hours,
                    'confidence': est.confidence,
                    'optimistic': est.optimistic,
                    'most_likely': est.most_likely,
                    'pessimistic': est.pessimistic,
                    'rationale': est.rationale,
                    'created_at': est.created_at.isoformat() if est.created_at else None,
                }
                for est in self.estimates
            ],
            'capacities': [
                {
                    'person_id': cap.person_id,
                    'available_hours_per_week': cap.available_hours_per_week,
                    'weekend_preference': cap.weekend_preference.value,
                    'focus_windows': [
                        {'weekday': w.weekday, 'start_hour': w.start_hour, 'end_hour': w.end_hour}
                        for w in cap.focus_windows
                    ],
                    'skills': list(cap.skills),
                }
                for cap in self.capacities
            ],
            'history': [entry.to_dict() for entry in self.history],
        }


def _records(data: Dict[str, Any], key: str, build: Callable[[Dict[str, Any]], Any]) -> tuple:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise InvalidInput(f"{key} must be a list", field=key)
    records = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise InvalidInput(f"{key}[{index}] must be a mapping", field=key, index=index)
        try:
            records.append(build(item))
        except (TypeError, KeyError) as exc:
            raise InvalidInput(f"Malformed {key}[{index}]: {exc}", field=key, index=index) from exc
    return tuple(records)


def _datetime(value, field_name: str) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise InvalidInput(f"{field_name} must be an ISO timestamp", field=field_name)
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise InvalidInput(f"{field_name} must be an ISO timestamp", field=field_name) from exc


def _task(item: Dict[str, Any]) -> Task:
    return Task(**{**item, 'skills': tuple(item.get('skills') or ())})


def _dependency(item: Dict[str, Any]) -> TaskDependency:
    return TaskDependency(**item)


def _estimate(item: Dict[str, Any]) -> TaskEstimate:
    return TaskEstimate(**{**item, 'created_at': _datetime(item.get('created_at'), 'created_at')})


def _capacity(item: Dict[str, Any]) -> TeamCapacity:
    windows = tuple(FocusWindow(**window) for window in item.get('focus_windows') or ())
    return TeamCapacity(**{
        **item,
        'focus_windows': windows,
        'skills': tuple(item.get('skills') or ()),
    })


def _history_entry(item: Dict[str, Any]) -> EstimationHistoryEntry:
    return EstimationHistoryEntry(**{**item, 'recorded_at': _datetime(item.get('recorded_at'), 'recorded_at')})
