"""Unit tests for model validation and snapshot parsing."""

from datetime import datetime

import pytest

from goal_engine.engine.errors import InvalidConfidence, InvalidInput
from goal_engine.models.capacity import FocusWindow, ScheduleWindow, TeamCapacity, WeekendPreference
from goal_engine.models.estimate import EstimationMethod, TaskEstimate
from goal_engine.models.snapshot import MilestoneSnapshot
from goal_engine.models.task import Complexity, DependencyType, Task, TaskDependency, TaskStatus

PAYLOAD = {
    'milestone_id': "beta",
    'start': "2026-03-02T09:00:00",
    'deadline': "2026-03-20T17:00:00",
    'tasks': [
        {'task_id': "A", 'title': "Design schema", 'estimated_hours': 8, 'assignee_id': "ana",
         'skills': ["backend", "sql"]},
        {'task_id': "B", 'title': "Write API", 'status': "In Progress", 'complexity': "complex",
         'assignee_id': "bo"},
        {'task_id': "C", 'title': "Old task", 'status': "completed", 'actual_hours': 5, 'estimated_hours': 4},
    ],
    'dependencies': [
        {'predecessor_id': "A", 'successor_id': "B", 'dependency_type': "start-to-start", 'lag_hours': 4},
    ],
    'estimates': [
        {'task_id': "A", 'method': "expert_judgment", 'estimated_hours': 8, 'confidence': 0.7},
        {'task_id': "A", 'method': "three_point_pert", 'estimated_hours': 9, 'confidence': 0.6,
         'optimistic': 6, 'most_likely': 8, 'pessimistic': 14, 'created_at': "2026-03-01T10:00:00"},
        {'task_id': "B", 'method': "bottom_up", 'estimated_hours': 20, 'confidence': 0.8},
    ],
    'capacities': [
        {'person_id': "ana", 'available_hours_per_week': 40, 'weekend_preference': "light",
         'focus_windows': [{'weekday': 0, 'start_hour': 9, 'end_hour': 12}]},
        {'person_id': "bo", 'available_hours_per_week': 32},
    ],
    'history': [
        {'task_id': "C", 'method': "expert_judgment", 'estimated_hours': 4, 'actual_hours': 5,
         'accuracy_score': 0.75, 'recorded_at': "2026-02-20T12:00:00"},
    ],
}


def test_task_normalizes_enums_and_skills() -> None:
    task = Task(task_id="T", status="In Progress", priority="HIGH", skills=("b", "a", "b"))

    assert task.status == TaskStatus.IN_PROGRESS
    assert task.priority.value == "high"
    assert task.complexity == Complexity.MODERATE
    assert task.skills == ("a", "b")
    assert not task.is_completed


def test_task_rejects_bad_fields() -> None:
    with pytest.raises(InvalidInput):
        Task(task_id="")
    with pytest.raises(InvalidInput):
        Task(task_id="T", estimated_hours=-1)
    with pytest.raises(InvalidInput) as error:
        Task(task_id="T", status="done-ish")
    assert error.value.to_dict()['field'] == "status"


def test_dependency_defaults_and_validation() -> None:
    dep = TaskDependency("A", "B")
    assert dep.dependency_type == DependencyType.FINISH_TO_START
    assert dep.key == ("A", "B")
    assert dep.is_hard

    with pytest.raises(InvalidInput):
        TaskDependency("A", "B", lag_hours="soon")


def test_estimate_validation() -> None:
    with pytest.raises(InvalidConfidence) as error:
        TaskEstimate(task_id="A", method="analogy", estimated_hours=3, confidence=-0.1)
    assert error.value.to_dict()['error'] == "INVALID_CONFIDENCE"

    with pytest.raises(InvalidInput):
        TaskEstimate(task_id="A", method="three_point_pert", estimated_hours=3, confidence=0.5, optimistic=1)
    with pytest.raises(InvalidInput):
        TaskEstimate(task_id="A", method="three_point_pert", estimated_hours=3, confidence=0.5,
                     optimistic=5, most_likely=3, pessimistic=9)
    with pytest.raises(InvalidInput):
        TaskEstimate(task_id="A", method="gut_feeling", estimated_hours=3, confidence=0.5)


def test_capacity_validation() -> None:
    capacity = TeamCapacity(
        person_id="ana",
        available_hours_per_week=40,
        focus_windows=(FocusWindow(0, 9, 12), FocusWindow(2, 13, 15.5)),
    )
    assert capacity.weekend_preference == WeekendPreference.NONE
    assert capacity.focus_hours_per_week == pytest.approx(5.5)

    with pytest.raises(InvalidInput):
        TeamCapacity(person_id="ana", available_hours_per_week=0)
    with pytest.raises(InvalidInput):
        FocusWindow(7, 9, 12)
    with pytest.raises(InvalidInput):
        ScheduleWindow(start=datetime(2026, 1, 2), end=datetime(2026, 1, 1))


def test_snapshot_from_dict() -> None:
    snapshot = MilestoneSnapshot.from_dict(PAYLOAD)

    assert snapshot.milestone_id == "beta"
    assert snapshot.start == datetime(2026, 3, 2, 9)
    assert [task.task_id for task in snapshot.tasks] == ["A", "B", "C"]
    assert snapshot.dependencies[0].dependency_type == DependencyType.START_TO_START
    assert snapshot.assignments == {"A": "ana", "B": "bo"}
    assert set(snapshot.capacity_index) == {"ana", "bo"}
    assert snapshot.capacity_index["ana"].focus_windows[0].hours == 3
    assert [e.method for e in snapshot.estimates_for("A")] == [
        EstimationMethod.EXPERT_JUDGMENT,
        EstimationMethod.THREE_POINT_PERT,
    ]
    assert snapshot.history[0].recorded_at == datetime(2026, 2, 20, 12)


def test_snapshot_survives_export() -> None:
    snapshot = MilestoneSnapshot.from_dict(PAYLOAD)
    assert MilestoneSnapshot.from_dict(snapshot.to_dict()) == snapshot


@pytest.mark.parametrize("payload", [
    [],
    {'tasks': "A"},
    {'tasks': ["A"]},
    {'tasks': [{'title': "no id"}]},
    {'tasks': [{'task_id': "A", 'owner': "ana"}]},
    {'start': "next tuesday"},
    {'dependencies': [{'predecessor_id': "A"}]},
])
def test_malformed_snapshot_is_invalid_input(payload) -> None:
    with pytest.raises(InvalidInput):
        MilestoneSnapshot.from_dict(payload)
