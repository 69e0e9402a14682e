"""Unit tests for engine.hierarchy."""

import pytest

from goal_engine.engine.errors import CycleDetected, UnknownTaskReference
from goal_engine.engine.hierarchy import build_hierarchy
from goal_engine.models.task import Task


def _wbs():
    return [
        Task(task_id="epic", title="Launch"),
        Task(task_id="api", parent_id="epic", complexity="complex", skills=("backend",)),
        Task(task_id="api-auth", parent_id="api", estimated_hours=6, skills=("backend", "security")),
        Task(task_id="api-crud", parent_id="api", estimated_hours=10, skills=("backend",)),
        Task(task_id="ui", parent_id="epic", estimated_hours=8, complexity="simple", skills=("frontend",)),
        Task(task_id="ops", estimated_hours=4),
    ]


def test_hierarchy_index_and_rollups() -> None:
    hierarchy = build_hierarchy(_wbs())

    assert hierarchy.roots == ["epic", "ops"]
    assert hierarchy.leaves == ["api-auth", "api-crud", "ops", "ui"]
    assert hierarchy.children("epic") == ["api", "ui"]
    assert hierarchy.parent("api-auth") == "api"
    assert hierarchy.depth("api-crud") == 3
    assert hierarchy.rollup_hours("api") == 16.0
    assert hierarchy.rollup_hours("epic") == 24.0


def test_hierarchy_metrics() -> None:
    metrics = build_hierarchy(_wbs()).metrics()

    assert metrics.total_tasks == 6
    assert metrics.leaf_tasks == 4
    assert metrics.max_depth == 3
    assert metrics.total_hours == pytest.approx(28.0)
    assert metrics.average_task_hours == pytest.approx(7.0)
    assert metrics.complexity_distribution == {"moderate": 4, "complex": 1, "simple": 1}
    assert metrics.skills_required == ("backend", "frontend", "security")
    assert metrics.to_dict()['complexity_distribution'] == {"complex": 1, "moderate": 4, "simple": 1}


def test_unknown_parent_rejected() -> None:
    with pytest.raises(UnknownTaskReference) as error:
        build_hierarchy([Task(task_id="a", parent_id="missing")])
    assert error.value.referenced_by == "a"


def test_parent_cycle_rejected() -> None:
    with pytest.raises(CycleDetected) as error:
        build_hierarchy([Task(task_id="a", parent_id="b"), Task(task_id="b", parent_id="a")])
    assert error.value.cycle == ["a", "b", "a"]
    assert error.value.to_dict()['relation'] == "parent"


def test_empty_hierarchy() -> None:
    metrics = build_hierarchy([]).metrics()
    assert metrics.total_tasks == 0
    assert metrics.max_depth == 0
    assert metrics.average_task_hours == 0.0
