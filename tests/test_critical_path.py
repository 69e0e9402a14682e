"""Unit and property tests for engine.critical_path."""

from datetime import datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from goal_engine.engine.critical_path import build_schedule, compute_critical_path
from goal_engine.engine.errors import InvalidInput
from goal_engine.engine.graph import build_graph
from goal_engine.models.task import Task, TaskDependency


def _graph(hours, edges):
    tasks = [Task(task_id=task_id, estimated_hours=value) for task_id, value in hours.items()]
    deps = [TaskDependency(predecessor_id=p, successor_id=s, **extra) for p, s, extra in edges]
    return build_graph(tasks, deps)


def test_linear_chain_is_entirely_critical() -> None:
    graph = _graph({"A": 8, "B": 16, "C": 8}, [("A", "B", {}), ("B", "C", {})])
    report = compute_critical_path(graph)

    assert report.critical_path == ["A", "B", "C"]
    assert report.critical_path_duration_hours == pytest.approx(32.0)
    assert report.project_duration_hours == pytest.approx(32.0)
    assert report.slack == {"A": 0.0, "B": 0.0, "C": 0.0}
    assert report.timings["B"].earliest_start == pytest.approx(1.0)
    assert report.timings["C"].earliest_finish == pytest.approx(4.0)
    assert report.violates_deadline is False
    assert report.unestimated == []


def test_diamond_reports_slack_on_the_short_branch() -> None:
    graph = _graph(
        {"A": 8, "B": 16, "C": 8, "D": 8},
        [("A", "B", {}), ("A", "C", {}), ("B", "D", {}), ("C", "D", {})],
    )
    report = compute_critical_path(graph)

    assert report.critical_path == ["A", "B", "D"]
    assert report.slack["C"] == pytest.approx(8.0)
    assert report.critical_tasks == ["A", "B", "D"]
    assert not report.is_critical("C")


def test_lag_counts_towards_the_path_duration() -> None:
    graph = _graph({"A": 8, "B": 8}, [("A", "B", {"lag_hours": 8})])
    report = compute_critical_path(graph)

    assert report.timings["B"].earliest_start == pytest.approx(2.0)
    assert report.critical_path == ["A", "B"]
    assert report.critical_path_duration_hours == pytest.approx(24.0)


def test_start_to_start_dependency() -> None:
    graph = _graph({"A": 16, "B": 8}, [("A", "B", {"dependency_type": "start_to_start", "lag_hours": 4})])
    report = compute_critical_path(graph)

    assert report.timings["B"].earliest_start == pytest.approx(0.5)
    assert report.slack["B"] == pytest.approx(4.0)
    assert report.critical_path == ["A"]


def test_finish_to_finish_dependency() -> None:
    graph = _graph({"A": 8, "B": 16}, [("A", "B", {"dependency_type": "finish_to_finish"})])
    report = compute_critical_path(graph)

    assert report.timings["B"].earliest_start == pytest.approx(0.0)
    assert report.timings["B"].earliest_finish == pytest.approx(2.0)
    assert report.slack["A"] == pytest.approx(8.0)
    assert report.critical_path == ["B"]


def test_missed_deadline_is_reported_not_raised() -> None:
    graph = _graph({"A": 8, "B": 16, "C": 8}, [("A", "B", {}), ("B", "C", {})])
    report = compute_critical_path(graph, deadline=3.0)

    assert report.violates_deadline is True
    assert report.deadline_overrun_hours == pytest.approx(8.0)
    assert report.slack["A"] == pytest.approx(-8.0)
    assert report.critical_path == ["A", "B", "C"]


def test_loose_deadline_leaves_uniform_slack() -> None:
    graph = _graph({"A": 8, "B": 16, "C": 8}, [("A", "B", {}), ("B", "C", {})])
    report = compute_critical_path(graph, deadline=5.0)

    assert report.violates_deadline is False
    assert report.slack == {"A": pytest.approx(8.0), "B": pytest.approx(8.0), "C": pytest.approx(8.0)}
    assert report.critical_path == ["A", "B", "C"]


def test_unestimated_tasks_count_as_zero() -> None:
    graph = _graph({"A": 8, "B": None}, [("A", "B", {})])
    report = compute_critical_path(graph)

    assert report.unestimated == ["B"]
    assert report.timings["B"].duration_hours == 0.0
    assert report.project_duration_hours == pytest.approx(8.0)


def test_explicit_durations_override_task_estimates() -> None:
    graph = _graph({"A": 8, "B": 8}, [("A", "B", {})])
    report = compute_critical_path(graph, durations={"A": 16, "B": None})

    assert report.project_duration_hours == pytest.approx(24.0)


def test_invalid_durations_rejected() -> None:
    graph = _graph({"A": 8}, [])
    with pytest.raises(InvalidInput):
        compute_critical_path(graph, durations={"A": -1})
    with pytest.raises(InvalidInput):
        compute_critical_path(graph, durations={"ghost": 4})
    with pytest.raises(InvalidInput):
        compute_critical_path(graph, hours_per_day=0)


def test_equal_chains_break_ties_by_smallest_ids() -> None:
    graph = _graph({"C": 8, "D": 8, "A": 8, "B": 8}, [("C", "D", {}), ("A", "B", {})])
    report = compute_critical_path(graph)

    assert report.critical_path == ["A", "B"]
    assert report.critical_tasks == ["A", "B", "C", "D"]


def test_identical_input_gives_identical_output() -> None:
    hours = {"A": 8, "B": 4, "C": 4, "D": 2}
    edges = [("A", "B", {}), ("A", "C", {}), ("B", "D", {}), ("C", "D", {})]

    first = compute_critical_path(_graph(hours, edges), deadline=3).to_dict()
    second = compute_critical_path(_graph(hours, edges), deadline=3).to_dict()
    assert first == second


def test_empty_graph() -> None:
    report = compute_critical_path(build_graph([], []))
    assert report.critical_path == []
    assert report.project_duration_hours == 0.0


def test_build_schedule_maps_day_offsets_onto_calendar() -> None:
    graph = _graph({"A": 8, "B": 4}, [("A", "B", {})])
    report = compute_critical_path(graph)
    schedule = build_schedule(report, datetime(2026, 1, 5, 9))

    assert schedule["A"].start == datetime(2026, 1, 5, 9)
    assert schedule["A"].end == datetime(2026, 1, 6, 9)
    assert schedule["B"].start == datetime(2026, 1, 6, 9)
    assert schedule["B"].end == datetime(2026, 1, 6, 21)


def _longest_path(durations, edges):
    children = {node: [] for node in durations}
    for pred, succ, lag in edges:
        children[pred].append((succ, lag))

    best = 0.0
    stack = [(node, durations[node]) for node in durations]
    while stack:
        node, total = stack.pop()
        best = max(best, total)
        for child, lag in children[node]:
            stack.append((child, total + lag + durations[child]))
    return best


@st.composite
def _dags(draw):
    count = draw(st.integers(min_value=1, max_value=7))
    ids = [f"t{index}" for index in range(count)]
    durations = {task_id: draw(st.integers(min_value=0, max_value=24)) for task_id in ids}
    edges = []
    for i in range(count):
        for j in range(i + 1, count):
            if draw(st.booleans()):
                edges.append((ids[i], ids[j], draw(st.integers(min_value=0, max_value=6))))
    return durations, edges


@settings(max_examples=75, deadline=None)
@given(_dags())
def test_critical_path_matches_brute_force_longest_path(dag) -> None:
    durations, edges = dag
    graph = _graph(durations, [(p, s, {"lag_hours": lag}) for p, s, lag in edges])
    report = compute_critical_path(graph)

    longest = _longest_path(durations, edges)
    assert report.critical_path_duration_hours == pytest.approx(longest, abs=1e-6)
    assert report.project_duration_hours == pytest.approx(longest, abs=1e-6)

    chain = report.critical_path
    lags = {(p, s): lag for p, s, lag in edges}
    chain_hours = sum(durations[task_id] for task_id in chain)
    chain_hours += sum(lags[(a, b)] for a, b in zip(chain, chain[1:]))
    assert chain_hours == pytest.approx(longest, abs=1e-6)

    for task_id in chain:
        assert report.slack[task_id] == pytest.approx(0.0, abs=1e-6)


def test_start_to_start_chain_spans_the_overlap() -> None:
    graph = _graph({"A": 16, "B": 16}, [("A", "B", {"dependency_type": "start_to_start"})])
    report = compute_critical_path(graph)

    assert report.critical_path == ["A", "B"]
    assert report.critical_path_duration_hours == pytest.approx(16.0)
    assert report.project_duration_hours == pytest.approx(16.0)


def test_finish_to_finish_chain_spans_the_overlap() -> None:
    graph = _graph({"A": 16, "B": 8}, [("A", "B", {"dependency_type": "finish_to_finish"})])
    report = compute_critical_path(graph)

    assert report.timings["B"].earliest_start == pytest.approx(1.0)
    assert report.critical_path == ["A", "B"]
    assert report.critical_path_duration_hours == pytest.approx(16.0)
    assert report.project_duration_hours == pytest.approx(16.0)


def test_start_to_finish_dependency() -> None:
    graph = _graph({"A": 8, "B": 16}, [("A", "B", {"dependency_type": "start_to_finish", "lag_hours": 24})])
    report = compute_critical_path(graph)

    assert report.timings["B"].earliest_start == pytest.approx(1.0)
    assert report.timings["B"].earliest_finish == pytest.approx(3.0)
    assert report.timings["A"].latest_start == pytest.approx(0.0)
    assert report.slack == {"A": pytest.approx(0.0), "B": pytest.approx(0.0)}
    assert report.critical_path == ["A", "B"]
    assert report.critical_path_duration_hours == pytest.approx(24.0)
    assert report.project_duration_hours == pytest.approx(24.0)


def test_negative_lag_overlaps_tasks() -> None:
    graph = _graph({"A": 16, "B": 8}, [("A", "B", {"lag_hours": -8})])
    report = compute_critical_path(graph)

    assert report.timings["B"].earliest_start == pytest.approx(1.0)
    assert report.slack == {"A": pytest.approx(0.0), "B": pytest.approx(0.0)}
    assert report.critical_path == ["A", "B"]
    assert report.critical_path_duration_hours == pytest.approx(16.0)
    assert report.project_duration_hours == pytest.approx(16.0)


DEPENDENCY_TYPES = ["finish_to_start", "start_to_start", "finish_to_finish", "start_to_finish"]


def _relaxed_finish(durations, edges):
    """Earliest finish by repeated constraint relaxation, in hours."""
    start = {node: 0.0 for node in durations}
    changed = True
    while changed:
        changed = False
        for pred, succ, kind, lag in edges:
            bound = {
                "finish_to_start": start[pred] + durations[pred] + lag,
                "start_to_start": start[pred] + lag,
                "finish_to_finish": start[pred] + durations[pred] + lag - durations[succ],
                "start_to_finish": start[pred] + lag - durations[succ],
            }[kind]
            if bound > start[succ] + 1e-9:
                start[succ] = bound
                changed = True
    return max((start[node] + durations[node] for node in durations), default=0.0)


@st.composite
def _typed_dags(draw):
    count = draw(st.integers(min_value=1, max_value=6))
    ids = [f"t{index}" for index in range(count)]
    durations = {task_id: draw(st.integers(min_value=0, max_value=24)) for task_id in ids}
    edges = []
    for i in range(count):
        for j in range(i + 1, count):
            if draw(st.booleans()):
                kind = draw(st.sampled_from(DEPENDENCY_TYPES))
                edges.append((ids[i], ids[j], kind, draw(st.integers(min_value=-6, max_value=6))))
    return durations, edges


@settings(max_examples=75, deadline=None)
@given(_typed_dags())
def test_mixed_dependency_types_stay_within_the_project_span(dag) -> None:
    durations, edges = dag
    graph = _graph(
        durations,
        [(p, s, {"dependency_type": kind, "lag_hours": lag}) for p, s, kind, lag in edges],
    )
    report = compute_critical_path(graph)

    assert report.project_duration_hours == pytest.approx(_relaxed_finish(durations, edges), abs=1e-6)
    assert report.critical_path_duration_hours <= report.project_duration_hours + 1e-6

    chain = report.critical_path
    first, last = report.timings[chain[0]], report.timings[chain[-1]]
    span = (last.earliest_finish - first.earliest_start) * report.hours_per_day
    assert report.critical_path_duration_hours == pytest.approx(span, abs=1e-6)
    assert all(slack >= -1e-6 for slack in report.slack.values())
