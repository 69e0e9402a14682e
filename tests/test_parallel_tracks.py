"""Unit tests for engine.parallel_tracks."""

import pytest

from goal_engine.engine.critical_path import compute_critical_path
from goal_engine.engine.graph import build_graph
from goal_engine.engine.parallel_tracks import detect_parallel_tracks
from goal_engine.models.task import Task, TaskDependency


def _analyze(hours, edges, skills=None):
    skills = skills or {}
    tasks = [
        Task(task_id=task_id, estimated_hours=value, skills=skills.get(task_id, ()))
        for task_id, value in hours.items()
    ]
    graph = build_graph(tasks, [TaskDependency(predecessor_id=p, successor_id=s) for p, s in edges])
    return graph, compute_critical_path(graph)


def test_independent_side_chains_form_separate_tracks() -> None:
    graph, report = _analyze(
        {"A": 16, "Z": 8, "B": 4, "C": 4, "E": 4, "F": 2},
        [("A", "Z"), ("B", "C"), ("E", "F")],
        skills={"B": ("design",), "C": ("frontend",)},
    )
    tracks = detect_parallel_tracks(graph, report)

    assert [track.track_id for track in tracks] == ["track-1", "track-2"]
    assert tracks[0].task_ids == ("B", "C")
    assert tracks[0].critical_path == ("B", "C")
    assert tracks[0].total_slack_hours == pytest.approx(16.0)
    assert tracks[0].chain_hours == pytest.approx(8.0)
    assert tracks[0].parallelizable_hours == 0.0
    assert tracks[0].skills == ("design", "frontend")
    assert tracks[1].task_ids == ("E", "F")
    assert tracks[1].total_slack_hours == pytest.approx(18.0)


def test_components_linked_through_the_critical_path_are_merged() -> None:
    graph, report = _analyze(
        {"A": 16, "M": 8, "Z": 16, "X": 2, "Y": 2, "W": 4},
        [("A", "M"), ("M", "Z"), ("X", "M"), ("M", "Y")],
    )
    tracks = detect_parallel_tracks(graph, report)

    assert report.critical_path == ["A", "M", "Z"]
    assert [track.task_ids for track in tracks] == [("X", "Y"), ("W",)]
    merged = tracks[0]
    assert merged.critical_path == ("X",)
    assert merged.total_hours == pytest.approx(4.0)
    assert merged.parallelizable_hours == pytest.approx(2.0)
    assert merged.total_slack_hours == pytest.approx(14.0)
    assert merged.finish == pytest.approx(3.25)


def test_no_tracks_when_everything_is_critical() -> None:
    graph, report = _analyze({"A": 8, "B": 8}, [("A", "B")])
    assert detect_parallel_tracks(graph, report) == []


def test_tracks_serialize_deterministically() -> None:
    graph, report = _analyze({"A": 16, "B": 4, "C": 4}, [("B", "C")])
    first = [track.to_dict() for track in detect_parallel_tracks(graph, report)]
    second = [track.to_dict() for track in detect_parallel_tracks(graph, report)]

    assert first == second
    assert first[0]['task_ids'] == ["B", "C"]


def test_overlapping_track_chain_counts_the_shared_span_once() -> None:
    tasks = [Task(task_id="X", estimated_hours=40), Task(task_id="P", estimated_hours=16),
             Task(task_id="Q", estimated_hours=16)]
    graph = build_graph(tasks, [TaskDependency("P", "Q", dependency_type="start_to_start")])
    tracks = detect_parallel_tracks(graph, compute_critical_path(graph))

    assert [track.task_ids for track in tracks] == [("P", "Q")]
    assert tracks[0].critical_path == ("P", "Q")
    assert tracks[0].chain_hours == pytest.approx(16.0)
    assert tracks[0].parallelizable_hours == pytest.approx(16.0)
