"""Detection of independently schedulable non-critical tracks."""

from dataclasses import replace
from typing import Dict, List, Set, Tuple

from ..models.report import CriticalPathReport, ParallelTrack
from .critical_path import link_span, outranks
from .graph import TaskGraph


class _DisjointSet:
    """Union-find keeping the smallest id as representative."""

    def __init__(self, items):
        self.parent = {item: item for item in items}

    def find(self, item):
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, left, right):
        a, b = self.find(left), self.find(right)
        if a != b:
            low, high = sorted((a, b))
            self.parent[high] = low


def detect_parallel_tracks(graph: TaskGraph, report: CriticalPathReport) -> List[ParallelTrack]:
    """Partition non-critical tasks into tracks that can run independently.

    Tracks start as weakly connected components of the subgraph restricted
    to non-critical tasks. Two components are merged whenever one reaches
    the other through the full graph, so the remaining tracks have no
    transitive dependency on each other. Tracks are ordered by finish time,
    latest first.
    """
    non_critical = [task_id for task_id in graph.task_ids if not report.is_critical(task_id)]
    members = set(non_critical)

    components = _DisjointSet(non_critical)
    for edge in graph.dependencies:
        if edge.predecessor_id in members and edge.successor_id in members:
            components.union(edge.predecessor_id, edge.successor_id)

    groups = _groups(components, non_critical)
    downstream = {
        root: set().union(*(graph.reachable_from(task_id) for task_id in tasks))
        for root, tasks in groups.items()
    }

    merged = _DisjointSet(sorted(groups))
    roots = sorted(groups)
    for i, left in enumerate(roots):
        for right in roots[i + 1:]:
            if downstream[left] & set(groups[right]) or downstream[right] & set(groups[left]):
                merged.union(left, right)

    tracks: Dict[str, List[str]] = {}
    for root in roots:
        tracks.setdefault(merged.find(root), []).extend(groups[root])

    built = [_build_track(graph, report, sorted(tasks)) for tasks in tracks.values()]
    built.sort(key=lambda track: (-track.finish, track.task_ids[0]))

    return [replace(track, track_id=f"track-{index}") for index, track in enumerate(built, start=1)]


def _groups(components: _DisjointSet, items: List[str]) -> Dict[str, List[str]]:
    """Collect members per representative."""
    groups: Dict[str, List[str]] = {}
    for item in items:
        groups.setdefault(components.find(item), []).append(item)
    return groups


def _build_track(graph: TaskGraph, report: CriticalPathReport, task_ids: List[str]) -> ParallelTrack:
    """Summarize one track and find its internal chain."""
    timings = [report.timings[task_id] for task_id in task_ids]
    chain, chain_hours = _internal_chain(graph, report, set(task_ids))
    skills: Set[str] = set()
    for task_id in task_ids:
        skills.update(graph.task(task_id).skills)

    return ParallelTrack(
        track_id="",
        task_ids=tuple(task_ids),
        critical_path=tuple(chain),
        total_slack_hours=min(timing.slack_hours for timing in timings),
        start=min(timing.earliest_start for timing in timings),
        finish=max(timing.earliest_finish for timing in timings),
        total_hours=sum(timing.duration_hours for timing in timings),
        chain_hours=chain_hours,
        skills=tuple(sorted(skills)),
    )


def _internal_chain(graph: TaskGraph, report: CriticalPathReport, members: Set[str]) -> Tuple[List[str], float]:
    """Longest chain inside a track, measured from first start to last finish in hours."""
    best: Dict[str, Tuple[float, List[str]]] = {}
    for task_id in graph.topological_order():
        if task_id not in members:
            continue
        duration = report.timings[task_id].duration_hours
        candidate = (duration, [task_id])
        for edge in graph.incoming(task_id):
            if edge.predecessor_id not in best:
                continue
            weight, path = best[edge.predecessor_id]
            pred_duration = report.timings[edge.predecessor_id].duration_hours
            span = link_span(edge, edge.lag_hours, pred_duration, duration)
            extended = (weight + span, path + [task_id])
            if outranks(extended, candidate):
                candidate = extended
        best[task_id] = candidate

    chain: Tuple[float, List[str]] = (0.0, [])
    for task_id in sorted(best):
        if not chain[1] or outranks(best[task_id], chain):
            chain = best[task_id]
    return chain[1], chain[0]

