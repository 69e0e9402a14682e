"""Critical path analysis over a validated task graph."""

from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional, Tuple

from ..models.capacity import ScheduleWindow
from ..models.report import CriticalPathReport, TaskTiming
from ..models.task import DependencyType
from .errors import InvalidInput
from .graph import TaskGraph

EPSILON = 1e-6


def compute_critical_path(
    graph: TaskGraph,
    durations: Optional[Mapping[str, Optional[float]]] = None,
    project_start: float = 0.0,
    deadline: Optional[float] = None,
    hours_per_day: float = 8.0,
) -> CriticalPathReport:
    """Run the forward and backward passes and extract the critical path.

    ``durations`` maps task ids to hours (normally the fused estimate); tasks
    missing from it, or mapped to ``None``, fall back to the task's own
    ``estimated_hours``. Unset durations count as zero and are reported in
    ``unestimated``. ``project_start`` and ``deadline`` are day offsets.
    """
    if hours_per_day <= 0:
        raise InvalidInput("hours_per_day must be positive", field='hours_per_day')

    hours, unestimated = _resolve_durations(graph, durations)
    days = {task_id: value / hours_per_day for task_id, value in hours.items()}
    order = graph.topological_order()

    # Forward pass
    es: Dict[str, float] = {}
    ef: Dict[str, float] = {}
    for task_id in order:
        start = project_start
        for edge in graph.incoming(task_id):
            start = max(start, _forward_bound(edge, es, ef, days[task_id], hours_per_day))
        es[task_id] = start
        ef[task_id] = start + days[task_id]

    finish = max(ef.values(), default=project_start)
    anchor = finish if deadline is None else deadline

    # Backward pass
    ls: Dict[str, float] = {}
    lf: Dict[str, float] = {}
    for task_id in reversed(order):
        latest = anchor
        for edge in graph.outgoing(task_id):
            latest = min(latest, _backward_bound(edge, ls, lf, days[task_id], hours_per_day))
        lf[task_id] = latest
        ls[task_id] = latest - days[task_id]

    slack_days = {task_id: ls[task_id] - es[task_id] for task_id in order}
    min_slack = min(slack_days.values(), default=0.0)
    critical = {task_id for task_id, value in slack_days.items() if value <= min_slack + EPSILON}

    timings = {
        task_id: TaskTiming(
            task_id=task_id,
            duration_hours=hours[task_id],
            earliest_start=es[task_id],
            earliest_finish=ef[task_id],
            latest_start=ls[task_id],
            latest_finish=lf[task_id],
            slack_hours=slack_days[task_id] * hours_per_day,
            is_critical=task_id in critical,
        )
        for task_id in order
    }

    chain, chain_days = _heaviest_chain(graph, order, critical, es, ef, days, hours_per_day)
    violates = deadline is not None and deadline < finish - EPSILON

    return CriticalPathReport(
        critical_path=chain,
        slack={task_id: slack_days[task_id] * hours_per_day for task_id in sorted(slack_days)},
        violates_deadline=violates,
        unestimated=unestimated,
        timings=timings,
        project_start=project_start,
        project_finish=finish,
        project_duration_hours=(finish - project_start) * hours_per_day,
        critical_path_duration_hours=chain_days * hours_per_day,
        hours_per_day=hours_per_day,
        deadline=deadline,
        deadline_overrun_hours=(finish - deadline) * hours_per_day if violates else 0.0,
    )


def build_schedule(report: CriticalPathReport, start: datetime) -> Dict[str, ScheduleWindow]:
    """Map ES/EF day offsets onto calendar windows starting at ``start``."""
    return {
        task_id: ScheduleWindow(
            start=start + timedelta(days=timing.earliest_start),
            end=start + timedelta(days=timing.earliest_finish),
        )
        for task_id, timing in sorted(report.timings.items())
    }


def _resolve_durations(
    graph: TaskGraph,
    durations: Optional[Mapping[str, Optional[float]]],
) -> Tuple[Dict[str, float], List[str]]:
    """Pick a duration in hours for every task, flagging unset ones."""
    durations = durations or {}
    for task_id in durations:
        if task_id not in graph:
            raise InvalidInput(f"Duration given for unknown task {task_id}", field='durations')

    resolved: Dict[str, float] = {}
    unestimated: List[str] = []
    for task_id in graph.task_ids:
        value = durations.get(task_id)
        if value is None:
            value = graph.task(task_id).estimated_hours
        if value is None:
            unestimated.append(task_id)
            value = 0.0
        elif value < 0:
            raise InvalidInput(f"Negative duration for task {task_id}", field='durations')
        resolved[task_id] = float(value)
    return resolved, unestimated


def _forward_bound(edge, es, ef, duration: float, hours_per_day: float) -> float:
    """Lower bound on the successor's ES imposed by one edge."""
    lag = edge.lag_hours / hours_per_day
    pred = edge.predecessor_id
    if edge.dependency_type == DependencyType.FINISH_TO_START:
        return ef[pred] + lag
    if edge.dependency_type == DependencyType.START_TO_START:
        return es[pred] + lag
    if edge.dependency_type == DependencyType.FINISH_TO_FINISH:
        return ef[pred] + lag - duration
    return es[pred] + lag - duration


def _backward_bound(edge, ls, lf, duration: float, hours_per_day: float) -> float:
    """Upper bound on the predecessor's LF imposed by one edge."""
    lag = edge.lag_hours / hours_per_day
    succ = edge.successor_id
    if edge.dependency_type == DependencyType.FINISH_TO_START:
        return ls[succ] - lag
    if edge.dependency_type == DependencyType.START_TO_START:
        return ls[succ] - lag + duration
    if edge.dependency_type == DependencyType.FINISH_TO_FINISH:
        return lf[succ] - lag
    return lf[succ] - lag + duration


def _heaviest_chain(graph, order, critical, es, ef, days, hours_per_day) -> Tuple[List[str], float]:
    """Heaviest chain of critical tasks linked by binding edges.

    A chain's weight is the span from the start of its first task to the
    finish of its last. Chains are ranked by weight, then by task count,
    then by the lexicographically smallest id sequence.
    """
    best: Dict[str, Tuple[float, List[str]]] = {}
    for task_id in order:
        if task_id not in critical:
            continue
        candidate = (days[task_id], [task_id])
        for edge in graph.incoming(task_id):
            pred = edge.predecessor_id
            if pred not in best:
                continue
            bound = _forward_bound(edge, es, ef, days[task_id], hours_per_day)
            if abs(bound - es[task_id]) > EPSILON:
                continue
            weight = best[pred][0] + link_span(edge, edge.lag_hours / hours_per_day, days[pred], days[task_id])
            extended = (weight, best[pred][1] + [task_id])
            if outranks(extended, candidate):
                candidate = extended
        best[task_id] = candidate

    chain: Tuple[float, List[str]] = (0.0, [])
    for task_id in sorted(best):
        if not chain[1] or outranks(best[task_id], chain):
            chain = best[task_id]
    return chain[1], chain[0]


def link_span(edge, lag: float, pred_duration: float, succ_duration: float) -> float:
    """How far a tight edge moves the chain finish past the predecessor's finish.

    ``lag`` and both durations share one unit; the result may be negative
    when the successor ends before the predecessor.
    """
    if edge.dependency_type == DependencyType.FINISH_TO_START:
        return lag + succ_duration
    if edge.dependency_type == DependencyType.START_TO_START:
        return lag + succ_duration - pred_duration
    if edge.dependency_type == DependencyType.FINISH_TO_FINISH:
        return lag
    return lag - pred_duration


def outranks(left: Tuple[float, List[str]], right: Tuple[float, List[str]]) -> bool:
    """Whether chain ``left`` outranks chain ``right``."""
    if abs(left[0] - right[0]) > EPSILON:
        return left[0] > right[0]
    if len(left[1]) != len(right[1]):
        return len(left[1]) > len(right[1])
    return left[1] < right[1]
