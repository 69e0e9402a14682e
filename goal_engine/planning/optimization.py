"""Schedule optimization suggestions and headline metrics."""

from typing import Iterable, List, Mapping, Optional, Sequence

from ..models.capacity import ResourceConflict, SkillConflict
from ..models.report import CriticalPathReport, OptimizationSuggestion, ParallelTrack, ScheduleMetrics
from ..models.task import Task

PARALLELIZE = "PARALLELIZE"
SPLIT_TASK = "SPLIT_TASK"
ADD_RESOURCES = "ADD_RESOURCES"
LEVEL_RESOURCES = "LEVEL_RESOURCES"

ADD_RESOURCES_SAVINGS = 0.5  # share of the overlap another person absorbs


def suggest_optimizations(
    tasks: Iterable[Task],
    durations: Mapping[str, Optional[float]],
    tracks: Sequence[ParallelTrack],
    conflicts: Sequence[ResourceConflict],
    skill_conflicts: Sequence[SkillConflict],
    split_task_hours: float = 6.0,
) -> List[OptimizationSuggestion]:
    """Derive actionable suggestions, most urgent first."""
    suggestions = []

    for track in tracks:
        if len(track.task_ids) > 1 and track.parallelizable_hours > 0:
            suggestions.append(OptimizationSuggestion(
                kind=PARALLELIZE,
                description=f"Execute {len(track.task_ids)} tasks of {track.track_id} in parallel to save time",
                task_ids=track.task_ids,
                estimated_savings_hours=track.parallelizable_hours,
                effort="MEDIUM",
                priority=2,
            ))

    for task in sorted(tasks, key=lambda t: t.task_id):
        hours = durations.get(task.task_id)
        if task.is_closed or hours is None or hours <= split_task_hours:
            continue
        suggestions.append(OptimizationSuggestion(
            kind=SPLIT_TASK,
            description=f'Split "{task.title or task.task_id}" into smaller, more manageable tasks',
            task_ids=(task.task_id,),
            estimated_savings_hours=0.0,
            effort="LOW",
            priority=3,
        ))

    for conflict in skill_conflicts:
        if conflict.severity == "HIGH":
            suggestions.append(OptimizationSuggestion(
                kind=ADD_RESOURCES,
                description=f"Add additional {conflict.skill} resources to resolve conflicts",
                task_ids=conflict.task_ids,
                estimated_savings_hours=conflict.overlap_hours * ADD_RESOURCES_SAVINGS,
                effort="HIGH",
                priority=1,
            ))

    for conflict in conflicts:
        if conflict.kind != "overallocation":
            continue
        suggestions.append(OptimizationSuggestion(
            kind=LEVEL_RESOURCES,
            description=(
                f"Move {conflict.overallocated_hours:.1f}h of work for {conflict.person_id} "
                f"out of {conflict.week}"
            ),
            task_ids=conflict.task_ids,
            estimated_savings_hours=0.0,
            effort="MEDIUM",
            priority=1,
        ))

    return sorted(suggestions, key=lambda s: (s.priority, s.kind, s.task_ids))


def schedule_metrics(
    report: CriticalPathReport,
    tracks: Sequence[ParallelTrack],
    buffer_percentage: float = 20,
) -> ScheduleMetrics:
    """Summarize how much of the work is sequential versus parallelizable."""
    sequential = report.critical_path_duration_hours
    return ScheduleMetrics(
        total_tasks=len(report.timings),
        critical_tasks=len(report.critical_tasks),
        parallelizable_hours=sum(track.parallelizable_hours for track in tracks),
        sequential_hours=sequential,
        buffer_hours=sequential * buffer_percentage / 100,
    )
