"""Resource and skill conflict detection."""

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..models.capacity import ResourceConflict, ScheduleWindow, SkillConflict, TeamCapacity, WeekendPreference
from ..models.task import Task
from ..utils.datetime_utils import is_weekend, iso_week_label, split_by_day, week_start
from .errors import InvalidInput, UnknownTaskReference

EPSILON = 1e-9
OVERALLOCATION = "overallocation"
WEEKEND = "weekend"


def detect_resource_conflicts(
    schedule: Mapping[str, ScheduleWindow],
    assignments: Mapping[str, str],
    capacities: Mapping[str, TeamCapacity],
    task_hours: Mapping[str, Optional[float]],
) -> List[ResourceConflict]:
    """Flag weeks in which a person is booked beyond capacity.

    Each assigned task's hours are pro-rated over the ISO weeks its window
    intersects, by the share of elapsed window time falling in each week.
    Weekend time is also flagged for people who do not work weekends.
    Detection only: nothing is re-levelled.
    """
    load: Dict[Tuple[str, date], float] = {}
    weekend_load: Dict[Tuple[str, date], float] = {}
    members: Dict[Tuple[str, date], Set[str]] = {}
    weekend_members: Dict[Tuple[str, date], Set[str]] = {}

    for task_id in sorted(assignments):
        person_id = assignments[task_id]
        if task_id not in schedule:
            raise UnknownTaskReference(task_id, referenced_by='assignments')
        if person_id not in capacities:
            raise InvalidInput(f"No capacity profile for {person_id}", field='capacities', person_id=person_id)
        hours = task_hours.get(task_id) or 0.0
        avoid_weekends = capacities[person_id].weekend_preference == WeekendPreference.NONE

        for day, share in _day_shares(schedule[task_id]):
            key = (person_id, week_start(day))
            load[key] = load.get(key, 0.0) + hours * share
            members.setdefault(key, set()).add(task_id)
            if avoid_weekends and is_weekend(day) and hours * share > EPSILON:
                weekend_load[key] = weekend_load.get(key, 0.0) + hours * share
                weekend_members.setdefault(key, set()).add(task_id)

    conflicts: List[ResourceConflict] = []
    for key in sorted(set(load) | set(weekend_load)):
        person_id, monday = key
        available = capacities[person_id].available_hours_per_week
        allocated = load.get(key, 0.0)

        if allocated > available + EPSILON:
            conflicts.append(ResourceConflict(
                person_id=person_id,
                week=iso_week_label(monday),
                week_start=monday,
                kind=OVERALLOCATION,
                overallocated_hours=allocated - available,
                allocated_hours=allocated,
                available_hours=available,
                task_ids=tuple(sorted(members[key])),
            ))

        if key in weekend_load:
            conflicts.append(ResourceConflict(
                person_id=person_id,
                week=iso_week_label(monday),
                week_start=monday,
                kind=WEEKEND,
                overallocated_hours=weekend_load[key],
                allocated_hours=allocated,
                available_hours=available,
                task_ids=tuple(sorted(weekend_members[key])),
            ))

    return conflicts


def detect_skill_conflicts(
    schedule: Mapping[str, ScheduleWindow],
    tasks: Iterable[Task],
    medium_hours: float = 8,
    high_hours: float = 16,
) -> List[SkillConflict]:
    """Find overlapping tasks that need the same skill at the same time."""
    by_skill: Dict[str, List[Task]] = {}
    for task in sorted(tasks, key=lambda t: t.task_id):
        if task.task_id not in schedule:
            continue
        for skill in task.skills:
            by_skill.setdefault(skill, []).append(task)

    conflicts: List[SkillConflict] = []
    for skill in sorted(by_skill):
        users = by_skill[skill]
        involved: Set[str] = set()
        total_overlap = 0.0
        for i, first in enumerate(users):
            for second in users[i + 1:]:
                overlap = _overlap_hours(schedule[first.task_id], schedule[second.task_id])
                if overlap > EPSILON:
                    involved.update((first.task_id, second.task_id))
                    total_overlap += overlap

        if not involved:
            continue

        if total_overlap > high_hours:
            severity = "HIGH"
        elif total_overlap > medium_hours:
            severity = "MEDIUM"
        else:
            severity = "LOW"

        conflicts.append(SkillConflict(
            skill=skill,
            task_ids=tuple(sorted(involved)),
            overlap_hours=total_overlap,
            severity=severity,
            suggestions=(
                f"Add another {skill} resource to handle the parallel work",
                f"Sequence tasks requiring {skill} to avoid overlap",
            ),
        ))

    return conflicts


def _day_shares(window: ScheduleWindow) -> List[Tuple[date, float]]:
    """Fraction of the window's elapsed time falling on each calendar day."""
    total = window.hours
    if total <= 0:
        return [(window.start.date(), 1.0)]
    return [(day, hours / total) for day, hours in split_by_day(window.start, window.end)]


def _overlap_hours(first: ScheduleWindow, second: ScheduleWindow) -> float:
    """Length of the intersection of two windows in hours."""
    start = max(first.start, second.start)
    end = min(first.end, second.end)
    if end <= start:
        return 0.0
    return (end - start).total_seconds() / 3600
