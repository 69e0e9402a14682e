"""Weekly capacity allocation."""

from datetime import date
from typing import Dict, Iterable, List, Mapping, Set

from ..models.capacity import CapacityAllocation, ScheduleWindow, TeamCapacity, WeekendPreference, WeeklyUtilization
from ..utils.datetime_utils import is_weekend, split_by_day, week_start
from .errors import EmptyAllocationWindow, InvalidInput

WEEKEND_FACTORS = {
    WeekendPreference.NONE: 0.0,
    WeekendPreference.LIGHT: 0.5,
    WeekendPreference.FULL: 1.0,
}


def allocate_capacity(
    task_id: str,
    hours: float,
    window: ScheduleWindow,
    capacity: TeamCapacity,
    existing_allocations: Iterable[CapacityAllocation] = (),
) -> List[CapacityAllocation]:
    """Spread a task's hours over the ISO weeks of its window.

    Hours are spread evenly over the window's days, weighted by how much of
    each day the window covers. Weekend days count fully, half, or not at
    all depending on the weekend preference, so skipped weekend hours land
    on the weekdays of the same window. Utilization is computed against the
    person's total load that week, which is why the person's full existing
    allocation set must be passed in.
    """
    if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours < 0:
        raise InvalidInput("hours must be a non-negative number", field='hours', task_id=task_id)
    if hours == 0:
        return []

    weekend_factor = WEEKEND_FACTORS[capacity.weekend_preference]
    weights = _day_weights(window, weekend_factor)
    total_weight = sum(weights.values())
    if total_weight <= 0:
        raise EmptyAllocationWindow(task_id, capacity.person_id)

    weekly: Dict[date, float] = {}
    for day in sorted(weights):
        monday = week_start(day)
        weekly[monday] = weekly.get(monday, 0.0) + hours * weights[day] / total_weight

    committed = _committed_hours(existing_allocations, capacity.person_id, exclude_task=task_id)
    available = capacity.available_hours_per_week

    return [
        CapacityAllocation(
            person_id=capacity.person_id,
            task_id=task_id,
            week_start=monday,
            allocated_hours=allocated,
            utilization_rate=(committed.get(monday, 0.0) + allocated) / available,
        )
        for monday, allocated in sorted(weekly.items())
        if allocated > 0
    ]


def summarize_utilization(
    allocations: Iterable[CapacityAllocation],
    capacities: Mapping[str, TeamCapacity],
) -> List[WeeklyUtilization]:
    """Aggregate allocations into one utilization row per person and week."""
    totals: Dict[tuple, float] = {}
    tasks: Dict[tuple, Set[str]] = {}
    for allocation in allocations:
        key = (allocation.person_id, allocation.week_start)
        totals[key] = totals.get(key, 0.0) + allocation.allocated_hours
        tasks.setdefault(key, set()).add(allocation.task_id)

    rows = []
    for key in sorted(totals):
        person_id, monday = key
        if person_id not in capacities:
            raise InvalidInput(f"No capacity profile for {person_id}", field='capacities', person_id=person_id)
        available = capacities[person_id].available_hours_per_week
        rows.append(WeeklyUtilization(
            person_id=person_id,
            week_start=monday,
            allocated_hours=totals[key],
            available_hours=available,
            utilization_rate=totals[key] / available,
            task_ids=tuple(sorted(tasks[key])),
        ))
    return rows


def _day_weights(window: ScheduleWindow, weekend_factor: float) -> Dict[date, float]:
    """Share of a working day each calendar day of the window represents."""
    if window.hours <= 0:
        day = window.start.date()
        return {day: weekend_factor if is_weekend(day) else 1.0}

    weights: Dict[date, float] = {}
    for day, covered in split_by_day(window.start, window.end):
        factor = weekend_factor if is_weekend(day) else 1.0
        weights[day] = weights.get(day, 0.0) + factor * covered / 24
    return weights


def _committed_hours(
    allocations: Iterable[CapacityAllocation],
    person_id: str,
    exclude_task: str,
) -> Dict[date, float]:
    """Hours the person already has booked per week on other tasks."""
    committed: Dict[date, float] = {}
    for allocation in allocations:
        if allocation.person_id != person_id or allocation.task_id == exclude_task:
            continue
        committed[allocation.week_start] = committed.get(allocation.week_start, 0.0) + allocation.allocated_hours
    return committed
