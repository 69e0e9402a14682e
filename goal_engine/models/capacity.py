"""Team capacity, schedule windows and allocation models."""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Tuple

from ..engine.errors import InvalidInput
from .task import coerce_enum, require_id


class WeekendPreference(str, Enum):
    """How much weekend work a person accepts."""

    NONE = "none"
    LIGHT = "light"
    FULL = "full"


@dataclass(frozen=True)
class FocusWindow:
    """Preferred deep-work window on a weekday (0 = Monday)."""

    weekday: int
    start_hour: float
    end_hour: float

    def __post_init__(self):
        """Validate window bounds."""
        if not 0 <= self.weekday <= 6:
            raise InvalidInput("weekday must be within 0-6", field='weekday')
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise InvalidInput("focus window must satisfy 0 <= start < end <= 24", field='start_hour')

    @property
    def hours(self) -> float:
        """Length of the window in hours."""
        return self.end_hour - self.start_hour


@dataclass(frozen=True)
class TeamCapacity:
    """Weekly capacity profile for one person."""

    person_id: str
    available_hours_per_week: float
    weekend_preference: WeekendPreference = WeekendPreference.NONE
    focus_windows: Tuple[FocusWindow, ...] = field(default_factory=tuple)
    skills: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate and normalize fields."""
        require_id(self.person_id, 'person_id')
        hours = self.available_hours_per_week
        if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours <= 0:
            raise InvalidInput(
                "available_hours_per_week must be a positive number",
                field='available_hours_per_week',
            )
        object.__setattr__(self, 'available_hours_per_week', float(hours))
        object.__setattr__(
            self,
            'weekend_preference',
            coerce_enum(WeekendPreference, self.weekend_preference, 'weekend_preference'),
        )
        object.__setattr__(self, 'focus_windows', tuple(self.focus_windows))
        object.__setattr__(self, 'skills', tuple(sorted(set(self.skills))))

    @property
    def focus_hours_per_week(self) -> float:
        """Total preferred focus time across the week."""
        return sum(window.hours for window in self.focus_windows)


@dataclass(frozen=True)
class ScheduleWindow:
    """Half-open time window ``[start, end)`` in which a task runs."""

    start: datetime
    end: datetime

    def __post_init__(self):
        """Validate ordering."""
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise InvalidInput("schedule window bounds must be datetimes", field='start')
        if self.end < self.start:
            raise InvalidInput("schedule window ends before it starts", field='end')

    @property
    def hours(self) -> float:
        """Elapsed length of the window in hours."""
        return (self.end - self.start).total_seconds() / 3600


@dataclass(frozen=True)
class CapacityAllocation:
    """Hours of one task booked against one person for one ISO week."""

    person_id: str
    task_id: str
    week_start: date
    allocated_hours: float
    utilization_rate: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert allocation to dictionary for JSON export."""
        data = asdict(self)
        data['week_start'] = self.week_start.isoformat()
        return data


@dataclass(frozen=True)
class WeeklyUtilization:
    """Aggregated load of one person in one ISO week."""

    person_id: str
    week_start: date
    allocated_hours: float
    available_hours: float
    utilization_rate: float
    task_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_overallocated(self) -> bool:
        """Whether the person is booked beyond capacity."""
        return self.allocated_hours > self.available_hours + 1e-9

    def to_dict(self) -> Dict[str, Any]:
        """Convert utilization to dictionary for JSON export."""
        data = asdict(self)
        data['week_start'] = self.week_start.isoformat()
        data['task_ids'] = list(self.task_ids)
        data['is_overallocated'] = self.is_overallocated
        return data


@dataclass(frozen=True)
class ResourceConflict:
    """Overallocation or weekend violation for a person in an ISO week."""

    person_id: str
    week: str
    week_start: date
    kind: str
    overallocated_hours: float
    allocated_hours: float
    available_hours: float
    task_ids: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert conflict to dictionary for JSON export."""
        data = asdict(self)
        data['week_start'] = self.week_start.isoformat()
        data['task_ids'] = list(self.task_ids)
        return data


@dataclass(frozen=True)
class SkillConflict:
    """Overlapping tasks that compete for the same skill."""

    skill: str
    task_ids: Tuple[str, ...]
    overlap_hours: float
    severity: str
    suggestions: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert conflict to dictionary for JSON export."""
        return {
            'skill': self.skill,
            'task_ids': list(self.task_ids),
            'overlap_hours': self.overlap_hours,
            'severity': self.severity,
            'suggestions': list(self.suggestions),
        }
