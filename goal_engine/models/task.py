"""Task and dependency data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Type, TypeVar

from ..engine.errors import InvalidInput

E = TypeVar('E', bound=Enum)


class TaskStatus(str, Enum):
    """Lifecycle state of a task."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    """Relative importance of a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Complexity(str, Enum):
    """Coarse complexity class used by the history-driven estimators."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class DependencyType(str, Enum):
    """How the predecessor constrains the successor."""

    FINISH_TO_START = "finish_to_start"
    START_TO_START = "start_to_start"
    FINISH_TO_FINISH = "finish_to_finish"
    START_TO_FINISH = "start_to_finish"


def coerce_enum(enum_cls: Type[E], value, field_name: str) -> E:
    """Accept an enum member or its (case-insensitive) value."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower().replace('-', '_').replace(' ', '_')
        for member in enum_cls:
            if member.value == normalized:
                return member
    raise InvalidInput(f"Invalid {field_name}: {value!r}", field=field_name, value=str(value))


def require_id(value, field_name: str) -> str:
    """Validate a required identifier."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"Missing required identifier: {field_name}", field=field_name)
    return value


def optional_hours(value, field_name: str) -> Optional[float]:
    """Validate an optional non-negative hour count."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{field_name} must be a number", field=field_name)
    if value < 0:
        raise InvalidInput(f"{field_name} must not be negative", field=field_name)
    return float(value)


@dataclass(frozen=True)
class Task:
    """A unit of work inside a milestone."""

    task_id: str
    title: str = ""
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: TaskPriority = TaskPriority.MEDIUM
    complexity: Complexity = Complexity.MODERATE
    parent_id: Optional[str] = None
    milestone_id: Optional[str] = None
    assignee_id: Optional[str] = None
    skills: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate and normalize fields."""
        require_id(self.task_id, 'task_id')
        if self.parent_id is not None:
            require_id(self.parent_id, 'parent_id')
        object.__setattr__(self, 'estimated_hours', optional_hours(self.estimated_hours, 'estimated_hours'))
        object.__setattr__(self, 'actual_hours', optional_hours(self.actual_hours, 'actual_hours'))
        object.__setattr__(self, 'status', coerce_enum(TaskStatus, self.status, 'status'))
        object.__setattr__(self, 'priority', coerce_enum(TaskPriority, self.priority, 'priority'))
        object.__setattr__(self, 'complexity', coerce_enum(Complexity, self.complexity, 'complexity'))
        object.__setattr__(self, 'skills', tuple(sorted(set(self.skills))))

    @property
    def is_completed(self) -> bool:
        """Whether the task finished with recorded actual hours."""
        return self.status == TaskStatus.COMPLETED and self.actual_hours is not None

    @property
    def is_closed(self) -> bool:
        """Whether no work remains (completed or cancelled)."""
        return self.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


@dataclass(frozen=True)
class TaskDependency:
    """Typed dependency edge ``predecessor -> successor``."""

    predecessor_id: str
    successor_id: str
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_hours: float = 0.0
    is_hard: bool = True

    def __post_init__(self):
        """Validate and normalize fields."""
        require_id(self.predecessor_id, 'predecessor_id')
        require_id(self.successor_id, 'successor_id')
        object.__setattr__(
            self,
            'dependency_type',
            coerce_enum(DependencyType, self.dependency_type, 'dependency_type'),
        )
        if isinstance(self.lag_hours, bool) or not isinstance(self.lag_hours, (int, float)):
            raise InvalidInput("lag_hours must be a number", field='lag_hours')
        object.__setattr__(self, 'lag_hours', float(self.lag_hours))

    @property
    def key(self) -> Tuple[str, str]:
        """Ordered pair identifying the edge."""
        return (self.predecessor_id, self.successor_id)
