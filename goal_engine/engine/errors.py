"""Structured planning errors."""

from typing import Any, Dict, List, Optional, Sequence


class PlanningError(ValueError):
    """Base class for recoverable planning errors.

    Every error carries a stable ``code`` so callers can branch on the cause
    and ``to_dict()`` for returning the error as plain data.
    """

    code = "PLANNING_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON export."""
        return {'error': self.code, 'message': self.message, **self.details}


class InvalidInput(PlanningError):
    """A record is malformed and cannot be typed."""

    code = "INVALID_INPUT"


class CycleDetected(PlanningError):
    """The dependency (or parent) relation contains a cycle."""

    code = "CYCLE_DETECTED"

    def __init__(self, cycle: Sequence[str], relation: str = "dependency"):
        self.cycle: List[str] = list(cycle)
        path = " -> ".join(self.cycle)
        super().__init__(
            f"Circular {relation} detected: {path}",
            cycle=self.cycle,
            relation=relation,
        )


class UnknownTaskReference(PlanningError):
    """A record references a task id that is not part of the snapshot."""

    code = "UNKNOWN_TASK_REFERENCE"

    def __init__(self, task_id: str, referenced_by: Optional[str] = None):
        self.task_id = task_id
        self.referenced_by = referenced_by
        where = f" (referenced by {referenced_by})" if referenced_by else ""
        super().__init__(
            f"Unknown task id: {task_id}{where}",
            task_id=task_id,
            referenced_by=referenced_by,
        )


class DuplicateDependency(PlanningError):
    """The same ordered (predecessor, successor) pair appears twice."""

    code = "DUPLICATE_DEPENDENCY"

    def __init__(self, predecessor_id: str, successor_id: str):
        self.predecessor_id = predecessor_id
        self.successor_id = successor_id
        super().__init__(
            f"Duplicate dependency {predecessor_id} -> {successor_id}",
            predecessor_id=predecessor_id,
            successor_id=successor_id,
        )


class InsufficientEstimates(PlanningError):
    """Fusion was asked to combine zero estimates."""

    code = "INSUFFICIENT_ESTIMATES"

    def __init__(self, task_id: Optional[str] = None):
        self.task_id = task_id
        target = f" for task {task_id}" if task_id else ""
        super().__init__(
            f"At least one estimate is required{target}",
            task_id=task_id,
        )


class InvalidConfidence(PlanningError):
    """A confidence score lies outside [0, 1]."""

    code = "INVALID_CONFIDENCE"

    def __init__(self, value: float, task_id: Optional[str] = None):
        self.value = value
        super().__init__(
            f"Confidence must be within [0, 1], got {value}",
            value=value,
            task_id=task_id,
        )


class EmptyAllocationWindow(PlanningError):
    """A schedule window has no time the assignee is willing to work."""

    code = "EMPTY_ALLOCATION_WINDOW"

    def __init__(self, task_id: str, person_id: str):
        super().__init__(
            f"No allocatable time for task {task_id} in the window of {person_id}",
            task_id=task_id,
            person_id=person_id,
        )
