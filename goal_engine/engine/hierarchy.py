"""Parent/child task hierarchy and work breakdown metrics.

The hierarchy is indexed separately from the dependency graph: a parent link
says a task is broken down into subtasks, never that one must precede the
other.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from ..models.task import Task
from .errors import CycleDetected, InvalidInput, UnknownTaskReference
from .graph import find_cycle


@dataclass(frozen=True)
class HierarchyMetrics:
    """Work breakdown summary for a milestone."""

    total_tasks: int
    leaf_tasks: int
    max_depth: int
    total_hours: float
    average_task_hours: float
    complexity_distribution: Dict[str, int] = field(default_factory=dict)
    skills_required: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary for JSON export."""
        return {
            'total_tasks': self.total_tasks,
            'leaf_tasks': self.leaf_tasks,
            'max_depth': self.max_depth,
            'total_hours': round(self.total_hours, 6),
            'average_task_hours': round(self.average_task_hours, 6),
            'complexity_distribution': dict(sorted(self.complexity_distribution.items())),
            'skills_required': list(self.skills_required),
        }


class TaskHierarchy:
    """Id-keyed parent and children index over a milestone's tasks."""

    def __init__(self, tasks: Dict[str, Task], children: Dict[str, List[str]]):
        self._tasks = tasks
        self._children = children

    @property
    def roots(self) -> List[str]:
        """Tasks without a parent, sorted by id."""
        return sorted(tid for tid, task in self._tasks.items() if task.parent_id is None)

    @property
    def leaves(self) -> List[str]:
        """Tasks without subtasks, sorted by id."""
        return sorted(tid for tid in self._tasks if not self._children[tid])

    def parent(self, task_id: str):
        return self._tasks[task_id].parent_id

    def children(self, task_id: str) -> List[str]:
        return list(self._children[task_id])

    def depth(self, task_id: str) -> int:
        """Depth of a task, counting roots as depth 1."""
        depth = 1
        parent_id = self._tasks[task_id].parent_id
        while parent_id is not None:
            depth += 1
            parent_id = self._tasks[parent_id].parent_id
        return depth

    def rollup_hours(self, task_id: str) -> float:
        """Hours of a task: its own estimate for a leaf, else the sum over its subtasks."""
        total = 0.0
        stack = [task_id]
        while stack:
            current = stack.pop()
            kids = self._children[current]
            if kids:
                stack.extend(kids)
            else:
                total += self._tasks[current].estimated_hours or 0.0
        return total

    def metrics(self) -> HierarchyMetrics:
        """Compute work breakdown metrics over the leaf tasks."""
        leaves = self.leaves
        total_hours = sum(self._tasks[tid].estimated_hours or 0.0 for tid in leaves)

        distribution: Dict[str, int] = {}
        skills = set()
        for task in self._tasks.values():
            distribution[task.complexity.value] = distribution.get(task.complexity.value, 0) + 1
            skills.update(task.skills)

        return HierarchyMetrics(
            total_tasks=len(self._tasks),
            leaf_tasks=len(leaves),
            max_depth=max((self.depth(tid) for tid in self._tasks), default=0),
            total_hours=total_hours,
            average_task_hours=total_hours / len(leaves) if leaves else 0.0,
            complexity_distribution=distribution,
            skills_required=tuple(sorted(skills)),
        )


def build_hierarchy(tasks: Iterable[Task]) -> TaskHierarchy:
    """Index parent links, rejecting unknown parents and parent cycles."""
    task_index: Dict[str, Task] = {}
    for task in tasks:
        if task.task_id in task_index:
            raise InvalidInput(f"Duplicate task id: {task.task_id}", field='task_id', task_id=task.task_id)
        task_index[task.task_id] = task

    children: Dict[str, List[str]] = {task_id: [] for task_id in task_index}
    for task_id in sorted(task_index):
        parent_id = task_index[task_id].parent_id
        if parent_id is None:
            continue
        if parent_id not in task_index:
            raise UnknownTaskReference(parent_id, referenced_by=task_id)
        if parent_id == task_id:
            raise CycleDetected([task_id, task_id], relation="parent")
        children[parent_id].append(task_id)

    cycle = find_cycle(children)
    if cycle:
        raise CycleDetected(cycle, relation="parent")

    return TaskHierarchy(task_index, children)
