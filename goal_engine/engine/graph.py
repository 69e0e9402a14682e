"""Task graph builder with cycle detection."""

from heapq import heapify, heappop, heappush
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..models.task import Task, TaskDependency
from .errors import CycleDetected, DuplicateDependency, InvalidInput, UnknownTaskReference

WHITE, GREY, BLACK = 0, 1, 2


class TaskGraph:
    """Validated, acyclic dependency graph keyed by task id.

    The graph keeps two adjacency indices (outgoing and incoming edges). It
    never changes after ``build_graph`` returns it.
    """

    def __init__(self, tasks: Dict[str, Task], dependencies: Dict[Tuple[str, str], TaskDependency]):
        """Initialize graph from already validated tasks and edges."""
        self._tasks = dict(tasks)
        self._edges = dict(dependencies)
        self._outgoing: Dict[str, List[TaskDependency]] = {task_id: [] for task_id in self._tasks}
        self._incoming: Dict[str, List[TaskDependency]] = {task_id: [] for task_id in self._tasks}

        for key in sorted(self._edges):
            edge = self._edges[key]
            self._outgoing[edge.predecessor_id].append(edge)
            self._incoming[edge.successor_id].append(edge)

    @property
    def task_ids(self) -> List[str]:
        """All task ids in sorted order."""
        return sorted(self._tasks)

    @property
    def tasks(self) -> Dict[str, Task]:
        """Copy of the task index."""
        return dict(self._tasks)

    @property
    def dependencies(self) -> List[TaskDependency]:
        """All edges ordered by (predecessor, successor)."""
        return [self._edges[key] for key in sorted(self._edges)]

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks

    def task(self, task_id: str) -> Task:
        """Return the task with the given id."""
        if task_id not in self._tasks:
            raise UnknownTaskReference(task_id)
        return self._tasks[task_id]

    def edge(self, predecessor_id: str, successor_id: str) -> Optional[TaskDependency]:
        """Return the edge between two tasks, if any."""
        return self._edges.get((predecessor_id, successor_id))

    def outgoing(self, task_id: str) -> List[TaskDependency]:
        """Edges leaving ``task_id`` sorted by successor id."""
        return list(self._outgoing[task_id])

    def incoming(self, task_id: str) -> List[TaskDependency]:
        """Edges entering ``task_id`` sorted by predecessor id."""
        return list(self._incoming[task_id])

    def successors(self, task_id: str) -> List[str]:
        """Direct successors of a task."""
        return [edge.successor_id for edge in self._outgoing[task_id]]

    def predecessors(self, task_id: str) -> List[str]:
        """Direct predecessors of a task."""
        return [edge.predecessor_id for edge in self._incoming[task_id]]

    def sources(self) -> List[str]:
        """Tasks without predecessors."""
        return [task_id for task_id in self.task_ids if not self._incoming[task_id]]

    def sinks(self) -> List[str]:
        """Tasks without successors."""
        return [task_id for task_id in self.task_ids if not self._outgoing[task_id]]

    def topological_order(self) -> List[str]:
        """Kahn ordering, always picking the smallest ready id."""
        indegree = {task_id: len(self._incoming[task_id]) for task_id in self._tasks}
        ready = [task_id for task_id, degree in indegree.items() if degree == 0]
        heapify(ready)

        order: List[str] = []
        while ready:
            task_id = heappop(ready)
            order.append(task_id)
            for successor in self.successors(task_id):
                indegree[successor] -= 1
                if indegree[successor] == 0:
                    heappush(ready, successor)

        return order

    def reachable_from(self, task_id: str, upstream: bool = False) -> Set[str]:
        """All tasks reachable from ``task_id`` (excluding itself)."""
        neighbours = self.predecessors if upstream else self.successors
        seen: Set[str] = set()
        stack = [task_id]
        while stack:
            current = stack.pop()
            for nxt in neighbours(current):
                if nxt not in seen:
                    seen.add(nxt)
                    stack.append(nxt)
        return seen

    def to_dict(self) -> Dict[str, list]:
        """Serialize the graph as plain data."""
        return {
            'tasks': self.task_ids,
            'dependencies': [
                {
                    'predecessor_id': edge.predecessor_id,
                    'successor_id': edge.successor_id,
                    'dependency_type': edge.dependency_type.value,
                    'lag_hours': edge.lag_hours,
                }
                for edge in self.dependencies
            ],
        }


def build_graph(tasks: Iterable[Task], dependencies: Iterable[TaskDependency]) -> TaskGraph:
    """Validate tasks and edges and assemble an acyclic graph.

    Raises ``InvalidInput`` for duplicate task ids, ``UnknownTaskReference``
    for edges to unknown tasks, ``DuplicateDependency`` for repeated ordered
    pairs and ``CycleDetected`` with the full offending cycle.
    """
    task_index: Dict[str, Task] = {}
    for task in tasks:
        if task.task_id in task_index:
            raise InvalidInput(f"Duplicate task id: {task.task_id}", field='task_id', task_id=task.task_id)
        task_index[task.task_id] = task

    edges: Dict[Tuple[str, str], TaskDependency] = {}
    for dependency in dependencies:
        for endpoint in dependency.key:
            if endpoint not in task_index:
                other = [tid for tid in dependency.key if tid != endpoint]
                raise UnknownTaskReference(endpoint, referenced_by=other[0] if other else None)
        if dependency.key in edges:
            raise DuplicateDependency(*dependency.key)
        if dependency.predecessor_id == dependency.successor_id:
            raise CycleDetected([dependency.predecessor_id, dependency.successor_id])
        edges[dependency.key] = dependency

    children: Dict[str, List[str]] = {task_id: [] for task_id in task_index}
    for predecessor_id, successor_id in edges:
        children[predecessor_id].append(successor_id)

    cycle = find_cycle(children)
    if cycle:
        raise CycleDetected(cycle)

    return TaskGraph(task_index, edges)


def can_add_dependency(graph: TaskGraph, dependency: TaskDependency) -> bool:
    """Check that adding one edge keeps the graph valid.

    Returns ``True`` when the edge can be added and raises the same
    structured errors as ``build_graph`` otherwise.
    """
    build_graph(graph.tasks.values(), list(graph.dependencies) + [dependency])
    return True


def find_cycle(children: Dict[str, List[str]]) -> Optional[List[str]]:
    """Three-colour DFS returning the first cycle as a closed path.

    Nodes and children are visited in sorted order, and the returned cycle is
    rotated to start at its smallest id, so identical input always reports
    the same cycle.
    """
    color: Dict[str, int] = {node: WHITE for node in children}

    for start in sorted(children):
        if color[start] != WHITE:
            continue

        color[start] = GREY
        stack: List[str] = [start]
        frames = [(start, iter(sorted(children[start])))]

        while frames:
            node, child_iter = frames[-1]
            child = next(child_iter, None)
            if child is None:
                frames.pop()
                stack.pop()
                color[node] = BLACK
                continue

            if color[child] == WHITE:
                color[child] = GREY
                stack.append(child)
                frames.append((child, iter(sorted(children[child]))))
            elif color[child] == GREY:
                loop = stack[stack.index(child):]
                return _canonical_cycle(loop)

    return None


def _canonical_cycle(loop: List[str]) -> List[str]:
    """Rotate the loop to its smallest id and close it."""
    pivot = loop.index(min(loop))
    rotated = loop[pivot:] + loop[:pivot]
    return rotated + [rotated[0]]
