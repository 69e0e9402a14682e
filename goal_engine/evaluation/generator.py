"""Milestone snapshot generator for demos and stress tests."""

import random
from datetime import datetime, timedelta
from typing import Dict, List

from ..estimation.learning import accuracy_score
from ..models.capacity import TeamCapacity, WeekendPreference
from ..models.estimate import EstimationHistoryEntry, EstimationMethod, TaskEstimate
from ..models.snapshot import MilestoneSnapshot
from ..models.task import Complexity, DependencyType, Task, TaskDependency, TaskPriority, TaskStatus

SKILLS = ['backend', 'frontend', 'design', 'testing', 'devops', 'data']
PRIORITIES = list(TaskPriority)
WEEKEND_PREFERENCES = list(WeekendPreference)


class MilestoneGenerator:
    """Generates deterministic milestone snapshots."""

    def __init__(self, seed: int = 42, config: dict = None):
        """Initialize generator with seed for reproducibility."""
        self.seed = seed
        self.random = random.Random(seed)
        self.config = config or {}
        self.generation_config = self.config.get('generation', {})

    def generate_capacities(self, count: int) -> List[TeamCapacity]:
        """Generate capacity profiles for a small team."""
        capacities = []
        for i in range(count):
            capacities.append(TeamCapacity(
                person_id=f"person_{i:02d}",
                available_hours_per_week=float(self.random.choice([24, 32, 40])),
                weekend_preference=self.random.choice(WEEKEND_PREFERENCES),
                skills=tuple(self.random.sample(SKILLS, 2)),
            ))
        return capacities

    def generate_tasks(
        self,
        count: int,
        milestone_id: str,
        people: List[TeamCapacity],
        completed_share: float = 0.2,
        overrun_mean: float = 1.2,
        overrun_std: float = 0.3,
    ) -> List[Task]:
        """Generate tasks with realistic sizes; the first share is already done."""
        tasks = []
        completed = int(count * completed_share)

        for i in range(count):
            # Vary task sizes (some small, some large)
            roll = self.random.random()
            if roll < 0.3:
                hours = float(self.random.randint(1, 4))
                complexity = Complexity.SIMPLE
            elif roll < 0.8:
                hours = float(self.random.randint(4, 12))
                complexity = Complexity.MODERATE
            else:
                hours = float(self.random.randint(12, 32))
                complexity = Complexity.COMPLEX

            skills = tuple(self.random.sample(SKILLS, self.random.randint(1, 3)))
            assignee = self.random.choice(people).person_id if people and self.random.random() < 0.8 else None

            status = TaskStatus.NOT_STARTED
            actual = None
            if i < completed:
                status = TaskStatus.COMPLETED
                actual = round(hours * max(0.5, self.random.gauss(overrun_mean, overrun_std)), 1)

            tasks.append(Task(
                task_id=f"task_{i:03d}",
                title=f"{complexity.value.title()} {' '.join(skills)} work {i}",
                estimated_hours=hours,
                actual_hours=actual,
                status=status,
                priority=self.random.choice(PRIORITIES),
                complexity=complexity,
                milestone_id=milestone_id,
                assignee_id=assignee,
                skills=skills,
            ))

        return tasks

    def generate_dependencies(self, tasks: List[Task], probability: float = 0.3) -> List[TaskDependency]:
        """Link tasks to earlier ones only, so the graph stays acyclic."""
        dependencies = []
        for i, task in enumerate(tasks):
            if i == 0 or self.random.random() >= probability:
                continue
            predecessors = self.random.sample(range(i), min(i, self.random.randint(1, 2)))
            for index in sorted(predecessors):
                if self.random.random() < 0.8:
                    dependency_type, lag = DependencyType.FINISH_TO_START, 0.0
                else:
                    dependency_type, lag = DependencyType.START_TO_START, float(self.random.randint(1, 4))
                dependencies.append(TaskDependency(
                    predecessor_id=tasks[index].task_id,
                    successor_id=task.task_id,
                    dependency_type=dependency_type,
                    lag_hours=lag,
                ))
        return dependencies

    def generate_estimates(self, tasks: List[Task], start: datetime) -> List[TaskEstimate]:
        """Generate expert, PERT and bottom-up estimates for open tasks."""
        estimates = []
        for task in tasks:
            if task.is_completed:
                continue
            base = task.estimated_hours
            created = start - timedelta(days=self.random.randint(1, 7))

            estimates.append(TaskEstimate(
                task_id=task.task_id,
                method=EstimationMethod.EXPERT_JUDGMENT,
                estimated_hours=round(base * self.random.uniform(0.8, 1.3), 1),
                confidence=round(self.random.uniform(0.5, 0.9), 2),
                rationale="Generated expert judgment",
                created_at=created,
            ))

            if self.random.random() < 0.6:
                optimistic = round(base * self.random.uniform(0.5, 0.9), 1)
                pessimistic = round(base * self.random.uniform(1.3, 2.0), 1)
                estimates.append(TaskEstimate(
                    task_id=task.task_id,
                    method=EstimationMethod.THREE_POINT_PERT,
                    estimated_hours=base,
                    confidence=0.5,
                    optimistic=optimistic,
                    most_likely=base,
                    pessimistic=pessimistic,
                    rationale="Generated three-point estimate",
                    created_at=created,
                ))

            if self.random.random() < 0.3:
                estimates.append(TaskEstimate(
                    task_id=task.task_id,
                    method=EstimationMethod.BOTTOM_UP,
                    estimated_hours=round(base * self.random.uniform(0.9, 1.4), 1),
                    confidence=round(self.random.uniform(0.6, 0.85), 2),
                    rationale="Generated bottom-up breakdown",
                    created_at=created,
                ))

        return estimates

    def generate_history(self, tasks: List[Task], start: datetime) -> List[EstimationHistoryEntry]:
        """Generate expert-judgment history entries for completed tasks."""
        history = []
        for task in tasks:
            if not task.is_completed:
                continue
            history.append(EstimationHistoryEntry(
                task_id=task.task_id,
                method=EstimationMethod.EXPERT_JUDGMENT,
                estimated_hours=task.estimated_hours,
                actual_hours=task.actual_hours,
                accuracy_score=accuracy_score(task.estimated_hours, task.actual_hours),
                recorded_at=start - timedelta(days=self.random.randint(1, 14)),
            ))
        return history

    def generate_snapshot(
        self,
        start: datetime,
        milestone_id: str = "milestone_001",
        task_count: int = None,
        people: int = None,
    ) -> MilestoneSnapshot:
        """Generate a complete milestone snapshot."""
        task_count = task_count or self.generation_config.get('task_count', 20)
        people = people or self.generation_config.get('people', 3)
        completed_share = self.generation_config.get('completed_share', 0.2)
        dependency_probability = self.generation_config.get('dependency_probability', 0.3)
        overrun_mean = self.generation_config.get('overrun_mean', 1.2)
        overrun_std = self.generation_config.get('overrun_std', 0.3)

        capacities = self.generate_capacities(people)
        tasks = self.generate_tasks(task_count, milestone_id, capacities, completed_share, overrun_mean, overrun_std)
        dependencies = self.generate_dependencies(tasks, dependency_probability)

        return MilestoneSnapshot(
            milestone_id=milestone_id,
            tasks=tuple(tasks),
            dependencies=tuple(dependencies),
            estimates=tuple(self.generate_estimates(tasks, start)),
            capacities=tuple(capacities),
            history=tuple(self.generate_history(tasks, start)),
            start=start,
        )

    def generation_summary(self, snapshot: MilestoneSnapshot) -> Dict[str, int]:
        """Counts of generated records."""
        return {
            'tasks': len(snapshot.tasks),
            'dependencies': len(snapshot.dependencies),
            'estimates': len(snapshot.estimates),
            'capacities': len(snapshot.capacities),
            'history': len(snapshot.history),
        }
