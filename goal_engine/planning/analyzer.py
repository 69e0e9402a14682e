"""Milestone analysis pipeline."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set

from ..engine.allocator import allocate_capacity, summarize_utilization
from ..engine.conflicts import detect_resource_conflicts, detect_skill_conflicts
from ..engine.critical_path import build_schedule, compute_critical_path
from ..engine.errors import PlanningError
from ..engine.graph import build_graph
from ..engine.hierarchy import build_hierarchy
from ..engine.parallel_tracks import detect_parallel_tracks
from ..estimation.assessment import EstimateAssessment, assess_estimate
from ..estimation.fusion import fuse_estimates
from ..estimation.methods import HistoricalSample, historical_samples
from ..estimation.provider import EstimateProvider, HistoryEstimateProvider
from ..models.analysis import MilestoneAnalysis
from ..models.capacity import CapacityAllocation, ScheduleWindow, TeamCapacity
from ..models.snapshot import MilestoneSnapshot
from ..models.task import Task
from ..utils.logging import run_id_ctx_var
from .optimization import schedule_metrics, suggest_optimizations

logger = logging.getLogger(__name__)


class MilestoneAnalyzer:
    """Runs estimation, scheduling and conflict analysis for a milestone."""

    def __init__(self, config: dict, providers: Optional[Sequence[EstimateProvider]] = None):
        """Initialize analyzer with configuration and estimate providers."""
        self.config = config
        self.scheduling_config = config.get('scheduling', {})
        self.estimation_config = config.get('estimation', {})
        self.analysis_config = config.get('analysis', {})
        self.hours_per_day = self.scheduling_config.get('hours_per_day', 8.0)
        self.project_start_hour = self.scheduling_config.get('project_start_hour', 9)
        self.confidence_level = self.estimation_config.get('confidence_level', 0.8)
        self.providers = list(providers) if providers is not None else [HistoryEstimateProvider(config)]

    def analyze(self, snapshot: MilestoneSnapshot, start: Optional[datetime] = None) -> MilestoneAnalysis:
        """Analyze a snapshot, raising ``PlanningError`` when it cannot be planned."""
        run_id = str(uuid.uuid4())[:8]
        token = run_id_ctx_var.set(run_id)
        try:
            return self._analyze(run_id, snapshot, start)
        except PlanningError as exc:
            logger.warning("Analysis of %s failed: %s", snapshot.milestone_id, exc.message)
            raise
        finally:
            run_id_ctx_var.reset(token)

    def run(self, snapshot: MilestoneSnapshot, start: Optional[datetime] = None) -> Dict[str, Any]:
        """Analyze a snapshot and return plain data, including on failure."""
        try:
            return self.analyze(snapshot, start).to_dict()
        except PlanningError as exc:
            return exc.to_dict()

    def _analyze(self, run_id: str, snapshot: MilestoneSnapshot, start: Optional[datetime]) -> MilestoneAnalysis:
        start = start or snapshot.start or datetime.now().replace(
            hour=self.project_start_hour, minute=0, second=0, microsecond=0,
        )
        logger.info("Analyzing milestone %s with %d tasks", snapshot.milestone_id, len(snapshot.tasks))
        warnings: List[Dict[str, Any]] = []

        hierarchy = build_hierarchy(snapshot.tasks)
        graph = build_graph(snapshot.tasks, snapshot.dependencies)

        samples = historical_samples(snapshot.tasks, snapshot.history)
        estimates = self._estimate_tasks(snapshot, samples)
        # Closed tasks and summary tasks carry no remaining work of their own.
        open_work = {
            task.task_id for task in snapshot.tasks
            if not task.is_closed and not hierarchy.children(task.task_id)
        }
        durations = self._durations(snapshot.tasks, estimates, open_work)
        logger.debug("Fused estimates for %d of %d tasks", len(estimates), len(snapshot.tasks))

        deadline = None
        if snapshot.deadline is not None:
            deadline = (snapshot.deadline - start).total_seconds() / 86400

        report = compute_critical_path(graph, durations, 0.0, deadline, self.hours_per_day)
        if report.violates_deadline:
            logger.warning("Milestone %s misses its deadline by %.1fh",
                           snapshot.milestone_id, report.deadline_overrun_hours)
        tracks = detect_parallel_tracks(graph, report)
        schedule = build_schedule(report, start)

        capacities = snapshot.capacity_index
        assignments = {}
        for task_id, person_id in sorted(snapshot.assignments.items()):
            if task_id not in open_work:
                continue
            if person_id in capacities:
                assignments[task_id] = person_id
            else:
                warnings.append({
                    'error': 'UNKNOWN_ASSIGNEE',
                    'message': f"No capacity profile for {person_id}",
                    'task_id': task_id,
                    'person_id': person_id,
                })

        allocations = self._allocate(assignments, durations, schedule, capacities, warnings)
        conflicts = detect_resource_conflicts(schedule, assignments, capacities, durations)
        skill_conflicts = detect_skill_conflicts(
            schedule,
            [task for task in snapshot.tasks if task.task_id in open_work],
            self.analysis_config.get('skill_conflict_medium_hours', 8),
            self.analysis_config.get('skill_conflict_high_hours', 16),
        )

        suggestions = suggest_optimizations(
            snapshot.tasks,
            durations,
            tracks,
            conflicts,
            skill_conflicts,
            self.analysis_config.get('split_task_hours', 6.0),
        )
        metrics = schedule_metrics(report, tracks, self.analysis_config.get('buffer_percentage', 20))

        logger.info(
            "Milestone %s: %d critical tasks, %d tracks, %d conflicts, %d suggestions",
            snapshot.milestone_id,
            metrics.critical_tasks,
            len(tracks),
            len(conflicts) + len(skill_conflicts),
            len(suggestions),
        )

        return MilestoneAnalysis(
            run_id=run_id,
            timestamp=datetime.now(),
            milestone_id=snapshot.milestone_id,
            start=start,
            config={
                'hours_per_day': self.hours_per_day,
                'confidence_level': self.confidence_level,
                'providers': [provider.get_provider_name() for provider in self.providers],
            },
            durations=durations,
            estimates=estimates,
            hierarchy=hierarchy.metrics(),
            critical_path=report,
            tracks=tracks,
            schedule=schedule,
            allocations=allocations,
            utilization=summarize_utilization(allocations, capacities),
            conflicts=conflicts,
            skill_conflicts=skill_conflicts,
            suggestions=suggestions,
            metrics=metrics,
            warnings=warnings,
        )

    def estimate_task(
        self,
        task: Task,
        estimates: Sequence,
        samples: Sequence[HistoricalSample],
    ) -> Optional[EstimateAssessment]:
        """Fuse supplied and provider estimates for one task."""
        collected = list(estimates)
        for provider in self.providers:
            collected.extend(provider.estimate(task, samples))
        if not collected:
            return None
        final = fuse_estimates(collected, self.confidence_level)
        return assess_estimate(task, final, samples)

    def _estimate_tasks(
        self,
        snapshot: MilestoneSnapshot,
        samples: Sequence[HistoricalSample],
    ) -> Dict[str, EstimateAssessment]:
        """Fuse estimates for every open task that has any."""
        results = {}
        for task in sorted(snapshot.tasks, key=lambda t: t.task_id):
            if task.is_closed:
                continue
            assessment = self.estimate_task(task, snapshot.estimates_for(task.task_id), samples)
            if assessment is not None:
                results[task.task_id] = assessment
        return results

    def _durations(
        self,
        tasks: Sequence[Task],
        estimates: Dict[str, EstimateAssessment],
        open_work: Set[str],
    ) -> Dict[str, Optional[float]]:
        """Remaining hours per task: zero outside open work, else fused, else the task's own estimate."""
        durations = {}
        for task in tasks:
            if task.task_id not in open_work:
                durations[task.task_id] = 0.0
            elif task.task_id in estimates:
                durations[task.task_id] = estimates[task.task_id].estimate.hours
            else:
                durations[task.task_id] = task.estimated_hours
        return durations

    def _allocate(
        self,
        assignments: Dict[str, str],
        durations: Dict[str, Optional[float]],
        schedule: Dict[str, ScheduleWindow],
        capacities: Dict[str, TeamCapacity],
        warnings: List[Dict[str, Any]],
    ) -> List[CapacityAllocation]:
        """Allocate every assigned task, then recompute against the full load."""
        draft: List[CapacityAllocation] = []
        allocatable = []
        for task_id, person_id in assignments.items():
            hours = durations.get(task_id) or 0.0
            try:
                draft.extend(allocate_capacity(task_id, hours, schedule[task_id], capacities[person_id], draft))
            except PlanningError as exc:
                logger.warning("Skipping allocation of %s: %s", task_id, exc.message)
                warnings.append(exc.to_dict())
                continue
            allocatable.append((task_id, person_id, hours))

        # Second pass sees every other task's rows, so utilization covers the whole week.
        allocations: List[CapacityAllocation] = []
        for task_id, person_id, hours in allocatable:
            allocations.extend(allocate_capacity(task_id, hours, schedule[task_id], capacities[person_id], draft))
        return allocations
