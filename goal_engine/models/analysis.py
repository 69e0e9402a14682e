"""Analysis result model for one milestone run."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..engine.hierarchy import HierarchyMetrics
from ..estimation.assessment import EstimateAssessment
from .capacity import CapacityAllocation, ResourceConflict, ScheduleWindow, SkillConflict, WeeklyUtilization
from .report import CriticalPathReport, OptimizationSuggestion, ParallelTrack, ScheduleMetrics


@dataclass
class MilestoneAnalysis:
    """Complete result of analyzing a milestone snapshot."""

    run_id: str
    timestamp: datetime
    milestone_id: str
    start: datetime
    config: Dict[str, Any]
    durations: Dict[str, Optional[float]]
    estimates: Dict[str, EstimateAssessment]
    hierarchy: HierarchyMetrics
    critical_path: CriticalPathReport
    tracks: List[ParallelTrack]
    schedule: Dict[str, ScheduleWindow]
    allocations: List[CapacityAllocation]
    utilization: List[WeeklyUtilization]
    conflicts: List[ResourceConflict]
    skill_conflicts: List[SkillConflict]
    suggestions: List[OptimizationSuggestion]
    metrics: ScheduleMetrics
    warnings: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert analysis to dictionary for JSON export."""
        return {
            'run_id': self.run_id,
            'timestamp': self.timestamp.isoformat(),
            'milestone_id': self.milestone_id,
            'start': self.start.isoformat(),
            'config': self.config,
            'durations': {task_id: self.durations[task_id] for task_id in sorted(self.durations)},
            'estimates': {task_id: self.estimates[task_id].to_dict() for task_id in sorted(self.estimates)},
            'hierarchy': self.hierarchy.to_dict(),
            'critical_path': self.critical_path.to_dict(),
            'tracks': [track.to_dict() for track in self.tracks],
            'schedule': {
                task_id: {
                    'start': self.schedule[task_id].start.isoformat(),
                    'end': self.schedule[task_id].end.isoformat(),
                }
                for task_id in sorted(self.schedule)
            },
            'allocations': [allocation.to_dict() for allocation in self.allocations],
            'utilization': [row.to_dict() for row in self.utilization],
            'conflicts': [conflict.to_dict() for conflict in self.conflicts],
            'skill_conflicts': [conflict.to_dict() for conflict in self.skill_conflicts],
            'suggestions': [suggestion.to_dict() for suggestion in self.suggestions],
            'metrics': self.metrics.to_dict(),
            'warnings': list(self.warnings),
        }

    def to_human_readable(self) -> str:
        """Generate human-readable report format."""
        report = self.critical_path
        lines = [
            f"=== Milestone Analysis: {self.run_id} ===",
            f"Milestone: {self.milestone_id}",
            f"Timestamp: {self.timestamp}",
            f"Start: {self.start}",
            "",
            "Configuration:",
        ]

        for key, value in self.config.items():
            lines.append(f"  {key}: {value}")

        lines.extend([
            "",
            "Estimates:",
        ])

        for task_id in sorted(self.estimates):
            assessment = self.estimates[task_id]
            estimate = assessment.estimate
            lines.append(f"  Task {task_id}:")
            lines.append(f"    Hours: {estimate.hours:.2f} ({estimate.range_low:.2f} - {estimate.range_high:.2f})")
            lines.append(f"    Confidence: {estimate.confidence:.2f} (risk-adjusted {assessment.confidence:.2f})")
            lines.append(f"    Methods: {', '.join(estimate.methods_used)}")
            lines.append(f"    Data quality: {assessment.data_quality}")
            for risk in assessment.risk_factors:
                lines.append(f"    Risk: {risk.factor} ({risk.impact})")

        lines.extend([
            "",
            "Critical Path:",
            f"  {' -> '.join(report.critical_path) or '(empty)'}",
            f"  Duration: {report.critical_path_duration_hours:.1f}h",
            f"  Project finish: day {report.project_finish:.2f}",
        ])
        if report.violates_deadline:
            lines.append(f"  Deadline missed by {report.deadline_overrun_hours:.1f}h")
        if report.unestimated:
            lines.append(f"  Unestimated: {', '.join(report.unestimated)}")

        lines.extend([
            "",
            "Parallel Tracks:",
        ])

        for track in self.tracks:
            lines.append(f"  {track.track_id}: {', '.join(track.task_ids)}")
            lines.append(f"    Slack: {track.total_slack_hours:.1f}h, chain: {' -> '.join(track.critical_path)}")

        lines.extend([
            "",
            "Conflicts:",
        ])

        for conflict in self.conflicts:
            lines.append(
                f"  {conflict.person_id} {conflict.week} {conflict.kind}: "
                f"{conflict.overallocated_hours:.1f}h ({', '.join(conflict.task_ids)})"
            )
        for conflict in self.skill_conflicts:
            lines.append(
                f"  skill {conflict.skill} {conflict.severity}: "
                f"{conflict.overlap_hours:.1f}h overlap ({', '.join(conflict.task_ids)})"
            )

        lines.extend([
            "",
            "Suggestions:",
        ])

        for suggestion in self.suggestions:
            lines.append(f"  [{suggestion.priority}] {suggestion.kind}: {suggestion.description}")

        lines.extend([
            "",
            "Summary Statistics:",
        ])

        for key, value in self.metrics.to_dict().items():
            lines.append(f"  {key}: {value}")

        if self.warnings:
            lines.extend([
                "",
                "Warnings:",
            ])
            for warning in self.warnings:
                lines.append(f"  {warning.get('error')}: {warning.get('message')}")

        lines.append("=" * 50)

        return "\n".join(lines)
