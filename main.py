"""Main entry point for the Goal Decomposition & Scheduling Engine."""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from goal_engine.engine.errors import InvalidInput, PlanningError
from goal_engine.estimation.methods import historical_samples
from goal_engine.evaluation.accuracy import summarize_accuracy
from goal_engine.evaluation.generator import MilestoneGenerator
from goal_engine.models.snapshot import MilestoneSnapshot
from goal_engine.planning.analyzer import MilestoneAnalyzer
from goal_engine.utils.config import get_default_config, load_config
from goal_engine.utils.logging import configure_logging

logger = logging.getLogger("goal_engine.cli")


def load_snapshot(input_path: str, config: dict, seed: int) -> MilestoneSnapshot:
    """Read a snapshot from JSON, or generate one when no path is given."""
    if not input_path:
        generator = MilestoneGenerator(seed=seed, config=config)
        start = _today(config)
        return generator.generate_snapshot(start)

    path = Path(input_path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {input_path}")
    with open(path, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidInput(f"Snapshot is not valid JSON: {exc}", field='snapshot') from exc
    return MilestoneSnapshot.from_dict(data)


def run_analysis(config: dict, input_path: str = None, seed: int = 42, results_dir: Path = Path("results")):
    """Run the full milestone analysis and save the reports."""
    snapshot = load_snapshot(input_path, config, seed)
    analyzer = MilestoneAnalyzer(config)
    analysis = analyzer.analyze(snapshot)

    print(f"\nAnalysis completed for milestone {analysis.milestone_id}")
    print(f"Critical path: {' -> '.join(analysis.critical_path.critical_path)}")
    print(f"Parallel tracks: {len(analysis.tracks)}")
    print(f"Conflicts: {len(analysis.conflicts) + len(analysis.skill_conflicts)}")

    results_dir.mkdir(exist_ok=True)

    report_path = results_dir / f"analysis_{analysis.run_id}.json"
    with open(report_path, 'w') as f:
        json.dump(analysis.to_dict(), f, indent=2, default=str)
    print(f"\nAnalysis saved to: {report_path}")

    # Save human-readable log
    log_path = results_dir / f"analysis_{analysis.run_id}.log"
    with open(log_path, 'w') as f:
        f.write(analysis.to_human_readable())
    print(f"Human-readable log saved to: {log_path}")

    return analysis


def run_estimation(config: dict, input_path: str = None, seed: int = 42, results_dir: Path = Path("results")):
    """Fuse estimates for every open task and summarize past accuracy."""
    snapshot = load_snapshot(input_path, config, seed)
    analyzer = MilestoneAnalyzer(config)
    samples = historical_samples(snapshot.tasks, snapshot.history)

    estimates = {}
    for task in sorted(snapshot.tasks, key=lambda t: t.task_id):
        if task.is_closed:
            continue
        assessment = analyzer.estimate_task(task, snapshot.estimates_for(task.task_id), samples)
        if assessment is None:
            logger.info("No estimates available for %s", task.task_id)
            continue
        estimates[task.task_id] = assessment.to_dict()
        print(f"  {task.task_id}: {assessment.estimate.hours:.1f}h "
              f"(confidence {assessment.confidence:.2f}, {assessment.data_quality} data)")

    report = {
        'milestone_id': snapshot.milestone_id,
        'estimates': estimates,
        'accuracy': [row.to_dict() for row in summarize_accuracy(snapshot.history)],
    }

    results_dir.mkdir(exist_ok=True)
    report_path = results_dir / "estimates.json"
    with open(report_path, 'w') as f:
        json.dump(report, f, indent=2, default=str)

    print(f"\nEstimates saved to: {report_path}")
    return report


def run_generation(config: dict, seed: int = 42, task_count: int = None, results_dir: Path = Path("results")):
    """Generate a synthetic snapshot and save it as JSON."""
    generator = MilestoneGenerator(seed=seed, config=config)
    snapshot = generator.generate_snapshot(_today(config), task_count=task_count)

    for name, count in generator.generation_summary(snapshot).items():
        print(f"Generated {count} {name}")

    results_dir.mkdir(exist_ok=True)
    snapshot_path = results_dir / "generated_snapshot.json"
    with open(snapshot_path, 'w') as f:
        json.dump(snapshot.to_dict(), f, indent=2)

    print(f"Snapshot saved to: {snapshot_path}")
    return snapshot


def _today(config: dict) -> datetime:
    hour = config.get('scheduling', {}).get('project_start_hour', 9)
    return datetime.now().replace(hour=hour, minute=0, second=0, microsecond=0)


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Goal Decomposition & Scheduling Engine"
    )
    parser.add_argument(
        'command',
        choices=['analyze', 'estimate', 'generate'],
        help='Command to run'
    )
    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--input',
        type=str,
        default=None,
        help='Milestone snapshot JSON (default: a generated snapshot)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Seed for generated snapshots (default: 42)'
    )
    parser.add_argument(
        '--tasks',
        type=int,
        default=None,
        help='Number of tasks to generate'
    )
    parser.add_argument(
        '--results-dir',
        type=str,
        default='results',
        help='Directory for reports (default: results)'
    )

    args = parser.parse_args(argv)

    config = load_config(args.config) if Path(args.config).exists() else get_default_config()
    configure_logging(log_level=config.get('logging', {}).get('level', 'INFO'))
    results_dir = Path(args.results_dir)

    try:
        if args.command == 'analyze':
            run_analysis(config, args.input, args.seed, results_dir)
        elif args.command == 'estimate':
            run_estimation(config, args.input, args.seed, results_dir)
        elif args.command == 'generate':
            run_generation(config, args.seed, args.tasks, results_dir)
    except PlanningError as exc:
        print(json.dumps(exc.to_dict(), indent=2, default=str))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
