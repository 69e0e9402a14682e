"""History-driven estimation methods.

Both methods learn from completed tasks: analogy averages the actual hours
of the most similar past tasks, parametric scales the average duration of
past tasks with the same complexity. Each returns ``None`` when the history
is too thin to say anything.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..models.estimate import EstimationHistoryEntry, EstimationMethod, TaskEstimate
from ..models.task import Task
from .learning import accuracy_score

COMPLEXITY_WEIGHT = 0.4
SKILLS_WEIGHT = 0.4
DESCRIPTION_WEIGHT = 0.2
SKILL_FACTOR = 0.3  # extra duration per required skill
MAX_ANALOGY_CONFIDENCE = 0.9
MAX_PARAMETRIC_CONFIDENCE = 0.8


@dataclass(frozen=True)
class HistoricalSample:
    """A completed task with how accurately it was estimated."""

    task: Task
    actual_hours: float
    accuracy: float

    @property
    def task_id(self) -> str:
        return self.task.task_id


def historical_samples(
    tasks: Iterable[Task],
    history: Iterable[EstimationHistoryEntry] = (),
) -> List[HistoricalSample]:
    """Collect completed tasks with recorded actual hours.

    A sample's accuracy is the mean accuracy of its history entries, falling
    back to the task's own estimate against its actuals, and to 1.0 when
    neither is known.
    """
    scores: Dict[str, List[float]] = {}
    for entry in history:
        scores.setdefault(entry.task_id, []).append(entry.accuracy_score)

    samples = []
    for task in sorted(tasks, key=lambda t: t.task_id):
        if not task.is_completed:
            continue
        if task.task_id in scores:
            accuracy = sum(scores[task.task_id]) / len(scores[task.task_id])
        elif task.estimated_hours is not None:
            accuracy = accuracy_score(task.estimated_hours, task.actual_hours)
        else:
            accuracy = 1.0
        samples.append(HistoricalSample(task=task, actual_hours=task.actual_hours, accuracy=accuracy))
    return samples


def task_similarity(task: Task, other: Task) -> float:
    """Similarity in [0, 1] from complexity, skill overlap and title words."""
    similarity = COMPLEXITY_WEIGHT if task.complexity == other.complexity else 0.0
    similarity += SKILLS_WEIGHT * _jaccard(set(task.skills), set(other.skills))
    similarity += DESCRIPTION_WEIGHT * _jaccard(_words(task.title), _words(other.title))
    return similarity


def rank_similar(
    task: Task,
    samples: Sequence[HistoricalSample],
    threshold: float = 0.3,
    limit: int = 5,
) -> List[Tuple[HistoricalSample, float]]:
    """Most similar past tasks above ``threshold``, best first."""
    scored = [
        (sample, task_similarity(task, sample.task))
        for sample in samples
        if sample.task_id != task.task_id
    ]
    scored = [item for item in scored if item[1] > threshold]
    scored.sort(key=lambda item: (-item[1], item[0].task_id))
    return scored[:limit]


def analogy_estimate(
    task: Task,
    samples: Sequence[HistoricalSample],
    threshold: float = 0.3,
    max_matches: int = 5,
) -> Optional[TaskEstimate]:
    """Estimate from the actual hours of similar past tasks.

    Matches are weighted by similarity times their estimation accuracy.
    """
    matches = rank_similar(task, samples, threshold, max_matches)
    if not matches:
        return None

    total_weight = sum(similarity * sample.accuracy for sample, similarity in matches)
    if total_weight > 0:
        hours = sum(
            sample.actual_hours * similarity * sample.accuracy for sample, similarity in matches
        ) / total_weight
    else:
        hours = matches[0][0].actual_hours

    average_similarity = sum(similarity for _, similarity in matches) / len(matches)
    return TaskEstimate(
        task_id=task.task_id,
        method=EstimationMethod.ANALOGY,
        estimated_hours=hours,
        confidence=min(MAX_ANALOGY_CONFIDENCE, total_weight / len(matches)),
        rationale=(
            f"Based on {len(matches)} similar tasks with average similarity "
            f"of {average_similarity:.2f}"
        ),
    )


def parametric_estimate(
    task: Task,
    samples: Sequence[HistoricalSample],
    min_samples: int = 5,
) -> Optional[TaskEstimate]:
    """Estimate from the average duration of past tasks of equal complexity."""
    if len(samples) < min_samples:
        return None

    peers = [
        sample.actual_hours for sample in samples
        if sample.task.complexity == task.complexity and sample.task_id != task.task_id
    ]
    if not peers:
        return None

    average = sum(peers) / len(peers)
    hours = average * (1 + SKILL_FACTOR * len(task.skills))
    return TaskEstimate(
        task_id=task.task_id,
        method=EstimationMethod.PARAMETRIC,
        estimated_hours=hours,
        confidence=min(MAX_PARAMETRIC_CONFIDENCE, len(peers) / 10),
        rationale=(
            f"Based on average {task.complexity.value} task duration "
            f"({average:.1f}h) with skill factor adjustment"
        ),
    )


def _words(text: str) -> Set[str]:
    return set(text.lower().split())


def _jaccard(left: Set[str], right: Set[str]) -> float:
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)
