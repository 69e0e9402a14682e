"""Estimate fusion, history-driven methods and the learning loop."""

from .assessment import EstimateAssessment, RiskFactor, assess_estimate
from .fusion import fuse_estimates, latest_per_method, pert_estimate, z_score
from .learning import accuracy_score, record_actual
from .methods import HistoricalSample, analogy_estimate, historical_samples, parametric_estimate, task_similarity
from .provider import EstimateProvider, HistoryEstimateProvider

__all__ = [
    'EstimateAssessment',
    'RiskFactor',
    'assess_estimate',
    'fuse_estimates',
    'latest_per_method',
    'pert_estimate',
    'z_score',
    'accuracy_score',
    'record_actual',
    'HistoricalSample',
    'analogy_estimate',
    'historical_samples',
    'parametric_estimate',
    'task_similarity',
    'EstimateProvider',
    'HistoryEstimateProvider',
]
