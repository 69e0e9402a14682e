"""Milestone analysis pipeline."""

from .analyzer import MilestoneAnalyzer
from .optimization import schedule_metrics, suggest_optimizations

__all__ = ['MilestoneAnalyzer', 'schedule_metrics', 'suggest_optimizations']
