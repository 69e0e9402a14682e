"""Evaluation and simulation modules."""

from .accuracy import MethodAccuracy, summarize_accuracy
from .generator import MilestoneGenerator

__all__ = ['MilestoneGenerator', 'MethodAccuracy', 'summarize_accuracy']
