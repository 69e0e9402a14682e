"""Utility functions."""

from .config import get_default_config, load_config, merge_config
from .datetime_utils import is_weekend, iso_week_label, split_by_day, split_by_week, week_start
from .logging import configure_logging, get_run_id, run_id_ctx_var

__all__ = [
    'load_config',
    'get_default_config',
    'merge_config',
    'is_weekend',
    'iso_week_label',
    'split_by_day',
    'split_by_week',
    'week_start',
    'configure_logging',
    'get_run_id',
    'run_id_ctx_var',
]
