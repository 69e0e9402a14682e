"""Configuration management."""

import copy
import json
import yaml
from pathlib import Path
from typing import Any, Dict, Optional


def load_config(config_path: str, defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Load configuration from YAML or JSON file, merged over the defaults."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            loaded = yaml.safe_load(f)
        elif path.suffix.lower() == '.json':
            loaded = json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    return merge_config(defaults if defaults is not None else get_default_config(), loaded)


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        'scheduling': {
            'hours_per_day': 8.0,
            'project_start_hour': 9,
        },
        'estimation': {
            'confidence_level': 0.8,
            'analogy_similarity_threshold': 0.3,
            'analogy_max_matches': 5,
            'parametric_min_samples': 5,
        },
        'analysis': {
            'buffer_percentage': 20,
            'split_task_hours': 6.0,
            'skill_conflict_medium_hours': 8,
            'skill_conflict_high_hours': 16,
        },
        'logging': {
            'level': 'INFO',
        },
        'generation': {
            'task_count': 20,
            'people': 3,
            'completed_share': 0.2,
            'dependency_probability': 0.3,
            'overrun_mean': 1.2,
            'overrun_std': 0.3,
        },
    }
