"""Unit tests for configuration, logging and date helpers."""

import json
import logging
from datetime import date, datetime

import pytest
import yaml

from goal_engine.utils.config import get_default_config, load_config, merge_config
from goal_engine.utils.datetime_utils import iso_week_label, is_weekend, split_by_day, split_by_week, week_start
from goal_engine.utils.logging import RunIdFilter, get_run_id, run_id_ctx_var


def test_yaml_config_merges_over_defaults(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({'scheduling': {'hours_per_day': 6}, 'logging': {'level': 'DEBUG'}}))

    config = load_config(str(path))

    assert config['scheduling']['hours_per_day'] == 6
    assert config['scheduling']['project_start_hour'] == 9
    assert config['logging']['level'] == 'DEBUG'
    assert config['estimation'] == get_default_config()['estimation']


def test_json_config(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({'analysis': {'buffer_percentage': 10}}))

    assert load_config(str(path))['analysis']['buffer_percentage'] == 10


def test_empty_yaml_gives_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("")

    assert load_config(str(path)) == get_default_config()


def test_config_errors(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))

    toml = tmp_path / "config.toml"
    toml.write_text("x = 1")
    with pytest.raises(ValueError):
        load_config(str(toml))

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_config(str(listing))


def test_merge_config_leaves_base_untouched() -> None:
    base = {'a': {'b': 1, 'c': 2}}
    merged = merge_config(base, {'a': {'b': 5}, 'd': 3})

    assert merged == {'a': {'b': 5, 'c': 2}, 'd': 3}
    assert base == {'a': {'b': 1, 'c': 2}}


def test_run_id_filter_tags_records() -> None:
    record = logging.LogRecord("goal_engine", logging.INFO, __file__, 1, "hello", None, None)
    RunIdFilter().filter(record)
    assert record.run_id == "-"

    token = run_id_ctx_var.set("abc12345")
    try:
        assert get_run_id() == "abc12345"
        RunIdFilter().filter(record)
        assert record.run_id == "abc12345"
    finally:
        run_id_ctx_var.reset(token)


def test_week_helpers() -> None:
    assert week_start(date(2026, 1, 8)) == date(2026, 1, 5)
    assert week_start(datetime(2026, 1, 11, 23)) == date(2026, 1, 5)
    assert iso_week_label(date(2026, 1, 1)) == "2026-W01"
    assert iso_week_label(date(2027, 1, 1)) == "2026-W53"
    assert is_weekend(date(2026, 1, 10))
    assert not is_weekend(date(2026, 1, 9))


def test_split_by_day_and_week() -> None:
    start = datetime(2026, 1, 11, 18)
    end = datetime(2026, 1, 12, 6)

    assert split_by_day(start, end) == [(date(2026, 1, 11), 6.0), (date(2026, 1, 12), 6.0)]
    assert split_by_week(start, end) == {date(2026, 1, 5): 6.0, date(2026, 1, 12): 6.0}
    assert split_by_day(end, end) == []
