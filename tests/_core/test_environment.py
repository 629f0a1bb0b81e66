import pytest
from pydantic import ValidationError

from llm_json_utils._core.environment import AppSettings, resolve_limit, settings


def test_default_limits():
    defaults = AppSettings()
    assert defaults.extract_max_depth == 128
    assert defaults.extract_max_string_length == 1024 * 1024
    assert defaults.repair_max_depth == 256


def test_limits_load_from_environment(monkeypatch):
    monkeypatch.setenv('EXTRACT_MAX_DEPTH', '64')
    monkeypatch.setenv('LOG_LEVEL', 'debug')

    loaded = AppSettings()

    assert loaded.extract_max_depth == 64
    assert loaded.log_level == 'DEBUG'


def test_invalid_log_level_is_rejected():
    with pytest.raises(ValidationError, match='Log level must be one of'):
        AppSettings(log_level='LOUD')


@pytest.mark.parametrize('value', [0, -5])
def test_non_positive_limit_is_rejected(value):
    with pytest.raises(ValidationError, match='positive integer'):
        AppSettings(extract_max_depth=value)


def test_resolve_limit_prefers_explicit_value():
    assert resolve_limit(7, 'extract_max_depth') == 7


def test_resolve_limit_falls_back_to_settings():
    assert resolve_limit(None, 'repair_max_depth') == settings.repair_max_depth


def test_resolve_limit_rejects_non_positive():
    with pytest.raises(ValueError, match='extract_max_depth must be a positive'):
        resolve_limit(0, 'extract_max_depth')
