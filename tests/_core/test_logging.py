import logging

import pytest
from rich.logging import RichHandler

from llm_json_utils._core.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_logging_state(monkeypatch):
    """Resets the global state of the logging module before each test."""
    monkeypatch.setattr('llm_json_utils._core.logging._logging_configured', False)
    yield
    monkeypatch.setattr('llm_json_utils._core.logging._logging_configured', False)
    logging.getLogger('llm_json_utils').handlers.clear()


def test_basic_logging_levels(capsys):
    """
    Tests that basic logging calls at every level reach the console handler.
    """
    configure_logging(level='DEBUG', use_rich=False, force=True)
    logger = get_logger('llm_json_utils.test_levels')

    logger.debug('debug message')
    logger.info('info message')
    logger.warning('warn message')
    logger.error('error message')

    captured = capsys.readouterr().err
    assert 'debug message' in captured
    assert 'info message' in captured
    assert 'warn message' in captured
    assert 'error message' in captured


def test_level_filters_lower_messages(capsys):
    configure_logging(level='WARNING', use_rich=False, force=True)
    logger = get_logger('llm_json_utils.test_filter')

    logger.info('hidden message')
    logger.warning('shown message')

    captured = capsys.readouterr().err
    assert 'hidden message' not in captured
    assert 'shown message' in captured


def test_custom_format_string(capsys):
    configure_logging(
        level='INFO', use_rich=False, format_string='CUSTOM %(message)s', force=True
    )
    get_logger('llm_json_utils.test_format').info('formatted')

    assert 'CUSTOM formatted' in capsys.readouterr().err


def test_file_handler_writes_log(tmp_path):
    log_file = tmp_path / 'logs' / 'parser.log'
    configure_logging(
        level='INFO', use_rich=False, file_path=str(log_file), force=True
    )
    get_logger('llm_json_utils.test_file').info('to the file')

    for handler in logging.getLogger('llm_json_utils').handlers:
        handler.flush()
    assert 'to the file' in log_file.read_text()


def test_configure_is_idempotent_without_force():
    configure_logging(level='INFO', use_rich=False, force=True)
    handlers_before = list(logging.getLogger('llm_json_utils').handlers)

    configure_logging(level='DEBUG', use_rich=False)

    assert logging.getLogger('llm_json_utils').handlers == handlers_before
    assert logging.getLogger('llm_json_utils').level == logging.INFO


def test_rich_handler_when_enabled():
    configure_logging(level='INFO', use_rich=True, force=True)

    handlers = logging.getLogger('llm_json_utils').handlers
    assert any(isinstance(handler, RichHandler) for handler in handlers)
