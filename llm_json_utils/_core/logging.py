import logging
from logging import StreamHandler
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from llm_json_utils._core.environment import settings

# --- Global State ---
_logging_configured = False


def configure_logging(
    level: Optional[str] = None,
    use_rich: Optional[bool] = None,
    format_string: Optional[str] = None,
    file_path: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configures the package's logging system.

    Prioritizes direct function arguments over global settings, which in turn
    are loaded from environment variables or .env files.

    Args:
        level: Override the log level (e.g., 'DEBUG').
        use_rich: Override the use of rich formatting.
        format_string: Override the log format string.
        file_path: Override the log file path.
        force: If True, will overwrite an existing configuration.
    """
    global _logging_configured
    init_logger = logging.getLogger(__name__)

    if _logging_configured and not force:
        init_logger.debug('Logging already configured. Skipping reconfiguration.')
        return

    # 1. Resolve configuration, prioritizing direct arguments over global settings.
    final_level = level or settings.log_level
    # `False` is a valid override, so compare against None.
    final_use_rich = use_rich if use_rich is not None else settings.log_use_rich
    final_format_string = format_string or settings.log_format_string
    final_file_path = file_path or settings.log_file_path

    # 2. Configure the package logger
    package_logger = logging.getLogger('llm_json_utils')
    package_logger.setLevel(final_level.upper())

    if package_logger.hasHandlers():
        package_logger.handlers.clear()

    init_logger.debug(
        f'--- Configuring logging. Level: {final_level}, Rich: {final_use_rich} ---'
    )

    if final_use_rich:
        handler = RichHandler(rich_tracebacks=True, show_path=False, markup=False)
        formatter = logging.Formatter('%(message)s', datefmt='[%X]')
    else:
        handler = StreamHandler()
        formatter = logging.Formatter(
            final_format_string
            or '%(asctime)s | %(name)-20s | %(levelname)-8s | %(message)s'
        )

    handler.setFormatter(formatter)
    package_logger.addHandler(handler)

    # Configure file handler if a path is provided
    if final_file_path:
        try:
            Path(final_file_path).parent.mkdir(parents=True, exist_ok=True)
            file_formatter = logging.Formatter(
                final_format_string
                or '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
            )
            file_handler = logging.FileHandler(final_file_path, mode='a')
            file_handler.setFormatter(file_formatter)
            package_logger.addHandler(file_handler)
            init_logger.debug(f'Logging also configured for file: {final_file_path}')
        except OSError as e:
            package_logger.error(
                f'Failed to configure file handler at {final_file_path}: {e}'
            )

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Gets a logger instance. If logging is not yet configured,
    it applies a safe default configuration first.
    """
    if not _logging_configured:
        configure_logging()
    return logging.getLogger(name)


__all__ = [
    'configure_logging',
    'get_logger',
]
