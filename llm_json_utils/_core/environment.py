import os
from typing import Any, Optional

from dotenv import find_dotenv
from pydantic import BaseModel, Field, GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema
from pydantic_settings import BaseSettings, SettingsConfigDict

###################################
# .env File Loading Logic
# 1. It first checks for an environment variable `ENV_PATH` for an explicit file path.
# 2. If `ENV_PATH` is not set or the file doesn't exist, it falls back to `find_dotenv()`,
#    which automatically searches for a `.env` file in the current and parent directories.
###################################


env_path_from_var = os.getenv('ENV_PATH')
dotenv_path = (
    env_path_from_var
    if env_path_from_var and os.path.exists(env_path_from_var)
    else find_dotenv()
)


class LogLevel(str):
    """Custom type for log levels, ensuring the value is one of the standard levels."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        def validate_log_level(v: str) -> str:
            valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
            v_upper = v.upper()
            if v_upper not in valid_levels:
                raise ValueError(f'Log level must be one of: {valid_levels}')
            return v_upper

        return core_schema.no_info_after_validator_function(
            validate_log_level, core_schema.str_schema()
        )


class Limit(int):
    """Custom type for safety-valve limits, which must be strictly positive."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        def validate_limit(v: int) -> int:
            if v < 1:
                raise ValueError('Limit must be a positive integer')
            return v

        return core_schema.no_info_after_validator_function(
            validate_limit, core_schema.int_schema()
        )


###################################
# Core Configuration Schema
###################################
class LlmJsonConfig(BaseModel):
    """Defines the configuration schema for the llm_json_utils package.
    This class does not load from the environment; it only defines the data shape.
    """

    # Parser limits
    extract_max_depth: Limit = Field(
        default=128,
        description='Maximum object/array nesting for one extraction candidate.',
    )
    extract_max_string_length: Limit = Field(
        default=1024 * 1024,
        description='Maximum UTF-8 size in bytes of a single string value during extraction.',
    )
    repair_max_depth: Limit = Field(
        default=256,
        description='Maximum object/array nesting accepted by repair_json.',
    )

    # Logging Settings
    log_level: LogLevel = Field(
        default='INFO', description='The minimum logging level.'
    )
    log_use_rich: bool = Field(
        default=True, description='Use rich for beautiful, formatted logging output.'
    )
    log_format_string: Optional[str] = Field(
        default=None, description='A custom format string for the console logger.'
    )
    log_file_path: Optional[str] = Field(
        default=None, description='If set, logs will also be written to this file.'
    )


###################################
# Settings Initialization
###################################
class AppSettings(BaseSettings, LlmJsonConfig):
    """Application settings that load from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix='',
        case_sensitive=False,
        validate_assignment=True,
        extra='ignore',
        env_file=dotenv_path,
        env_file_encoding='utf-8',
    )


# Global Settings
settings = AppSettings()


def resolve_limit(value: Optional[int], key_name: str) -> int:
    """
    Resolves a parser limit by prioritizing a direct argument over global settings.

    Args:
        value: The limit passed directly to a function/class.
        key_name: The name of the limit attribute in the global settings
            object (e.g., 'extract_max_depth').

    Returns:
        The resolved limit.
    """
    if value is not None:
        if value < 1:
            raise ValueError(f'{key_name} must be a positive integer, got {value}')
        return value
    return int(getattr(settings, key_name))
