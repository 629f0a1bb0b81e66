from typing import Optional

# Environment
from llm_json_utils._core.environment import settings

# Errors
from llm_json_utils._core.error import (
    ErrorKind,
    InvalidSchema,
    JsonUtilsError,
    MissingRequiredField,
    NoMatchFound,
    RecursionLimitExceeded,
    SchemaMismatch,
    StringTooLong,
    StructuralError,
)
from llm_json_utils._core.logging import configure_logging, get_logger

# Parsers
from llm_json_utils.repair import RepairParser, loads, repair_json
from llm_json_utils.structural import (
    JsonExtractor,
    SchemaKind,
    SchemaNode,
    compile_schema,
    extractor_new,
)

# Value tree
from llm_json_utils.values import (
    JsonArray,
    JsonBigInteger,
    JsonBool,
    JsonFloat,
    JsonInteger,
    JsonNull,
    JsonObject,
    JsonString,
    Value,
    ValueKind,
)


def init(
    log_level: Optional[str] = None,
    log_rich: Optional[bool] = None,
) -> None:
    """
    Initialize llm_json_utils with optional overrides.

    Call once at startup to override settings loaded from the environment.
    If not called, logging auto-configures on first use.

    Args:
        log_level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR').
            If None, uses LOG_LEVEL env var or 'INFO'.
        log_rich: Enable rich formatting. If None, uses LOG_USE_RICH env var.

    Example:
        >>> import llm_json_utils
        >>> llm_json_utils.init(log_level='DEBUG')
    """
    configure_logging(level=log_level, use_rich=log_rich, force=True)


__all__ = [
    # Initialization
    'init',
    'configure_logging',
    'get_logger',
    'settings',
    # Entry points
    'repair_json',
    'loads',
    'extractor_new',
    'JsonExtractor',
    'RepairParser',
    'compile_schema',
    'SchemaKind',
    'SchemaNode',
    # Values
    'Value',
    'ValueKind',
    'JsonNull',
    'JsonBool',
    'JsonInteger',
    'JsonBigInteger',
    'JsonFloat',
    'JsonString',
    'JsonArray',
    'JsonObject',
    # Errors
    'ErrorKind',
    'JsonUtilsError',
    'StructuralError',
    'SchemaMismatch',
    'MissingRequiredField',
    'RecursionLimitExceeded',
    'StringTooLong',
    'NoMatchFound',
    'InvalidSchema',
]
