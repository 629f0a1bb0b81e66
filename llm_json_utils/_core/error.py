from __future__ import annotations

from typing import Optional

from llm_json_utils._core.schema import RichEnum


class ErrorKind(str, RichEnum):
    """Discriminator shared by every error the parsers can raise."""

    STRUCTURAL = 'structural_error'
    SCHEMA_MISMATCH = 'schema_mismatch'
    MISSING_REQUIRED_FIELD = 'missing_required_field'
    RECURSION_LIMIT_EXCEEDED = 'recursion_limit_exceeded'
    STRING_TOO_LONG = 'string_too_long'
    NO_MATCH_FOUND = 'no_match_found'
    INVALID_SCHEMA = 'invalid_schema'


class JsonUtilsError(ValueError):
    """
    Base exception class.

    Subclasses ``ValueError`` so callers that only care about "bad input"
    can keep a single except clause.
    """

    kind: ErrorKind = ErrorKind.STRUCTURAL

    def __init__(self, message: str, position: Optional[int] = None):
        self.message = message
        self.position = position
        if position is not None:
            message = f'{message} (at position {position})'
        super().__init__(message)


class StructuralError(JsonUtilsError):
    """Raised when input contains syntax the recovery rules do not cover."""

    kind = ErrorKind.STRUCTURAL


class SchemaMismatch(JsonUtilsError):
    """A parsed candidate disagrees with the schema."""

    kind = ErrorKind.SCHEMA_MISMATCH

    def __init__(self, message: str, path: str = '$'):
        self.path = path
        super().__init__(f'{message} at {path}')


class MissingRequiredField(SchemaMismatch):
    """A parsed candidate lacks a field the schema marks as required."""

    kind = ErrorKind.MISSING_REQUIRED_FIELD

    def __init__(self, field: str, path: str = '$'):
        self.field = field
        super().__init__(f'Missing required field {field!r}', path=path)


class RecursionLimitExceeded(JsonUtilsError):
    """Nesting went deeper than the configured limit."""

    kind = ErrorKind.RECURSION_LIMIT_EXCEEDED

    def __init__(self, limit: int, position: Optional[int] = None):
        self.limit = limit
        super().__init__(f'Nesting depth exceeds limit of {limit}', position)


class StringTooLong(JsonUtilsError):
    """A single string value exceeded the configured length limit."""

    kind = ErrorKind.STRING_TOO_LONG

    def __init__(self, limit: int, position: Optional[int] = None):
        self.limit = limit
        super().__init__(f'String value longer than {limit} bytes', position)


class NoMatchFound(JsonUtilsError):
    """
    Raised when extraction exhausts every candidate without a conforming value.
    """

    kind = ErrorKind.NO_MATCH_FOUND

    def __init__(self, candidates_tried: int = 0):
        self.candidates_tried = candidates_tried
        super().__init__(
            f'No schema-conforming JSON value found '
            f'({candidates_tried} candidate(s) tried)'
        )


class InvalidSchema(JsonUtilsError):
    """Raised when the schema description is malformed."""

    kind = ErrorKind.INVALID_SCHEMA

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)


# Failures that only discard the current extraction candidate.
CandidateError = (
    StructuralError,
    SchemaMismatch,
    RecursionLimitExceeded,
    StringTooLong,
)
