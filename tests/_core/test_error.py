import pytest

from llm_json_utils._core.error import (
    CandidateError,
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


@pytest.mark.parametrize(
    'error, kind',
    [
        (StructuralError('bad', 3), ErrorKind.STRUCTURAL),
        (SchemaMismatch('wrong type'), ErrorKind.SCHEMA_MISMATCH),
        (MissingRequiredField('summary'), ErrorKind.MISSING_REQUIRED_FIELD),
        (RecursionLimitExceeded(128), ErrorKind.RECURSION_LIMIT_EXCEEDED),
        (StringTooLong(10), ErrorKind.STRING_TOO_LONG),
        (NoMatchFound(4), ErrorKind.NO_MATCH_FOUND),
        (InvalidSchema('nope'), ErrorKind.INVALID_SCHEMA),
    ],
)
def test_every_error_carries_its_kind(error, kind):
    assert error.kind is kind
    assert isinstance(error, JsonUtilsError)
    assert isinstance(error, ValueError)


def test_position_is_reported_in_message():
    error = StructuralError("Expected ':' after object key", 5)
    assert error.position == 5
    assert 'position 5' in str(error)


def test_missing_required_field_is_a_schema_mismatch():
    error = MissingRequiredField('summary', path='$.result')
    assert isinstance(error, SchemaMismatch)
    assert error.field == 'summary'
    assert str(error) == "Missing required field 'summary' at $.result"


def test_candidate_errors_exclude_caller_facing_errors():
    assert issubclass(StringTooLong, CandidateError)
    assert issubclass(RecursionLimitExceeded, CandidateError)
    assert not issubclass(NoMatchFound, CandidateError)
    assert not issubclass(InvalidSchema, CandidateError)


def test_no_match_found_reports_candidate_count():
    assert NoMatchFound(3).candidates_tried == 3
    assert '3 candidate(s)' in str(NoMatchFound(3))


def test_error_kind_lookup_and_str():
    assert ErrorKind.from_str('Schema_Mismatch') is ErrorKind.SCHEMA_MISMATCH
    assert ErrorKind.from_str('unknown', default=ErrorKind.STRUCTURAL) is ErrorKind.STRUCTURAL
    assert str(ErrorKind.NO_MATCH_FOUND) == 'no_match_found'
    with pytest.raises(KeyError):
        ErrorKind.from_str('unknown')
