import json

import pytest

from llm_json_utils import loads, repair_json
from llm_json_utils._core.error import RecursionLimitExceeded, StructuralError
from llm_json_utils.repair import ParseContext, RepairParser
from llm_json_utils.values import JsonBigInteger, JsonObject


@pytest.mark.parametrize(
    'text',
    [
        '{"a": [1, 2.5, "x", true, false, null], "b": {}}',
        '[]',
        '"just a string"',
        '-12.5e3',
        '{"nested": {"deeper": [[], [{}], {"k": "v\\n"}]}}',
        '  {"spaced" :  [ 1 , 2 ]  }  ',
        '{"unicode": "\\u00e9\\ud83d\\ude00", "slash": "a\\/b"}',
    ],
)
def test_valid_json_matches_stdlib(text):
    assert repair_json(text).to_python() == json.loads(text)


@pytest.mark.parametrize(
    'text, expected',
    [
        ('{"a": 1, "b": [1,2,],}', {'a': 1, 'b': [1, 2]}),
        ('[1, 2,]', [1, 2]),
        ('{"a": 1', {'a': 1}),
        ('{"a": [1, 2', {'a': [1, 2]}),
        ('{"a": {"b": [true,', {'a': {'b': [True]}}),
        ('[', []),
        ('{', {}),
        ("{'single': 'quotes'}", {'single': 'quotes'}),
        ('{"a": 1, "a": 2}', {'a': 2}),
        ('{"a": 1} trailing words', {'a': 1}),
    ],
)
def test_repairs(text, expected):
    assert loads(text) == expected


def test_big_integer_keeps_digits():
    value = repair_json('{"id": 123456789012345678901234567890}')
    assert value['id'] == JsonBigInteger('123456789012345678901234567890', negative=False)


def test_escapes_are_preserved_on_failure():
    value = repair_json(r'{"path": "C:\\Windows", "weird": "\u123z"}')
    assert value['path'].value == 'C:\\Windows'
    assert value['weird'].value == '\\u123z'


def test_comments_and_fences_are_ignored():
    text = """```json
    {
        // the answer
        "a": 1, # hash comment
        /* block */ "b": [2, 3]
    }
    ```"""
    assert loads(text) == {'a': 1, 'b': [2, 3]}


def test_unterminated_block_comment_runs_to_end():
    assert loads('{"a": 1 /* never closed') == {'a': 1}


@pytest.mark.parametrize(
    'text, message',
    [
        ('{"a" 1}', "Expected ':' after object key"),
        ('{"a"', 'Unexpected end of input after object key'),
        ('{"a":', 'Unexpected end of input while expecting a value'),
        ('', 'Unexpected end of input while expecting a value'),
        ('   // only a comment', 'Unexpected end of input while expecting a value'),
        ('{"a": "unterminated', 'Unterminated string'),
        ('[1,,2]', 'Consecutive commas'),
        ('[,1]', 'Comma with no preceding element'),
        ('[1}', 'Mismatched closing delimiter'),
        ('{"a": 1]', 'Mismatched closing delimiter'),
        ('[1 2]', "Expected ',' or"),
        ('{a: 1}', 'Object keys must be strings'),
        ('undefined', 'Unexpected character'),
        ('True', 'Unexpected character'),
        ('nil', 'Invalid literal'),
        ('[01]', 'leading zero'),
    ],
)
def test_structural_errors(text, message):
    with pytest.raises(StructuralError, match=message):
        repair_json(text)


def test_structural_error_reports_position():
    with pytest.raises(StructuralError) as exc_info:
        repair_json('{"a" 1}')
    assert exc_info.value.position == 5
    assert 'at position 5' in str(exc_info.value)


@pytest.mark.parametrize(
    'text',
    [
        '{"a": 1, "b": [1,2,],}',
        '{"a": [1, {"b": "c"',
        '/* c */ {"x": "C:\\\\dir", "n": -0.5, "big": 99999999999999999999}',
        "['mixed', \"quotes\", null]",
    ],
)
def test_repair_is_idempotent(text):
    once = repair_json(text)
    assert repair_json(once.to_json()) == once


def test_bytes_input():
    assert loads('{"name": "Zoë"}'.encode('utf-8')) == {'name': 'Zoë'}


def test_depth_limit():
    assert loads('[[[1]]]', max_depth=3) == [[[1]]]
    with pytest.raises(RecursionLimitExceeded) as exc_info:
        repair_json('[[[[1]]]]', max_depth=3)
    assert exc_info.value.limit == 3


def test_default_depth_limit_comes_from_settings():
    assert RepairParser('[]').max_depth == 256
    with pytest.raises(RecursionLimitExceeded):
        repair_json('[' * 300)


def test_invalid_depth_limit():
    with pytest.raises(ValueError, match='positive integer'):
        repair_json('[]', max_depth=0)


def test_parser_can_start_mid_text():
    parser = RepairParser('noise {"a": 1} more', start=6)
    value = parser.parse_json()
    assert value == JsonObject({'a': repair_json('1')})
    assert parser.index == 14


def test_parse_context_tracks_nesting():
    context = ParseContext()
    assert context.current is None
    context.push(ParseContext.ContextValues.OBJECT_KEY)
    context.set(ParseContext.ContextValues.OBJECT_VALUE)
    context.push(ParseContext.ContextValues.ARRAY)
    assert context.depth == 2
    assert context.current == ParseContext.ContextValues.ARRAY
    context.pop()
    assert context.current == ParseContext.ContextValues.OBJECT_VALUE


def test_float_overflow_matches_stdlib():
    text = '{"x": 1e400, "y": [-1e999]}'
    assert loads(text) == json.loads(text)


def test_huge_integer_round_trips_through_json_text():
    literal = '1' * 5000
    value = repair_json(literal)

    assert value == JsonBigInteger(literal)
    assert value.to_json() == literal
    assert repair_json(value.to_json()) == value
    assert loads('-' + literal) == -((10**5000 - 1) // 9)


@pytest.mark.parametrize('text', ['{"a": ```json\n1}', '```json {"a": 1}'])
def test_fence_marker_must_fill_its_line(text):
    with pytest.raises(StructuralError, match='Unexpected character'):
        repair_json(text)
