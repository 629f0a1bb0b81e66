"""
Intermediate value tree produced by both parsers.

Every variant is a frozen dataclass tagged with a ``ValueKind``. Integers
outside the signed 64-bit range are kept as ``JsonBigInteger`` (sign plus the
exact decimal digits) instead of being coerced to ``float``.
"""

import json
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Iterator, List, Mapping, Optional, Tuple, Union

from llm_json_utils._core.error import StructuralError
from llm_json_utils._core.schema import RichEnum

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Any literal with more digits than this cannot fit in an i64.
_MAX_I64_DIGITS = 19

# Stays under the interpreter's int<->str conversion limit (sys.get_int_max_str_digits).
_DIGIT_CHUNK = 4000


class ValueKind(str, RichEnum):
    NULL = 'null'
    BOOL = 'bool'
    INTEGER = 'integer'
    BIG_INTEGER = 'big_integer'
    FLOAT = 'float'
    STRING = 'string'
    ARRAY = 'array'
    OBJECT = 'object'


@dataclass(frozen=True)
class Value:
    """Base class for all parsed JSON values."""

    kind: ClassVar[ValueKind]

    def to_python(self) -> Any:
        """Materialize the value as native Python objects."""
        raise NotImplementedError

    def to_json(self, indent: Optional[int] = None) -> str:
        """
        Serialize to strictly valid JSON text.

        BigInteger digits are written as-is. Raises ``StructuralError`` for a
        non-finite float, which has no JSON representation.
        """
        return _serialize(self, indent, 0)

    @staticmethod
    def from_python(obj: Any) -> 'Value':
        """
        Build a value tree from native Python data.

        Args:
            obj: ``None``, ``bool``, ``int``, ``float``, ``str``, a list/tuple or a
                dict with string keys, nested arbitrarily.

        Returns:
            The equivalent ``Value``.
        """
        if obj is None:
            return JsonNull()
        if isinstance(obj, bool):
            return JsonBool(obj)
        if isinstance(obj, int):
            if INT64_MIN <= obj <= INT64_MAX:
                return JsonInteger(obj)
            return JsonBigInteger(_int_to_digits(abs(obj)), negative=obj < 0)
        if isinstance(obj, float):
            return JsonFloat(obj)
        if isinstance(obj, str):
            return JsonString(obj)
        if isinstance(obj, (list, tuple)):
            return JsonArray(tuple(Value.from_python(item) for item in obj))
        if isinstance(obj, dict):
            fields = {}
            for key, item in obj.items():
                if not isinstance(key, str):
                    raise TypeError(f'Object keys must be strings, got {type(key).__name__}')
                fields[key] = Value.from_python(item)
            return JsonObject(fields)
        raise TypeError(f'Cannot convert {type(obj).__name__} to a JSON value')


@dataclass(frozen=True)
class JsonNull(Value):
    kind: ClassVar[ValueKind] = ValueKind.NULL

    def to_python(self) -> None:
        return None


@dataclass(frozen=True)
class JsonBool(Value):
    kind: ClassVar[ValueKind] = ValueKind.BOOL
    value: bool

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True)
class JsonInteger(Value):
    kind: ClassVar[ValueKind] = ValueKind.INTEGER
    value: int

    def to_python(self) -> int:
        return self.value


@dataclass(frozen=True)
class JsonBigInteger(Value):
    """Integer literal too large for i64, held as its exact decimal digits."""

    kind: ClassVar[ValueKind] = ValueKind.BIG_INTEGER
    digits: str
    negative: bool = False

    @property
    def literal(self) -> str:
        return f'-{self.digits}' if self.negative else self.digits

    def to_python(self) -> int:
        number = 0
        for start in range(0, len(self.digits), _DIGIT_CHUNK):
            chunk = self.digits[start : start + _DIGIT_CHUNK]
            number = number * 10 ** len(chunk) + int(chunk)
        return -number if self.negative else number


@dataclass(frozen=True)
class JsonFloat(Value):
    kind: ClassVar[ValueKind] = ValueKind.FLOAT
    value: float

    def to_python(self) -> float:
        return self.value


@dataclass(frozen=True)
class JsonString(Value):
    kind: ClassVar[ValueKind] = ValueKind.STRING
    value: str

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True)
class JsonArray(Value):
    kind: ClassVar[ValueKind] = ValueKind.ARRAY
    items: Tuple[Value, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Value:
        return self.items[index]

    def to_python(self) -> list:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class JsonObject(Value):
    kind: ClassVar[ValueKind] = ValueKind.OBJECT
    fields: Mapping[str, Value] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'fields', MappingProxyType(dict(self.fields)))

    def __repr__(self) -> str:
        return f'JsonObject(fields={dict(self.fields)!r})'

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def __getitem__(self, key: str) -> Value:
        return self.fields[key]

    def get(self, key: str, default: Optional[Value] = None) -> Optional[Value]:
        return self.fields.get(key, default)

    def keys(self):
        return self.fields.keys()

    def to_python(self) -> dict:
        return {key: item.to_python() for key, item in self.fields.items()}


def make_integer(digits: str, negative: bool) -> Union[JsonInteger, JsonBigInteger]:
    """Build an Integer, or a BigInteger when the literal overflows i64."""
    if len(digits) <= _MAX_I64_DIGITS:
        number = -int(digits) if negative else int(digits)
        if INT64_MIN <= number <= INT64_MAX:
            return JsonInteger(number)
    return JsonBigInteger(digits, negative=negative)


def _int_to_digits(number: int) -> str:
    """Decimal digits of a non-negative int of any size."""
    base = 10**_DIGIT_CHUNK
    chunks = []
    while number >= base:
        number, low = divmod(number, base)
        chunks.append(str(low).zfill(_DIGIT_CHUNK))
    chunks.append(str(number))
    return ''.join(reversed(chunks))


def _serialize(value: Value, indent: Optional[int], level: int) -> str:
    if isinstance(value, JsonBigInteger):
        return value.literal
    if isinstance(value, JsonFloat):
        if not math.isfinite(value.value):
            raise StructuralError(f'Float {value.value!r} has no JSON representation')
        return json.dumps(value.value)
    if isinstance(value, JsonArray):
        parts = [_serialize(item, indent, level + 1) for item in value]
        return _wrap('[', ']', parts, indent, level)
    if isinstance(value, JsonObject):
        parts = [
            f'{json.dumps(key, ensure_ascii=False)}: {_serialize(item, indent, level + 1)}'
            for key, item in value.fields.items()
        ]
        return _wrap('{', '}', parts, indent, level)
    return json.dumps(value.to_python(), ensure_ascii=False)


def _wrap(
    opening: str, closing: str, parts: List[str], indent: Optional[int], level: int
) -> str:
    if not parts:
        return opening + closing
    if indent is None:
        return opening + ', '.join(parts) + closing
    inner = '\n' + ' ' * (indent * (level + 1))
    outer = '\n' + ' ' * (indent * level)
    return opening + inner + (',' + inner).join(parts) + outer + closing


__all__ = [
    'INT64_MAX',
    'INT64_MIN',
    'JsonArray',
    'JsonBigInteger',
    'JsonBool',
    'JsonFloat',
    'JsonInteger',
    'JsonNull',
    'JsonObject',
    'JsonString',
    'Value',
    'ValueKind',
    'make_integer',
]
