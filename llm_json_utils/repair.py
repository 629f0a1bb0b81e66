from typing import Any, Dict, List, Optional

from llm_json_utils._core.environment import resolve_limit
from llm_json_utils._core.error import RecursionLimitExceeded, StructuralError
from llm_json_utils._core.logging import get_logger
from llm_json_utils.scanner import DIGITS, Scanner
from llm_json_utils.values import (
    JsonArray,
    JsonBool,
    JsonNull,
    JsonObject,
    JsonString,
    Value,
)

logger = get_logger(__name__)


class ParseContext:
    """Stack of the containers the parser is currently inside."""

    class ContextValues:
        """Enum-like class for context values."""

        OBJECT_KEY = 'object_key'
        OBJECT_VALUE = 'object_value'
        ARRAY = 'array'

    def __init__(self):
        self.stack: List[str] = []

    def push(self, value: str) -> None:
        self.stack.append(value)

    def pop(self) -> None:
        self.stack.pop()

    def set(self, value: str) -> None:
        """Replace the innermost context value."""
        self.stack[-1] = value

    @property
    def current(self) -> Optional[str]:
        return self.stack[-1] if self.stack else None

    @property
    def depth(self) -> int:
        return len(self.stack)


class RepairParser(Scanner):
    """
    Recursive-descent JSON parser with a closed set of recovery rules.

    Tolerated:
    - comments and Markdown fence markers between tokens
    - a single trailing comma before ``}`` or ``]``
    - end of input while containers are open (they are closed innermost first)

    Everything else is a ``StructuralError``.
    """

    # opening delimiter -> characters that close the string
    STRING_DELIMITERS: Dict[str, str] = {'"': '"', "'": "'"}
    LITERALS = (('true', True), ('false', False), ('null', None))

    def __init__(self, text: str, start: int = 0, max_depth: Optional[int] = None):
        super().__init__(text, start)
        self.max_depth = resolve_limit(max_depth, 'repair_max_depth')
        self.context = ParseContext()

    # Main entry point

    def parse(self) -> Value:
        """
        Parse exactly one value; anything after it is discarded.

        Returns:
            The parsed value tree.
        """
        value = self.parse_json()
        self.skip_ignorable()
        if not self.at_end:
            logger.debug(
                f'Discarding {self.length - self.index} trailing characters '
                f'after the top-level value'
            )
        return value

    # Grammar

    def parse_json(self) -> Value:
        """
        Parse the next JSON value from the current position.
        """
        self.skip_ignorable()
        char = self.get_char_at()

        if char is False:
            raise StructuralError(
                'Unexpected end of input while expecting a value', self.index
            )
        if char == '{':
            return self.parse_object()
        if char == '[':
            return self.parse_array()
        if char in self.STRING_DELIMITERS:
            return JsonString(self.parse_string_value(char))
        if char == '-' or char in DIGITS:
            return self.parse_number_value()
        if char in 'tfn':
            return self.parse_boolean_or_null()

        raise StructuralError(
            f'Unexpected character {char!r} while parsing value', self.index
        )

    def parse_object(self) -> JsonObject:
        """
        Parse a JSON object (dictionary).
        """
        self._enter()
        self.context.push(ParseContext.ContextValues.OBJECT_KEY)
        self.index += 1
        fields: Dict[str, Value] = {}

        done = self._open_container('}', 'object')
        while not done:
            self.context.set(ParseContext.ContextValues.OBJECT_KEY)
            key = self.parse_key()

            self.skip_ignorable()
            char = self.get_char_at()
            if char is False:
                raise StructuralError(
                    f'Unexpected end of input after object key {key!r}', self.index
                )
            if char != ':':
                raise StructuralError("Expected ':' after object key", self.index)
            self.index += 1

            self.context.set(ParseContext.ContextValues.OBJECT_VALUE)
            value = self.parse_json()
            if key in fields:
                logger.debug(f'Duplicate object key {key!r}; keeping the last value')
            fields[key] = value

            done = self._close_or_continue('}', 'object')

        self.context.pop()
        return JsonObject(fields)

    def parse_array(self) -> JsonArray:
        """
        Parse a JSON array (list).
        """
        self._enter()
        self.context.push(ParseContext.ContextValues.ARRAY)
        self.index += 1
        items = []

        done = self._open_container(']', 'array')
        while not done:
            items.append(self.parse_json())
            done = self._close_or_continue(']', 'array')

        self.context.pop()
        return JsonArray(tuple(items))

    def parse_key(self) -> str:
        char = self.get_char_at()
        if char is False or char not in self.STRING_DELIMITERS:
            raise StructuralError('Object keys must be strings', self.index)
        return self.parse_string_value(char)

    def parse_string_value(self, opening: str) -> str:
        return self.parse_string(self.STRING_DELIMITERS[opening])

    def parse_number_value(self) -> Value:
        return self.parse_number()

    def parse_boolean_or_null(self) -> Value:
        """
        Parse a JSON boolean or null value.
        """
        for word, value in self.LITERALS:
            if self.match_literal(word):
                return JsonNull() if value is None else JsonBool(value)
        raise StructuralError('Invalid literal', self.index)

    # Separator handling

    def _open_container(self, closer: str, name: str) -> bool:
        """
        Handle the position right after an opening delimiter.

        Returns:
            True when the container is already finished (empty or truncated).
        """
        self.skip_ignorable()
        char = self.get_char_at()
        if char is False:
            self._log_truncation(name)
            return True
        if char == closer:
            self.index += 1
            return True
        if char == ',':
            raise StructuralError(f'Comma with no preceding element in {name}', self.index)
        if char in '}]':
            raise StructuralError(
                f'Mismatched closing delimiter {char!r} in {name}', self.index
            )
        return False

    def _close_or_continue(self, closer: str, name: str) -> bool:
        """
        Consume what follows an element.

        Returns:
            True when the container is finished, False when another element follows.
        """
        self.skip_ignorable()
        char = self.get_char_at()
        if char is False:
            self._log_truncation(name)
            return True
        if char == closer:
            self.index += 1
            return True
        if char == ',':
            self.index += 1
            self.skip_ignorable()
            char = self.get_char_at()
            if char is False:
                self._log_truncation(name)
                return True
            if char == closer:
                logger.debug(f'Dropping trailing comma before {closer!r}')
                self.index += 1
                return True
            if char == ',':
                raise StructuralError(f'Consecutive commas in {name}', self.index)
            return False
        if char in '}]':
            raise StructuralError(
                f'Mismatched closing delimiter {char!r} in {name}', self.index
            )
        raise StructuralError(f"Expected ',' or {closer!r} in {name}", self.index)

    def _log_truncation(self, name: str) -> None:
        logger.debug(f'Input ended inside an open {name}; closing it')

    def _enter(self) -> None:
        if self.context.depth >= self.max_depth:
            raise RecursionLimitExceeded(self.max_depth, self.index)


def repair_json(json_string: str, max_depth: Optional[int] = None) -> Value:
    """
    Parse near-valid JSON text, repairing trailing commas, comments and truncation.

    Args:
        json_string: Text holding one JSON value, possibly followed by noise
        max_depth: Maximum container nesting (defaults to settings.repair_max_depth)

    Returns:
        The parsed value tree
    """
    if isinstance(json_string, (bytes, bytearray)):
        json_string = bytes(json_string).decode('utf-8')
    parser = RepairParser(json_string, max_depth=max_depth)
    return parser.parse()


def loads(json_string: str, max_depth: Optional[int] = None) -> Any:
    """
    Repair and parse JSON text into native Python objects.

    Args:
        json_string: Text holding one JSON value
        max_depth: Maximum container nesting

    Returns:
        dict / list / str / int / float / bool / None
    """
    return repair_json(json_string, max_depth=max_depth).to_python()
