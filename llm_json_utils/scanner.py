import re
from functools import lru_cache
from typing import Literal, Optional, Pattern, Union

from llm_json_utils._core.error import StringTooLong, StructuralError
from llm_json_utils._core.logging import get_logger
from llm_json_utils.values import JsonFloat, JsonInteger, JsonBigInteger, make_integer

logger = get_logger(__name__)

DIGITS = frozenset('0123456789')
HEX_DIGITS = frozenset('0123456789abcdefABCDEF')

SIMPLE_ESCAPES = {
    '"': '"',
    '\\': '\\',
    '/': '/',
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
}

# A line holding only a fence delimiter and an optional language tag, e.g. ```json or ~~~
_FENCE_PATTERN = re.compile(r'(?:```|~~~)[`~]*[ \t]*[\w.+\-]*[ \t]*(?=\r?\n|\Z)')


@lru_cache(maxsize=32)
def _string_stop_pattern(closing: str) -> Pattern[str]:
    """Pattern matching the next character that needs attention inside a string."""
    return re.compile('[' + re.escape('\\' + closing) + ']')


def _utf8_length(chunk: str) -> int:
    if chunk.isascii():
        return len(chunk)
    # Lone surrogates from \u escapes still count as their three encoded bytes.
    return len(chunk.encode('utf-8', errors='surrogatepass'))


class Scanner:
    """
    Character cursor shared by the repair and lenient parsers.

    Owns the position, comment/whitespace/fence skipping, string escape
    decoding and number decoding. Parsers layer their grammar on top.
    """

    def __init__(self, text: str, start: int = 0):
        self.text = text
        self.length = len(text)
        self.index = start

    # Helper methods

    def get_char_at(self, count: int = 0) -> Union[str, Literal[False]]:
        """
        Get character at current index + count.

        Returns:
            Character at position or False if out of bounds
        """
        position = self.index + count
        if position < self.length:
            return self.text[position]
        return False

    @property
    def at_end(self) -> bool:
        return self.index >= self.length

    def skip_ignorable(self) -> None:
        """
        Skip whitespace, ``//`` and ``#`` line comments, ``/* */`` block
        comments and Markdown fence markers.
        """
        text = self.text
        while self.index < self.length:
            char = text[self.index]

            if char.isspace() or char == '﻿':
                self.index += 1
                continue

            if char == '#':
                self._skip_line()
                continue

            if char == '/':
                next_char = self.get_char_at(1)
                if next_char == '/':
                    self._skip_line()
                    continue
                if next_char == '*':
                    end = text.find('*/', self.index + 2)
                    if end == -1:
                        logger.debug('Unterminated block comment runs to end of input')
                        self.index = self.length
                    else:
                        self.index = end + 2
                    continue
                return

            if char in '`~' and self._at_line_start():
                fence = _FENCE_PATTERN.match(text, self.index)
                if fence:
                    self.index = fence.end()
                    continue

            return

    def _at_line_start(self) -> bool:
        """True when only whitespace precedes the cursor on its line."""
        line_start = self.text.rfind('\n', 0, self.index) + 1
        return not self.text[line_start : self.index].strip()

    def _skip_line(self) -> None:
        end = self.text.find('\n', self.index)
        self.index = self.length if end == -1 else end + 1

    def match_literal(self, word: str) -> bool:
        """Consume ``word`` if it appears at the cursor as a whole token."""
        if not self.text.startswith(word, self.index):
            return False
        following = self.get_char_at(len(word))
        if following and (following.isalnum() or following == '_'):
            return False
        self.index += len(word)
        return True

    # Strings

    def parse_string(self, closing: str, max_length: Optional[int] = None) -> str:
        """
        Decode a string whose opening delimiter sits at the cursor.

        Args:
            closing: Characters that terminate the string.
            max_length: Optional limit on the decoded length in UTF-8 bytes.

        Returns:
            The decoded text. Undecodable escapes are kept verbatim.
        """
        start = self.index
        self.index += 1
        stop = _string_stop_pattern(closing)
        text = self.text
        chunks = []
        size = 0

        while True:
            match = stop.search(text, self.index)
            if match is None:
                raise StructuralError('Unterminated string', start)

            chunk = text[self.index : match.start()]
            if chunk:
                chunks.append(chunk)
                size += _utf8_length(chunk)
            self.index = match.start()

            if text[self.index] != '\\':
                self.index += 1
                break

            decoded = self._decode_escape(closing, start)
            chunks.append(decoded)
            size += _utf8_length(decoded)

            if max_length is not None and size > max_length:
                raise StringTooLong(max_length, start)

        if max_length is not None and size > max_length:
            raise StringTooLong(max_length, start)
        return ''.join(chunks)

    def _decode_escape(self, closing: str, string_start: int) -> str:
        """Decode the escape sequence at the cursor (which points at the backslash)."""
        escape = self.get_char_at(1)
        if escape is False:
            raise StructuralError('Unterminated string', string_start)

        if escape in SIMPLE_ESCAPES:
            self.index += 2
            return SIMPLE_ESCAPES[escape]

        if escape in closing:
            self.index += 2
            return escape

        if escape == 'u':
            code = self._read_hex4(self.index + 2)
            if code is None:
                # Malformed \u escape: keep the two characters and carry on
                # with whatever follows as ordinary text.
                logger.debug(f'Preserving malformed unicode escape at {self.index}')
                self.index += 2
                return '\\u'

            self.index += 6
            if 0xD800 <= code <= 0xDBFF and self.text.startswith('\\u', self.index):
                low = self._read_hex4(self.index + 2)
                if low is not None and 0xDC00 <= low <= 0xDFFF:
                    self.index += 6
                    return chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00))
            return chr(code)

        logger.debug(f'Preserving unknown escape \\{escape} at {self.index}')
        self.index += 2
        return '\\' + escape

    def _read_hex4(self, position: int) -> Optional[int]:
        digits = self.text[position : position + 4]
        if len(digits) == 4 and all(c in HEX_DIGITS for c in digits):
            return int(digits, 16)
        return None

    # Numbers

    def _scan_digits(self) -> str:
        start = self.index
        text = self.text
        while self.index < self.length and text[self.index] in DIGITS:
            self.index += 1
        return text[start : self.index]

    def _group_follows(self) -> bool:
        """True when the cursor sits on ``,`` followed by exactly three digits."""
        text = self.text
        position = self.index
        if text[position : position + 1] != ',':
            return False
        group = text[position + 1 : position + 4]
        if len(group) != 3 or not all(c in DIGITS for c in group):
            return False
        return text[position + 4 : position + 5] not in DIGITS

    def parse_number(
        self, allow_grouping: bool = False, lenient: bool = False
    ) -> Union[JsonInteger, JsonBigInteger, JsonFloat]:
        """
        Decode a JSON number at the cursor.

        Args:
            allow_grouping: Accept ``,``-separated thousands groups in the
                integer part.
            lenient: Leave a dangling exponent marker unconsumed instead of
                failing, so it can be treated as a unit suffix.

        Returns:
            Integer, BigInteger or Float value.
        """
        start = self.index
        negative = self.get_char_at() == '-'
        if negative:
            self.index += 1

        digits = self._scan_digits()
        if not digits:
            raise StructuralError('Invalid number literal', start)
        if len(digits) > 1 and digits[0] == '0':
            raise StructuralError('Invalid number literal: leading zero', start)

        if allow_grouping:
            while self._group_follows():
                digits += self.text[self.index + 1 : self.index + 4]
                self.index += 4

        fraction = ''
        if self.get_char_at() == '.':
            self.index += 1
            fraction = self._scan_digits()
            if not fraction:
                raise StructuralError('Invalid number literal: missing fraction digits', start)

        exponent = ''
        if self.get_char_at() in ('e', 'E'):
            mark = self.index
            self.index += 1
            sign = self.get_char_at()
            if sign in ('+', '-'):
                self.index += 1
            exponent_digits = self._scan_digits()
            if exponent_digits:
                exponent = 'e' + (sign if sign in ('+', '-') else '') + exponent_digits
            elif lenient:
                self.index = mark
            else:
                raise StructuralError('Invalid number literal: missing exponent digits', start)

        if not fraction and not exponent:
            return make_integer(digits, negative)

        literal = ('-' if negative else '') + digits
        if fraction:
            literal += '.' + fraction
        literal += exponent
        # Overflow yields an infinite float, as a strict JSON decoder does.
        return JsonFloat(float(literal))
