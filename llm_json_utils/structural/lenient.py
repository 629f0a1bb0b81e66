from typing import Dict, Optional

from llm_json_utils._core.environment import resolve_limit
from llm_json_utils._core.logging import get_logger
from llm_json_utils.repair import RepairParser
from llm_json_utils.values import Value

logger = get_logger(__name__)

# Characters that may start a unit suffix glued to a number, e.g. 12kg, 95%, 30°C
UNIT_START = frozenset('%°µ')
UNIT_BODY = frozenset('%°µ/²³')


class LenientParser(RepairParser):
    """
    Superset of ``RepairParser`` used on extraction candidates.

    Additionally tolerates:
    - missing or duplicated element separators
    - a unit or percent suffix after a number (the suffix is discarded)
    - curly and full-width quote delimiters; other quote styles may appear
      unescaped inside a string
    - thousands separators inside numbers (``1,234,567``): a comma followed by
      exactly three digits continues the number

    Depth and string length are capped so one bad candidate cannot exhaust
    the stack or memory.
    """

    STRING_DELIMITERS: Dict[str, str] = {
        '"': '"',
        "'": "'",
        '“': '”“',
        '”': '”“',
        '‘': '’‘',
        '’': '’‘',
        '＂': '＂',
        '＇': '＇',
    }

    def __init__(
        self,
        text: str,
        start: int = 0,
        max_depth: Optional[int] = None,
        max_string_length: Optional[int] = None,
    ):
        super().__init__(
            text, start, max_depth=resolve_limit(max_depth, 'extract_max_depth')
        )
        self.max_string_length = resolve_limit(
            max_string_length, 'extract_max_string_length'
        )

    def parse_string_value(self, opening: str) -> str:
        return self.parse_string(
            self.STRING_DELIMITERS[opening], max_length=self.max_string_length
        )

    def parse_number_value(self) -> Value:
        number = self.parse_number(allow_grouping=True, lenient=True)
        self._skip_unit_suffix()
        return number

    def _skip_unit_suffix(self) -> None:
        text = self.text
        position = self.index
        while position < self.length and text[position] in ' \t':
            position += 1
        if position < self.length and text[position] == '%':
            logger.debug(f'Discarding percent suffix at {position}')
            self.index = position + 1
            return

        char = self.get_char_at()
        if char is False or not (char.isalpha() or char in UNIT_START):
            return
        start = self.index
        while self.index < self.length:
            char = text[self.index]
            if char == '/' and text[self.index + 1 : self.index + 2] in ('/', '*'):
                break
            if not (char.isalpha() or char in UNIT_BODY):
                break
            self.index += 1
        logger.debug(f'Discarding unit suffix {text[start:self.index]!r}')

    # Separator handling

    def _skip_commas(self) -> None:
        self.skip_ignorable()
        while self.get_char_at() == ',':
            self.index += 1
            self.skip_ignorable()

    def _open_container(self, closer: str, name: str) -> bool:
        self._skip_commas()
        return super()._open_container(closer, name)

    def _close_or_continue(self, closer: str, name: str) -> bool:
        self.skip_ignorable()
        char = self.get_char_at()
        if char == ',':
            self._skip_commas()
            char = self.get_char_at()
            if char is False:
                self._log_truncation(name)
                return True
            if char == closer:
                self.index += 1
                return True
            return False
        if char is False or char == closer or char in '}]':
            return super()._close_or_continue(closer, name)
        logger.debug(f'Missing separator in {name} at {self.index}; continuing')
        return False
