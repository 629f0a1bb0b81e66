from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Tuple

import ahocorasick

from llm_json_utils.structural.lenient import LenientParser

# Characters accepted around a field name: straight, curly and full-width quotes.
QUOTE_CHARS = frozenset(LenientParser.STRING_DELIMITERS)

# Closing quote -> the opening quotes of strings it can end.
OPENERS_BY_CLOSER: Dict[str, FrozenSet[str]] = {
    closer: frozenset(
        opener
        for opener, closers in LenientParser.STRING_DELIMITERS.items()
        if closer in closers
    )
    for closer in QUOTE_CHARS
}


class AnchorSet:
    """
    Field names of a schema compiled into an Aho-Corasick automaton.

    Built once per schema and only read afterwards, so one instance can be
    scanned from several threads at the same time.
    """

    def __init__(self, names: Iterable[str]):
        self.names: FrozenSet[str] = frozenset(name for name in names if name)
        self._automaton = ahocorasick.Automaton()
        for name in sorted(self.names):
            self._automaton.add_word(name, name)
        if self.names:
            self._automaton.make_automaton()

    def __len__(self) -> int:
        return len(self.names)

    def __bool__(self) -> bool:
        return bool(self.names)

    def find(
        self, text: str, wanted: Optional[FrozenSet[str]] = None
    ) -> Iterator[Tuple[int, str]]:
        """
        Yield ``(start, name)`` for every quoted occurrence of a field name.

        Args:
            text: The haystack.
            wanted: Restrict results to these names.
        """
        if not self.names:
            return
        size = len(text)
        for end, name in self._automaton.iter(text):
            if wanted is not None and name not in wanted:
                continue
            start = end - len(name) + 1
            if start == 0 or end + 1 >= size:
                continue
            if text[start - 1] in QUOTE_CHARS and text[end + 1] in QUOTE_CHARS:
                yield start, name


def enclosing_brace(text: str, anchor: int) -> Optional[int]:
    """
    Find the nearest unmatched ``{`` before a quoted anchor.

    Walks backwards from the character before the anchor's opening quote,
    tracking bracket depth and skipping braces inside strings of any quote
    style the lenient parser accepts.

    Returns:
        Index of the brace, or None if the anchor is not inside an object.
    """
    depth = 0
    openers: Optional[FrozenSet[str]] = None
    position = anchor - 2
    while position >= 0:
        char = text[position]
        if openers is not None:
            if char in openers and not _is_escaped(text, position):
                openers = None
        elif char in QUOTE_CHARS and not _is_escaped(text, position):
            openers = OPENERS_BY_CLOSER[char]
        elif char in '}]':
            depth += 1
        elif char in '{[':
            if depth:
                depth -= 1
            elif char == '{':
                return position
        position -= 1
    return None


def _is_escaped(text: str, position: int) -> bool:
    backslashes = 0
    position -= 1
    while position >= 0 and text[position] == '\\':
        backslashes += 1
        position -= 1
    return backslashes % 2 == 1
