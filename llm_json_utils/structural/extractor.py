from typing import Any, Iterator, Mapping, Optional, Union

from llm_json_utils._core.environment import resolve_limit
from llm_json_utils._core.error import CandidateError, NoMatchFound
from llm_json_utils._core.logging import get_logger
from llm_json_utils.structural.anchors import AnchorSet, enclosing_brace
from llm_json_utils.structural.conformance import check_conformance, project
from llm_json_utils.structural.lenient import LenientParser
from llm_json_utils.structural.schema import SchemaKind, SchemaNode, compile_schema
from llm_json_utils.values import Value

logger = get_logger(__name__)


class JsonExtractor:
    """
    Find the first schema-conforming JSON object inside noisy text.

    The schema and its anchor automaton are compiled once in the constructor
    and never mutated, so one extractor can serve many calls, including
    concurrent ones; all per-call state lives in the parser created for each
    candidate.

    Search order:
    1. For object schemas with required fields, every quoted occurrence of a
       required field name seeds a candidate at its nearest enclosing ``{``.
    2. Otherwise (or when no anchor yields a brace) every opening delimiter
       in the input is a candidate.

    Candidates are lenient-parsed in stream order; the first one that parses
    and conforms is projected onto the schema and returned.
    """

    def __init__(
        self,
        schema: Union[Mapping[str, Any], str, bytes, SchemaNode],
        max_depth: Optional[int] = None,
        max_string_length: Optional[int] = None,
    ):
        """
        Args:
            schema: Schema description (mapping or JSON text) or a compiled SchemaNode
            max_depth: Nesting limit per candidate (defaults to settings.extract_max_depth)
            max_string_length: String size limit in UTF-8 bytes per candidate
                (defaults to settings.extract_max_string_length)
        """
        self.schema = compile_schema(schema)
        self.max_depth = resolve_limit(max_depth, 'extract_max_depth')
        self.max_string_length = resolve_limit(
            max_string_length, 'extract_max_string_length'
        )
        self.anchors = AnchorSet(self.schema.field_names())

        if self.schema.kind is SchemaKind.OBJECT:
            self.required_anchors = frozenset(
                name for name in self.schema.required if name
            )
        else:
            self.required_anchors = frozenset()

        if self.schema.kind is SchemaKind.ARRAY:
            self.openers = '['
        elif self.schema.kind is SchemaKind.ANY:
            self.openers = '{['
        else:
            self.openers = '{'

    def __repr__(self) -> str:
        return (
            f'JsonExtractor(kind={self.schema.kind.value}, '
            f'anchors={len(self.anchors)}, max_depth={self.max_depth})'
        )

    def extract(self, data: Union[bytes, str]) -> Value:
        """
        Return the first value in ``data`` that matches the schema.

        Args:
            data: Raw bytes (decoded as UTF-8, undecodable bytes replaced) or text

        Returns:
            The matching value, projected onto the schema
        """
        text = _decode(data)
        tried = 0
        for position in self.iter_candidates(text):
            tried += 1
            value = self._try_candidate(text, position)
            if value is not None:
                logger.debug(
                    f'Extracted value at position {position} after {tried} candidate(s)'
                )
                return value

        logger.debug(f'No conforming value found after {tried} candidate(s)')
        raise NoMatchFound(tried)

    def extract_python(self, data: Union[bytes, str]) -> Any:
        """Extract and materialize the result as native Python objects."""
        return self.extract(data).to_python()

    def iter_candidates(self, text: str) -> Iterator[int]:
        """
        Yield candidate start positions in stream order, without duplicates.
        """
        if self.required_anchors and self.anchors:
            positions = set()
            for start, name in self.anchors.find(text, self.required_anchors):
                brace = enclosing_brace(text, start)
                if brace is not None:
                    positions.add(brace)
            if positions:
                yield from sorted(positions)
                return
            logger.debug('No anchor produced a candidate; scanning every opener')

        for position, char in enumerate(text):
            if char in self.openers:
                yield position

    def _try_candidate(self, text: str, position: int) -> Optional[Value]:
        parser = LenientParser(
            text,
            start=position,
            max_depth=self.max_depth,
            max_string_length=self.max_string_length,
        )
        try:
            value = parser.parse_json()
        except CandidateError as e:
            logger.debug(f'Candidate at {position} rejected: {e}')
            return None

        mismatch = check_conformance(value, self.schema)
        if mismatch is not None:
            logger.debug(f'Candidate at {position} does not conform: {mismatch}')
            return None
        return project(value, self.schema)


def _decode(data: Union[bytes, bytearray, memoryview, str]) -> str:
    if isinstance(data, str):
        return data
    return bytes(data).decode('utf-8', errors='replace')


def extractor_new(
    schema: Union[Mapping[str, Any], str, bytes, SchemaNode],
    max_depth: Optional[int] = None,
    max_string_length: Optional[int] = None,
) -> JsonExtractor:
    """
    Compile a schema into a reusable extractor.

    Raises:
        InvalidSchema: if the schema description is malformed
    """
    return JsonExtractor(
        schema, max_depth=max_depth, max_string_length=max_string_length
    )
