import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from llm_json_utils._core.error import InvalidSchema
from llm_json_utils._core.schema import RichEnum


class SchemaKind(str, RichEnum):
    OBJECT = 'object'
    ARRAY = 'array'
    STRING = 'string'
    NUMBER = 'number'
    INTEGER = 'integer'
    BOOLEAN = 'boolean'
    NULL = 'null'
    ANY = 'any'


class SchemaDescription(BaseModel):
    """
    Accepted shape of a schema description node.

    Only ``type``, ``properties``, ``required`` and ``items`` are interpreted;
    any other key (``description``, ``$schema`` ...) is ignored.
    """

    model_config = ConfigDict(extra='ignore', frozen=True)

    type: Optional[
        Literal['object', 'array', 'string', 'number', 'integer', 'boolean', 'null']
    ] = None
    properties: Dict[str, 'SchemaDescription'] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)
    items: Optional['SchemaDescription'] = None

    def resolved_kind(self) -> SchemaKind:
        """Kind of the node; an untyped node is inferred from its keywords."""
        if self.type is not None:
            return SchemaKind.from_str(self.type)
        if self.properties or self.required:
            return SchemaKind.OBJECT
        if self.items is not None:
            return SchemaKind.ARRAY
        return SchemaKind.ANY


SchemaDescription.model_rebuild()


@dataclass(frozen=True)
class SchemaNode:
    """Compiled, immutable schema node."""

    kind: SchemaKind
    properties: Mapping[str, 'SchemaNode'] = field(default_factory=dict)
    required: FrozenSet[str] = frozenset()
    items: Optional['SchemaNode'] = None

    def __post_init__(self):
        object.__setattr__(self, 'properties', MappingProxyType(dict(self.properties)))
        object.__setattr__(self, 'required', frozenset(self.required))

    def field_names(self) -> Iterator[str]:
        """Yield every property name declared anywhere in this subtree."""
        for name, child in self.properties.items():
            yield name
            yield from child.field_names()
        if self.items is not None:
            yield from self.items.field_names()


ANY_SCHEMA = SchemaNode(SchemaKind.ANY)


def _build(description: SchemaDescription) -> SchemaNode:
    kind = description.resolved_kind()

    if kind is SchemaKind.OBJECT:
        properties = {
            name: _build(child) for name, child in description.properties.items()
        }
        # Required-but-undeclared names are kept, unconstrained.
        for name in description.required:
            properties.setdefault(name, ANY_SCHEMA)
        return SchemaNode(
            kind, properties=properties, required=frozenset(description.required)
        )

    if kind is SchemaKind.ARRAY:
        items = _build(description.items) if description.items is not None else None
        return SchemaNode(kind, items=items)

    return SchemaNode(kind)


def compile_schema(
    schema: Union[Mapping[str, Any], str, bytes, SchemaDescription, SchemaNode],
) -> SchemaNode:
    """
    Validate a schema description and compile it into a ``SchemaNode`` tree.

    Args:
        schema: A mapping in the JSON-Schema subset, its JSON text, an already
            validated ``SchemaDescription`` or a compiled ``SchemaNode``.

    Returns:
        The root ``SchemaNode``.
    """
    if isinstance(schema, SchemaNode):
        return schema

    if isinstance(schema, (str, bytes, bytearray)):
        try:
            schema = json.loads(schema)
        except ValueError as e:
            raise InvalidSchema(f'Schema is not valid JSON: {e}', original_error=e)

    if isinstance(schema, SchemaDescription):
        return _build(schema)

    if not isinstance(schema, Mapping):
        raise InvalidSchema(
            f'Schema must be a mapping, got {type(schema).__name__}'
        )

    try:
        description = SchemaDescription.model_validate(dict(schema))
    except ValidationError as e:
        raise InvalidSchema(f'Invalid schema description: {e}', original_error=e)

    return _build(description)
