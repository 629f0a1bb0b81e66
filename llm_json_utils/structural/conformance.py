from typing import Dict, FrozenSet, Optional

from llm_json_utils._core.error import MissingRequiredField, SchemaMismatch
from llm_json_utils.structural.schema import SchemaKind, SchemaNode
from llm_json_utils.values import JsonArray, JsonObject, Value, ValueKind

ACCEPTED_KINDS: Dict[SchemaKind, FrozenSet[ValueKind]] = {
    SchemaKind.OBJECT: frozenset({ValueKind.OBJECT}),
    SchemaKind.ARRAY: frozenset({ValueKind.ARRAY}),
    SchemaKind.STRING: frozenset({ValueKind.STRING}),
    SchemaKind.NUMBER: frozenset(
        {ValueKind.INTEGER, ValueKind.BIG_INTEGER, ValueKind.FLOAT}
    ),
    SchemaKind.INTEGER: frozenset({ValueKind.INTEGER, ValueKind.BIG_INTEGER}),
    SchemaKind.BOOLEAN: frozenset({ValueKind.BOOL}),
    SchemaKind.NULL: frozenset({ValueKind.NULL}),
    SchemaKind.ANY: frozenset(ValueKind),
}


def check_conformance(
    value: Value, schema: SchemaNode, path: str = '$'
) -> Optional[SchemaMismatch]:
    """
    Check a value against a schema node.

    Returns the first mismatch found, or None when the value conforms. Only
    the parts of the value the schema describes are inspected.
    """
    if value.kind not in ACCEPTED_KINDS[schema.kind]:
        return SchemaMismatch(
            f'Expected {schema.kind.value}, found {value.kind.value}', path
        )

    if schema.kind is SchemaKind.OBJECT:
        for name in sorted(schema.required):
            if name not in value:
                return MissingRequiredField(name, path)
        for name, child in schema.properties.items():
            if name in value:
                mismatch = check_conformance(value[name], child, f'{path}.{name}')
                if mismatch is not None:
                    return mismatch

    elif schema.kind is SchemaKind.ARRAY and schema.items is not None:
        for index, item in enumerate(value):
            mismatch = check_conformance(item, schema.items, f'{path}[{index}]')
            if mismatch is not None:
                return mismatch

    return None


def project(value: Value, schema: SchemaNode) -> Value:
    """
    Keep only what the schema declares.

    Unknown object fields are dropped and absent optional fields stay absent.
    Expects a value that already passed ``check_conformance``.
    """
    if schema.kind is SchemaKind.OBJECT:
        return JsonObject(
            {
                name: project(item, schema.properties[name])
                for name, item in value.fields.items()
                if name in schema.properties
            }
        )
    if schema.kind is SchemaKind.ARRAY and schema.items is not None:
        return JsonArray(tuple(project(item, schema.items) for item in value))
    return value
