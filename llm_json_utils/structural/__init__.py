from llm_json_utils.structural.anchors import AnchorSet
from llm_json_utils.structural.conformance import check_conformance, project
from llm_json_utils.structural.extractor import JsonExtractor, extractor_new
from llm_json_utils.structural.lenient import LenientParser
from llm_json_utils.structural.schema import (
    SchemaDescription,
    SchemaKind,
    SchemaNode,
    compile_schema,
)

__all__ = [
    'AnchorSet',
    'JsonExtractor',
    'LenientParser',
    'SchemaDescription',
    'SchemaKind',
    'SchemaNode',
    'check_conformance',
    'compile_schema',
    'extractor_new',
    'project',
]
