"""
PROTO preprocessor.

Resolves VRML PROTO definitions and their instances into plain node text.
"""

from .fields import FieldType, FieldValue, ProtoField, parse_proto_fields
from .registry import ProtoDefinition, ProtoRegistry
from .extractor import ExtractionResult, extract_proto_blocks
from .bindings import resolve_is_bindings
from .instances import ProtoInstance, expand_proto, parse_proto_instances
from .expansion import ExpansionResult, expand_all, expand_all_protos

__all__ = [
    'FieldType',
    'FieldValue',
    'ProtoField',
    'parse_proto_fields',
    'ProtoDefinition',
    'ProtoRegistry',
    'ExtractionResult',
    'extract_proto_blocks',
    'resolve_is_bindings',
    'ProtoInstance',
    'expand_proto',
    'parse_proto_instances',
    'ExpansionResult',
    'expand_all',
    'expand_all_protos',
]
