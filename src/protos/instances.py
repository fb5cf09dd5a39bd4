"""
PROTO instance location and expansion.

A usage of a registered PROTO looks like any other node, ``Name { ... }``.
Its body carries field overrides written as ``fieldName value...``. Expansion
merges overrides with the declared defaults, resolves the IS bindings of the
definition body, and yields the text that replaces the usage.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core.blocks import FLOAT_PATTERN, find_matching, scan_floats
from ..core.diagnostics import DiagnosticCode, DiagnosticSink
from .bindings import resolve_is_bindings
from .fields import FieldValue, ProtoField
from .registry import ProtoDefinition, ProtoRegistry

logger = logging.getLogger(__name__)

INSTANCE_PATTERN = re.compile(r'\b(\w+)\s*\{')


@dataclass
class ProtoInstance:
    """One usage of a PROTO; ``[start, end)`` spans ``Name { ... }``."""
    proto_name: str
    start: int
    end: int
    overrides: Dict[str, FieldValue] = field(default_factory=dict)


def parse_proto_instances(
    vrml_text: str,
    registry: ProtoRegistry,
    sink: Optional[DiagnosticSink] = None,
) -> List[ProtoInstance]:
    """
    Locate usages of registered PROTOs.

    Names that are not registered (Transform, Shape, ...) are ignored. After a
    usage is found the scan resumes past its closing brace, so usages nested
    in another usage's overrides are not reported and spans never overlap.

    Args:
        vrml_text: Text to search
        registry: Registry used to recognize PROTO names
        sink: Diagnostics sink

    Returns:
        Instances in text order
    """
    if sink is None:
        sink = DiagnosticSink(logger)
    instances: List[ProtoInstance] = []

    position = 0
    while True:
        match = INSTANCE_PATTERN.search(vrml_text, position)
        if match is None:
            break

        proto_name = match.group(1)
        if not registry.has(proto_name):
            position = match.end()
            continue

        brace_index = match.end() - 1
        end = find_matching(vrml_text, brace_index)
        if end is None:
            sink.warning(
                DiagnosticCode.MALFORMED_INSTANCE,
                f"Malformed PROTO instance {proto_name}: unmatched braces"
            )
            position = match.end()
            continue

        body_text = vrml_text[brace_index + 1:end - 1]
        overrides = parse_instance_overrides(registry.lookup(proto_name), body_text)
        instances.append(ProtoInstance(
            proto_name=proto_name,
            start=match.start(),
            end=end,
            overrides=overrides,
        ))
        sink.debug(f"Found PROTO instance: {proto_name} with {len(overrides)} field overrides")
        position = end

    return instances


def parse_instance_overrides(definition: ProtoDefinition, body_text: str) -> Dict[str, FieldValue]:
    """
    Read field overrides from an instance body.

    Each declared field is searched for by name, followed by as many numbers
    as its type needs. Node-typed fields and unrecognized types are not
    overridable here; extra tokens in the body are ignored.
    """
    overrides: Dict[str, FieldValue] = {}

    for proto_field in definition.fields:
        value = _scan_override(proto_field, body_text)
        if value is not None:
            overrides[proto_field.name] = value

    return overrides


def _scan_override(proto_field: ProtoField, body_text: str) -> Optional[FieldValue]:
    field_type = proto_field.field_type
    if field_type is None or field_type.arity is None:
        return None

    number = FLOAT_PATTERN.pattern
    pattern = re.compile(
        r'\b' + re.escape(proto_field.name) + r'\b' + r'(?:[\s,]+' + number + r'){' + str(field_type.arity) + r'}'
    )
    match = pattern.search(body_text)
    if not match:
        return None

    numbers = scan_floats(match.group(0)[len(proto_field.name):], field_type.arity)
    if field_type.arity == 1:
        return FieldValue(field_type, numbers[0])
    return FieldValue(field_type, tuple(numbers))


def merge_field_values(definition: ProtoDefinition, overrides: Dict[str, FieldValue]) -> Dict[str, FieldValue]:
    """Declared defaults with instance overrides applied (override wins)."""
    return {
        f.name: overrides.get(f.name, f.default)
        for f in definition.fields
    }


def expand_proto(
    instance: ProtoInstance,
    registry: ProtoRegistry,
    sink: Optional[DiagnosticSink] = None,
) -> Optional[str]:
    """
    Expand one PROTO instance into plain VRML text.

    Args:
        instance: Located instance
        registry: Registry holding the definition
        sink: Diagnostics sink

    Returns:
        Expanded body, or None if the PROTO is not registered
    """
    if sink is None:
        sink = DiagnosticSink(logger)
    definition = registry.lookup(instance.proto_name)

    if definition is None:
        available = ', '.join(registry.names()) or 'none'
        sink.error(
            DiagnosticCode.UNDEFINED_PROTO,
            f"Cannot expand undefined PROTO: {instance.proto_name} (available: {available})"
        )
        return None

    merged = merge_field_values(definition, instance.overrides)
    for name, value in merged.items():
        source = "override" if name in instance.overrides else "default"
        sink.debug(f"  {instance.proto_name}.{name} = {value.format()} ({source})")

    return resolve_is_bindings(definition.body, merged, definition.name, sink)
