"""
IS binding resolution.

A PROTO body refers to its interface with ``<property> IS <fieldName>``.
Resolution rewrites each binding as ``<property> <value>`` using the merged
field values of one instance. Bindings to unknown fields are reported and
left in place so the failure stays visible in the output.
"""

import logging
import re
from typing import Mapping, Optional

from ..core.diagnostics import DiagnosticCode, DiagnosticSink
from .fields import FieldValue

logger = logging.getLogger(__name__)

IS_PATTERN = re.compile(r'\b(\w+)\s+IS\s+(\w+)\b')


def resolve_is_bindings(
    body_template: str,
    field_values: Mapping[str, FieldValue],
    proto_name: str = "Unknown",
    sink: Optional[DiagnosticSink] = None,
) -> str:
    """
    Resolve IS bindings in a PROTO body.

    Every binding to the same field receives the same formatted text.

    Args:
        body_template: PROTO body containing IS bindings
        field_values: Merged values (override or default) keyed by field name
        proto_name: PROTO name (for diagnostics)
        sink: Diagnostics sink

    Returns:
        Body with all resolvable bindings substituted
    """
    if sink is None:
        sink = DiagnosticSink(logger)
    formatted = {name: value.format() for name, value in field_values.items()}

    def replacer(match: re.Match) -> str:
        property_name, field_name = match.group(1), match.group(2)

        if field_name not in formatted:
            sink.warning(
                DiagnosticCode.UNRESOLVED_BINDING,
                f"PROTO {proto_name}: IS binding references non-existent field \"{field_name}\""
            )
            return match.group(0)

        return f"{property_name} {formatted[field_name]}"

    return IS_PATTERN.sub(replacer, body_template)
