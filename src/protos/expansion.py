"""
Recursive PROTO expansion.

Each pass replaces every PROTO usage visible in the current text. A usage
placed inside a PROTO body only becomes visible after its enclosing usage is
expanded, so passes repeat until none are left. The depth ceiling is the only
guard against self- or mutually-referencing PROTOs: when it is reached the
partially expanded text is returned as-is.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..config.settings import get_setting
from ..core.diagnostics import DiagnosticCode, DiagnosticSink
from .instances import ProtoInstance, expand_proto, parse_proto_instances
from .registry import ProtoRegistry

logger = logging.getLogger(__name__)


@dataclass
class ExpansionResult:
    """Outcome of expanding all PROTO usages in a text."""
    text: str
    passes: int = 0
    expanded_count: int = 0
    depth_exceeded: bool = False
    skipped: List[str] = field(default_factory=list)


def expand_pass(
    vrml_text: str,
    instances: List[ProtoInstance],
    registry: ProtoRegistry,
    sink: DiagnosticSink,
    result: ExpansionResult,
) -> str:
    """
    Replace the given instances in one pass.

    Instances are expanded in descending start order and the output is built
    as a new buffer, so no span offset is invalidated by a replacement.
    """
    replacements = {}
    for instance in sorted(instances, key=lambda i: i.start, reverse=True):
        expanded = expand_proto(instance, registry, sink)
        if expanded is None:
            result.skipped.append(instance.proto_name)
            continue
        replacements[instance.start] = (instance.end, expanded)
        result.expanded_count += 1

    pieces = []
    cursor = 0
    for start in sorted(replacements):
        end, expanded = replacements[start]
        pieces.append(vrml_text[cursor:start])
        pieces.append(expanded)
        cursor = end
    pieces.append(vrml_text[cursor:])
    return ''.join(pieces)


def expand_all(
    vrml_text: str,
    registry: ProtoRegistry,
    max_depth: Optional[int] = None,
    sink: Optional[DiagnosticSink] = None,
) -> ExpansionResult:
    """
    Expand all PROTO instances, including nested ones.

    Args:
        vrml_text: Text with PROTO definitions already removed
        registry: Registry holding the definitions
        max_depth: Maximum number of passes (default from settings)
        sink: Diagnostics sink

    Returns:
        ExpansionResult with the expanded text
    """
    if sink is None:
        sink = DiagnosticSink(logger)
    if max_depth is None:
        max_depth = get_setting('max_expansion_depth')

    result = ExpansionResult(text=vrml_text)
    text = vrml_text
    depth = 0

    while True:
        instances = parse_proto_instances(text, registry, sink)
        if not instances:
            break

        if depth >= max_depth:
            sink.error(
                DiagnosticCode.DEPTH_EXCEEDED,
                f"Maximum PROTO expansion depth ({max_depth}) reached with "
                f"{len(instances)} instance(s) left - possible circular reference"
            )
            result.depth_exceeded = True
            break

        sink.debug(f"Expanding {len(instances)} PROTO instance(s) at depth {depth}")
        expanded = expand_pass(text, instances, registry, sink, result)
        depth += 1
        result.passes = depth

        if expanded == text:
            # Usages reproduce themselves; further passes cannot make progress
            sink.error(
                DiagnosticCode.DEPTH_EXCEEDED,
                f"PROTO expansion made no progress with {len(instances)} instance(s) "
                f"left - self-referencing PROTO"
            )
            result.depth_exceeded = True
            break
        text = expanded

    result.text = text
    return result


def expand_all_protos(
    vrml_text: str,
    registry: ProtoRegistry,
    max_depth: Optional[int] = None,
    sink: Optional[DiagnosticSink] = None,
) -> str:
    """Expand all PROTO instances and return only the resulting text."""
    return expand_all(vrml_text, registry, max_depth, sink).text
