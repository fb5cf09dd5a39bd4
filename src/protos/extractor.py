"""
PROTO block extraction.

Scans VRML text for ``PROTO Name [ interface ] { body }`` blocks, parses each
into a ProtoDefinition, and returns the text with every extracted block
removed. A malformed block is reported and skipped; it never prevents the
remaining blocks from being extracted.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..core.blocks import find_matching
from ..core.diagnostics import DiagnosticCode, DiagnosticSink
from .fields import parse_proto_fields
from .registry import ProtoDefinition, ProtoRegistry

logger = logging.getLogger(__name__)

# Word boundary keeps EXTERNPROTO declarations out
PROTO_PATTERN = re.compile(r'\bPROTO\s+(\w+)\s*\[')


@dataclass
class ExtractionResult:
    """PROTO definitions found in a text, plus the text without them."""
    definitions: List[ProtoDefinition] = field(default_factory=list)
    residual_text: str = ""

    def register_all(self, registry: ProtoRegistry) -> None:
        """Register definitions in discovery order (later ones win)."""
        for definition in self.definitions:
            registry.register(definition.name, definition)


def extract_proto_blocks(vrml_text: str, sink: Optional[DiagnosticSink] = None) -> ExtractionResult:
    """
    Extract all PROTO blocks from VRML text.

    PROTO blocks nested inside another PROTO's body are extracted as well
    and listed before the enclosing definition.

    Args:
        vrml_text: Complete VRML source
        sink: Diagnostics sink

    Returns:
        ExtractionResult with definitions in discovery order and the
        residual text
    """
    if sink is None:
        sink = DiagnosticSink(logger)
    definitions: List[ProtoDefinition] = []
    spans: List[Tuple[int, int]] = []

    position = 0
    while True:
        match = PROTO_PATTERN.search(vrml_text, position)
        if match is None:
            break

        block = _extract_block(vrml_text, match, sink)
        if block is None:
            # Resume just after this candidate's opening bracket
            position = match.end()
            continue

        nested, definition, end = block
        definitions.extend(nested)
        definitions.append(definition)
        spans.append((match.start(), end))
        position = end

    return ExtractionResult(
        definitions=definitions,
        residual_text=_remove_spans(vrml_text, spans),
    )


def _extract_block(
    text: str,
    match: re.Match,
    sink: DiagnosticSink,
) -> Optional[Tuple[List[ProtoDefinition], ProtoDefinition, int]]:
    """
    Parse one PROTO block starting at ``match``.

    Returns:
        (nested definitions, definition, block end) or None if malformed
    """
    name = match.group(1)
    bracket_index = match.end() - 1

    fields_end = find_matching(text, bracket_index)
    if fields_end is None:
        sink.warning(DiagnosticCode.MALFORMED_PROTO, f"Malformed PROTO {name}: unmatched field brackets")
        return None
    field_text = text[bracket_index + 1:fields_end - 1]

    body_start = text.find('{', fields_end)
    if body_start == -1:
        sink.warning(DiagnosticCode.MISSING_BODY, f"Malformed PROTO {name}: missing body")
        return None

    body_end = find_matching(text, body_start)
    if body_end is None:
        sink.warning(DiagnosticCode.MALFORMED_PROTO, f"Malformed PROTO {name}: unmatched body braces")
        return None
    body_text = text[body_start + 1:body_end - 1]

    inner = extract_proto_blocks(body_text, sink)
    fields = parse_proto_fields(field_text, sink)

    definition = ProtoDefinition(
        name=name,
        fields=tuple(fields),
        body=inner.residual_text.strip(),
    )
    sink.debug(f"Parsed PROTO {name} with {len(fields)} fields")
    return inner.definitions, definition, body_end


def _remove_spans(text: str, spans: List[Tuple[int, int]]) -> str:
    """Build a new string from the gaps between non-overlapping spans."""
    if not spans:
        return text

    pieces = []
    cursor = 0
    for start, end in sorted(spans):
        pieces.append(text[cursor:start])
        cursor = end
    pieces.append(text[cursor:])
    return ''.join(pieces)
