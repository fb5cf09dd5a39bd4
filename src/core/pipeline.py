"""
VRML Parse Pipeline

Runs the full conversion for one input text:

    raw text
      -> strip # comments
      -> extract PROTO blocks (registry populated, residual text)
      -> expand PROTO instances (recursive, depth-limited)
      -> extract scene nodes

Each parse owns a fresh ProtoRegistry and DiagnosticSink. The registry is
cleared when the parse finishes, whether it succeeds or not, so parses never
observe each other's PROTOs.

Usage:
    from src.core.pipeline import VrmlSceneParser

    result = VrmlSceneParser().parse(vrml_text)
    for shape in result.scene.shapes:
        print(shape.geometry, shape.position)
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List, Optional

from ..config.settings import get_setting
from ..protos.expansion import ExpansionResult, expand_all
from ..protos.extractor import extract_proto_blocks
from ..protos.registry import ProtoDefinition, ProtoRegistry
from ..scene.extractor import extract_scene
from ..scene.models import SceneDescription
from .blocks import strip_comments
from .diagnostics import Diagnostic, DiagnosticSink

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Everything produced by one parse."""
    scene: SceneDescription
    expanded_text: str
    protos: List[ProtoDefinition] = field(default_factory=list)
    expansion: Optional[ExpansionResult] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def proto_names(self) -> List[str]:
        return [p.name for p in self.protos]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "shapes": self.scene.to_dict()["shapes"],
            "proto_names": self.proto_names,
            "expansion_passes": self.expansion.passes if self.expansion else 0,
            "depth_exceeded": self.expansion.depth_exceeded if self.expansion else False,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@contextmanager
def proto_scope() -> Generator[ProtoRegistry, None, None]:
    """Provide a fresh registry that is cleared on exit."""
    registry = ProtoRegistry()
    try:
        yield registry
    finally:
        registry.clear()


class VrmlSceneParser:
    """
    Converts VRML text into a SceneDescription.

    The parser holds configuration only; all per-parse state lives inside
    ``parse``, so one instance can serve concurrent callers.
    """

    def __init__(self, max_depth: Optional[int] = None, log: Optional[logging.Logger] = None):
        """
        Args:
            max_depth: PROTO expansion pass ceiling (default from settings)
            log: Logger receiving diagnostics (default: this module's)
        """
        self.max_depth = max_depth if max_depth is not None else get_setting('max_expansion_depth')
        self._log = log or logger

    def parse(self, vrml_text: str) -> ParseResult:
        """
        Parse VRML text into a scene description.

        Never raises on malformed input; problems are reported in
        ``ParseResult.diagnostics``.
        """
        sink = DiagnosticSink(self._log)

        # Comments may hide PROTO usages or stray braces
        source = strip_comments(vrml_text)

        with proto_scope() as registry:
            extraction = extract_proto_blocks(source, sink)
            extraction.register_all(registry)
            if extraction.definitions:
                self._log.info(
                    f"Registered {registry.size()} PROTO(s): {', '.join(registry.names())}"
                )

            expansion = expand_all(extraction.residual_text, registry, self.max_depth, sink)
            scene = extract_scene(expansion.text, sink)

        self._log.info(
            f"Parsed {len(scene.shapes)} shape(s) "
            f"({expansion.expanded_count} PROTO instance(s) expanded, {len(sink)} diagnostic(s))"
        )

        return ParseResult(
            scene=scene,
            expanded_text=expansion.text,
            protos=extraction.definitions,
            expansion=expansion,
            diagnostics=sink.diagnostics,
        )


def parse_vrml(vrml_text: str, max_depth: Optional[int] = None) -> SceneDescription:
    """Convenience wrapper returning only the scene description."""
    return VrmlSceneParser(max_depth=max_depth).parse(vrml_text).scene
