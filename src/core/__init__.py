"""
Core Layer - Shared infrastructure for the parse pipeline

Modules:
- blocks: brace/bracket matching and numeric scanning shared by all stages
- diagnostics: per-parse diagnostics sink forwarding to logging
- pipeline: VrmlSceneParser, the PROTO → scene conversion entry point
  (import from src.core.pipeline; it depends on src.protos and src.scene,
  which depend on this package)
"""

from .blocks import find_matching, iter_node_blocks, scan_floats
from .diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticLevel,
    DiagnosticSink,
)

__all__ = [
    # Blocks
    'find_matching',
    'iter_node_blocks',
    'scan_floats',
    # Diagnostics
    'Diagnostic',
    'DiagnosticCode',
    'DiagnosticLevel',
    'DiagnosticSink',
]
