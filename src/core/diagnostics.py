"""
Diagnostics Sink

Every stage of the parse reports recoverable problems here instead of raising.
The sink records each diagnostic (so callers and tests can inspect them) and
forwards it to the standard logging hierarchy.

Usage:
    sink = DiagnosticSink()
    registry, residual = extract_proto_blocks(text, sink=sink)
    ...
    for diagnostic in sink.warnings:
        print(diagnostic.code, diagnostic.message)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class DiagnosticLevel(Enum):
    """Severity of a diagnostic."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(Enum):
    """Recoverable failure kinds reported during a parse."""
    MALFORMED_PROTO = "malformed_proto"
    MISSING_BODY = "missing_body"
    MALFORMED_FIELD = "malformed_field"
    UNKNOWN_FIELD_TYPE = "unknown_field_type"
    UNRESOLVED_BINDING = "unresolved_binding"
    UNDEFINED_PROTO = "undefined_proto"
    MALFORMED_INSTANCE = "malformed_instance"
    DEPTH_EXCEEDED = "depth_exceeded"
    NO_GEOMETRY = "no_geometry"
    EMPTY_SCENE = "empty_scene"


_LOG_LEVELS = {
    DiagnosticLevel.DEBUG: logging.DEBUG,
    DiagnosticLevel.INFO: logging.INFO,
    DiagnosticLevel.WARNING: logging.WARNING,
    DiagnosticLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Diagnostic:
    """One advisory message produced during a parse."""
    level: DiagnosticLevel
    code: DiagnosticCode
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "level": self.level.value,
            "code": self.code.value,
            "message": self.message,
        }


class DiagnosticSink:
    """
    Collects diagnostics for a single parse and mirrors them to a logger.

    A sink is cheap to create; the pipeline builds one per parse so that
    concurrent parses never share diagnostic state.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        """
        Args:
            log: Logger to forward diagnostics to (default: this module's)
        """
        self._log = log or logger
        self._diagnostics: List[Diagnostic] = []

    def report(self, level: DiagnosticLevel, code: DiagnosticCode, message: str) -> Diagnostic:
        """Record a diagnostic and emit it to the logger."""
        diagnostic = Diagnostic(level=level, code=code, message=message)
        self._diagnostics.append(diagnostic)
        self._log.log(_LOG_LEVELS[level], f"[{code.value}] {message}")
        return diagnostic

    def warning(self, code: DiagnosticCode, message: str) -> Diagnostic:
        return self.report(DiagnosticLevel.WARNING, code, message)

    def error(self, code: DiagnosticCode, message: str) -> Diagnostic:
        return self.report(DiagnosticLevel.ERROR, code, message)

    def debug(self, message: str) -> None:
        """Trace output; logged only, never recorded."""
        self._log.debug(message)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.level == DiagnosticLevel.WARNING]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self._diagnostics if d.level == DiagnosticLevel.ERROR]

    def has(self, code: DiagnosticCode) -> bool:
        """Check whether any diagnostic with ``code`` was recorded."""
        return any(d.code == code for d in self._diagnostics)

    def clear(self) -> None:
        self._diagnostics = []

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __bool__(self) -> bool:
        # An empty sink is still a sink
        return True
