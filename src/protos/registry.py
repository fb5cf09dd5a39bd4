"""
PROTO Registry

Per-parse store of PROTO definitions, keyed by name. A registry is owned by
exactly one parse operation and cleared when that parse ends; it is never
shared between parses.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .fields import ProtoField

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProtoDefinition:
    """A complete PROTO: interface fields plus a body with IS bindings."""
    name: str
    fields: Tuple[ProtoField, ...]
    body: str

    def get_field(self, name: str) -> Optional[ProtoField]:
        for proto_field in self.fields:
            if proto_field.name == name:
                return proto_field
        return None

    def to_dict(self) -> Dict[str, object]:
        """Interface summary for JSON serialization (body omitted)."""
        return {
            "name": self.name,
            "fields": [
                {
                    "name": f.name,
                    "type": f.type_tag,
                    "default": f.default.format(),
                }
                for f in self.fields
            ],
        }


class ProtoRegistry:
    """
    Name → ProtoDefinition mapping.

    Registering a name that already exists replaces the earlier definition
    (last writer wins).
    """

    def __init__(self):
        self._protos: Dict[str, ProtoDefinition] = {}

    def register(self, name: str, definition: ProtoDefinition) -> None:
        if name in self._protos:
            logger.debug(f"Replacing PROTO definition: {name}")
        self._protos[name] = definition
        logger.debug(f"Registered PROTO: {name} with {len(definition.fields)} fields")

    def lookup(self, name: str) -> Optional[ProtoDefinition]:
        return self._protos.get(name)

    def has(self, name: str) -> bool:
        return name in self._protos

    def clear(self) -> None:
        """Drop every definition."""
        count = len(self._protos)
        self._protos.clear()
        logger.debug(f"Cleared {count} PROTO definitions from registry")

    def size(self) -> int:
        return len(self._protos)

    def names(self) -> List[str]:
        return list(self._protos.keys())

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return self.size()
