"""
PROTO field declarations.

Parses the interface of a PROTO (the text between ``[`` and ``]``) into typed,
defaulted fields, and defines the value type shared by defaults, instance
overrides, and binding resolution.

Field values are a closed tagged union keyed by ``FieldType``:

- SFFloat             -> float
- SFVec3f / SFColor   -> 3-tuple of floats
- SFRotation          -> 4-tuple of floats
- SFNode / MFNode     -> verbatim node text
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..core.blocks import scan_floats, strip_comments
from ..core.diagnostics import DiagnosticCode, DiagnosticSink

logger = logging.getLogger(__name__)

Value = Union[float, Tuple[float, ...], str]


class FieldType(Enum):
    """Field types supported in PROTO interfaces."""
    FLOAT = "SFFloat"
    VEC3 = "SFVec3f"
    ROTATION = "SFRotation"
    COLOR = "SFColor"
    NODE = "SFNode"
    NODE_LIST = "MFNode"

    @classmethod
    def from_tag(cls, tag: str) -> Optional["FieldType"]:
        """Look up a type by its exact (case-sensitive) VRML tag."""
        for member in cls:
            if member.value == tag:
                return member
        return None

    @property
    def arity(self) -> Optional[int]:
        """Number of float components, or None for node-typed fields."""
        return _ARITY[self]

    @property
    def zero_value(self) -> Value:
        """Fallback used when a declared value cannot be parsed."""
        return _ZERO_VALUES[self]


_ARITY = {
    FieldType.FLOAT: 1,
    FieldType.VEC3: 3,
    FieldType.COLOR: 3,
    FieldType.ROTATION: 4,
    FieldType.NODE: None,
    FieldType.NODE_LIST: None,
}

_ZERO_VALUES = {
    FieldType.FLOAT: 0.0,
    FieldType.VEC3: (0.0, 0.0, 0.0),
    FieldType.COLOR: (0.0, 0.0, 0.0),
    FieldType.ROTATION: (0.0, 0.0, 1.0, 0.0),
    FieldType.NODE: "",
    FieldType.NODE_LIST: "",
}


def format_number(number: float) -> str:
    """Render a float the way it would be written in a VRML file."""
    if float(number).is_integer() and abs(number) < 1e15:
        return str(int(number))
    return repr(number)


@dataclass(frozen=True)
class FieldValue:
    """
    A typed field value.

    ``field_type`` is None only for declarations with an unrecognized type
    tag; their value is the raw declaration text.
    """
    field_type: Optional[FieldType]
    value: Value

    def __post_init__(self):
        if self.field_type is None or self.field_type.arity is None:
            if not isinstance(self.value, str):
                raise ValueError(f"Text value expected for {self._tag()}, got {self.value!r}")
        elif self.field_type.arity == 1:
            if not isinstance(self.value, (int, float)) or isinstance(self.value, bool):
                raise ValueError(f"Scalar value expected for {self._tag()}, got {self.value!r}")
            object.__setattr__(self, 'value', float(self.value))
        else:
            if not isinstance(self.value, (tuple, list)) or len(self.value) != self.field_type.arity:
                raise ValueError(
                    f"{self.field_type.arity} components expected for {self._tag()}, got {self.value!r}"
                )
            object.__setattr__(self, 'value', tuple(float(v) for v in self.value))

    def _tag(self) -> str:
        return self.field_type.value if self.field_type else "raw field"

    @classmethod
    def zero(cls, field_type: FieldType) -> "FieldValue":
        return cls(field_type, field_type.zero_value)

    def format(self) -> str:
        """Render as VRML text: components space-joined, scalars literal."""
        if isinstance(self.value, tuple):
            return ' '.join(format_number(v) for v in self.value)
        if isinstance(self.value, float):
            return format_number(self.value)
        return self.value


@dataclass(frozen=True)
class ProtoField:
    """One declared field of a PROTO interface."""
    name: str
    type_tag: str
    default: FieldValue

    @property
    def field_type(self) -> Optional[FieldType]:
        return self.default.field_type


# Interface keywords that start a new declaration
DECLARATION_PATTERN = re.compile(r'\b(exposedField|field|eventIn|eventOut)\s+(\S+)\s+(\w+)')


def parse_field_value(
    field_type: Optional[FieldType],
    text: str,
    field_name: str = "?",
    sink: Optional[DiagnosticSink] = None,
) -> FieldValue:
    """
    Parse a declared default value according to its type.

    Numeric values that cannot be parsed fall back to the type's zero value;
    the failure is reported but never raised.

    Args:
        field_type: Declared type, or None for an unrecognized tag
        text: Value tokens following the field name
        field_name: Field name (for diagnostics)
        sink: Diagnostics sink

    Returns:
        Parsed FieldValue
    """
    if sink is None:
        sink = DiagnosticSink(logger)
    trimmed = text.strip()

    if field_type is None:
        return FieldValue(None, trimmed)

    arity = field_type.arity
    if arity is None:
        return FieldValue(field_type, trimmed)

    numbers = scan_floats(trimmed, arity)
    if len(numbers) < arity:
        sink.warning(
            DiagnosticCode.MALFORMED_FIELD,
            f"Field '{field_name}' ({field_type.value}) needs {arity} number(s), "
            f"got '{trimmed}'; using {FieldValue.zero(field_type).format()!r}"
        )
        return FieldValue.zero(field_type)

    if arity == 1:
        return FieldValue(field_type, numbers[0])
    return FieldValue(field_type, tuple(numbers))


def parse_proto_fields(field_text: str, sink: Optional[DiagnosticSink] = None) -> List[ProtoField]:
    """
    Parse PROTO interface declarations.

    Grammar: repeated ``field <Type> <name> <value-tokens>``, each value
    running to the next declaration keyword or the end of the text.

    Example:
        field SFFloat radius 1.0
        field SFVec3f position 0 0 0
        field SFColor boxColor 1 0 0

    Args:
        field_text: Text between the interface brackets
        sink: Diagnostics sink

    Returns:
        Fields in declaration order
    """
    if sink is None:
        sink = DiagnosticSink(logger)
    text = strip_comments(field_text)
    matches = list(DECLARATION_PATTERN.finditer(text))
    fields: List[ProtoField] = []

    for i, match in enumerate(matches):
        keyword, type_tag, name = match.group(1), match.group(2), match.group(3)
        value_end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        value_text = text[match.end():value_end]

        if keyword in ('eventIn', 'eventOut'):
            sink.debug(f"Skipping {keyword} {type_tag} {name}: events carry no value")
            continue

        field_type = FieldType.from_tag(type_tag)
        if field_type is None:
            sink.warning(
                DiagnosticCode.UNKNOWN_FIELD_TYPE,
                f"Unknown field type '{type_tag}' for field '{name}', keeping raw value"
            )

        default = parse_field_value(field_type, value_text, name, sink)
        fields.append(ProtoField(name=name, type_tag=type_tag, default=default))

    return fields
