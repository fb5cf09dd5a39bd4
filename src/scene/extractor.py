"""
Scene Node Extraction

Walks PROTO-free VRML text and produces the flat list of shapes the renderer
consumes. Only the node types the renderer can draw are interpreted:

- Transform: translation / rotation / scale applied to the Shapes it owns
- Group: Shapes without transform attributes
- Shape: appearance material plus one geometry node

A Shape belongs to its innermost enclosing Transform. Shapes are reported
Transform-owned first, then Group-owned, then standalone, each group in text
order; no Shape is reported twice.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.blocks import (
    field_floats,
    find_bracket_list,
    find_matching,
    iter_node_blocks,
    mask_nested_blocks,
    scan_floats,
    scan_ints,
    strip_comments,
)
from ..core.diagnostics import DiagnosticCode, DiagnosticLevel, DiagnosticSink
from .models import GeometryKind, SceneDescription, SceneEntity

logger = logging.getLogger(__name__)

DEF_PATTERN = re.compile(r'\bDEF\s+\w+\s+')
GEOMETRY_FIELD_PATTERN = re.compile(r'\bgeometry\s+(\w+)\s*\{')

# First keyword found wins, in this order
GEOMETRY_KEYWORDS: Tuple[Tuple[str, GeometryKind], ...] = (
    ('IndexedLineSet', GeometryKind.LINES),
    ('IndexedFaceSet', GeometryKind.MESH),
    ('Sphere', GeometryKind.SPHERE),
    ('Box', GeometryKind.BOX),
    ('Cylinder', GeometryKind.CYLINDER),
    ('Cone', GeometryKind.CONE),
)


@dataclass(frozen=True)
class _Span:
    start: int
    body_start: int
    end: int

    def contains(self, other: "_Span") -> bool:
        return self.body_start <= other.start and other.end <= self.end

    @property
    def size(self) -> int:
        return self.end - self.start


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Convert 0..1 RGB components to a ``#rrggbb`` string."""
    def channel(c: float) -> str:
        return f"{max(0, min(255, round(c * 255))):02x}"
    return f"#{channel(r)}{channel(g)}{channel(b)}"


def _vec3(values: Optional[List[float]], fill: float) -> Optional[Tuple[float, float, float]]:
    if values is None:
        return None
    padded = list(values[:3]) + [fill] * (3 - len(values[:3]))
    return padded[0], padded[1], padded[2]


def _color(content: str, name: str) -> Optional[str]:
    values = field_floats(content, name, 3)
    if values is None:
        return None
    r, g, b = _vec3(values, 0.0)
    return rgb_to_hex(r, g, b)


def _scalar(content: str, name: str, default: float) -> float:
    values = field_floats(content, name, 1)
    return values[0] if values else default


def triangulate_faces(indices: Sequence[int]) -> List[int]:
    """Fan-triangulate ``-1``-terminated polygons from their first vertex."""
    triangles: List[int] = []
    for face in split_index_runs(indices):
        if len(face) < 3:
            continue
        for i in range(1, len(face) - 1):
            triangles.extend((face[0], face[i], face[i + 1]))
    return triangles


def polylines_to_segments(indices: Sequence[int]) -> List[int]:
    """Convert ``-1``-terminated polylines into consecutive index pairs."""
    segments: List[int] = []
    for line in split_index_runs(indices):
        for i in range(len(line) - 1):
            segments.extend((line[i], line[i + 1]))
    return segments


def split_index_runs(indices: Sequence[int]) -> List[List[int]]:
    """Split an index list on the ``-1`` sentinel; a trailing run counts."""
    runs: List[List[int]] = []
    current: List[int] = []
    for index in indices:
        if index == -1:
            if current:
                runs.append(current)
            current = []
        else:
            current.append(index)
    if current:
        runs.append(current)
    return runs


def geometry_node(content: str) -> Optional[str]:
    """
    Return the node assigned to the Shape's ``geometry`` field.

    The result spans the node name through its closing brace, e.g.
    ``Box { size 2 2 2 }``; None when the field is absent or unmatched.
    """
    match = GEOMETRY_FIELD_PATTERN.search(content)
    if not match:
        return None
    end = find_matching(content, match.end() - 1)
    if end is None:
        return None
    return content[match.start(1):end]


def detect_geometry(content: str) -> Optional[GeometryKind]:
    """Geometry kind of the Shape's ``geometry`` node, by keyword priority."""
    node = geometry_node(content)
    if node is None:
        return None
    for keyword, kind in GEOMETRY_KEYWORDS:
        if re.search(r'\b' + keyword + r'\b', node):
            return kind
    return None


def parse_shape_node(
    content: str,
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0),
    rotation: Optional[Tuple[float, float, float]] = None,
    scale: Optional[Tuple[float, float, float]] = None,
    sink: Optional[DiagnosticSink] = None,
) -> Optional[SceneEntity]:
    """
    Build a SceneEntity from the body of a Shape node.

    Args:
        content: Text inside the Shape braces
        position: Translation of the owning Transform
        rotation: Rotation of the owning Transform
        scale: Scale of the owning Transform
        sink: Diagnostics sink

    Returns:
        SceneEntity, or None if the Shape has no recognizable geometry
    """
    if sink is None:
        sink = DiagnosticSink(logger)

    node = geometry_node(content)
    geometry = detect_geometry(content)
    if geometry is None:
        sink.report(
            DiagnosticLevel.DEBUG,
            DiagnosticCode.NO_GEOMETRY,
            f"No geometry found in shape content: {content.strip()[:80]!r}"
        )
        return None

    attributes: Dict[str, object] = {
        'position': position,
        'rotation': rotation,
        'scale': scale,
        'emissive_color': _color(content, 'emissiveColor'),
        'geometry': geometry,
    }

    color = _color(content, 'diffuseColor')
    if color:
        attributes['color'] = color

    transparency = field_floats(content, 'transparency', 1)
    if transparency:
        attributes['transparency'] = max(0.0, min(1.0, transparency[0]))

    if geometry == GeometryKind.BOX:
        attributes['size'] = _vec3(field_floats(node, 'size', 3), 1.0) or (1.0, 1.0, 1.0)
    elif geometry == GeometryKind.SPHERE:
        attributes['radius'] = _scalar(node, 'radius', 1.0)
    elif geometry == GeometryKind.CYLINDER:
        attributes['radius'] = _scalar(node, 'radius', 1.0)
        attributes['height'] = _scalar(node, 'height', 2.0)
    elif geometry == GeometryKind.CONE:
        attributes['radius'] = _scalar(node, 'bottomRadius', 1.0)
        attributes['height'] = _scalar(node, 'height', 2.0)
    else:
        point_text = find_bracket_list(node, 'point')
        index_text = find_bracket_list(node, 'coordIndex')
        raw_indices = scan_ints(index_text) if index_text is not None else []
        attributes['vertices'] = scan_floats(point_text) if point_text is not None else []
        if geometry == GeometryKind.MESH:
            attributes['indices'] = triangulate_faces(raw_indices)
        else:
            attributes['indices'] = polylines_to_segments(raw_indices)

    return SceneEntity(**attributes)


def _spans(text: str, node_name: str) -> List[_Span]:
    return [_Span(*block) for block in iter_node_blocks(text, node_name)]


def _innermost(shape: _Span, owners: List[_Span]) -> Optional[_Span]:
    enclosing = [owner for owner in owners if owner.contains(shape)]
    if not enclosing:
        return None
    return min(enclosing, key=lambda s: s.size)


def _transform_attributes(text: str, span: _Span):
    own_fields = mask_nested_blocks(text[span.body_start:span.end - 1])
    position = _vec3(field_floats(own_fields, 'translation', 3), 0.0) or (0.0, 0.0, 0.0)
    rotation = _vec3(field_floats(own_fields, 'rotation', 3), 0.0)
    scale = _vec3(field_floats(own_fields, 'scale', 3), 1.0)
    return position, rotation, scale


def prepare_text(vrml_text: str) -> str:
    """Strip comments (including the version header) and DEF names."""
    return DEF_PATTERN.sub('', strip_comments(vrml_text))


def extract_scene(vrml_text: str, sink: Optional[DiagnosticSink] = None) -> SceneDescription:
    """
    Convert expanded VRML text into a scene description.

    Args:
        vrml_text: VRML text with all PROTO instances expanded
        sink: Diagnostics sink

    Returns:
        SceneDescription; a single default box when nothing was recognized
    """
    if sink is None:
        sink = DiagnosticSink(logger)
    text = prepare_text(vrml_text)

    transforms = _spans(text, 'Transform')
    groups = _spans(text, 'Group')
    shapes = _spans(text, 'Shape')

    entities: List[SceneEntity] = []
    consumed = set()

    def add(span: _Span, **transform) -> None:
        consumed.add(span)
        entity = parse_shape_node(text[span.body_start:span.end - 1], sink=sink, **transform)
        if entity is not None:
            entities.append(entity)

    for transform in transforms:
        owned = [s for s in shapes if _innermost(s, transforms) == transform]
        if not owned:
            continue
        position, rotation, scale = _transform_attributes(text, transform)
        for shape in owned:
            add(shape, position=position, rotation=rotation, scale=scale)

    for group in groups:
        for shape in shapes:
            if shape not in consumed and group.contains(shape):
                add(shape)

    for shape in shapes:
        if shape not in consumed:
            add(shape)

    if not entities:
        sink.warning(DiagnosticCode.EMPTY_SCENE, "No shapes found, adding fallback box")
        entities.append(SceneEntity(position=(0.0, 0.0, 0.0), geometry=GeometryKind.BOX))

    return SceneDescription(shapes=entities)
