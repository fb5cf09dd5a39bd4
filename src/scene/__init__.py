"""Scene node extraction and the renderer-facing scene models."""

from .models import DEFAULT_COLOR, GeometryKind, SceneDescription, SceneEntity
from .extractor import extract_scene, parse_shape_node, rgb_to_hex

__all__ = [
    'DEFAULT_COLOR',
    'GeometryKind',
    'SceneDescription',
    'SceneEntity',
    'extract_scene',
    'parse_shape_node',
    'rgb_to_hex',
]
