"""
Tests for the parse pipeline (src/core/pipeline.py).

End-to-end conversions from VRML text to scene descriptions, plus
per-parse registry isolation.
"""

import logging

import pytest

from src.core.diagnostics import DiagnosticCode
from src.core.pipeline import ParseResult, VrmlSceneParser, parse_vrml, proto_scope
from src.scene.models import GeometryKind


COLORED_BOX_SCENE = """#VRML V2.0 utf8
PROTO ColoredBox [
  field SFColor boxColor 1 0 0
  field SFFloat boxSize 1
] {
  Shape {
    appearance Appearance { material Material { diffuseColor IS boxColor } }
    geometry Box { size IS boxSize }
  }
}
ColoredBox { boxColor 0 1 0 boxSize 2 }
ColoredBox { boxColor 0 0 1 }
"""


@pytest.fixture
def parser():
    return VrmlSceneParser()


class TestParse:
    """Full conversions."""

    def test_colored_box_twice(self, parser):
        result = parser.parse(COLORED_BOX_SCENE)

        assert isinstance(result, ParseResult)
        shapes = result.scene.shapes
        assert len(shapes) == 2
        assert shapes[0].color == "#00ff00"
        assert shapes[0].size[0] == 2.0
        assert shapes[1].color == "#0000ff"
        assert shapes[1].size == (1.0, 1.0, 1.0)
        assert result.proto_names == ["ColoredBox"]
        assert result.expansion.expanded_count == 2

    def test_plain_scene_without_protos(self, parser):
        text = (
            "#VRML V2.0 utf8\n"
            "Transform { translation 1 2 3 children [ Shape { geometry Box { size 2 2 2 } "
            "appearance Appearance { material Material { diffuseColor 1 0 0 } } } ] }\n"
        )

        result = parser.parse(text)

        shape = result.scene.shapes[0]
        assert shape.position == (1.0, 2.0, 3.0)
        assert shape.color == "#ff0000"
        assert result.protos == []
        assert result.diagnostics == []

    def test_empty_input(self, parser):
        result = parser.parse("")

        assert len(result.scene) == 1
        assert result.scene.shapes[0].geometry == GeometryKind.BOX
        assert any(d.code == DiagnosticCode.EMPTY_SCENE for d in result.diagnostics)

    def test_circular_protos_terminate(self):
        text = (
            "PROTO ProtoA [ ] { Transform { children [ ProtoB { } ] } }\n"
            "PROTO ProtoB [ ] { Transform { children [ ProtoA { } ] } }\n"
            "ProtoA { }"
        )

        result = VrmlSceneParser(max_depth=10).parse(text)

        assert result.expansion.depth_exceeded
        assert result.expansion.passes == 10
        assert len(result.scene) >= 1

    def test_malformed_proto_does_not_stop_parse(self, parser):
        text = (
            "PROTO Broken [ field SFFloat x 1\n"
            "PROTO Ball [ field SFFloat r 1 ] { Shape { geometry Sphere { radius IS r } } }\n"
            "Ball { r 4 }"
        )

        result = parser.parse(text)

        assert result.scene.shapes[0].geometry == GeometryKind.SPHERE
        assert result.scene.shapes[0].radius == 4.0
        assert any(d.code == DiagnosticCode.MALFORMED_PROTO for d in result.diagnostics)

    def test_to_dict(self, parser):
        data = parser.parse(COLORED_BOX_SCENE).to_dict()

        assert set(data) == {"shapes", "proto_names", "expansion_passes", "depth_exceeded", "diagnostics"}
        assert data["shapes"][0]["color"] == "#00ff00"
        assert data["expansion_passes"] == 1


class TestDiagnostics:
    """Every stage reports into the parse result."""

    @pytest.mark.parametrize("text, code", [
        ("PROTO Broken [ field SFFloat x 1\nShape { geometry Box { } }", DiagnosticCode.MALFORMED_PROTO),
        ("PROTO NoBody [ field SFFloat x 1 ]", DiagnosticCode.MISSING_BODY),
        ("PROTO P [ field SFVec3f v 1 ] { Box { } }", DiagnosticCode.MALFORMED_FIELD),
        ('PROTO P [ field SFString s "a" ] { Box { } }', DiagnosticCode.UNKNOWN_FIELD_TYPE),
        ("PROTO P [ ] { Shape { geometry Sphere { radius IS nope } } }\nP { }", DiagnosticCode.UNRESOLVED_BINDING),
        ("PROTO P [ ] { Shape { geometry Box { } } }\nP { ", DiagnosticCode.MALFORMED_INSTANCE),
        ("PROTO Loop [ ] { Group { children [ Loop { } ] } }\nLoop { }", DiagnosticCode.DEPTH_EXCEEDED),
        ("PROTO Loop [ ] { Loop { } }\nLoop { }", DiagnosticCode.DEPTH_EXCEEDED),
        ("Shape { appearance Appearance { } }", DiagnosticCode.NO_GEOMETRY),
        ("", DiagnosticCode.EMPTY_SCENE),
    ])
    def test_code_reaches_result(self, parser, text, code):
        result = parser.parse(text)

        assert code in [d.code for d in result.diagnostics]

    def test_injected_logger_receives_diagnostics(self, caplog):
        log = logging.getLogger("tests.pipeline")

        with caplog.at_level(logging.WARNING, logger="tests.pipeline"):
            VrmlSceneParser(log=log).parse("PROTO Broken [ field SFFloat x 1")

        assert "[malformed_proto]" in caplog.text


class TestComments:
    """Comments are removed before any PROTO processing."""

    BALL_PROTO = (
        "PROTO Ball [ field SFFloat r 1 ] {\n"
        "  Shape {\n"
        "    geometry Sphere { radius IS r }\n"
        "  }\n"
        "}\n"
    )

    def test_commented_out_usage_not_expanded(self, parser):
        text = self.BALL_PROTO + (
            "Transform { translation 1 2 3 children [\n"
            "  # Ball { r 9 }\n"
            "  Ball { r 2 }\n"
            "] }\n"
        )

        result = parser.parse(text)

        assert len(result.scene) == 1
        shape = result.scene.shapes[0]
        assert shape.position == (1.0, 2.0, 3.0)
        assert shape.radius == 2.0
        assert result.expansion.expanded_count == 1

    def test_commented_out_proto_not_registered(self, parser):
        text = (
            "# PROTO Ghost [ ] { Shape { geometry Box { } } }\n"
            "Shape { geometry Sphere { } }\n"
        )

        result = parser.parse(text)

        assert result.protos == []
        assert [s.geometry for s in result.scene.shapes] == [GeometryKind.SPHERE]

    def test_brace_in_comment_inside_body(self, parser):
        text = (
            "PROTO Ball [ field SFFloat r 1 ] {\n"
            "  # closing } here\n"
            "  Shape { geometry Sphere { radius IS r } }\n"
            "}\n"
            "Ball { r 3 }\n"
        )

        result = parser.parse(text)

        assert result.scene.shapes[0].radius == 3.0
        assert result.diagnostics == []


class TestIsolation:
    """PROTOs never leak between parses."""

    def test_second_parse_does_not_see_first_protos(self, parser):
        parser.parse(COLORED_BOX_SCENE)

        result = parser.parse("ColoredBox { boxColor 0 1 0 }")

        assert result.protos == []
        assert "ColoredBox" in result.expanded_text
        assert result.expansion.passes == 0

    def test_proto_scope_clears_registry(self):
        with proto_scope() as registry:
            from src.protos.registry import ProtoDefinition
            registry.register("Temp", ProtoDefinition("Temp", (), "Box { }"))
            assert registry.has("Temp")

        assert registry.size() == 0

    def test_proto_scope_clears_on_error(self):
        with pytest.raises(RuntimeError):
            with proto_scope() as registry:
                from src.protos.registry import ProtoDefinition
                registry.register("Temp", ProtoDefinition("Temp", (), "Box { }"))
                raise RuntimeError("boom")

        assert registry.size() == 0


class TestParseVrml:
    """Convenience wrapper."""

    def test_returns_scene(self):
        scene = parse_vrml("Shape { geometry Cone { height 3 } }")

        assert scene.shapes[0].geometry == GeometryKind.CONE
        assert scene.shapes[0].height == 3.0
