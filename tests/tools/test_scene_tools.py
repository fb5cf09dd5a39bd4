"""Tests for MCP scene tools."""

import pytest

from src.tools.scene_tools import SceneTools
from src.utils.response import is_success


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
Transform { translation 0 1 0 children [ ColoredBox { boxColor 0 0 1 } ] }
"""


@pytest.fixture
def scene_tools():
    """Create scene tools with the default parser."""
    return SceneTools()


class TestToolSchemas:
    """Tool registration."""

    def test_tool_names(self, scene_tools):
        names = [tool.name for tool in scene_tools.get_tools()]

        assert names == ["vrml_parse_scene", "vrml_expand_protos", "vrml_list_protos"]

    def test_vrml_text_required(self, scene_tools):
        for tool in scene_tools.get_tools():
            assert tool.inputSchema["required"] == ["vrml_text"]


class TestParseScene:
    """vrml_parse_scene"""

    @pytest.mark.asyncio
    async def test_parse_scene(self, scene_tools):
        result = await scene_tools.handle_tool("vrml_parse_scene", {"vrml_text": COLORED_BOX_SCENE})

        assert is_success(result)
        data = result["data"]
        assert data["proto_names"] == ["ColoredBox"]
        assert data["expansion_passes"] == 1
        assert data["depth_exceeded"] is False
        assert len(data["shapes"]) == 1
        shape = data["shapes"][0]
        assert shape["geometry"] == "box"
        assert shape["color"] == "#0000ff"
        assert shape["position"] == [0.0, 1.0, 0.0]

    @pytest.mark.asyncio
    async def test_warnings_surface_in_envelope(self, scene_tools):
        result = await scene_tools.handle_tool("vrml_parse_scene", {"vrml_text": ""})

        assert is_success(result)
        assert len(result["data"]["shapes"]) == 1
        assert result["warnings"]

    @pytest.mark.asyncio
    async def test_max_depth_override(self, scene_tools):
        text = (
            "PROTO Loop [ ] { Group { children [ Loop { } ] } }\n"
            "Loop { }"
        )

        result = await scene_tools.handle_tool("vrml_parse_scene", {"vrml_text": text, "max_depth": 3})

        assert is_success(result)
        assert result["data"]["expansion_passes"] == 3
        assert result["data"]["depth_exceeded"] is True


class TestExpandProtos:
    """vrml_expand_protos"""

    @pytest.mark.asyncio
    async def test_expand(self, scene_tools):
        result = await scene_tools.handle_tool("vrml_expand_protos", {"vrml_text": COLORED_BOX_SCENE})

        assert is_success(result)
        data = result["data"]
        assert "ColoredBox" not in data["expanded_text"]
        assert "diffuseColor 0 0 1" in data["expanded_text"]
        assert data["passes"] == 1
        assert data["diagnostics"] == []


class TestListProtos:
    """vrml_list_protos"""

    @pytest.mark.asyncio
    async def test_list(self, scene_tools):
        result = await scene_tools.handle_tool("vrml_list_protos", {"vrml_text": COLORED_BOX_SCENE})

        assert is_success(result)
        data = result["data"]
        assert data["count"] == 1
        proto = data["protos"][0]
        assert proto["name"] == "ColoredBox"
        assert proto["fields"][0] == {"name": "boxColor", "type": "SFColor", "default": "1 0 0"}
        assert proto["fields"][1]["default"] == "1"


class TestErrors:
    """Argument validation and routing."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, scene_tools):
        result = await scene_tools.handle_tool("vrml_nope", {})

        assert not is_success(result)
        assert result["error"]["code"] == "UNKNOWN_TOOL"

    @pytest.mark.asyncio
    async def test_missing_text(self, scene_tools):
        result = await scene_tools.handle_tool("vrml_parse_scene", {})

        assert not is_success(result)
        assert result["error"]["code"] == "INVALID_ARGUMENT"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_depth", [0, -2, "5", True, 1.5])
    async def test_invalid_max_depth(self, scene_tools, max_depth):
        result = await scene_tools.handle_tool(
            "vrml_expand_protos", {"vrml_text": "Shape { }", "max_depth": max_depth}
        )

        assert not is_success(result)
        assert result["error"]["code"] == "INVALID_ARGUMENT"
