"""
VRML scene tools for MCP.

Exposes the parse pipeline to MCP clients: full scene extraction, PROTO
expansion only, and PROTO interface listing.
"""

import logging
from typing import Any, Dict, List, Optional

from mcp import Tool

from ..core.blocks import strip_comments
from ..core.diagnostics import DiagnosticSink
from ..core.pipeline import VrmlSceneParser
from ..protos.extractor import extract_proto_blocks
from ..utils.response import error_response, success_response

logger = logging.getLogger(__name__)

MAX_DEPTH_SCHEMA = {
    "type": "integer",
    "minimum": 1,
    "description": "Maximum PROTO expansion passes (default: VRML_MAX_EXPANSION_DEPTH or 10)"
}

VRML_TEXT_SCHEMA = {
    "type": "string",
    "description": "Complete VRML 2.0 source text"
}


class SceneTools:
    """Handles VRML scene MCP tools."""

    def __init__(self, parser: Optional[VrmlSceneParser] = None):
        """
        Args:
            parser: Parser used when a call gives no max_depth override
        """
        self.parser = parser or VrmlSceneParser()

    def get_tools(self) -> List[Tool]:
        """Return all scene tools."""
        return [
            Tool(
                name="vrml_parse_scene",
                description="Convert VRML text (PROTOs included) into a flat list of renderable shapes",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "vrml_text": VRML_TEXT_SCHEMA,
                        "max_depth": MAX_DEPTH_SCHEMA,
                    },
                    "required": ["vrml_text"]
                }
            ),
            Tool(
                name="vrml_expand_protos",
                description="Expand all PROTO instances and return plain VRML text",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "vrml_text": VRML_TEXT_SCHEMA,
                        "max_depth": MAX_DEPTH_SCHEMA,
                    },
                    "required": ["vrml_text"]
                }
            ),
            Tool(
                name="vrml_list_protos",
                description="List PROTO interfaces (fields, types, defaults) declared in VRML text",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "vrml_text": VRML_TEXT_SCHEMA,
                    },
                    "required": ["vrml_text"]
                }
            ),
        ]

    async def handle_tool(self, tool_name: str, args: dict) -> dict:
        """
        Route tool calls to appropriate handler.

        Args:
            tool_name: Name of the tool
            args: Tool arguments

        Returns:
            Response dict
        """
        handlers = {
            "vrml_parse_scene": self._parse_scene,
            "vrml_expand_protos": self._expand_protos,
            "vrml_list_protos": self._list_protos,
        }

        handler = handlers.get(tool_name)
        if not handler:
            return error_response(f"Unknown tool: {tool_name}", code="UNKNOWN_TOOL")

        try:
            return await handler(args)
        except ValueError as e:
            return error_response(str(e), code="INVALID_ARGUMENT")
        except Exception as e:
            logger.exception(f"Scene tool error: {tool_name}")
            return error_response(str(e))

    # ========================================================================
    # Tool Handlers
    # ========================================================================

    async def _parse_scene(self, args: dict) -> dict:
        result = self._parser_for(args).parse(self._vrml_text(args))
        return success_response(
            data=result.to_dict(),
            warnings=[d.message for d in result.diagnostics if d.level.value in ("warning", "error")]
        )

    async def _expand_protos(self, args: dict) -> dict:
        result = self._parser_for(args).parse(self._vrml_text(args))
        expansion = result.expansion
        return success_response(
            data={
                "expanded_text": result.expanded_text,
                "proto_names": result.proto_names,
                "passes": expansion.passes if expansion else 0,
                "depth_exceeded": expansion.depth_exceeded if expansion else False,
                "diagnostics": [d.to_dict() for d in result.diagnostics],
            }
        )

    async def _list_protos(self, args: dict) -> dict:
        sink = DiagnosticSink(logger)
        extraction = extract_proto_blocks(strip_comments(self._vrml_text(args)), sink)
        return success_response(
            data={
                "protos": [d.to_dict() for d in extraction.definitions],
                "count": len(extraction.definitions),
                "diagnostics": [d.to_dict() for d in sink.diagnostics],
            }
        )

    # ========================================================================
    # Argument helpers
    # ========================================================================

    @staticmethod
    def _vrml_text(args: Dict[str, Any]) -> str:
        text = args.get("vrml_text")
        if not isinstance(text, str):
            raise ValueError("vrml_text is required and must be a string")
        return text

    def _parser_for(self, args: Dict[str, Any]) -> VrmlSceneParser:
        max_depth = args.get("max_depth")
        if max_depth is None:
            return self.parser
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
            raise ValueError(f"max_depth must be a positive integer, got {max_depth!r}")
        return VrmlSceneParser(max_depth=max_depth)
