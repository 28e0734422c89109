"""
MCP Server for player control.

This module provides an MCP server that exposes playback commands and the
now-playing listener as tools.
"""

import asyncio
import json
from typing import Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, EmbeddedResource, ErrorData, ImageContent, TextContent, Tool
from pydantic import BaseModel, ValidationError

from .commands import PLAYBACK_COMMANDS, PlayerController
from .config import AppConfig
from .errors import InvalidArgumentError, PlayerNotifyError
from .listener import NowPlayingListener
from .notifications import LoggingSink, RecordingSink


class PlayerCommandInput(BaseModel):
    """Input for the player_command tool."""

    command: str
    player: Optional[str] = None


class NowPlayingResult(BaseModel):
    """Result of the now_playing tool."""

    listening: bool
    artist: str = ""
    album: str = ""
    title: str = ""
    display: str = ""


class PlayerControlServer:
    """MCP server for playerctl control and now-playing updates."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        controller: Optional[PlayerController] = None,
        listener: Optional[NowPlayingListener] = None,
    ):
        """Initialize the MCP server."""
        self._config = config or AppConfig.create_default()
        self.server = Server("player-control-server")
        self.sink = RecordingSink(forward_to=LoggingSink())
        self.controller = controller or PlayerController(self._config.player)
        self.listener = listener or NowPlayingListener(self.sink, self._config.listener)

    def list_tools(self) -> list[Tool]:
        """Describe the available tools."""
        return [
            Tool(
                name="player_command",
                description="Send a playback command to the active media player, or to a specific one",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "command": {"type": "string", "enum": list(PLAYBACK_COMMANDS)},
                        "player": {
                            "type": "string",
                            "enum": self.controller.supported_players,
                            "description": "The player to control (optional)",
                        },
                    },
                    "required": ["command"],
                },
            ),
            Tool(
                name="start_listening",
                description="Start following now-playing metadata changes",
                inputSchema={"type": "object", "properties": {}},
            ),
            Tool(
                name="stop_listening",
                description="Stop following now-playing metadata changes",
                inputSchema={"type": "object", "properties": {}},
            ),
            Tool(
                name="now_playing",
                description="Return the last track reported while listening",
                inputSchema={"type": "object", "properties": {}},
            ),
        ]

    def call_tool(self, name: str, arguments: Optional[dict]) -> dict:
        """Run a tool and return its JSON-serialisable result."""
        arguments = arguments or {}

        if name == "player_command":
            try:
                input_data = PlayerCommandInput(**arguments)
                result = self.controller.run_command(input_data.command, input_data.player)
            except (ValidationError, InvalidArgumentError) as e:
                raise McpError(ErrorData(code=INVALID_PARAMS, message=str(e))) from e
            except PlayerNotifyError as e:
                raise McpError(ErrorData(code=INTERNAL_ERROR, message=str(e))) from e
            return {"command": result.command, "player": result.player, "returncode": result.returncode}

        if name == "start_listening":
            handle, error = self.listener.start_listening()
            if error:
                raise McpError(ErrorData(code=INTERNAL_ERROR, message=str(error)))
            return {"listening": self.listener.is_listening, "pid": handle.pid if handle else None}

        if name == "stop_listening":
            stopped = self.listener.stop()
            return {"stopped": stopped, "listening": self.listener.is_listening}

        if name == "now_playing":
            track = self.sink.latest_track
            if track is None:
                result = NowPlayingResult(listening=self.listener.is_listening)
            else:
                result = NowPlayingResult(listening=self.listener.is_listening, display=track.display, **track.to_dict())
            return result.model_dump()

        raise McpError(ErrorData(code=INVALID_PARAMS, message=f"Unknown tool: {name}"))

    async def call_tool_async(self, name: str, arguments: Optional[dict]) -> dict:
        """Run a tool on the default executor so playerctl calls never block the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.call_tool, name, arguments)

    async def serve(self) -> None:
        """Run the MCP server."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """List available tools."""
            return self.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> list[TextContent | ImageContent | EmbeddedResource]:
            """Handle tool calls."""
            result = await self.call_tool_async(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, indent=2))]

        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(read_stream, write_stream, self.server.create_initialization_options())
        finally:
            await asyncio.get_running_loop().run_in_executor(None, self.listener.stop)


async def serve_mcp(config: Optional[AppConfig] = None):
    """Entry point for running the MCP server."""
    await PlayerControlServer(config).serve()
