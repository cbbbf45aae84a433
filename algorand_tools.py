"""
Tool and resource plumbing for the Algorand MCP server.

A ToolSpec describes one remote operation (name, description, JSON input
schema and an async handler). Binding a ToolSpec to the NetworkRegistry yields a
ToolHandler, which is what AlgorandServer installs under the tool name.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import jsonschema
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Resource, TextContent, Tool

from algorand_network import NetworkRegistry

logger = logging.getLogger(__name__)

ToolCallable = Callable[[NetworkRegistry, dict[str, Any]], Awaitable[str]]
ResourceCallable = Callable[[NetworkRegistry, str], dict[str, Any]]


class ToolRegistrationError(Exception):
    """Raised for configuration mistakes while installing tools or resources."""

    pass


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolResult:
    text: str
    is_error: bool = False

    def to_call_tool_result(self) -> CallToolResult:
        return CallToolResult(
            content=[TextContent(type="text", text=self.text)],
            isError=self.is_error,
        )


def find_tip(message: str, tips: tuple[tuple[str, str], ...]) -> str | None:
    for needle, tip in tips:
        if needle in message:
            return tip
    return None


def format_error(
    prefix: str, exc: BaseException, tips: tuple[tuple[str, str], ...] = ()
) -> str:
    message = str(exc) or exc.__class__.__name__
    text = f"{prefix}: {message}"
    tip = find_tip(message, tips)
    if tip:
        text += f"\n\nTip: {tip}"
    return text


# ---------------------------------------------------------------------------
# Tool descriptors and handlers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSpec:
    """
    Static description of one tool.

    - networks: when set, the tool is rejected on any other active network
      before the handler runs.
    - mutates: the tool submits transactions; a warning is logged on mainnet.
    - tips: (substring, hint) pairs appended to matching error messages.
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolCallable
    error_prefix: str
    networks: tuple[str, ...] | None = None
    mutates: bool = False
    tips: tuple[tuple[str, str], ...] = ()

    def to_tool(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
        )

    def bind(self, registry: NetworkRegistry) -> ToolHandler:
        return ToolHandler(self, registry)


class ToolHandler:
    """One request/response cycle for a tool, bound to the shared registry."""

    def __init__(self, spec: ToolSpec, registry: NetworkRegistry) -> None:
        self.spec = spec
        self.registry = registry

    async def __call__(self, arguments: dict[str, Any]) -> ToolResult:
        spec = self.spec
        network = self.registry.current_network()

        if spec.networks is not None and network not in spec.networks:
            logger.warning(
                "Rejected %s on %s (allowed: %s)",
                spec.name,
                network,
                ", ".join(spec.networks),
            )
            return ToolResult(
                f"Error: {spec.name} is only available on "
                f"{', '.join(spec.networks)}. Current network: {network}",
                is_error=True,
            )

        if spec.mutates and network == "mainnet":
            logger.warning("%s requested on mainnet", spec.name)

        try:
            text = await spec.handler(self.registry, arguments)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Tool %s failed: %s", spec.name, exc)
            return ToolResult(format_error(spec.error_prefix, exc, spec.tips), is_error=True)
        return ToolResult(text)


# ---------------------------------------------------------------------------
# Resource descriptors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResourceSpec:
    uri: str
    name: str
    description: str
    handler: ResourceCallable
    mime_type: str = "application/json"

    def to_resource(self) -> Resource:
        return Resource(
            uri=self.uri,
            name=self.name,
            description=self.description,
            mimeType=self.mime_type,
        )

    def bind(self, registry: NetworkRegistry) -> ResourceHandler:
        return ResourceHandler(self, registry)


class ResourceHandler:
    def __init__(self, spec: ResourceSpec, registry: NetworkRegistry) -> None:
        self.spec = spec
        self.registry = registry

    def __call__(self) -> str:
        return json.dumps(self.spec.handler(self.registry, self.spec.uri), indent=2)


# ---------------------------------------------------------------------------
# Host server
# ---------------------------------------------------------------------------


@dataclass
class _Installed:
    tools: dict[str, Tool] = field(default_factory=dict)
    tool_handlers: dict[str, ToolHandler] = field(default_factory=dict)
    resources: dict[str, Resource] = field(default_factory=dict)
    resource_handlers: dict[str, ResourceHandler] = field(default_factory=dict)


class AlgorandServer:
    """
    Name-keyed tool and resource table on top of a low-level MCP Server.

    Everything must be installed before serve_stdio() is called; duplicate
    names or URIs are configuration errors.
    """

    def __init__(self, name: str = "algorand", version: str | None = None) -> None:
        self.app = Server(name, version=version)
        self._installed = _Installed()
        self._serving = False
        self._wire()

    # -- registration --

    def _check_open(self, what: str) -> None:
        if self._serving:
            raise ToolRegistrationError(
                f"Cannot register {what} after the server started serving."
            )

    def add_tool(self, spec: ToolSpec, handler: ToolHandler) -> None:
        self._check_open(f"tool {spec.name!r}")
        if spec.name in self._installed.tools:
            raise ToolRegistrationError(f"Duplicate tool name: {spec.name}")
        self._installed.tools[spec.name] = spec.to_tool()
        self._installed.tool_handlers[spec.name] = handler

    def add_resource(self, spec: ResourceSpec, handler: ResourceHandler) -> None:
        self._check_open(f"resource {spec.uri!r}")
        if spec.uri in self._installed.resources:
            raise ToolRegistrationError(f"Duplicate resource URI: {spec.uri}")
        self._installed.resources[spec.uri] = spec.to_resource()
        self._installed.resource_handlers[spec.uri] = handler

    def mark_serving(self) -> None:
        self._serving = True

    # -- request handling --

    def list_tools(self) -> list[Tool]:
        return list(self._installed.tools.values())

    async def call_tool(self, name: str, arguments: Any) -> ToolResult:
        tool = self._installed.tools.get(name)
        if tool is None:
            return ToolResult(f"Unknown tool: {name}", is_error=True)
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return ToolResult("Invalid arguments. Expected an object.", is_error=True)

        try:
            jsonschema.validate(instance=arguments, schema=tool.inputSchema)
        except jsonschema.ValidationError as exc:
            return ToolResult(f"Input validation error: {exc.message}", is_error=True)

        return await self._installed.tool_handlers[name](arguments)

    def list_resources(self) -> list[Resource]:
        return list(self._installed.resources.values())

    def _resource_key(self, uri: str) -> str:
        # URL parsing may append a trailing slash to the registered URI.
        for key in (uri, uri.rstrip("/")):
            if key in self._installed.resource_handlers:
                return key
        raise ValueError(f"Unknown resource: {uri}")

    def read_resource(self, uri: str) -> str:
        return self._installed.resource_handlers[self._resource_key(uri)]()

    def _wire(self) -> None:
        app = self.app

        @app.list_tools()
        async def _list_tools() -> list[Tool]:
            return self.list_tools()

        @app.call_tool(validate_input=False)
        async def _call_tool(name: str, arguments: Any) -> CallToolResult:
            result = await self.call_tool(name, arguments)
            return result.to_call_tool_result()

        @app.list_resources()
        async def _list_resources() -> list[Resource]:
            return self.list_resources()

        @app.read_resource()
        async def _read_resource(uri: Any) -> list[ReadResourceContents]:
            key = self._resource_key(str(uri))
            text = self.read_resource(key)
            mime_type = self._installed.resources[key].mimeType
            return [ReadResourceContents(content=text, mime_type=mime_type)]

    async def serve_stdio(self) -> None:
        self.mark_serving()
        async with stdio_server() as (read_stream, write_stream):
            await self.app.run(
                read_stream, write_stream, self.app.create_initialization_options()
            )
