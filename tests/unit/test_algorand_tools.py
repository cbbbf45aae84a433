"""Unit tests for the tool dispatch contract and the host server."""

import asyncio
import json
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

from algorand_tools import (  # noqa: E402
    AlgorandServer,
    ResourceSpec,
    ToolRegistrationError,
    ToolResult,
    ToolSpec,
    format_error,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


AMOUNT_SCHEMA = {
    "type": "object",
    "properties": {"amount": {"type": "integer", "minimum": 1}},
    "required": ["amount"],
}


class CountingHandler:
    def __init__(self, text="ok", error=None):
        self.calls = 0
        self.text = text
        self.error = error

    async def __call__(self, registry, arguments):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text


def _spec(name="x", handler=None, **kwargs):
    return ToolSpec(
        name=name,
        description="test tool",
        input_schema=kwargs.pop("input_schema", {"type": "object", "properties": {}}),
        handler=handler or CountingHandler(),
        error_prefix=kwargs.pop("error_prefix", "Error running x"),
        **kwargs,
    )


def _server_with(registry, *specs):
    server = AlgorandServer("test")
    for spec in specs:
        server.add_tool(spec, spec.bind(registry))
    return server


# ---------------------------------------------------------------------------
# Results and errors
# ---------------------------------------------------------------------------


def test_tool_result_to_call_tool_result():
    result = ToolResult("boom", is_error=True).to_call_tool_result()
    assert result.isError is True
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    assert result.content[0].text == "boom"


def test_format_error_appends_matching_tip():
    tips = (("err opcode", "Check your TEAL."),)
    text = format_error("Error calling app", RuntimeError("logic eval: err opcode executed"), tips)
    assert text == "Error calling app: logic eval: err opcode executed\n\nTip: Check your TEAL."


def test_format_error_without_tip():
    assert format_error("Error", ValueError("bad")) == "Error: bad"


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_duplicate_tool_name_rejected(registry):
    server = _server_with(registry, _spec("dup"))
    spec = _spec("dup")
    with pytest.raises(ToolRegistrationError, match="dup"):
        server.add_tool(spec, spec.bind(registry))


def test_registration_after_serving_rejected(registry):
    server = _server_with(registry)
    server.mark_serving()
    spec = _spec("late")
    with pytest.raises(ToolRegistrationError):
        server.add_tool(spec, spec.bind(registry))


def test_duplicate_resource_uri_rejected(registry):
    server = AlgorandServer("test")
    spec = ResourceSpec("network://current", "Current", "", lambda reg, uri: {})
    server.add_resource(spec, spec.bind(registry))
    with pytest.raises(ToolRegistrationError, match="network://current"):
        server.add_resource(spec, spec.bind(registry))


def test_list_tools_exposes_schema(registry):
    server = _server_with(registry, _spec("x", input_schema=AMOUNT_SCHEMA))
    tools = server.list_tools()
    assert [t.name for t in tools] == ["x"]
    assert tools[0].inputSchema == AMOUNT_SCHEMA


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def test_end_to_end_success(registry, localnet, make_result):
    localnet.send.results["payment"] = make_result(tx_id="ABC123")

    async def handler(reg, arguments):
        result = reg.active_client().send.payment({"amount": arguments["amount"]})
        return result.tx_id

    server = _server_with(registry, _spec("x", handler, input_schema=AMOUNT_SCHEMA))
    result = asyncio.run(server.call_tool("x", {"amount": 5})).to_call_tool_result()

    assert result.isError is False
    assert result.content[0].text == "ABC123"
    assert localnet.send.last("payment")[0] == {"amount": 5}


def test_schema_violation_never_reaches_handler(registry):
    handler = CountingHandler()
    server = _server_with(registry, _spec("x", handler, input_schema=AMOUNT_SCHEMA))

    for bad in ({}, {"amount": 0}, {"amount": "five"}):
        result = asyncio.run(server.call_tool("x", bad))
        assert result.is_error
        assert result.text.startswith("Input validation error:")

    assert handler.calls == 0


def test_non_object_arguments_rejected(registry):
    handler = CountingHandler()
    server = _server_with(registry, _spec("x", handler))
    result = asyncio.run(server.call_tool("x", ["not", "an", "object"]))
    assert result.is_error
    assert handler.calls == 0


def test_missing_arguments_treated_as_empty(registry):
    handler = CountingHandler("fine")
    server = _server_with(registry, _spec("x", handler))
    result = asyncio.run(server.call_tool("x", None))
    assert result == ToolResult("fine")


def test_unknown_tool(registry):
    server = _server_with(registry)
    result = asyncio.run(server.call_tool("nope", {}))
    assert result.is_error
    assert "nope" in result.text


def test_handler_exception_becomes_error_result(registry):
    handler = CountingHandler(error=RuntimeError("node unreachable"))
    server = _server_with(registry, _spec("x", handler, error_prefix="Error sending payment"))

    result = asyncio.run(server.call_tool("x", {}))

    assert result.is_error
    assert result.text == "Error sending payment: node unreachable"


def test_handler_exception_with_tip(registry):
    handler = CountingHandler(error=RuntimeError("program assembly failed: line 3"))
    spec = _spec("x", handler, tips=(("program assembly failed", "Fix the TEAL."),))
    server = _server_with(registry, spec)

    result = asyncio.run(server.call_tool("x", {}))

    assert result.text.endswith("\n\nTip: Fix the TEAL.")


@pytest.mark.parametrize("network", ["testnet", "mainnet"])
def test_scope_violation_skips_handler(registry, network):
    handler = CountingHandler()
    server = _server_with(registry, _spec("fund", handler, networks=("localnet",)))
    registry.set_network(network)

    result = asyncio.run(server.call_tool("fund", {}))

    assert result.is_error
    assert "only available on localnet" in result.text
    assert f"Current network: {network}" in result.text
    assert handler.calls == 0


def test_scope_allows_listed_network(registry):
    handler = CountingHandler("funded")
    server = _server_with(registry, _spec("fund", handler, networks=("localnet",)))
    result = asyncio.run(server.call_tool("fund", {}))
    assert result == ToolResult("funded")


def test_mutating_tool_on_mainnet_logs_warning(registry, caplog):
    handler = CountingHandler("sent")
    server = _server_with(registry, _spec("pay", handler, mutates=True))
    registry.set_network("mainnet")

    with caplog.at_level("WARNING", logger="algorand_tools"):
        result = asyncio.run(server.call_tool("pay", {}))

    assert result == ToolResult("sent")
    assert any("mainnet" in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


def test_read_resource_serializes_json(registry):
    server = AlgorandServer("test")
    spec = ResourceSpec(
        "network://current",
        "Current",
        "",
        lambda reg, uri: {"current": reg.current_network(), "uri": uri},
    )
    server.add_resource(spec, spec.bind(registry))

    payload = json.loads(server.read_resource("network://current"))
    assert payload == {"current": "localnet", "uri": "network://current"}
    assert json.loads(server.read_resource("network://current/"))["current"] == "localnet"
    assert server.list_resources()[0].mimeType == "application/json"


def test_read_unknown_resource(registry):
    server = AlgorandServer("test")
    with pytest.raises(ValueError, match="Unknown resource"):
        server.read_resource("network://nowhere")
