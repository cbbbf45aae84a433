#!/usr/bin/env python3
"""
MCP server for Algorand operations.

Exposes the Algorand SDK as MCP tools over stdio.

Implements:
- Network selection tools and network:// resources
- Account generation, restore and lookup
- LocalNet dispenser funding
- Lora explorer links
- Algorand Standard Asset (ASA) lifecycle
- Smart contract create / update / delete / call (bare and ABI)
- ALGO payments
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from dotenv import load_dotenv

SERVER_DIR = Path(__file__).resolve().parent
load_dotenv(SERVER_DIR / ".env")
load_dotenv(SERVER_DIR.parent / ".env")

from algorand_accounts import (  # noqa: E402
    account_from_mnemonic,
    ensure_funded,
    generate_account,
    get_account_info,
)
from algorand_apps import (  # noqa: E402
    APP_ERROR_TIPS,
    AppCallResult,
    build_app_call_fields,
    build_schema,
    call_app,
    call_app_method_call,
    create_app,
    create_app_method_call,
    delete_app,
    delete_app_method_call,
    parse_uint,
    update_app,
    update_app_method_call,
)
from algorand_assets import (  # noqa: E402
    config_asset,
    create_asset,
    destroy_asset,
    freeze_asset,
    opt_in_asset,
    opt_out_asset,
    transfer_asset,
)
from algorand_explorer import RESOURCE_TYPES, explorer_url  # noqa: E402
from algorand_network import (  # noqa: E402
    NETWORKS,
    AlgorandConfig,
    NetworkRegistry,
    get_network_details,
    validate_network,
)
from algorand_payments import send_payment  # noqa: E402
from algorand_tools import AlgorandServer, ResourceSpec, ToolSpec  # noqa: E402
from algorand_txn import TxnResult, parse_decimal  # noqa: E402

logger = logging.getLogger("algorand_mcp_server")

SERVER_NAME = "algorand"
SERVER_VERSION = "1.0.0"

MAINNET_WARNING = "WARNING: You are now operating on mainnet. All transactions will use real ALGO."


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _round_text(txn: TxnResult) -> str:
    return str(txn.confirmed_round) if txn.confirmed_round else "Pending"


def _txn_lines(txn: TxnResult) -> list[str]:
    return [
        "Transaction Details:",
        f"Transaction ID: {txn.tx_id}",
        f"Confirmation Round: {_round_text(txn)}",
    ]


def _asset_id(arguments: dict[str, Any]) -> int:
    return parse_uint(arguments.get("asset_id"), "asset_id")


def _app_id(arguments: dict[str, Any]) -> int:
    return parse_uint(arguments.get("app_id"), "app_id")


def _optional_uint(arguments: dict[str, Any], key: str) -> int | None:
    value = arguments.get(key)
    if value is None or value == "":
        return None
    return parse_uint(value, key)


# ---------------------------------------------------------------------------
# Shared schema fragments
# ---------------------------------------------------------------------------

_ADDRESS = {"type": "string", "description": "Algorand address"}
_ID = {"type": ["integer", "string"]}
_NOTE = {"type": "string", "description": "Optional transaction note (UTF-8)"}

_APP_CALL_PROPERTIES: dict[str, Any] = {
    "sender": {
        "type": "string",
        "description": "Sender address; its signer must be loaded (ALGORAND_MNEMONIC or algo_account_from_mnemonic)",
    },
    "on_complete": {
        "type": "string",
        "enum": ["NoOp", "OptIn", "CloseOut"],
        "description": "On-complete action (default NoOp)",
    },
    "account_references": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Accounts the program may read",
    },
    "app_references": {
        "type": "array",
        "items": _ID,
        "description": "Foreign application IDs",
    },
    "asset_references": {
        "type": "array",
        "items": _ID,
        "description": "Foreign asset IDs",
    },
    "box_references": {
        "type": "array",
        "items": {
            "anyOf": [
                {"type": "string"},
                {
                    "type": "object",
                    "properties": {"name": {"type": "string"}, "app_id": _ID},
                    "required": ["name"],
                },
            ]
        },
        "description": "Box names, or {name, app_id} for boxes of other applications",
    },
    "note": _NOTE,
    "lease": {"type": "string", "description": "Optional 32-byte lease, base64-encoded"},
}

_PROGRAM_PROPERTIES: dict[str, Any] = {
    "approval_program": {"type": "string", "description": "Approval program TEAL source"},
    "clear_state_program": {"type": "string", "description": "Clear state program TEAL source"},
}

_STATE_SCHEMA_PROPERTIES: dict[str, Any] = {
    "global_ints": {"type": "integer", "minimum": 0},
    "global_bytes": {"type": "integer", "minimum": 0},
    "local_ints": {"type": "integer", "minimum": 0},
    "local_bytes": {"type": "integer", "minimum": 0},
    "extra_pages": {"type": "integer", "minimum": 0, "maximum": 3},
}

_APP_ARGS = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Application arguments; base64 strings are decoded, others are UTF-8 encoded",
}

_METHOD_PROPERTIES: dict[str, Any] = {
    "method": {
        "type": "string",
        "description": "ABI method signature, e.g. add(uint64,uint64)uint64",
    },
    "method_args": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Method arguments as strings; arrays and tuples as JSON",
    },
}


def _object_schema(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------


async def _handle_get_network(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    network = registry.current_network()
    details = await asyncio.to_thread(get_network_details, registry.active_client(), network)
    info = {
        "genesisId": details.genesis_id,
        "genesisHash": details.genesis_hash,
        "lastRound": details.last_round,
        "isLocalNet": network == "localnet",
        "isTestNet": network == "testnet",
        "isMainNet": network == "mainnet",
    }
    return f"Current network: {network}. Network information: {json.dumps(info, indent=2)}"


async def _handle_set_network(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    previous = registry.current_network()
    registry.set_network(arguments.get("network"))
    network = registry.current_network()
    text = f"Network switched from {previous} to {network}."
    if network == "mainnet":
        text += f"\n\n{MAINNET_WARNING}"
    return text


async def _handle_detect_network(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    previous = registry.current_network()
    network = registry.infer_network_from_text(arguments.get("text", ""))
    if network == previous:
        return f"No network change requested. Current network: {network}."
    text = f"Network switched from {previous} to {network}."
    if network == "mainnet":
        text += f"\n\n{MAINNET_WARNING}"
    return text


def network_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="algo_get_network",
            description="Get the current Algorand network and its node information.",
            input_schema=_object_schema({}, []),
            handler=_handle_get_network,
            error_prefix="Error getting network",
        ),
        ToolSpec(
            name="algo_set_network",
            description="Set the Algorand network used by subsequent tool calls.",
            input_schema=_object_schema(
                {
                    "network": {
                        "type": "string",
                        "enum": list(NETWORKS),
                        "description": "Network to use (localnet, testnet, mainnet)",
                    }
                },
                ["network"],
            ),
            handler=_handle_set_network,
            error_prefix="Error setting network",
        ),
        ToolSpec(
            name="algo_detect_network",
            description=(
                "Switch network when a request mentions 'on testnet', 'on mainnet' "
                "or 'on localnet'. Returns the active network."
            ),
            input_schema=_object_schema(
                {"text": {"type": "string", "description": "Free-form request text"}},
                ["text"],
            ),
            handler=_handle_detect_network,
            error_prefix="Error detecting network",
        ),
    ]


def _resource_current(registry: NetworkRegistry, uri: str) -> dict[str, Any]:
    return {"current": registry.current_network(), "timestamp": _timestamp()}


def _resource_list(registry: NetworkRegistry, uri: str) -> dict[str, Any]:
    return {
        "networks": list(registry.networks()),
        "current": registry.current_network(),
        "timestamp": _timestamp(),
    }


def _resource_network_info(registry: NetworkRegistry, uri: str) -> dict[str, Any]:
    network = uri.split("://", 1)[1].rstrip("/")
    return {
        "network": network,
        "isActive": registry.current_network() == network,
        "timestamp": _timestamp(),
    }


def network_resources() -> list[ResourceSpec]:
    specs = [
        ResourceSpec(
            uri="network://current",
            name="Current Network",
            description="The Algorand network currently in use",
            handler=_resource_current,
        ),
        ResourceSpec(
            uri="network://list",
            name="Available Networks",
            description="All supported Algorand networks",
            handler=_resource_list,
        ),
    ]
    for network in NETWORKS:
        specs.append(
            ResourceSpec(
                uri=f"network://{network}",
                name=f"{network.capitalize()} Network",
                description=f"Whether {network} is the active network",
                handler=_resource_network_info,
            )
        )
    return specs


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


async def _handle_account_generate(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    network = registry.current_network()
    account = await asyncio.to_thread(generate_account, registry.active_client(), network)
    return "\n".join(
        [
            "Successfully generated a new Algorand account:",
            "",
            f"Network: {account.network}",
            f"Address: {account.address}",
            f"Mnemonic: {account.mnemonic}",
            "",
            "Note: Keep your mnemonic phrase secure. It provides full access to your account.",
        ]
    )


async def _handle_account_from_mnemonic(
    registry: NetworkRegistry, arguments: dict[str, Any]
) -> str:
    network = registry.current_network()
    restored = await asyncio.to_thread(
        account_from_mnemonic, registry.active_client(), network, arguments["mnemonic"]
    )
    lines = [
        "Successfully restored account from mnemonic:",
        "",
        f"Network: {restored.network}",
        f"Address: {restored.address}",
    ]
    info = restored.info
    if info is None:
        lines += ["", "Note: This account does not appear to exist on-chain yet."]
    else:
        lines += [
            "",
            "Account Status:",
            f"Balance: {info.balance_micro_algo} microAlgos ({info.balance_algo} Algos)",
            f"Minimum Balance: {info.min_balance_micro_algo} microAlgos",
            f"Status: {info.status}",
            f"Total Apps Opted In: {info.apps_opted_in}",
            f"Total Assets Opted In: {info.assets_opted_in}",
        ]
    return "\n".join(lines)


async def _handle_account_get_info(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    network = registry.current_network()
    info = await asyncio.to_thread(
        get_account_info, registry.active_client(), network, arguments["address"]
    )
    lines = [
        "Account Information:",
        "",
        f"Network: {info.network}",
        f"Address: {info.address}",
        "",
        "Balance Information:",
        f"Balance: {info.balance_micro_algo} microAlgos ({info.balance_algo} Algos)",
        f"Minimum Balance: {info.min_balance_micro_algo} microAlgos",
        f"Pending Rewards: {info.pending_rewards_micro_algo} microAlgos",
        "",
        "Account Status:",
        f"Status: {info.status}",
        "",
        "Applications:",
        f"Total Apps Opted In: {info.apps_opted_in}",
        f"Created Apps: {info.apps_created}",
        "",
        "Assets:",
        f"Total Assets Opted In: {info.assets_opted_in}",
        f"Created Assets: {info.assets_created}",
    ]
    if info.holdings:
        lines += ["", f"Asset Holdings (first {len(info.holdings)}):"]
        for index, holding in enumerate(info.holdings, start=1):
            lines.append(
                f"Asset #{index}: ID {holding.asset_id}, Amount: {holding.amount}, "
                f"Frozen: {'Yes' if holding.is_frozen else 'No'}"
            )
        if info.unlisted_holdings:
            lines.append(f"... and {info.unlisted_holdings} more assets")
    return "\n".join(lines)


def account_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="algo_account_generate",
            description="Generate a new random Algorand account (address and mnemonic).",
            input_schema=_object_schema({}, []),
            handler=_handle_account_generate,
            error_prefix="Error generating account",
        ),
        ToolSpec(
            name="algo_account_from_mnemonic",
            description=(
                "Restore an account from its 25-word mnemonic and load its signer "
                "for the current network."
            ),
            input_schema=_object_schema(
                {"mnemonic": {"type": "string", "description": "25-word mnemonic"}},
                ["mnemonic"],
            ),
            handler=_handle_account_from_mnemonic,
            error_prefix="Error restoring account",
        ),
        ToolSpec(
            name="algo_account_get_info",
            description="Get balance, status and opt-in information for an account.",
            input_schema=_object_schema({"address": _ADDRESS}, ["address"]),
            handler=_handle_account_get_info,
            error_prefix="Error retrieving account information",
        ),
    ]


# ---------------------------------------------------------------------------
# Dispenser
# ---------------------------------------------------------------------------


async def _handle_dispenser_ensure_funded(
    registry: NetworkRegistry, arguments: dict[str, Any]
) -> str:
    address = arguments["address"]
    amount = parse_decimal(arguments.get("amount"), "amount")
    result = await asyncio.to_thread(ensure_funded, registry.active_client(), address, amount)
    if result is None:
        return f"Account {address} already has sufficient funds ({amount} Algos)."
    return "\n".join(
        [
            "Funding Operation Successful:",
            "",
            f"Account: {result.address}",
            f"Amount: {result.amount_algo} Algos",
            "",
            "Transaction Details:",
            f"Transaction Group ID: {result.group_id or 'N/A'}",
            f"Transaction IDs: {', '.join(result.tx_ids)}",
            f"Confirmation Round: {result.confirmed_round or 'Pending'}",
            "Transaction Type: Payment",
            f"Sender: {result.dispenser_address}",
            "",
            "Note: The account now has sufficient funds for operations.",
        ]
    )


def dispenser_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="algo_dispenser_ensure_funded",
            description=(
                "Fund an account from the LocalNet dispenser so it holds at least "
                "the given spendable amount of ALGO. LocalNet only."
            ),
            input_schema=_object_schema(
                {
                    "address": _ADDRESS,
                    "amount": {
                        "type": "number",
                        "exclusiveMinimum": 0,
                        "description": "Minimum spendable balance in ALGO",
                    },
                },
                ["address", "amount"],
            ),
            handler=_handle_dispenser_ensure_funded,
            error_prefix="Error funding account",
            networks=("localnet",),
            mutates=True,
        )
    ]


# ---------------------------------------------------------------------------
# Explorer
# ---------------------------------------------------------------------------


async def _handle_explorer_get_url(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    network = validate_network(arguments.get("network") or registry.current_network())
    resource_type = arguments["resource_type"]
    resource_id = str(arguments["resource_id"])
    url = explorer_url(registry.explorer_url, network, resource_type, resource_id)
    # switch only after the URL is built
    registry.set_network(network)
    return "\n".join(
        [
            "Explorer URL Generated:",
            "",
            "Resource Details:",
            f"Network: {network}",
            f"Resource Type: {resource_type}",
            f"Resource ID: {resource_id}",
            "",
            "URL:",
            url,
            "",
            f"Note: Use this URL to view the {resource_type} in the Lora Explorer.",
        ]
    )


def explorer_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="algo_explorer_get_url",
            description=(
                "Generate a Lora explorer URL for a transaction, block, asset, "
                "application or account. Passing network also switches to it."
            ),
            input_schema=_object_schema(
                {
                    "network": {"type": "string", "enum": list(NETWORKS)},
                    "resource_type": {"type": "string", "enum": list(RESOURCE_TYPES)},
                    "resource_id": {"type": ["string", "integer"]},
                },
                ["resource_type", "resource_id"],
            ),
            handler=_handle_explorer_get_url,
            error_prefix="Error generating explorer URL",
        )
    ]


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


async def _handle_asset_create(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    sender = arguments["sender"]
    total = parse_uint(arguments.get("total"), "total")
    decimals = arguments.get("decimals")
    result = await asyncio.to_thread(
        lambda: create_asset(
            registry.active_client(),
            sender,
            total,
            decimals=decimals,
            asset_name=arguments.get("asset_name"),
            unit_name=arguments.get("unit_name"),
            url=arguments.get("url"),
            metadata_hash=arguments.get("metadata_hash"),
            default_frozen=arguments.get("default_frozen"),
            manager=arguments.get("manager"),
            reserve=arguments.get("reserve"),
            freeze=arguments.get("freeze"),
            clawback=arguments.get("clawback"),
            note=arguments.get("note"),
        )
    )
    default_frozen = arguments.get("default_frozen")
    return "\n".join(
        [
            "Asset Creation Successful:",
            "",
            f"Asset ID: {result.asset_id}",
            f"Creator: {sender}",
            f"Total Supply: {total}" + (f" with {decimals} decimals" if decimals else ""),
            "",
            "Asset Configuration:",
            f"Name: {arguments.get('asset_name') or 'Not specified'}",
            f"Unit Name: {arguments.get('unit_name') or 'Not specified'}",
            f"URL: {arguments.get('url') or 'Not specified'}",
            f"Default Frozen: {default_frozen if default_frozen is not None else 'Not specified'}",
            "",
            *_txn_lines(result.txn),
        ]
    )


async def _handle_asset_config(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    sender = arguments["sender"]
    asset_id = _asset_id(arguments)
    txn = await asyncio.to_thread(
        lambda: config_asset(
            registry.active_client(),
            sender,
            asset_id,
            manager=arguments.get("manager"),
            reserve=arguments.get("reserve"),
            freeze=arguments.get("freeze"),
            clawback=arguments.get("clawback"),
            note=arguments.get("note"),
        )
    )
    return "\n".join(
        [
            "Asset Configuration Successful:",
            "",
            f"Asset ID: {asset_id}",
            f"Manager: {arguments.get('manager') or 'Cleared'}",
            f"Reserve: {arguments.get('reserve') or 'Cleared'}",
            f"Freeze: {arguments.get('freeze') or 'Cleared'}",
            f"Clawback: {arguments.get('clawback') or 'Cleared'}",
            "",
            *_txn_lines(txn),
        ]
    )


async def _handle_asset_transfer(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    sender = arguments["sender"]
    receiver = arguments["receiver"]
    asset_id = _asset_id(arguments)
    amount = parse_uint(arguments.get("amount"), "amount")
    clawback_target = arguments.get("clawback_target")
    close_asset_to = arguments.get("close_asset_to")
    txn = await asyncio.to_thread(
        lambda: transfer_asset(
            registry.active_client(),
            sender,
            receiver,
            asset_id,
            amount,
            note=arguments.get("note"),
            clawback_target=clawback_target,
            close_asset_to=close_asset_to,
        )
    )
    lines = [
        "Asset Transfer Successful:",
        "",
        f"Asset ID: {asset_id}",
        f"From: {clawback_target or sender}",
        f"To: {receiver}",
        f"Amount: {amount}",
    ]
    if clawback_target:
        lines.append(f"Clawback Sender: {sender}")
    if close_asset_to:
        lines.append(f"Close Remainder To: {close_asset_to}")
    lines += ["", *_txn_lines(txn)]
    return "\n".join(lines)


async def _handle_asset_opt_in(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    sender = arguments["sender"]
    asset_id = _asset_id(arguments)
    txn = await asyncio.to_thread(
        opt_in_asset, registry.active_client(), sender, asset_id, arguments.get("note")
    )
    return "\n".join(
        [
            "Asset Opt-In Successful:",
            "",
            f"Account: {sender}",
            f"Asset ID: {asset_id}",
            "",
            *_txn_lines(txn),
            "",
            "Note: The account can now receive this asset.",
        ]
    )


async def _handle_asset_opt_out(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    sender = arguments["sender"]
    asset_id = _asset_id(arguments)
    txn, creator = await asyncio.to_thread(
        lambda: opt_out_asset(
            registry.active_client(),
            sender,
            asset_id,
            ensure_zero_balance=arguments.get("ensure_zero_balance", True),
            creator=arguments.get("creator"),
            note=arguments.get("note"),
        )
    )
    return "\n".join(
        [
            "Asset Opt-Out Successful:",
            "",
            f"Account: {sender}",
            f"Asset ID: {asset_id}",
            f"Asset Creator: {creator}",
            "",
            *_txn_lines(txn),
            "",
            "Note: The account is now opted out of this asset and can no longer hold it.",
        ]
    )


async def _handle_asset_freeze(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    sender = arguments["sender"]
    asset_id = _asset_id(arguments)
    account = arguments["account"]
    frozen = bool(arguments["frozen"])
    txn = await asyncio.to_thread(
        freeze_asset,
        registry.active_client(),
        sender,
        asset_id,
        account,
        frozen,
        arguments.get("note"),
    )
    action = "Freeze" if frozen else "Unfreeze"
    return "\n".join(
        [
            f"Asset {action} Successful:",
            "",
            f"Asset ID: {asset_id}",
            f"Account: {account}",
            f"Freeze Manager: {sender}",
            f"Frozen: {'Yes' if frozen else 'No'}",
            "",
            *_txn_lines(txn),
        ]
    )


async def _handle_asset_destroy(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    sender = arguments["sender"]
    asset_id = _asset_id(arguments)
    txn = await asyncio.to_thread(
        destroy_asset, registry.active_client(), sender, asset_id, arguments.get("note")
    )
    return "\n".join(
        [
            "Asset Destruction Successful:",
            "",
            f"Asset ID: {asset_id}",
            f"Manager: {sender}",
            "",
            *_txn_lines(txn),
            "",
            "Note: The asset has been permanently destroyed and can no longer be transferred.",
        ]
    )


_ROLE_PROPERTIES: dict[str, Any] = {
    "manager": {"type": "string", "description": "Manager address"},
    "reserve": {"type": "string", "description": "Reserve address"},
    "freeze": {"type": "string", "description": "Freeze address"},
    "clawback": {"type": "string", "description": "Clawback address"},
}


def asset_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="algo_asset_create",
            description="Create a new Algorand Standard Asset (ASA).",
            input_schema=_object_schema(
                {
                    "sender": _ADDRESS,
                    "total": {
                        **_ID,
                        "description": "Total supply in base units",
                    },
                    "decimals": {"type": "integer", "minimum": 0, "maximum": 19},
                    "asset_name": {"type": "string"},
                    "unit_name": {"type": "string"},
                    "url": {"type": "string"},
                    "metadata_hash": {"type": "string"},
                    "default_frozen": {"type": "boolean"},
                    **_ROLE_PROPERTIES,
                    "note": _NOTE,
                },
                ["sender", "total"],
            ),
            handler=_handle_asset_create,
            error_prefix="Error creating asset",
            mutates=True,
        ),
        ToolSpec(
            name="algo_asset_config",
            description=(
                "Reconfigure an asset's manager, reserve, freeze and clawback "
                "addresses. Omitted roles are cleared."
            ),
            input_schema=_object_schema(
                {"sender": _ADDRESS, "asset_id": _ID, **_ROLE_PROPERTIES, "note": _NOTE},
                ["sender", "asset_id"],
            ),
            handler=_handle_asset_config,
            error_prefix="Error configuring asset",
            mutates=True,
        ),
        ToolSpec(
            name="algo_asset_transfer",
            description=(
                "Transfer asset units. Set clawback_target to claw back from another "
                "account, or close_asset_to to close out the sender's holding."
            ),
            input_schema=_object_schema(
                {
                    "sender": _ADDRESS,
                    "receiver": _ADDRESS,
                    "asset_id": _ID,
                    "amount": {**_ID, "description": "Amount in base units"},
                    "clawback_target": {"type": "string"},
                    "close_asset_to": {"type": "string"},
                    "note": _NOTE,
                },
                ["sender", "receiver", "asset_id", "amount"],
            ),
            handler=_handle_asset_transfer,
            error_prefix="Error transferring asset",
            mutates=True,
        ),
        ToolSpec(
            name="algo_asset_opt_in",
            description="Opt an account in to an asset so it can receive it.",
            input_schema=_object_schema(
                {"sender": _ADDRESS, "asset_id": _ID, "note": _NOTE},
                ["sender", "asset_id"],
            ),
            handler=_handle_asset_opt_in,
            error_prefix="Error opting in to asset",
            mutates=True,
        ),
        ToolSpec(
            name="algo_asset_opt_out",
            description=(
                "Opt an account out of an asset, closing any remaining balance to "
                "the asset creator."
            ),
            input_schema=_object_schema(
                {
                    "sender": _ADDRESS,
                    "asset_id": _ID,
                    "creator": {
                        "type": "string",
                        "description": "Asset creator; looked up when omitted",
                    },
                    "ensure_zero_balance": {
                        "type": "boolean",
                        "description": "Refuse to opt out with a non-zero balance (default true)",
                    },
                    "note": _NOTE,
                },
                ["sender", "asset_id"],
            ),
            handler=_handle_asset_opt_out,
            error_prefix="Error opting out of asset",
            mutates=True,
        ),
        ToolSpec(
            name="algo_asset_freeze",
            description="Freeze or unfreeze an account's holding of an asset.",
            input_schema=_object_schema(
                {
                    "sender": _ADDRESS,
                    "asset_id": _ID,
                    "account": _ADDRESS,
                    "frozen": {"type": "boolean"},
                    "note": _NOTE,
                },
                ["sender", "asset_id", "account", "frozen"],
            ),
            handler=_handle_asset_freeze,
            error_prefix="Error freezing asset",
            mutates=True,
        ),
        ToolSpec(
            name="algo_asset_destroy",
            description="Destroy an asset. All units must be held by the creator.",
            input_schema=_object_schema(
                {"sender": _ADDRESS, "asset_id": _ID, "note": _NOTE},
                ["sender", "asset_id"],
            ),
            handler=_handle_asset_destroy,
            error_prefix="Error destroying asset",
            mutates=True,
        ),
    ]


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


def _format_app_result(
    title: str,
    result: AppCallResult,
    arguments: dict[str, Any],
    sender_label: str,
    args_key: str,
) -> str:
    args = arguments.get(args_key) or []
    lines = [
        title,
        "",
        f"Application ID: {result.app_id}",
        f"{sender_label}: {arguments['sender']}",
    ]
    if arguments.get("method"):
        lines.append(f"Method: {arguments['method']}")
    lines += [
        f"Arguments: {', '.join(args) if args else 'None'}",
        f"On Complete: {arguments.get('on_complete') or 'NoOp'}",
        "",
        "Transaction Details:",
        f"Transaction ID: {result.tx_id}",
        f"Confirmation Round: {result.confirmed_round or 'Pending'}",
    ]

    ret = result.abi_return
    if ret is not None:
        if ret.decode_error:
            lines += ["", "Method Return Error:", f"Error decoding return value: {ret.decode_error}"]
        else:
            lines += [
                "",
                "Method Return Value:",
                f"Value: {ret.value}",
                f"Return Type: {ret.return_type}",
            ]

    lines += ["", "Raw Transaction Logs:"]
    if result.logs:
        lines += [f"- {log}" for log in result.logs]
    else:
        lines.append("- No logs found in this transaction")
    return "\n".join(lines)


async def _handle_app_create(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    fields = build_app_call_fields(arguments)
    result = await asyncio.to_thread(
        lambda: create_app(
            registry.active_client(),
            arguments["sender"],
            arguments["approval_program"],
            arguments["clear_state_program"],
            fields,
            app_args=arguments.get("app_args"),
            schema=build_schema(arguments),
            extra_pages=_optional_uint(arguments, "extra_pages"),
        )
    )
    return _format_app_result(
        "Application Created Successfully:", result, arguments, "Creator", "app_args"
    )


async def _handle_app_update(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    fields = build_app_call_fields(arguments)
    app_id = _app_id(arguments)
    result = await asyncio.to_thread(
        lambda: update_app(
            registry.active_client(),
            arguments["sender"],
            app_id,
            arguments["approval_program"],
            arguments["clear_state_program"],
            fields,
            app_args=arguments.get("app_args"),
        )
    )
    return _format_app_result(
        "Application Updated Successfully:", result, arguments, "Updater", "app_args"
    )


async def _handle_app_delete(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    fields = build_app_call_fields(arguments)
    app_id = _app_id(arguments)
    result = await asyncio.to_thread(
        lambda: delete_app(
            registry.active_client(),
            arguments["sender"],
            app_id,
            fields,
            app_args=arguments.get("app_args"),
        )
    )
    return _format_app_result(
        "Application Deleted Successfully:", result, arguments, "Deleter", "app_args"
    )


async def _handle_app_call(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    fields = build_app_call_fields(arguments)
    app_id = _app_id(arguments)
    result = await asyncio.to_thread(
        lambda: call_app(
            registry.active_client(),
            arguments["sender"],
            app_id,
            fields,
            app_args=arguments.get("app_args"),
        )
    )
    return _format_app_result(
        "Application Call Successful:", result, arguments, "Caller", "app_args"
    )


async def _handle_app_create_method_call(
    registry: NetworkRegistry, arguments: dict[str, Any]
) -> str:
    fields = build_app_call_fields(arguments)
    result = await asyncio.to_thread(
        lambda: create_app_method_call(
            registry.active_client(),
            arguments["sender"],
            arguments["approval_program"],
            arguments["clear_state_program"],
            arguments["method"],
            fields,
            method_args=arguments.get("method_args"),
            schema=build_schema(arguments),
            extra_pages=_optional_uint(arguments, "extra_pages"),
        )
    )
    return _format_app_result(
        "Application Created Successfully:", result, arguments, "Creator", "method_args"
    )


async def _handle_app_update_method_call(
    registry: NetworkRegistry, arguments: dict[str, Any]
) -> str:
    fields = build_app_call_fields(arguments)
    app_id = _app_id(arguments)
    result = await asyncio.to_thread(
        lambda: update_app_method_call(
            registry.active_client(),
            arguments["sender"],
            app_id,
            arguments["approval_program"],
            arguments["clear_state_program"],
            arguments["method"],
            fields,
            method_args=arguments.get("method_args"),
        )
    )
    return _format_app_result(
        "Application Updated Successfully:", result, arguments, "Updater", "method_args"
    )


async def _handle_app_delete_method_call(
    registry: NetworkRegistry, arguments: dict[str, Any]
) -> str:
    fields = build_app_call_fields(arguments)
    app_id = _app_id(arguments)
    result = await asyncio.to_thread(
        lambda: delete_app_method_call(
            registry.active_client(),
            arguments["sender"],
            app_id,
            arguments["method"],
            fields,
            method_args=arguments.get("method_args"),
        )
    )
    return _format_app_result(
        "Application Deleted Successfully:", result, arguments, "Deleter", "method_args"
    )


async def _handle_app_call_method_call(
    registry: NetworkRegistry, arguments: dict[str, Any]
) -> str:
    fields = build_app_call_fields(arguments)
    app_id = _app_id(arguments)
    result = await asyncio.to_thread(
        lambda: call_app_method_call(
            registry.active_client(),
            arguments["sender"],
            app_id,
            arguments["method"],
            fields,
            method_args=arguments.get("method_args"),
        )
    )
    return _format_app_result(
        "Application Method Call Successful:", result, arguments, "Caller", "method_args"
    )


def _app_spec(
    name: str,
    description: str,
    handler: Callable[..., Any],
    error_prefix: str,
    extra_properties: dict[str, Any],
    required: list[str],
) -> ToolSpec:
    return ToolSpec(
        name=name,
        description=description,
        input_schema=_object_schema(
            {**_APP_CALL_PROPERTIES, **extra_properties}, ["sender", *required]
        ),
        handler=handler,
        error_prefix=error_prefix,
        mutates=True,
        tips=APP_ERROR_TIPS,
    )


def app_tools() -> list[ToolSpec]:
    app_id = {"app_id": _ID}
    create_props = {**_PROGRAM_PROPERTIES, **_STATE_SCHEMA_PROPERTIES}
    programs = ["approval_program", "clear_state_program"]
    return [
        _app_spec(
            "algo_app_create",
            "Create a smart contract from TEAL source (#pragma version 8 or higher).",
            _handle_app_create,
            "Error creating application",
            {**create_props, "app_args": _APP_ARGS},
            programs,
        ),
        _app_spec(
            "algo_app_update",
            "Update a smart contract's approval and clear state programs.",
            _handle_app_update,
            "Error updating application",
            {**app_id, **_PROGRAM_PROPERTIES, "app_args": _APP_ARGS},
            ["app_id", *programs],
        ),
        _app_spec(
            "algo_app_delete",
            "Delete a smart contract.",
            _handle_app_delete,
            "Error deleting application",
            {**app_id, "app_args": _APP_ARGS},
            ["app_id"],
        ),
        _app_spec(
            "algo_app_call",
            "Call a smart contract with raw application arguments.",
            _handle_app_call,
            "Error calling application",
            {**app_id, "app_args": _APP_ARGS},
            ["app_id"],
        ),
        _app_spec(
            "algo_app_create_method_call",
            "Create a smart contract by calling an ABI method.",
            _handle_app_create_method_call,
            "Error creating application",
            {**create_props, **_METHOD_PROPERTIES},
            [*programs, "method"],
        ),
        _app_spec(
            "algo_app_update_method_call",
            "Update a smart contract by calling an ABI method.",
            _handle_app_update_method_call,
            "Error updating application",
            {**app_id, **_PROGRAM_PROPERTIES, **_METHOD_PROPERTIES},
            ["app_id", *programs, "method"],
        ),
        _app_spec(
            "algo_app_delete_method_call",
            "Delete a smart contract by calling an ABI method.",
            _handle_app_delete_method_call,
            "Error deleting application",
            {**app_id, **_METHOD_PROPERTIES},
            ["app_id", "method"],
        ),
        _app_spec(
            "algo_app_call_method_call",
            "Call an ABI method on a smart contract and return its result and logs.",
            _handle_app_call_method_call,
            "Error calling application method",
            {**app_id, **_METHOD_PROPERTIES},
            ["app_id", "method"],
        ),
    ]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


async def _handle_send_payment(registry: NetworkRegistry, arguments: dict[str, Any]) -> str:
    amount = parse_decimal(arguments.get("amount"), "amount")
    network = registry.current_network()
    result = await asyncio.to_thread(
        lambda: send_payment(
            registry.active_client(),
            network,
            arguments["sender"],
            arguments["receiver"],
            amount,
            note=arguments.get("note"),
            close_remainder_to=arguments.get("close_remainder_to"),
        )
    )
    lines = [
        "Payment Transaction Successful:",
        "",
        f"Network: {result.network}",
        f"From: {result.sender}",
        f"To: {result.receiver}",
        f"Amount: {result.amount_algo} Algos",
    ]
    if result.close_remainder_to:
        lines.append(f"Close Remainder To: {result.close_remainder_to}")
    lines += ["", *_txn_lines(result.txn)]
    return "\n".join(lines)


def payment_tools() -> list[ToolSpec]:
    return [
        ToolSpec(
            name="algo_send_payment",
            description="Send ALGO from one account to another.",
            input_schema=_object_schema(
                {
                    "sender": _ADDRESS,
                    "receiver": _ADDRESS,
                    "amount": {
                        "type": "number",
                        "exclusiveMinimum": 0,
                        "description": "Amount in ALGO (up to 6 decimal places)",
                    },
                    "note": _NOTE,
                    "close_remainder_to": {
                        "type": "string",
                        "description": "Close the sender account and send the remainder here",
                    },
                },
                ["sender", "receiver", "amount"],
            ),
            handler=_handle_send_payment,
            error_prefix="Error sending payment",
            mutates=True,
        )
    ]


# ---------------------------------------------------------------------------
# Registrars and bootstrap
# ---------------------------------------------------------------------------


def _install(server: AlgorandServer, registry: NetworkRegistry, specs: list[ToolSpec]) -> None:
    for spec in specs:
        server.add_tool(spec, spec.bind(registry))


def register_network(server: AlgorandServer, registry: NetworkRegistry) -> None:
    _install(server, registry, network_tools())
    for spec in network_resources():
        server.add_resource(spec, spec.bind(registry))


def register_account_tools(server: AlgorandServer, registry: NetworkRegistry) -> None:
    _install(server, registry, account_tools())


def register_dispenser_tools(server: AlgorandServer, registry: NetworkRegistry) -> None:
    _install(server, registry, dispenser_tools())


def register_explorer_tools(server: AlgorandServer, registry: NetworkRegistry) -> None:
    _install(server, registry, explorer_tools())


def register_asset_tools(server: AlgorandServer, registry: NetworkRegistry) -> None:
    _install(server, registry, asset_tools())


def register_app_tools(server: AlgorandServer, registry: NetworkRegistry) -> None:
    _install(server, registry, app_tools())


def register_payment_tools(server: AlgorandServer, registry: NetworkRegistry) -> None:
    _install(server, registry, payment_tools())


REGISTRARS: tuple[Callable[[AlgorandServer, NetworkRegistry], None], ...] = (
    register_network,
    register_account_tools,
    register_dispenser_tools,
    register_explorer_tools,
    register_asset_tools,
    register_app_tools,
    register_payment_tools,
)


def build_server(registry: NetworkRegistry) -> AlgorandServer:
    server = AlgorandServer(SERVER_NAME, version=SERVER_VERSION)
    for registrar in REGISTRARS:
        registrar(server, registry)
    return server


async def run() -> None:
    cfg = AlgorandConfig.from_env()
    registry = NetworkRegistry.from_config(cfg)
    server = build_server(registry)
    logger.info(
        "Algorand MCP server running on stdio (network: %s, tools: %d)",
        registry.current_network(),
        len(server.list_tools()),
    )
    await server.serve_stdio()


def main() -> None:
    configure_logging()
    try:
        asyncio.run(run())
    except Exception as exc:  # noqa: BLE001
        logger.error("Fatal error starting Algorand MCP server: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
