"""
Lora explorer links for Algorand resources.
"""

from __future__ import annotations

from typing import Literal

from algorand_network import validate_network

ResourceType = Literal["transaction", "block", "asset", "application", "account"]

RESOURCE_TYPES: tuple[ResourceType, ...] = (
    "transaction",
    "block",
    "asset",
    "application",
    "account",
)


def explorer_url(
    base_url: str, network: str, resource_type: str, resource_id: str
) -> str:
    """
    Build a Lora URL such as https://lora.algokit.io/testnet/asset/1234.
    """
    validate_network(network)
    if resource_type not in RESOURCE_TYPES:
        raise ValueError(
            f"Invalid resource type: {resource_type}. "
            f"Use one of: {', '.join(RESOURCE_TYPES)}."
        )
    resource_id = str(resource_id).strip()
    if not resource_id:
        raise ValueError("Missing resource id.")
    return f"{base_url.rstrip('/')}/{network}/{resource_type}/{resource_id}"
