"""
Algorand network selection for the MCP server.

Implements:
- AlgorandConfig: environment / .env driven server configuration
- NetworkRegistry: one pre-built AlgorandClient per network plus the
  currently active network
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Literal, Mapping

from algokit_utils import AlgorandClient

logger = logging.getLogger(__name__)

AlgorandNetwork = Literal["localnet", "testnet", "mainnet"]

NETWORKS: tuple[AlgorandNetwork, ...] = ("localnet", "testnet", "mainnet")

DEFAULT_NETWORK: AlgorandNetwork = "localnet"
DEFAULT_EXPLORER_URL = "https://lora.algokit.io"


class AlgorandConfigError(Exception):
    """Configuration error for the Algorand MCP server."""

    pass


class InvalidNetworkError(ValueError):
    """Raised when a network identifier is outside the supported set."""

    def __init__(self, network: Any) -> None:
        super().__init__(
            f"Invalid network: {network!r}. Use one of: {', '.join(NETWORKS)}."
        )
        self.network = network


def validate_network(network: Any) -> AlgorandNetwork:
    if network not in NETWORKS:
        raise InvalidNetworkError(network)
    return network


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class AlgorandConfig:
    """
    Configuration for the Algorand MCP server.

    Values are sourced from environment variables or a .env file.

    - ALGORAND_NETWORK: "localnet", "testnet" or "mainnet" (defaults to
      "localnet"). This is only the network active at startup; tools can switch.
    - ALGORAND_MNEMONIC: optional 25-word account mnemonic. Its signer is
      registered on every network client so tools can send from that address.
    - ALGORAND_EXPLORER_URL: base URL of the Lora explorer.
    """

    default_network: AlgorandNetwork = DEFAULT_NETWORK
    mnemonic: str | None = None
    explorer_url: str = DEFAULT_EXPLORER_URL

    @classmethod
    def from_env(cls) -> AlgorandConfig:
        raw_network_env = os.getenv("ALGORAND_NETWORK")
        network: AlgorandNetwork = DEFAULT_NETWORK
        if raw_network_env:
            raw_network = raw_network_env.strip().lower()
            if raw_network not in NETWORKS:
                raise AlgorandConfigError(
                    f"Invalid ALGORAND_NETWORK={raw_network_env!r}. "
                    f"Expected one of: {', '.join(NETWORKS)}."
                )
            network = raw_network  # type: ignore[assignment]

        mnemonic = (os.getenv("ALGORAND_MNEMONIC") or "").strip() or None
        explorer_url = (
            os.getenv("ALGORAND_EXPLORER_URL") or DEFAULT_EXPLORER_URL
        ).rstrip("/")

        return cls(
            default_network=network,
            mnemonic=mnemonic,
            explorer_url=explorer_url,
        )


# ---------------------------------------------------------------------------
# Network registry
# ---------------------------------------------------------------------------


def build_clients() -> dict[AlgorandNetwork, AlgorandClient]:
    """Construct one AlgorandClient per supported network."""
    return {
        "localnet": AlgorandClient.default_localnet(),
        "testnet": AlgorandClient.testnet(),
        "mainnet": AlgorandClient.mainnet(),
    }


class NetworkRegistry:
    """
    Holds a client handle per network and tracks which one is active.

    Clients are supplied up front and never rebuilt, so client_for() returns
    the same object for a given network for the lifetime of the registry.
    Only set_network() (directly or through infer_network_from_text())
    changes the active network. explorer_url is the Lora base URL loaded
    at startup.
    """

    def __init__(
        self,
        clients: Mapping[str, Any],
        default_network: AlgorandNetwork = DEFAULT_NETWORK,
        explorer_url: str = DEFAULT_EXPLORER_URL,
    ) -> None:
        missing = [n for n in NETWORKS if n not in clients]
        unknown = [n for n in clients if n not in NETWORKS]
        if missing or unknown:
            raise AlgorandConfigError(
                f"Network clients must cover exactly {', '.join(NETWORKS)} "
                f"(missing: {missing or 'none'}, unknown: {unknown or 'none'})."
            )
        self._clients: dict[AlgorandNetwork, Any] = {n: clients[n] for n in NETWORKS}
        self._current: AlgorandNetwork = validate_network(default_network)
        self.explorer_url = explorer_url.rstrip("/")

    @classmethod
    def from_config(cls, cfg: AlgorandConfig) -> NetworkRegistry:
        clients = build_clients()
        if cfg.mnemonic:
            for algorand in clients.values():
                algorand.account.from_mnemonic(mnemonic_secret=cfg.mnemonic)
        return cls(
            clients,
            default_network=cfg.default_network,
            explorer_url=cfg.explorer_url,
        )

    def networks(self) -> tuple[AlgorandNetwork, ...]:
        return NETWORKS

    def current_network(self) -> AlgorandNetwork:
        return self._current

    def set_network(self, network: Any) -> None:
        target = validate_network(network)
        if target != self._current:
            logger.info("Switching network from %s to %s", self._current, target)
        self._current = target

    def active_client(self) -> Any:
        return self._clients[self._current]

    def client_for(self, network: Any) -> Any:
        return self._clients[validate_network(network)]

    def infer_network_from_text(self, text: str) -> AlgorandNetwork:
        """
        Switch network when the text says "on testnet", "on mainnet" or
        "on localnet" (checked in that order, case-insensitive).

        Returns the active network afterwards, changed or not.
        """
        lowered = text.lower()
        for network in ("testnet", "mainnet", "localnet"):
            if f"on {network}" in lowered:
                self.set_network(network)
                break
        return self._current


# ---------------------------------------------------------------------------
# Node queries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NetworkDetails:
    network: str
    genesis_id: str
    genesis_hash: str
    last_round: int | None
    node_versions: tuple[str, ...] = ()


def get_network_details(algorand: Any, network: str) -> NetworkDetails:
    """Ask the network's algod node for its genesis and latest round."""
    algod = algorand.client.algod
    versions = algod.versions()
    status = algod.status()
    return NetworkDetails(
        network=network,
        genesis_id=versions.get("genesis_id", ""),
        genesis_hash=versions.get("genesis_hash_b64", ""),
        last_round=status.get("last-round"),
        node_versions=tuple(versions.get("versions") or ()),
    )
