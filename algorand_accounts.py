"""
Algorand account operations.

Implements:
- Random account generation (address + 25-word mnemonic)
- Account restore from mnemonic (signer registered on the client)
- Account information lookup via algod
- LocalNet dispenser funding
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from algosdk import mnemonic as algosdk_mnemonic

from algorand_txn import algo_amount, confirmed_round, micro_to_algo

logger = logging.getLogger(__name__)

MAX_LISTED_HOLDINGS = 5


@dataclass(frozen=True)
class GeneratedAccount:
    address: str
    mnemonic: str
    network: str


@dataclass(frozen=True)
class AssetHolding:
    asset_id: int
    amount: int
    is_frozen: bool


@dataclass(frozen=True)
class AccountInfo:
    address: str
    network: str
    balance_micro_algo: int
    min_balance_micro_algo: int
    pending_rewards_micro_algo: int
    status: str
    apps_opted_in: int
    apps_created: int
    assets_opted_in: int
    assets_created: int
    holdings: tuple[AssetHolding, ...] = ()

    @property
    def balance_algo(self) -> Decimal:
        return micro_to_algo(self.balance_micro_algo)

    @property
    def unlisted_holdings(self) -> int:
        return max(self.assets_opted_in - len(self.holdings), 0)


@dataclass(frozen=True)
class RestoredAccount:
    address: str
    network: str
    info: AccountInfo | None


@dataclass(frozen=True)
class FundingResult:
    address: str
    amount_algo: Decimal
    dispenser_address: str
    tx_ids: tuple[str, ...]
    group_id: str | None
    confirmed_round: int | None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _micro(value: Any) -> int:
    """AlgoAmount or plain integer to microAlgos."""
    if value is None:
        return 0
    micro = getattr(value, "micro_algo", None)
    if micro is not None:
        return int(micro)
    return int(value)


def _count(info: Any, total_attr: str, list_attr: str) -> int:
    total = getattr(info, total_attr, None)
    if total is not None:
        return int(total)
    return len(getattr(info, list_attr, None) or [])


def _holding(raw: Any) -> AssetHolding:
    if isinstance(raw, dict):
        return AssetHolding(
            asset_id=int(raw.get("asset-id", raw.get("asset_id", 0))),
            amount=int(raw.get("amount", 0)),
            is_frozen=bool(raw.get("is-frozen", raw.get("is_frozen", False))),
        )
    return AssetHolding(
        asset_id=int(getattr(raw, "asset_id", 0)),
        amount=int(getattr(raw, "amount", 0)),
        is_frozen=bool(getattr(raw, "is_frozen", False)),
    )


# ---------------------------------------------------------------------------
# Account management
# ---------------------------------------------------------------------------


def generate_account(algorand: Any, network: str) -> GeneratedAccount:
    account = algorand.account.random()
    return GeneratedAccount(
        address=str(account.address),
        mnemonic=algosdk_mnemonic.from_private_key(account.private_key),
        network=network,
    )


def get_account_info(algorand: Any, network: str, address: str) -> AccountInfo:
    """Look up balances, status and opt-ins for an address on algod."""
    info = algorand.account.get_information(address)
    assets = getattr(info, "assets", None) or []
    return AccountInfo(
        address=address,
        network=network,
        balance_micro_algo=_micro(getattr(info, "amount_without_pending_rewards", None)),
        min_balance_micro_algo=_micro(getattr(info, "min_balance", None)),
        pending_rewards_micro_algo=_micro(getattr(info, "pending_rewards", None)),
        status=getattr(info, "status", None) or "Unknown",
        apps_opted_in=_count(info, "total_apps_opted_in", "apps_local_state"),
        apps_created=_count(info, "total_created_apps", "created_apps"),
        assets_opted_in=_count(info, "total_assets_opted_in", "assets"),
        assets_created=_count(info, "total_created_assets", "created_assets"),
        holdings=tuple(_holding(a) for a in assets[:MAX_LISTED_HOLDINGS]),
    )


def account_from_mnemonic(algorand: Any, network: str, mnemonic: str) -> RestoredAccount:
    """
    Restore an account from its 25-word mnemonic.

    The account's signer is registered on the client, so later transactions
    from this address on the same network can be signed. Accounts that do not
    exist on-chain yet are returned with info=None.
    """
    account = algorand.account.from_mnemonic(mnemonic_secret=mnemonic.strip())
    address = str(account.address)
    try:
        info = get_account_info(algorand, network, address)
    except Exception as exc:  # noqa: BLE001
        logger.debug("No on-chain information for %s: %s", address, exc)
        info = None
    return RestoredAccount(address=address, network=network, info=info)


# ---------------------------------------------------------------------------
# Dispenser
# ---------------------------------------------------------------------------


def ensure_funded(algorand: Any, address: str, amount_algo: Decimal) -> FundingResult | None:
    """
    Top up an account from the LocalNet dispenser.

    Returns None when the account already holds the requested spendable balance.
    """
    dispenser = algorand.account.localnet_dispenser()
    result = algorand.account.ensure_funded(address, dispenser, algo_amount(amount_algo))
    if result is None:
        return None

    tx_ids = tuple(getattr(result, "tx_ids", None) or [result.transaction_id])
    return FundingResult(
        address=address,
        amount_algo=amount_algo,
        dispenser_address=str(dispenser.address),
        tx_ids=tx_ids,
        group_id=getattr(result, "group_id", None) or None,
        confirmed_round=confirmed_round(getattr(result, "confirmation", None)),
    )
