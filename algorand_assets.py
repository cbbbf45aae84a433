"""
Algorand Standard Asset (ASA) operations.

Implements:
- Asset creation and reconfiguration
- Transfers, including clawback and close-out
- Opt-in / opt-out
- Freeze / unfreeze and destroy
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from algokit_utils import (
    AssetConfigParams,
    AssetCreateParams,
    AssetDestroyParams,
    AssetFreezeParams,
    AssetOptInParams,
    AssetOptOutParams,
    AssetTransferParams,
)

from algorand_txn import SEND_PARAMS, TxnResult, encode_note


@dataclass(frozen=True)
class AssetCreateResult:
    asset_id: int
    txn: TxnResult


def _optional_str(value: str | None) -> str | None:
    return value or None


def create_asset(
    algorand: Any,
    sender: str,
    total: int,
    *,
    decimals: int | None = None,
    asset_name: str | None = None,
    unit_name: str | None = None,
    url: str | None = None,
    metadata_hash: str | None = None,
    default_frozen: bool | None = None,
    manager: str | None = None,
    reserve: str | None = None,
    freeze: str | None = None,
    clawback: str | None = None,
    note: str | None = None,
) -> AssetCreateResult:
    if total <= 0:
        raise ValueError("Invalid total. Must be greater than zero.")
    params = AssetCreateParams(
        sender=sender,
        total=total,
        decimals=decimals,
        asset_name=_optional_str(asset_name),
        unit_name=_optional_str(unit_name),
        url=_optional_str(url),
        metadata_hash=metadata_hash.encode("utf-8") if metadata_hash else None,
        default_frozen=default_frozen,
        manager=_optional_str(manager),
        reserve=_optional_str(reserve),
        freeze=_optional_str(freeze),
        clawback=_optional_str(clawback),
        note=encode_note(note),
    )
    result = algorand.send.asset_create(params, send_params=SEND_PARAMS)
    return AssetCreateResult(asset_id=int(result.asset_id), txn=TxnResult.from_send(result))


def config_asset(
    algorand: Any,
    sender: str,
    asset_id: int,
    *,
    manager: str | None = None,
    reserve: str | None = None,
    freeze: str | None = None,
    clawback: str | None = None,
    note: str | None = None,
) -> TxnResult:
    """
    Reconfigure an asset. Must be sent by the current manager.

    Unset roles are submitted as empty, which clears them on-chain.
    """
    params = AssetConfigParams(
        sender=sender,
        asset_id=asset_id,
        manager=_optional_str(manager),
        reserve=_optional_str(reserve),
        freeze=_optional_str(freeze),
        clawback=_optional_str(clawback),
        note=encode_note(note),
    )
    result = algorand.send.asset_config(params, send_params=SEND_PARAMS)
    return TxnResult.from_send(result)


def transfer_asset(
    algorand: Any,
    sender: str,
    receiver: str,
    asset_id: int,
    amount: int,
    *,
    note: str | None = None,
    clawback_target: str | None = None,
    close_asset_to: str | None = None,
) -> TxnResult:
    """
    Transfer asset units.

    With clawback_target the sender acts as the clawback account and the
    units are taken from clawback_target. With close_asset_to the sender's
    remaining balance goes there and the sender is opted out.
    """
    if amount < 0:
        raise ValueError("Invalid amount. Must not be negative.")
    params = AssetTransferParams(
        sender=sender,
        receiver=receiver,
        asset_id=asset_id,
        amount=amount,
        clawback_target=_optional_str(clawback_target),
        close_asset_to=_optional_str(close_asset_to),
        note=encode_note(note),
    )
    result = algorand.send.asset_transfer(params, send_params=SEND_PARAMS)
    return TxnResult.from_send(result)


def opt_in_asset(
    algorand: Any, sender: str, asset_id: int, note: str | None = None
) -> TxnResult:
    params = AssetOptInParams(sender=sender, asset_id=asset_id, note=encode_note(note))
    result = algorand.send.asset_opt_in(params, send_params=SEND_PARAMS)
    return TxnResult.from_send(result)


def opt_out_asset(
    algorand: Any,
    sender: str,
    asset_id: int,
    *,
    ensure_zero_balance: bool,
    creator: str | None = None,
    note: str | None = None,
) -> tuple[TxnResult, str]:
    """
    Opt an account out of an asset, closing any remainder to the creator.

    The creator is looked up from algod when not given. Returns the
    transaction result and the creator address used.
    """
    if not creator:
        creator = algorand.asset.get_by_id(asset_id).creator
    params = AssetOptOutParams(
        sender=sender,
        asset_id=asset_id,
        creator=creator,
        note=encode_note(note),
    )
    result = algorand.send.asset_opt_out(
        params=params,
        ensure_zero_balance=ensure_zero_balance,
        send_params=SEND_PARAMS,
    )
    return TxnResult.from_send(result), creator


def freeze_asset(
    algorand: Any,
    sender: str,
    asset_id: int,
    account: str,
    frozen: bool,
    note: str | None = None,
) -> TxnResult:
    params = AssetFreezeParams(
        sender=sender,
        asset_id=asset_id,
        account=account,
        frozen=frozen,
        note=encode_note(note),
    )
    result = algorand.send.asset_freeze(params, send_params=SEND_PARAMS)
    return TxnResult.from_send(result)


def destroy_asset(
    algorand: Any, sender: str, asset_id: int, note: str | None = None
) -> TxnResult:
    params = AssetDestroyParams(sender=sender, asset_id=asset_id, note=encode_note(note))
    result = algorand.send.asset_destroy(params, send_params=SEND_PARAMS)
    return TxnResult.from_send(result)
