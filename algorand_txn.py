"""
Shared transaction helpers for the Algorand SDK wrappers.

Implements:
- Note / lease / amount encoding for transaction params
- TxnResult: the common shape of a sent transaction's outcome
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from algokit_utils import AlgoAmount, SendParams

# Keep algokit from logging every submitted transaction.
SEND_PARAMS = SendParams(suppress_log=True)

MICROALGOS_PER_ALGO = Decimal(1_000_000)


def parse_decimal(value: Any, field_name: str) -> Decimal:
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError(f"Invalid {field_name}. Must be a number.") from exc
    if not parsed.is_finite():
        raise ValueError(f"Invalid {field_name}. Must be a number.")
    if parsed <= 0:
        raise ValueError(f"Invalid {field_name}. Must be greater than zero.")
    return parsed


def algo_amount(amount_algo: Decimal) -> AlgoAmount:
    micro = amount_algo * MICROALGOS_PER_ALGO
    if micro != micro.to_integral_value():
        raise ValueError("Amount has more than 6 decimal places.")
    return AlgoAmount.from_micro_algo(int(micro))


def micro_to_algo(micro_algo: int) -> Decimal:
    return Decimal(micro_algo) / MICROALGOS_PER_ALGO


def encode_note(note: str | None) -> bytes | None:
    return note.encode("utf-8") if note else None


def decode_lease(lease: str | None) -> bytes | None:
    """Decode a base64 lease; Algorand leases are exactly 32 bytes."""
    if not lease:
        return None
    try:
        raw = base64.b64decode(lease, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid lease. Must be base64-encoded.") from exc
    if len(raw) != 32:
        raise ValueError(f"Invalid lease. Expected 32 bytes, got {len(raw)}.")
    return raw


def confirmed_round(confirmation: Any) -> int | None:
    if not confirmation:
        return None
    if isinstance(confirmation, Mapping):
        return confirmation.get("confirmed-round")
    return getattr(confirmation, "confirmed_round", None)


@dataclass(frozen=True)
class TxnResult:
    tx_id: str
    confirmed_round: int | None = None
    group_id: str | None = None

    @classmethod
    def from_send(cls, result: Any) -> TxnResult:
        return cls(
            tx_id=result.tx_id,
            confirmed_round=confirmed_round(getattr(result, "confirmation", None)),
            group_id=getattr(result, "group_id", None) or None,
        )
