"""
ALGO payment transactions.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from algokit_utils import PaymentParams

from algorand_txn import SEND_PARAMS, TxnResult, algo_amount, encode_note


@dataclass(frozen=True)
class PaymentResult:
    network: str
    sender: str
    receiver: str
    amount_algo: Decimal
    txn: TxnResult
    close_remainder_to: str | None = None


def send_payment(
    algorand: Any,
    network: str,
    sender: str,
    receiver: str,
    amount_algo: Decimal,
    note: str | None = None,
    close_remainder_to: str | None = None,
) -> PaymentResult:
    """Send ALGO from sender to receiver, optionally closing the sender account."""
    params = PaymentParams(
        sender=sender,
        receiver=receiver,
        amount=algo_amount(amount_algo),
        note=encode_note(note),
        close_remainder_to=close_remainder_to or None,
    )
    result = algorand.send.payment(params, send_params=SEND_PARAMS)
    return PaymentResult(
        network=network,
        sender=sender,
        receiver=receiver,
        amount_algo=amount_algo,
        txn=TxnResult.from_send(result),
        close_remainder_to=close_remainder_to or None,
    )
