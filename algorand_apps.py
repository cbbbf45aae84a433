"""
Algorand smart contract (application) operations.

Implements:
- Shared normalization of application-call fields (references, boxes,
  note, lease, on-complete) used by every application tool
- Bare (non-ABI) create / update / delete / call
- ABI method-call create / update / delete / call
- Decoding of confirmation logs and ABI return values
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Any

from algokit_utils import (
    AppCallMethodCallParams,
    AppCallParams,
    AppCreateMethodCallParams,
    AppCreateParams,
    AppDeleteMethodCallParams,
    AppDeleteParams,
    AppUpdateMethodCallParams,
    AppUpdateParams,
)
from algokit_utils.models.state import BoxReference
from algosdk.abi import Method
from algosdk.transaction import OnComplete

from algorand_txn import SEND_PARAMS, confirmed_round, decode_lease, encode_note

ON_COMPLETE: dict[str, OnComplete] = {
    "NoOp": OnComplete.NoOpOC,
    "OptIn": OnComplete.OptInOC,
    "CloseOut": OnComplete.CloseOutOC,
}

MIN_TEAL_VERSION = 8

_PRAGMA_RE = re.compile(r"#pragma\s+version\s+(\d+)")

# Substrings of algod / TEAL errors and a hint for each.
APP_ERROR_TIPS: tuple[tuple[str, str], ...] = (
    (
        "invalid ApplicationArgs index",
        "This error typically occurs when trying to access application arguments "
        "that weren't provided. Make sure you're passing the required arguments.",
    ),
    (
        "err opcode executed",
        "The contract explicitly rejected the transaction with an 'err' opcode. "
        "Check your TEAL logic and arguments.",
    ),
    (
        "return arg 0 wanted type uint64",
        "TEAL expects method returns to be properly formatted. For strings, use "
        "'log' instead of direct returns, or implement proper ARC-4 return formatting.",
    ),
    (
        "program assembly failed",
        "There's a syntax error in your TEAL code. Check for typos, missing "
        "opcodes, or incorrect arguments.",
    ),
)


# ---------------------------------------------------------------------------
# Field normalization
# ---------------------------------------------------------------------------


def parse_uint(value: Any, field_name: str) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {field_name}: {value!r}. Must be an integer.") from exc
    if parsed < 0:
        raise ValueError(f"Invalid {field_name}: {value!r}. Must not be negative.")
    return parsed


def encode_app_arg(value: str) -> bytes:
    """Strict base64 first, otherwise the UTF-8 bytes of the string."""
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return value.encode("utf-8")


def teal_version(program: str) -> int | None:
    match = _PRAGMA_RE.search(program)
    return int(match.group(1)) if match else None


def check_teal_version(program: str, label: str) -> None:
    version = teal_version(program)
    if version is None or version < MIN_TEAL_VERSION:
        raise ValueError(
            f"{label} must use #pragma version {MIN_TEAL_VERSION} or higher "
            f"(found: {version if version is not None else 'none'})."
        )


@dataclass(frozen=True)
class AppCallFields:
    """Transaction fields shared by every application call."""

    account_references: tuple[str, ...] = ()
    app_references: tuple[int, ...] = ()
    asset_references: tuple[int, ...] = ()
    # (app id, box name); app id 0 means the called application
    boxes: tuple[tuple[int, bytes], ...] = ()
    note: bytes | None = None
    lease: bytes | None = None
    on_complete: str = "NoOp"

    def sdk_kwargs(self) -> dict[str, Any]:
        return {
            "account_references": list(self.account_references) or None,
            "app_references": list(self.app_references) or None,
            "asset_references": list(self.asset_references) or None,
            "box_references": [
                BoxReference(app_id=app_id, name=name) for app_id, name in self.boxes
            ]
            or None,
            "note": self.note,
            "lease": self.lease,
        }

    @property
    def on_complete_action(self) -> OnComplete:
        return ON_COMPLETE[self.on_complete]


def build_app_call_fields(arguments: dict[str, Any]) -> AppCallFields:
    """
    Normalize the reference, box, note, lease and on-complete arguments of an
    application tool call.

    Box references are either a box name or {"name": ..., "app_id": ...};
    names are UTF-8 encoded.
    """
    boxes: list[tuple[int, bytes]] = []
    for box in arguments.get("box_references") or []:
        if isinstance(box, str):
            boxes.append((0, box.encode("utf-8")))
        elif isinstance(box, dict) and box.get("name") is not None:
            app_id = box.get("app_id")
            boxes.append(
                (
                    parse_uint(app_id, "box app_id") if app_id not in (None, "") else 0,
                    str(box["name"]).encode("utf-8"),
                )
            )
        else:
            raise ValueError(f"Invalid box reference: {box!r}")

    on_complete = arguments.get("on_complete") or "NoOp"
    if on_complete not in ON_COMPLETE:
        raise ValueError(
            f"Invalid on_complete: {on_complete}. Use one of: {', '.join(ON_COMPLETE)}."
        )

    return AppCallFields(
        account_references=tuple(arguments.get("account_references") or ()),
        app_references=tuple(
            parse_uint(v, "app reference") for v in arguments.get("app_references") or ()
        ),
        asset_references=tuple(
            parse_uint(v, "asset reference") for v in arguments.get("asset_references") or ()
        ),
        boxes=tuple(boxes),
        note=encode_note(arguments.get("note")),
        lease=decode_lease(arguments.get("lease")),
        on_complete=on_complete,
    )


def build_schema(arguments: dict[str, Any]) -> dict[str, int] | None:
    keys = ("global_ints", "global_bytes", "local_ints", "local_bytes")
    if all(arguments.get(k) is None for k in keys):
        return None
    return {
        "global_ints": int(arguments.get("global_ints") or 0),
        "global_byte_slices": int(arguments.get("global_bytes") or 0),
        "local_ints": int(arguments.get("local_ints") or 0),
        "local_byte_slices": int(arguments.get("local_bytes") or 0),
    }


_BOOL_VALUES = {"true": True, "1": True, "false": False, "0": False}


def _parse_bool(value: str) -> bool:
    try:
        return _BOOL_VALUES[value.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Invalid bool argument: {value!r}. Use true, false, 1 or 0."
        ) from None


def coerce_method_args(method: Method, values: list[str]) -> list[Any]:
    """
    Convert string arguments to the Python values the ABI encoder expects
    for the method's declared argument types.
    """
    if len(values) != len(method.args):
        raise ValueError(
            f"Method {method.get_signature()} takes {len(method.args)} "
            f"argument(s), got {len(values)}."
        )
    coerced: list[Any] = []
    for arg, value in zip(method.args, values):
        type_name = str(arg.type)
        if type_name.startswith("byte["):
            coerced.append(encode_app_arg(value))
        elif "[" in type_name or type_name.startswith("("):
            # arrays and tuples are passed as JSON
            coerced.append(json.loads(value) if value.lstrip().startswith("[") else value)
        elif type_name.startswith(("uint", "ufixed")) or type_name == "byte":
            # ufixed values are given in base units, e.g. "150" for 1.50 as ufixed64x2
            coerced.append(parse_uint(value, f"{type_name} argument"))
        elif type_name == "bool":
            coerced.append(_parse_bool(value))
        else:
            coerced.append(value)
    return coerced


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AbiReturnInfo:
    value: Any = None
    return_type: str = "void"
    decode_error: str | None = None


@dataclass(frozen=True)
class AppCallResult:
    tx_id: str
    app_id: int | None
    confirmed_round: int | None = None
    logs: tuple[str, ...] = ()
    abi_return: AbiReturnInfo | None = None


def decode_log(entry: Any) -> str:
    """Render one confirmation log entry (base64 string or raw bytes)."""
    raw = entry if isinstance(entry, bytes) else base64.b64decode(entry)
    hex_value = raw.hex()
    try:
        decoded = raw.decode("utf-8")
    except UnicodeDecodeError:
        return f"Base64: {base64.b64encode(raw).decode()} (hex: {hex_value})"

    if (decoded.startswith("{") and decoded.endswith("}")) or (
        decoded.startswith("[") and decoded.endswith("]")
    ):
        try:
            decoded = json.dumps(json.loads(decoded), indent=2)
        except ValueError:
            pass
    return f"{decoded} (hex: {hex_value})"


def _abi_return(result: Any) -> AbiReturnInfo | None:
    abi_return = getattr(result, "abi_return", None)
    if abi_return is None:
        return None
    method = getattr(abi_return, "method", None)
    returns = getattr(method, "returns", None)
    return_type = str(getattr(returns, "type", None) or "void")
    error = getattr(abi_return, "decode_error", None)
    if error is not None:
        return AbiReturnInfo(return_type=return_type, decode_error=str(error))
    return AbiReturnInfo(value=abi_return.value, return_type=return_type)


def _app_result(result: Any, app_id: int | None) -> AppCallResult:
    confirmation = getattr(result, "confirmation", None) or {}
    if app_id is None:
        app_id = getattr(result, "app_id", None)
        if app_id is None and isinstance(confirmation, dict):
            app_id = confirmation.get("application-index")
    logs = confirmation.get("logs", []) if isinstance(confirmation, dict) else []
    return AppCallResult(
        tx_id=result.tx_id,
        app_id=int(app_id) if app_id is not None else None,
        confirmed_round=confirmed_round(confirmation),
        logs=tuple(decode_log(entry) for entry in logs),
        abi_return=_abi_return(result),
    )


# ---------------------------------------------------------------------------
# Bare application calls
# ---------------------------------------------------------------------------


def create_app(
    algorand: Any,
    sender: str,
    approval_program: str,
    clear_state_program: str,
    fields: AppCallFields,
    *,
    app_args: list[str] | None = None,
    schema: dict[str, int] | None = None,
    extra_pages: int | None = None,
) -> AppCallResult:
    check_teal_version(approval_program, "Approval program")
    check_teal_version(clear_state_program, "Clear state program")
    params = AppCreateParams(
        sender=sender,
        approval_program=approval_program,
        clear_state_program=clear_state_program,
        schema=schema,
        on_complete=fields.on_complete_action,
        args=[encode_app_arg(a) for a in app_args or []] or None,
        extra_program_pages=extra_pages,
        **fields.sdk_kwargs(),
    )
    result = algorand.send.app_create(params, send_params=SEND_PARAMS)
    return _app_result(result, None)


def update_app(
    algorand: Any,
    sender: str,
    app_id: int,
    approval_program: str,
    clear_state_program: str,
    fields: AppCallFields,
    *,
    app_args: list[str] | None = None,
) -> AppCallResult:
    params = AppUpdateParams(
        sender=sender,
        app_id=app_id,
        approval_program=approval_program,
        clear_state_program=clear_state_program,
        args=[encode_app_arg(a) for a in app_args or []] or None,
        **fields.sdk_kwargs(),
    )
    result = algorand.send.app_update(params, send_params=SEND_PARAMS)
    return _app_result(result, app_id)


def delete_app(
    algorand: Any,
    sender: str,
    app_id: int,
    fields: AppCallFields,
    *,
    app_args: list[str] | None = None,
) -> AppCallResult:
    params = AppDeleteParams(
        sender=sender,
        app_id=app_id,
        args=[encode_app_arg(a) for a in app_args or []] or None,
        **fields.sdk_kwargs(),
    )
    result = algorand.send.app_delete(params, send_params=SEND_PARAMS)
    return _app_result(result, app_id)


def call_app(
    algorand: Any,
    sender: str,
    app_id: int,
    fields: AppCallFields,
    *,
    app_args: list[str] | None = None,
) -> AppCallResult:
    params = AppCallParams(
        sender=sender,
        app_id=app_id,
        on_complete=fields.on_complete_action,
        args=[encode_app_arg(a) for a in app_args or []] or None,
        **fields.sdk_kwargs(),
    )
    result = algorand.send.app_call(params, send_params=SEND_PARAMS)
    return _app_result(result, app_id)


# ---------------------------------------------------------------------------
# ABI method calls
# ---------------------------------------------------------------------------


def parse_method(signature: str) -> Method:
    try:
        return Method.from_signature(signature.strip())
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Invalid ABI method signature {signature!r}: {exc}") from exc


def create_app_method_call(
    algorand: Any,
    sender: str,
    approval_program: str,
    clear_state_program: str,
    signature: str,
    fields: AppCallFields,
    *,
    method_args: list[str] | None = None,
    schema: dict[str, int] | None = None,
    extra_pages: int | None = None,
) -> AppCallResult:
    method = parse_method(signature)
    params = AppCreateMethodCallParams(
        sender=sender,
        approval_program=approval_program,
        clear_state_program=clear_state_program,
        schema=schema,
        on_complete=fields.on_complete_action,
        extra_program_pages=extra_pages,
        method=method,
        args=coerce_method_args(method, method_args or []),
        **fields.sdk_kwargs(),
    )
    result = algorand.send.app_create_method_call(params, send_params=SEND_PARAMS)
    return _app_result(result, None)


def update_app_method_call(
    algorand: Any,
    sender: str,
    app_id: int,
    approval_program: str,
    clear_state_program: str,
    signature: str,
    fields: AppCallFields,
    *,
    method_args: list[str] | None = None,
) -> AppCallResult:
    method = parse_method(signature)
    params = AppUpdateMethodCallParams(
        sender=sender,
        app_id=app_id,
        approval_program=approval_program,
        clear_state_program=clear_state_program,
        method=method,
        args=coerce_method_args(method, method_args or []),
        **fields.sdk_kwargs(),
    )
    result = algorand.send.app_update_method_call(params, send_params=SEND_PARAMS)
    return _app_result(result, app_id)


def delete_app_method_call(
    algorand: Any,
    sender: str,
    app_id: int,
    signature: str,
    fields: AppCallFields,
    *,
    method_args: list[str] | None = None,
) -> AppCallResult:
    method = parse_method(signature)
    params = AppDeleteMethodCallParams(
        sender=sender,
        app_id=app_id,
        method=method,
        args=coerce_method_args(method, method_args or []),
        **fields.sdk_kwargs(),
    )
    result = algorand.send.app_delete_method_call(params, send_params=SEND_PARAMS)
    return _app_result(result, app_id)


def call_app_method_call(
    algorand: Any,
    sender: str,
    app_id: int,
    signature: str,
    fields: AppCallFields,
    *,
    method_args: list[str] | None = None,
) -> AppCallResult:
    method = parse_method(signature)
    params = AppCallMethodCallParams(
        sender=sender,
        app_id=app_id,
        on_complete=fields.on_complete_action,
        method=method,
        args=coerce_method_args(method, method_args or []),
        **fields.sdk_kwargs(),
    )
    result = algorand.send.app_call_method_call(params, send_params=SEND_PARAMS)
    return _app_result(result, app_id)
