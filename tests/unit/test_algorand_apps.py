"""Unit tests for application-call normalization and encoding."""

import base64
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from algosdk.abi import Method
from algosdk.transaction import OnComplete

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import algorand_apps as apps  # noqa: E402


# ---------------------------------------------------------------------------
# Field normalization
# ---------------------------------------------------------------------------


def test_build_app_call_fields_defaults():
    fields = apps.build_app_call_fields({})
    assert fields == apps.AppCallFields()
    assert fields.on_complete_action == OnComplete.NoOpOC
    assert fields.sdk_kwargs()["box_references"] is None


def test_build_app_call_fields_normalizes_everything():
    lease = base64.b64encode(b"\x01" * 32).decode()
    fields = apps.build_app_call_fields(
        {
            "account_references": ["ACCT1"],
            "app_references": ["12", 13],
            "asset_references": [7],
            "box_references": ["counter", {"name": "other", "app_id": "99"}],
            "note": "hello",
            "lease": lease,
            "on_complete": "OptIn",
        }
    )

    assert fields.account_references == ("ACCT1",)
    assert fields.app_references == (12, 13)
    assert fields.asset_references == (7,)
    assert fields.boxes == ((0, b"counter"), (99, b"other"))
    assert fields.note == b"hello"
    assert fields.lease == b"\x01" * 32
    assert fields.on_complete_action == OnComplete.OptInOC


def test_build_app_call_fields_rejects_bad_on_complete():
    with pytest.raises(ValueError, match="on_complete"):
        apps.build_app_call_fields({"on_complete": "DeleteApplication"})


def test_build_app_call_fields_rejects_short_lease():
    lease = base64.b64encode(b"short").decode()
    with pytest.raises(ValueError, match="32 bytes"):
        apps.build_app_call_fields({"lease": lease})


def test_build_app_call_fields_rejects_nameless_box():
    with pytest.raises(ValueError, match="box reference"):
        apps.build_app_call_fields({"box_references": [{"app_id": 1}]})


def test_parse_uint():
    assert apps.parse_uint(" 42 ", "app_id") == 42
    with pytest.raises(ValueError, match="app_id"):
        apps.parse_uint("abc", "app_id")
    with pytest.raises(ValueError, match="negative"):
        apps.parse_uint(-1, "app_id")


def test_build_schema():
    assert apps.build_schema({}) is None
    assert apps.build_schema({"global_ints": 2, "local_bytes": 1}) == {
        "global_ints": 2,
        "global_byte_slices": 0,
        "local_ints": 0,
        "local_byte_slices": 1,
    }


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def test_encode_app_arg_prefers_base64():
    assert apps.encode_app_arg("AQID") == b"\x01\x02\x03"
    assert apps.encode_app_arg("hello world") == b"hello world"


def test_check_teal_version():
    apps.check_teal_version("#pragma version 8\nint 1", "Approval program")
    with pytest.raises(ValueError, match="version 8 or higher"):
        apps.check_teal_version("#pragma version 5\nint 1", "Approval program")
    with pytest.raises(ValueError, match="found: none"):
        apps.check_teal_version("int 1", "Clear state program")


def test_coerce_method_args():
    method = Method.from_signature("f(uint64,bool,string,byte[],uint8[])void")
    values = apps.coerce_method_args(method, ["5", "true", "hi", "AQI=", "[1,2]"])
    assert values == [5, True, "hi", b"\x01\x02", [1, 2]]


def test_coerce_method_args_bool_spellings():
    method = Method.from_signature("f(bool,bool,bool,bool)void")
    values = apps.coerce_method_args(method, ["TRUE", " false ", "1", "0"])
    assert values == [True, False, True, False]


def test_coerce_method_args_rejects_unknown_bool():
    method = Method.from_signature("f(bool)void")
    with pytest.raises(ValueError, match="Invalid bool argument: 'maybe'"):
        apps.coerce_method_args(method, ["maybe"])


def test_coerce_method_args_ufixed_and_byte_are_integers():
    method = Method.from_signature("f(ufixed64x2,byte)void")
    values = apps.coerce_method_args(method, ["150", "255"])
    assert values == [150, 255]
    # the SDK encoder accepts the coerced values
    method.args[0].type.encode(values[0])
    method.args[1].type.encode(values[1])


def test_coerce_method_args_rejects_non_integer_ufixed():
    method = Method.from_signature("f(ufixed64x2)void")
    with pytest.raises(ValueError, match="ufixed64x2 argument"):
        apps.coerce_method_args(method, ["1.50"])


def test_coerce_method_args_arity():
    method = Method.from_signature("add(uint64,uint64)uint64")
    with pytest.raises(ValueError, match="takes 2"):
        apps.coerce_method_args(method, ["1"])


def test_parse_method_invalid():
    with pytest.raises(ValueError, match="Invalid ABI method signature"):
        apps.parse_method("not a method")


def test_decode_log_variants():
    assert apps.decode_log(base64.b64encode(b"hi").decode()) == "hi (hex: 6869)"
    pretty = apps.decode_log(b'{"a":1}')
    assert pretty.startswith('{\n  "a": 1\n}')
    assert apps.decode_log(b"\xff\xfe") == "Base64: //4= (hex: fffe)"


# ---------------------------------------------------------------------------
# SDK delegation
# ---------------------------------------------------------------------------


def test_call_app_sends_params(localnet, make_result):
    localnet.send.results["app_call"] = make_result(
        confirmation={"confirmed-round": 5, "logs": [base64.b64encode(b"ok").decode()]}
    )
    fields = apps.build_app_call_fields({"on_complete": "CloseOut", "asset_references": [3]})

    result = apps.call_app(localnet, "SENDER", 777, fields, app_args=["hello world"])

    params, kwargs = localnet.send.last("app_call")
    assert params.app_id == 777
    assert params.on_complete == OnComplete.CloseOutOC
    assert params.args == [b"hello world"]
    assert params.asset_references == [3]
    assert kwargs["send_params"] is not None
    assert result.app_id == 777
    assert result.confirmed_round == 5
    assert result.logs == ("ok (hex: 6f6b)",)
    assert result.abi_return is None


def test_create_app_reads_app_id_from_result(localnet, make_result):
    localnet.send.results["app_create"] = make_result(app_id=4242)
    result = apps.create_app(
        localnet,
        "SENDER",
        "#pragma version 9\nint 1",
        "#pragma version 9\nint 1",
        apps.AppCallFields(),
    )
    assert result.app_id == 4242


def test_abi_return_decode_error(localnet, make_result):
    abi_return = SimpleNamespace(
        value=None,
        decode_error=RuntimeError("bad bytes"),
        method=SimpleNamespace(returns=SimpleNamespace(type="uint64")),
    )
    localnet.send.results["app_call_method_call"] = make_result(abi_return=abi_return)

    result = apps.call_app_method_call(
        localnet, "SENDER", 1, "get()uint64", apps.AppCallFields()
    )

    assert result.abi_return.decode_error == "bad bytes"
    assert result.abi_return.return_type == "uint64"
    params, _ = localnet.send.last("app_call_method_call")
    assert params.method.name == "get"
    assert params.args == []
