import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

from algorand_network import NetworkRegistry  # noqa: E402


# ---------------------------------------------------------------------------
# Fake AlgorandClient
# ---------------------------------------------------------------------------


def sent_result(**overrides):
    values = {
        "tx_id": "TXID123",
        "confirmation": {"confirmed-round": 42},
        "group_id": None,
        "asset_id": 1234,
        "app_id": 777,
        "abi_return": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class FakeSend:
    """Records every algorand.send.<method>(params) call."""

    def __init__(self):
        self.calls = []
        self.results = {}
        self.errors = {}

    def __getattr__(self, method):
        if method.startswith("_"):
            raise AttributeError(method)

        def _send(*args, **kwargs):
            params = args[0] if args else kwargs.get("params")
            self.calls.append((method, params, kwargs))
            if method in self.errors:
                raise self.errors[method]
            return self.results.get(method, sent_result())

        return _send

    def last(self, method):
        for name, params, kwargs in reversed(self.calls):
            if name == method:
                return params, kwargs
        raise AssertionError(f"{method} was never sent")


class FakeAccountManager:
    def __init__(self):
        self.loaded_mnemonics = []
        self.information = {}
        self.funding_calls = []
        self.funding_result = None

    def random(self):
        from algosdk import account as algosdk_account

        private_key, address = algosdk_account.generate_account()
        return SimpleNamespace(address=address, private_key=private_key)

    def from_mnemonic(self, *, mnemonic_secret):
        self.loaded_mnemonics.append(mnemonic_secret)
        return SimpleNamespace(address="RESTOREDADDR")

    def get_information(self, address):
        if address not in self.information:
            raise RuntimeError(f"account {address} not found")
        return self.information[address]

    def localnet_dispenser(self):
        return SimpleNamespace(address="DISPENSERADDR")

    def ensure_funded(self, address, dispenser, amount):
        self.funding_calls.append((address, dispenser, amount))
        return self.funding_result


class FakeAlgod:
    def versions(self):
        return {
            "genesis_id": "dockernet-v1",
            "genesis_hash_b64": "GENESISHASH=",
            "versions": ["v2"],
        }

    def status(self):
        return {"last-round": 99}


class FakeAlgorand:
    def __init__(self, label):
        self.label = label
        self.send = FakeSend()
        self.account = FakeAccountManager()
        self.asset = SimpleNamespace(
            get_by_id=lambda asset_id: SimpleNamespace(creator=f"CREATOR{asset_id}")
        )
        self.client = SimpleNamespace(algod=FakeAlgod())


@pytest.fixture
def fake_clients():
    return {name: FakeAlgorand(name) for name in ("localnet", "testnet", "mainnet")}


@pytest.fixture
def registry(fake_clients):
    return NetworkRegistry(fake_clients)


@pytest.fixture
def localnet(fake_clients):
    return fake_clients["localnet"]


@pytest.fixture
def make_result():
    return sent_result
