import json
import os

import pytest

from stakepool.blockchain.core.events import EventBus
from stakepool.blockchain.core.ledger import Ledger
from stakepool.protocol.config.params import NETWORKS

from helpers import make_account, ether


@pytest.fixture
def accounts():
    return {
        name: make_account()
        for name in ("admin", "operator", "manager", "sender", "other", "maintainer")
    }


@pytest.fixture
def ledger_dir(tmp_path):
    path = tmp_path / "ledger"
    path.mkdir()
    return path


@pytest.fixture
def genesis(accounts):
    return {
        "admin": accounts["admin"].address,
        "maintainer": accounts["maintainer"].address,
        "maintainer_fee": 1000,
        "managers": [accounts["manager"].address],
        "operators": [accounts["operator"].address],
        "alloc": {
            accounts["sender"].address: str(ether("10000")),
            accounts["other"].address: str(ether("1000")),
        },
    }


@pytest.fixture
def make_ledger(ledger_dir, genesis):
    """Factory opening a ledger on the shared test database (genesis written once)."""
    opened = []
    genesis_path = os.path.join(ledger_dir, "genesis.json")

    def _make(role_gate=None, event_bus=None):
        if not os.path.exists(genesis_path):
            with open(genesis_path, "w") as f:
                json.dump(genesis, f)
        ledger = Ledger(
            os.path.join(ledger_dir, "ledger.db"),
            config=NETWORKS["devnet"],
            role_gate=role_gate,
            event_bus=event_bus if event_bus is not None else EventBus(),
        )
        opened.append(ledger)
        return ledger

    yield _make

    for ledger in opened:
        ledger.close()


@pytest.fixture
def ledger(make_ledger):
    return make_ledger()
