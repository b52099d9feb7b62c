"""
Pytest fixtures for the Gelato relay SDK tests.
"""
import time

import pytest

from gelato_sdk.config import NetworkConfig
from gelato_sdk.signer import LocalSigner
from gelato_sdk.types import PaymentType

# Test constants used throughout tests
TEST_RELAY_URL = "https://relay.example.com/"
TEST_TASK_ID = "0x" + "ab" * 32
TEST_TX_HASH = "0x" + "cd" * 32

# Sponsor key and expected values for the kovan forward request vector
SPONSOR_KEY = "9cb3a530d61728e337290409d967db069f5219279f89e5ddb5ae4af76a8da5f4"
SPONSOR_ADDRESS = "0x4e4f0d95bc1a4275b748a63221796080b1aa5c10"
USER_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
OTHER_KEY = "0x" + "11" * 32

KOVAN_DOMAIN_SEPARATOR = "0x1b927f522830945610cf8f0521ef8b3f69352936e1b0920968dcad9cf1e30762"
KOVAN_SPONSOR_SIGNATURE = (
    "0x23c272c0cba2b897de0fd8fe87d419f0f273c82ef10917520b733da889688b1c"
    "6fec89412c6f121fccbc30ce89b20a3de2f405018f1ac1249b9ff705fdb62a521b"
)

TARGET = "0x61bBe925A5D646cE074369A6335e5095Ea7abB7A"
CALL_DATA = "0x4b327067000000000000000000000000eeeeeeeeeeeeeeeeeeeeeeeeaeeeeeeeeeeeeeeeee"
META_BOX = "0x1234567890123456789012345678901234567890"

KOVAN_REQUEST_FIELDS = {
    "chain_id": 42,
    "target": TARGET,
    "data": CALL_DATA,
    "fee_token": "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE",
    "payment_type": PaymentType.ASYNC_GAS_TANK,
    "max_fee": 10000000000000000000,
    "gas": 200000,
    "sponsor": SPONSOR_ADDRESS,
    "sponsor_chain_id": 42,
    "nonce": 0,
    "enforce_sponsor_nonce": False,
    "enforce_sponsor_nonce_ordering": False,
}

TEST_NETWORKS = {
    "42": {
        "name": "kovan",
        "forwarder": "0x4F36f93F58d36DcbC1E60b9bdBE213482285C482",
        "metaBox": META_BOX,
    },
    "137": {
        "name": "polygon",
        "forwarder": "0xc2336e796F77E4E57b6630b6dEdb01f5EE82383e",
        "metaBox": META_BOX,
    },
    "999": {
        "name": "unconfigured",
        "forwarder": None,
        "metaBox": None,
    },
}


# Make time.sleep instantaneous so task polling doesn't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _reset_networks(monkeypatch):
    """Every test starts from the bundled networks file."""
    monkeypatch.delenv("GELATO_NETWORKS_FILE", raising=False)
    monkeypatch.delenv("GELATO_RELAY_URL", raising=False)
    NetworkConfig.reset()
    yield
    NetworkConfig.reset()


@pytest.fixture
def networks():
    """Install a network table that also knows meta box contracts."""
    NetworkConfig._networks_cache = TEST_NETWORKS
    return TEST_NETWORKS


@pytest.fixture
def sponsor():
    return LocalSigner(SPONSOR_KEY)


@pytest.fixture
def user():
    return LocalSigner(USER_KEY)


@pytest.fixture
def other():
    return LocalSigner(OTHER_KEY)


def make_status(task_state="CheckPending", check_state=None, execution=None, **overrides):
    """Build a wire-format TransactionStatus dict."""
    status = {
        "service": "GelatoMetaBox",
        "chain": "kovan",
        "taskId": TEST_TASK_ID,
        "taskState": task_state,
        "created_at": "2022-05-02T10:00:00.000Z",
        "lastExecution": "2022-05-02T10:00:10.000Z",
    }
    if check_state is not None:
        status["lastCheck"] = {
            "taskState": check_state,
            "message": "checked",
            "reason": None,
            "created_at": "2022-05-02T10:00:05.000Z",
        }
    if execution is not None:
        status["execution"] = execution
    status.update(overrides)
    return status


def make_execution(status="success"):
    return {
        "status": status,
        "transactionHash": TEST_TX_HASH,
        "blockNumber": 31337,
        "created_at": "2022-05-02T10:00:08.000Z",
    }
