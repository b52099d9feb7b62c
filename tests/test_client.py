"""
Tests for the synchronous RelayClient.
"""
import logging
import urllib.parse

import pytest
import requests

from gelato_sdk.client import RelayClient
from gelato_sdk.exceptions import (
    ConstructionError,
    DeserializationError,
    ServiceError,
    TaskNotFoundError,
    TransportError,
)
from gelato_sdk.forward import ForwardCall, ForwardRequest, RelayRequest
from gelato_sdk.meta_tx import MetaTxRequest
from gelato_sdk.models import TaskState
from gelato_sdk.types import NATIVE_TOKEN, PaymentType

from conftest import (
    KOVAN_REQUEST_FIELDS,
    KOVAN_SPONSOR_SIGNATURE,
    TARGET,
    TEST_RELAY_URL,
    TEST_TASK_ID,
    TEST_TX_HASH,
    make_execution,
    make_status,
)

STATUS_URL = f"{TEST_RELAY_URL}tasks/GelatoMetaBox/{TEST_TASK_ID}/"


@pytest.fixture
def client():
    return RelayClient(url=TEST_RELAY_URL)


@pytest.fixture
def signed_request(sponsor):
    return ForwardRequest(**KOVAN_REQUEST_FIELDS).sign(sponsor)


def test_default_url(monkeypatch):
    assert RelayClient().url == "https://relay.gelato.digital/"
    monkeypatch.setenv("GELATO_RELAY_URL", "https://relay.staging.example.com")
    assert RelayClient().url == "https://relay.staging.example.com/"


def test_url_must_be_https():
    with pytest.raises(ValueError, match="https"):
        RelayClient(url="http://relay.example.com")
    # localhost is allowed without TLS
    assert RelayClient(url="http://localhost:8080/api").url == "http://localhost:8080/api/"


def test_base_url_path_is_kept(requests_mock):
    requests_mock.get("http://localhost:8080/api/relays/", json={"relays": ["1"]})
    assert RelayClient(url="http://localhost:8080/api").supported_chains() == {1}


def test_send_forward_request(client, signed_request, requests_mock):
    requests_mock.post(f"{TEST_RELAY_URL}metabox-relays/42", json={"taskId": TEST_TASK_ID})

    task_id = client.send_forward_request(signed_request)

    assert task_id == TEST_TASK_ID
    body = requests_mock.last_request.json()
    assert body["typeId"] == "ForwardRequest"
    assert body["chainId"] == "42"
    assert body["maxFee"] == "10000000000000000000"
    assert body["sponsorSignature"] == KOVAN_SPONSOR_SIGNATURE


def test_send_forward_call(client, requests_mock):
    requests_mock.post(f"{TEST_RELAY_URL}metabox-relays/137", json={"taskId": TEST_TASK_ID})
    call = ForwardCall(chain_id=137, target=TARGET, gas=100000)

    assert client.send_forward_call(call) == TEST_TASK_ID
    assert requests_mock.last_request.json() == {
        "typeId": "ForwardCall",
        "chainId": "137",
        "target": TARGET,
        "data": "0x",
        "feeToken": NATIVE_TOKEN,
        "gas": "100000",
    }


def test_send_relay_transaction(client, requests_mock):
    requests_mock.post(f"{TEST_RELAY_URL}relays/137", json={"taskId": TEST_TASK_ID})
    request = RelayRequest(dest=TARGET, data="0x1234", relayer_fee=10)

    assert client.send_relay_transaction(request, 137) == TEST_TASK_ID
    assert requests_mock.last_request.json()["relayerFee"] == "10"


def test_send_meta_tx_request(client, networks, user, requests_mock):
    requests_mock.post(f"{TEST_RELAY_URL}metabox-relays/42", json={"taskId": TEST_TASK_ID})
    signed = MetaTxRequest(chain_id=42, target=TARGET, max_fee=1, gas=100000, user=user.address).sign(user)

    assert client.send_meta_tx_request(signed) == TEST_TASK_ID
    body = requests_mock.last_request.json()
    assert body["typeId"] == "MetaTxRequest"
    assert body["sponsorSignature"] is None


def test_submit_rejects_unsigned_requests(client):
    with pytest.raises(TypeError, match="must be signed"):
        client.submit(ForwardRequest(**KOVAN_REQUEST_FIELDS))
    with pytest.raises(TypeError, match="chain_id"):
        client.submit(RelayRequest(dest=TARGET, relayer_fee=1))


def test_responsor(client, signed_request, other, requests_mock):
    requests_mock.post(f"{TEST_RELAY_URL}metabox-relays/42", json={"taskId": TEST_TASK_ID})

    client.responsor(signed_request, other)

    body = requests_mock.last_request.json()
    assert body["sponsor"] == other.address
    assert body["sponsorSignature"] != KOVAN_SPONSOR_SIGNATURE


def test_estimate_fee(client, requests_mock):
    requests_mock.get(f"{TEST_RELAY_URL}oracles/137/estimate", json={"estimatedFee": "4200000000000000"})

    fee = client.estimate_fee(137, NATIVE_TOKEN, 100000, is_high_priority=True)

    assert fee == 4200000000000000
    query = urllib.parse.parse_qs(urllib.parse.urlparse(requests_mock.last_request.url).query)
    assert query == {
        "paymentToken": [NATIVE_TOKEN.lower()],
        "gasLimit": ["100000"],
        "isHighPriority": ["true"],
    }


def test_estimate_fee_unsupported_chain(client, requests_mock):
    requests_mock.get(
        f"{TEST_RELAY_URL}oracles/31337/estimate",
        status_code=400,
        json={"message": "Chain id 31337 not supported"},
    )
    requests_mock.get(f"{TEST_RELAY_URL}relays/", json={"relays": ["1", "137"]})

    with pytest.raises(ServiceError) as exc_info:
        client.estimate_fee(31337, NATIVE_TOKEN, 100000)
    assert exc_info.value.message == "Chain id 31337 not supported"
    assert exc_info.value.status_code == 400
    assert not exc_info.value.not_found
    assert not client.is_chain_supported(31337)
    assert client.is_chain_supported(137)


def test_supported_chains(client, requests_mock):
    requests_mock.get(f"{TEST_RELAY_URL}relays/", json={"relays": ["1", "5", "137"]})
    assert client.supported_chains() == {1, 5, 137}


def test_task_status(client, requests_mock):
    status = make_status("ExecSuccess", check_state="ExecSuccess", execution=make_execution())
    requests_mock.get(STATUS_URL, json={"data": [status]})

    result = client.task_status(TEST_TASK_ID)

    assert result.task_state == TaskState.EXEC_SUCCESS
    assert result.transaction_hash == TEST_TX_HASH


def test_task_status_unknown_id(client, requests_mock):
    requests_mock.get(STATUS_URL, json={"data": []})

    with pytest.raises(TaskNotFoundError) as exc_info:
        client.task_status(TEST_TASK_ID)
    assert isinstance(exc_info.value, ServiceError)
    assert exc_info.value.not_found
    assert exc_info.value.task_id == TEST_TASK_ID


def test_task_status_404(client, requests_mock):
    requests_mock.get(STATUS_URL, status_code=404, json={"message": "Task not found"})

    with pytest.raises(TaskNotFoundError) as exc_info:
        client.task_status(TEST_TASK_ID)
    assert exc_info.value.status_code == 404


def test_server_error_is_service_error(client, requests_mock):
    requests_mock.get(STATUS_URL, status_code=500, text="Internal Server Error")

    with pytest.raises(ServiceError) as exc_info:
        client.task_status(TEST_TASK_ID)
    assert not isinstance(exc_info.value, TaskNotFoundError)
    assert exc_info.value.message == "Internal Server Error"
    assert exc_info.value.body == "Internal Server Error"


def test_message_in_success_body_is_service_error(client, requests_mock, caplog):
    requests_mock.get(STATUS_URL, json={"message": "Invalid task id"})

    with caplog.at_level(logging.WARNING):
        with pytest.raises(ServiceError, match="Invalid task id"):
            client.task_status(TEST_TASK_ID)
    assert "Unexpected response from server" in caplog.text


def test_unexpected_shape_is_deserialization_error(client, requests_mock, caplog):
    requests_mock.get(f"{TEST_RELAY_URL}relays/", json={"chains": [1]})

    with caplog.at_level(logging.WARNING):
        with pytest.raises(DeserializationError) as exc_info:
            client.supported_chains()
    assert exc_info.value.body == '{"chains": [1]}'
    assert "Unexpected response from server" in caplog.text


def test_invalid_json_is_deserialization_error(client, requests_mock):
    requests_mock.get(f"{TEST_RELAY_URL}relays/", text="<html>gateway</html>")

    with pytest.raises(DeserializationError) as exc_info:
        client.supported_chains()
    assert exc_info.value.body == "<html>gateway</html>"


def test_connection_failure_is_transport_error(client, requests_mock):
    requests_mock.get(STATUS_URL, exc=requests.ConnectionError("connection refused"))

    with pytest.raises(TransportError, match="connection refused") as exc_info:
        client.task_status(TEST_TASK_ID)
    assert isinstance(exc_info.value.__cause__, requests.ConnectionError)


def test_timeout_is_transport_error(requests_mock):
    requests_mock.get(f"{TEST_RELAY_URL}relays/", exc=requests.Timeout("read timed out"))
    client = RelayClient(url=TEST_RELAY_URL, timeout=5)

    with pytest.raises(TransportError):
        client.supported_chains()


def test_single_attempt(client, requests_mock):
    adapter = requests_mock.get(f"{TEST_RELAY_URL}relays/", status_code=503, text="")

    with pytest.raises(ServiceError, match="HTTP 503"):
        client.supported_chains()
    assert adapter.call_count == 1


def test_signatures_redacted_in_logs(client, signed_request, requests_mock, caplog):
    requests_mock.post(f"{TEST_RELAY_URL}metabox-relays/42", json={"taskId": TEST_TASK_ID})

    with caplog.at_level(logging.DEBUG, logger="gelato_sdk.client"):
        client.send_forward_request(signed_request)

    assert "[REDACTED - 132 chars]" in caplog.text
    assert KOVAN_SPONSOR_SIGNATURE not in caplog.text
    assert TEST_TASK_ID in caplog.text


def test_custom_logger(requests_mock):
    logger = logging.getLogger("my.app.relay")
    client = RelayClient(url=TEST_RELAY_URL, logger=logger)
    assert client.logger is logger


def test_wait_for_task(client, requests_mock):
    requests_mock.get(
        STATUS_URL,
        [
            {"json": {"data": []}},
            {"json": {"data": [make_status(check_state="CheckPending")]}},
            {"json": {"data": [make_status("ExecSuccess", check_state="ExecSuccess", execution=make_execution())]}},
        ],
    )

    execution = client.wait_for_task(TEST_TASK_ID, poll_interval=0)

    assert execution.transaction_hash == TEST_TX_HASH
    assert requests_mock.call_count == 3


def test_context_manager_closes_owned_session():
    with RelayClient(url=TEST_RELAY_URL) as client:
        session = client.session
    assert isinstance(session, requests.Session)


def test_external_session_is_used(requests_mock):
    session = requests.Session()
    session.headers["X-Api-Key"] = "secret"
    requests_mock.get(f"{TEST_RELAY_URL}relays/", json={"relays": []})

    with RelayClient(url=TEST_RELAY_URL, session=session) as client:
        assert client.supported_chains() == set()
    assert requests_mock.last_request.headers["X-Api-Key"] == "secret"


def test_type_zero_end_to_end(client, sponsor, requests_mock):
    """A type 0 forward request on polygon builds, signs, verifies and submits."""
    requests_mock.post(f"{TEST_RELAY_URL}metabox-relays/137", json={"taskId": TEST_TASK_ID})
    request = ForwardRequest(
        chain_id=137,
        target=TARGET,
        data=b"",
        payment_type=PaymentType.SYNCHRONOUS,
        gas=100000,
        sponsor_chain_id=137,
    )
    signed = request.sign(sponsor)
    assert signed.verify()
    assert client.submit(signed) == TEST_TASK_ID
    assert requests_mock.last_request.json()["paymentType"] == 0


@pytest.mark.parametrize("token,gas_limit", [
    ("not-an-address", 100000),
    (NATIVE_TOKEN, -1),
    (NATIVE_TOKEN, "100000"),
])
def test_estimate_fee_rejects_bad_input(client, requests_mock, token, gas_limit):
    with pytest.raises(ConstructionError):
        client.estimate_fee(137, token, gas_limit)
    assert not requests_mock.called


@pytest.mark.parametrize("task_id", ["", "0x1234", "../relays", TEST_TASK_ID + "00"])
def test_task_status_rejects_malformed_id(client, requests_mock, task_id):
    with pytest.raises(ConstructionError):
        client.task_status(task_id)
    assert not requests_mock.called


def test_task_status_normalizes_id_case(client, requests_mock):
    requests_mock.get(STATUS_URL, json={"data": [make_status()]})
    assert client.task_status(TEST_TASK_ID.upper().replace("0X", "0x")).task_id == TEST_TASK_ID
