"""
Tests for the error taxonomy.
"""
import pytest

from gelato_sdk.exceptions import (
    ConstructionError,
    DeserializationError,
    GelatoError,
    InappropriatePaymentTypeError,
    InvalidPaymentFields,
    ServiceError,
    SigningError,
    TaskBlacklistedError,
    TaskCancelledError,
    TaskDroppedError,
    TaskError,
    TaskNotFoundError,
    TaskRevertedError,
    TooManyRetriesError,
    TransportError,
    UnknownVerifyingContractError,
    WrongSignerError,
)
from gelato_sdk.types import PaymentType


@pytest.mark.parametrize("error,parent", [
    (InvalidPaymentFields(["gas"]), ConstructionError),
    (WrongSignerError("0xa", "0xb"), SigningError),
    (InappropriatePaymentTypeError(0), SigningError),
    (UnknownVerifyingContractError("Forwarder", 1), SigningError),
    (TaskNotFoundError("0x1"), ServiceError),
    (TaskCancelledError("0x1"), TaskError),
    (TaskBlacklistedError("0x1"), TaskError),
    (TaskRevertedError("0x1"), TaskError),
    (TaskDroppedError("0x1"), TaskError),
    (TooManyRetriesError("0x1", 5), TaskError),
])
def test_hierarchy(error, parent):
    assert isinstance(error, parent)
    assert isinstance(error, GelatoError)


def test_branches_are_distinct():
    branches = [ConstructionError, SigningError, TransportError, DeserializationError, ServiceError]
    for branch in branches:
        others = [b for b in branches if b is not branch]
        assert not issubclass(branch, tuple(others))


def test_invalid_payment_fields_message():
    error = InvalidPaymentFields(["max_fee", "sponsor"], PaymentType.SYNC_GAS_TANK)
    assert error.missing == ["max_fee", "sponsor"]
    assert "max_fee, sponsor" in str(error)


def test_service_error_not_found():
    assert ServiceError("gone", status_code=404).not_found
    assert not ServiceError("bad", status_code=400).not_found
    assert TaskNotFoundError("0x1").not_found


def test_wrong_signer_message():
    error = WrongSignerError("0xSponsor", "0xOther")
    assert "Expected 0xSponsor" in str(error)
    assert "0xOther" in str(error)


def test_cancelled_message_uses_reason():
    assert "rate limited" in str(TaskCancelledError("0x1", message="stop", reason="rate limited"))
    assert "no reason given" in str(TaskBlacklistedError("0x1"))
