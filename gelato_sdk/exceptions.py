"""
Exceptions for the Gelato relay SDK.

Every failure surfaces as a subclass of :class:`GelatoError`. The branches
are kept distinct so callers can decide whether to rebuild, re-sign, retry
or abort:

* :class:`ConstructionError` - the request fields don't fit the payment type
* :class:`SigningError` - the signing capability failed or refused
* :class:`TransportError` - the HTTP exchange itself failed
* :class:`DeserializationError` - the service answered with an unexpected shape
* :class:`ServiceError` - the service reported a business failure
"""
from typing import Any, Optional, Sequence


class GelatoError(Exception):
    """Base exception for all Gelato SDK errors."""
    pass


class ConstructionError(GelatoError):
    """Raised when a relay request cannot be built from the given fields."""
    pass


class InvalidPaymentFields(ConstructionError):
    """Raised when fields required by the chosen payment type are missing."""

    def __init__(self, missing: Sequence[str], payment_type: Any = None):
        self.missing = list(missing)
        self.payment_type = payment_type
        message = f"Missing required values in build: {', '.join(self.missing)}"
        if payment_type is not None:
            message += f" (payment type {payment_type!r})"
        super().__init__(message)


class SigningError(GelatoError):
    """Raised when a request cannot be signed."""
    pass


class WrongSignerError(SigningError):
    """Raised when the signer is not the account named in the request."""

    def __init__(self, expected: Optional[str], actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Wrong signer. Expected {expected}. "
            f"Attempted to sign with key belonging to: {actual}"
        )


class InappropriatePaymentTypeError(SigningError):
    """Raised when a request type cannot be signed under its payment type."""

    def __init__(self, payment_type: Any):
        self.payment_type = payment_type
        super().__init__(f"Payment type {payment_type!r} may not be used with this request")


class UnknownVerifyingContractError(SigningError):
    """Raised when no forwarder or meta box contract is known for a chain."""

    def __init__(self, contract: str, chain_id: int):
        self.contract = contract
        self.chain_id = chain_id
        super().__init__(f"{contract} contract unknown for chain id: {chain_id}")


class TransportError(GelatoError):
    """Raised when the connection to the relay service fails."""
    pass


class DeserializationError(GelatoError):
    """Raised when a response does not match the expected schema."""

    def __init__(self, message: str, body: Optional[str] = None):
        self.body = body
        super().__init__(message)


class ServiceError(GelatoError):
    """Raised when the relay service returns a business-logic failure."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)

    @property
    def not_found(self) -> bool:
        """Whether the service reported that the resource does not exist."""
        return self.status_code == 404


class TaskNotFoundError(ServiceError):
    """Raised when the service holds no status for a task id."""

    def __init__(self, task_id: str, status_code: Optional[int] = None, body: Any = None):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}", status_code=status_code, body=body)

    @property
    def not_found(self) -> bool:
        return True


class TaskError(GelatoError):
    """Base exception for a relay task that ended without success."""

    def __init__(self, message: str, task_id: Optional[str] = None):
        self.task_id = task_id
        super().__init__(message)


class TaskCancelledError(TaskError):
    """Raised when the backend cancelled the task."""

    def __init__(self, task_id: str, message: Optional[str] = None, reason: Optional[str] = None):
        self.message = message
        self.reason = reason
        super().__init__(f"Cancelled by backend: {reason or message or 'no reason given'}", task_id)


class TaskBlacklistedError(TaskError):
    """Raised when the backend blacklisted the task."""

    def __init__(self, task_id: str, message: Optional[str] = None, reason: Optional[str] = None):
        self.message = message
        self.reason = reason
        super().__init__(f"Blacklisted by backend: {reason or message or 'no reason given'}", task_id)


class TaskRevertedError(TaskError):
    """Raised when the task was executed but the transaction reverted."""

    def __init__(self, task_id: str, execution: Any = None, last_check: Any = None):
        self.execution = execution
        self.last_check = last_check
        super().__init__("Execution reverted", task_id)


class TaskDroppedError(TaskError):
    """Raised when the backend reports the task as not found while polling."""

    def __init__(self, task_id: str):
        super().__init__("Dropped by backend", task_id)


class TooManyRetriesError(TaskError):
    """Raised when the backend returned no status too many times."""

    def __init__(self, task_id: str, retries: int):
        self.retries = retries
        super().__init__(f"Backend returned no status after {retries} retries", task_id)
