"""
Gelato relay SDK - typed requests, signing and a client for the Gelato
transaction relay service.
"""
from .builders import ForwardRequestBuilder, MetaTxRequestBuilder
from .client import AsyncRelayClient, RelayClient
from .config import NetworkConfig
from .exceptions import (
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
from .forward import ForwardCall, ForwardRequest, RelayRequest, SignedForwardRequest
from .meta_tx import MetaTxRequest, SignedMetaTxRequest
from .models import (
    Check,
    EstimatedFeeResponse,
    Execution,
    RelayChainsResponse,
    RelayResponse,
    TaskState,
    TaskStatusResponse,
    TransactionStatus,
)
from .signer import LocalSigner, Signer, recover_signer, sign_typed
from .task import PendingTask
from .types import NATIVE_TOKEN, PaymentType
from .version import __version__

__all__ = [
    "RelayClient",
    "AsyncRelayClient",
    "PendingTask",
    "NetworkConfig",
    "ForwardRequestBuilder",
    "MetaTxRequestBuilder",
    "RelayRequest",
    "ForwardCall",
    "ForwardRequest",
    "SignedForwardRequest",
    "MetaTxRequest",
    "SignedMetaTxRequest",
    "RelayResponse",
    "RelayChainsResponse",
    "EstimatedFeeResponse",
    "TaskStatusResponse",
    "TransactionStatus",
    "TaskState",
    "Check",
    "Execution",
    "Signer",
    "LocalSigner",
    "sign_typed",
    "recover_signer",
    "PaymentType",
    "NATIVE_TOKEN",
    "GelatoError",
    "ConstructionError",
    "InvalidPaymentFields",
    "SigningError",
    "WrongSignerError",
    "InappropriatePaymentTypeError",
    "UnknownVerifyingContractError",
    "TransportError",
    "DeserializationError",
    "ServiceError",
    "TaskNotFoundError",
    "TaskError",
    "TaskCancelledError",
    "TaskBlacklistedError",
    "TaskRevertedError",
    "TaskDroppedError",
    "TooManyRetriesError",
    "__version__",
]
