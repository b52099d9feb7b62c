"""
Clients for the Gelato relay HTTP API.

:class:`RelayClient` is synchronous and built on ``requests``;
:class:`AsyncRelayClient` exposes the same operations on ``httpx``.
Every call is a single attempt: failures are raised, never retried.
"""
import json
import logging
import urllib.parse
from typing import Any, Dict, Optional, Set, Tuple, Type, TypeVar, Union

import httpx
import requests
from pydantic import BaseModel, ValidationError

from .config import relay_url
from .exceptions import (
    ConstructionError,
    DeserializationError,
    ServiceError,
    TaskNotFoundError,
    TransportError,
)
from .forward import ForwardCall, ForwardRequest, RelayRequest, SignedForwardRequest
from .meta_tx import MetaTxRequest, SignedMetaTxRequest
from .models import (
    EstimatedFeeResponse,
    Execution,
    RelayChainsResponse,
    RelayResponse,
    TaskStatusResponse,
    TransactionStatus,
)
from .signer import Signer
from .task import PendingTask
from .types import NATIVE_TOKEN, to_checksum, to_hash32

Submittable = Union[RelayRequest, ForwardCall, SignedForwardRequest, SignedMetaTxRequest]

M = TypeVar("M", bound=BaseModel)

_REDACTED_FIELDS = ("sponsorSignature", "userSignature")


def _validate_url(url: str) -> None:
    parsed = urllib.parse.urlparse(url)
    # Check if it's a localhost or 127.0.0.1 address (with or without port)
    host = parsed.netloc.split(":")[0]
    is_local = host in ("localhost", "127.0.0.1")
    if parsed.scheme != "https" and not is_local:
        raise ValueError(f"Relay URL must use https:// for security (got: {parsed.scheme}://)")


def _sanitize_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Redact signatures from a request body for logging."""
    result = payload.copy()
    for key in _REDACTED_FIELDS:
        if result.get(key):
            result[key] = f"[REDACTED - {len(str(result[key]))} chars]"
    return result


def _service_message(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    message = payload.get("message") or payload.get("error")
    return str(message) if message else None


class _RelayClientBase:
    """URL handling and response decoding shared by both clients."""

    def __init__(self, url: Optional[str] = None, logger: Optional[logging.Logger] = None):
        url = url or relay_url()
        _validate_url(url)
        self.url = url if url.endswith("/") else url + "/"
        self.logger = logger or logging.getLogger(__name__)

    def _endpoint(self, path: str) -> str:
        return urllib.parse.urljoin(self.url, path)

    def _log_request(self, method: str, url: str, payload: Optional[Dict[str, Any]]) -> None:
        if payload is None:
            self.logger.debug(f"{method} {url}")
        else:
            self.logger.debug(f"{method} {url}: {_sanitize_payload(payload)}")

    def _decode(self, method: str, url: str, status_code: int, body: str, model: Type[M]) -> M:
        """
        Turn an HTTP response into a model.

        Raises:
            ServiceError: For non-2xx statuses, or a 2xx body that carries an
                error message instead of the expected fields
            DeserializationError: For any other body that doesn't fit ``model``
        """
        try:
            payload = json.loads(body)
            parsed = True
        except ValueError:
            payload = None
            parsed = False

        if not 200 <= status_code < 300:
            message = _service_message(payload) or body or f"HTTP {status_code}"
            self.logger.warning(f"Relay service returned {status_code} for {method} {url}: {message}")
            raise ServiceError(message, status_code=status_code, body=payload if parsed else body)

        if not parsed:
            self.logger.warning(f"Unexpected response from server. {method} {url}: {body}")
            raise DeserializationError(f"Response from {url} is not valid JSON", body=body)

        try:
            return model.model_validate(payload)
        except ValidationError as e:
            self.logger.warning(f"Unexpected response from server. {method} {url}: {body}")
            message = _service_message(payload)
            if message:
                raise ServiceError(message, status_code=status_code, body=payload) from e
            raise DeserializationError(f"Unexpected response from {url}: {str(e)}", body=body) from e

    @staticmethod
    def _submission(request: Submittable, chain_id: Optional[int] = None) -> Tuple[str, Dict[str, Any]]:
        """Path and body for a submission, chosen by request type."""
        if isinstance(request, RelayRequest):
            if chain_id is None:
                raise TypeError("chain_id is required to submit a RelayRequest")
            return f"relays/{chain_id}", request.to_wire()
        if isinstance(request, (ForwardCall, SignedForwardRequest, SignedMetaTxRequest)):
            return f"metabox-relays/{request.chain_id}", request.to_wire()
        if isinstance(request, (ForwardRequest, MetaTxRequest)):
            raise TypeError(f"{type(request).__name__} must be signed before it can be submitted")
        raise TypeError(f"Cannot submit {type(request).__name__}")

    @staticmethod
    def _estimate_params(token: str, gas_limit: int, is_high_priority: bool) -> Dict[str, str]:
        try:
            token = to_checksum(token)
        except ValueError as e:
            raise ConstructionError(f"Invalid fee token: {str(e)}") from e
        if isinstance(gas_limit, bool) or not isinstance(gas_limit, int) or gas_limit < 0:
            raise ConstructionError(f"Gas limit must be a non-negative integer, got {gas_limit!r}")
        return {
            "paymentToken": token.lower(),
            "gasLimit": str(gas_limit),
            "isHighPriority": "true" if is_high_priority else "false",
        }

    @staticmethod
    def _status_path(task_id: str) -> str:
        try:
            task_id = to_hash32(task_id)
        except ValueError as e:
            raise ConstructionError(f"Invalid task id: {str(e)}") from e
        return f"tasks/GelatoMetaBox/{task_id}/"

    @staticmethod
    def _first_status(task_id: str, response: TaskStatusResponse) -> TransactionStatus:
        status = response.first()
        if status is None:
            raise TaskNotFoundError(task_id, status_code=200, body=response.to_wire())
        return status


class RelayClient(_RelayClientBase):
    """
    Synchronous client for the Gelato relay API.

    Example:
        >>> client = RelayClient()
        >>> task_id = client.submit(request.sign(sponsor))
        >>> client.task_status(task_id).task_state
    """

    def __init__(
        self,
        url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the client

        Args:
            url: Relay service base URL; defaults to ``GELATO_RELAY_URL`` or
                ``https://relay.gelato.digital/``
            session: Optional ``requests.Session`` to send requests with
            timeout: Optional per-request timeout in seconds. None waits
                indefinitely
            logger: Optional logger instance to use for debug logging

        Raises:
            ValueError: If the URL doesn't use https (unless it's localhost)
        """
        super().__init__(url, logger)
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        model: Type[M],
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> M:
        url = self._endpoint(path)
        self._log_request(method, url, payload)
        try:
            response = self.session.request(method, url, json=payload, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(f"Relay request failed: {method} {url}: {e}")
            raise TransportError(f"{method} {url} failed: {str(e)}") from e
        return self._decode(method, url, response.status_code, response.text, model)

    def submit(self, request: Submittable, chain_id: Optional[int] = None) -> str:
        """
        Submit any relay request.

        Args:
            request: A relay request, forward call, or signed forward / meta-tx request
            chain_id: Target chain, required for a :class:`RelayRequest` only

        Returns:
            The task id assigned by the relay service

        Raises:
            TypeError: If the request is unsigned or of an unknown type
            TransportError: If the service could not be reached
            ServiceError: If the service rejected the request
            DeserializationError: If the response had an unexpected shape
        """
        path, payload = self._submission(request, chain_id)
        task_id = self._request("POST", path, RelayResponse, payload=payload).task_id
        self.logger.info(f"Relay task submitted: {task_id}")
        return task_id

    def send_relay_transaction(self, request: RelayRequest, chain_id: int) -> str:
        return self.submit(request, chain_id)

    def send_forward_call(self, call: ForwardCall) -> str:
        return self.submit(call)

    def send_forward_request(self, signed: SignedForwardRequest) -> str:
        return self.submit(signed)

    def send_meta_tx_request(self, signed: SignedMetaTxRequest) -> str:
        return self.submit(signed)

    def responsor(self, signed: SignedForwardRequest, signer: Signer) -> str:
        """Re-sign a forward request with a new sponsor and submit it."""
        return self.send_forward_request(signed.responsor(signer))

    def estimate_fee(
        self,
        chain_id: int,
        token: str = NATIVE_TOKEN,
        gas_limit: int = 0,
        is_high_priority: bool = False,
    ) -> int:
        """
        Ask the fee oracle for the relayer fee of a call.

        Args:
            chain_id: Chain the call executes on
            token: Fee token address
            gas_limit: Gas limit of the call
            is_high_priority: Quote for priority execution

        Returns:
            Estimated fee in the token's smallest unit

        Raises:
            ConstructionError: If the token or gas limit is malformed
        """
        params = self._estimate_params(token, gas_limit, is_high_priority)
        return self._request("GET", f"oracles/{chain_id}/estimate", EstimatedFeeResponse, params=params).estimated_fee

    def supported_chains(self) -> Set[int]:
        """Chain ids the relay currently serves."""
        return self._request("GET", "relays/", RelayChainsResponse).chain_ids()

    def is_chain_supported(self, chain_id: int) -> bool:
        return chain_id in self.supported_chains()

    def task_status(self, task_id: str) -> TransactionStatus:
        """
        Fetch the current status of a task.

        Raises:
            ConstructionError: If the task id is not a 32-byte hex string
            TaskNotFoundError: If the service holds no status for the task
        """
        try:
            response = self._request("GET", self._status_path(task_id), TaskStatusResponse)
        except ServiceError as e:
            if e.not_found:
                raise TaskNotFoundError(task_id, status_code=e.status_code, body=e.body) from e
            raise
        return self._first_status(task_id, response)

    def wait_for_task(self, task_id: str, poll_interval: float = 15.0, retries: int = 5) -> Execution:
        """Poll a task until it finishes. See :class:`PendingTask`."""
        return PendingTask(task_id, self, poll_interval=poll_interval, retries=retries).wait()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "RelayClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncRelayClient(_RelayClientBase):
    """Asynchronous client for the Gelato relay API, built on ``httpx``."""

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the client

        Args:
            url: Relay service base URL, as for :class:`RelayClient`
            client: Optional ``httpx.AsyncClient`` to send requests with. Its
                own timeout applies
            timeout: Optional timeout in seconds for the client created here
            logger: Optional logger instance to use for debug logging

        Raises:
            ValueError: If the URL doesn't use https (unless it's localhost),
                or if both ``client`` and ``timeout`` are given
        """
        if client is not None and timeout is not None:
            raise ValueError("Pass timeout either to AsyncRelayClient or to the supplied httpx.AsyncClient, not both")
        super().__init__(url, logger)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _request(
        self,
        method: str,
        path: str,
        model: Type[M],
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> M:
        url = self._endpoint(path)
        self._log_request(method, url, payload)
        try:
            response = await self.client.request(method, url, json=payload, params=params)
        except httpx.RequestError as e:
            self.logger.error(f"Relay request failed: {method} {url}: {e}")
            raise TransportError(f"{method} {url} failed: {str(e)}") from e
        return self._decode(method, url, response.status_code, response.text, model)

    async def submit(self, request: Submittable, chain_id: Optional[int] = None) -> str:
        """Submit any relay request. See :meth:`RelayClient.submit`."""
        path, payload = self._submission(request, chain_id)
        response = await self._request("POST", path, RelayResponse, payload=payload)
        self.logger.info(f"Relay task submitted: {response.task_id}")
        return response.task_id

    async def send_relay_transaction(self, request: RelayRequest, chain_id: int) -> str:
        return await self.submit(request, chain_id)

    async def send_forward_call(self, call: ForwardCall) -> str:
        return await self.submit(call)

    async def send_forward_request(self, signed: SignedForwardRequest) -> str:
        return await self.submit(signed)

    async def send_meta_tx_request(self, signed: SignedMetaTxRequest) -> str:
        return await self.submit(signed)

    async def responsor(self, signed: SignedForwardRequest, signer: Signer) -> str:
        return await self.send_forward_request(signed.responsor(signer))

    async def estimate_fee(
        self,
        chain_id: int,
        token: str = NATIVE_TOKEN,
        gas_limit: int = 0,
        is_high_priority: bool = False,
    ) -> int:
        params = self._estimate_params(token, gas_limit, is_high_priority)
        response = await self._request("GET", f"oracles/{chain_id}/estimate", EstimatedFeeResponse, params=params)
        return response.estimated_fee

    async def supported_chains(self) -> Set[int]:
        response = await self._request("GET", "relays/", RelayChainsResponse)
        return response.chain_ids()

    async def is_chain_supported(self, chain_id: int) -> bool:
        return chain_id in await self.supported_chains()

    async def task_status(self, task_id: str) -> TransactionStatus:
        try:
            response = await self._request("GET", self._status_path(task_id), TaskStatusResponse)
        except ServiceError as e:
            if e.not_found:
                raise TaskNotFoundError(task_id, status_code=e.status_code, body=e.body) from e
            raise
        return self._first_status(task_id, response)

    async def wait_for_task(self, task_id: str, poll_interval: float = 15.0, retries: int = 5) -> Execution:
        return await PendingTask(task_id, self, poll_interval=poll_interval, retries=retries).wait_async()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "AsyncRelayClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
