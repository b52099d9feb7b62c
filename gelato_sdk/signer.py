"""
Signer adapter for EIP-712 relay requests.

Signing itself is delegated to ``eth_account``; this module only checks the
signature shape and translates signer failures into :class:`SigningError`.
"""
import logging
from typing import Any, Protocol

from eth_abi.exceptions import EncodingError
from eth_account import Account
from eth_account.messages import SignableMessage
from eth_account.signers.local import LocalAccount

from .eip712 import Eip712Struct
from .exceptions import ConstructionError, SigningError
from .types import to_checksum

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """Protocol for custom signers. Any ``eth_account`` LocalAccount qualifies."""
    address: str

    def sign_message(self, signable_message: SignableMessage) -> Any:
        """Sign an EIP-191 message and return an object with a ``signature``"""
        ...


class LocalSigner:
    """Signer backed by a private key held in memory."""

    def __init__(self, private_key: str):
        """
        Initialize with a private key.

        Args:
            private_key: Hex-encoded private key (with or without 0x prefix)
        """
        self.account: LocalAccount = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self.account.address

    def sign_message(self, signable_message: SignableMessage) -> Any:
        return self.account.sign_message(signable_message)

    def __repr__(self) -> str:
        return f"LocalSigner({self.address})"


def sign_typed(request: Eip712Struct, signer: Signer) -> bytes:
    """
    Sign the EIP-712 encoding of a request.

    Args:
        request: Request to sign
        signer: Signing capability

    Returns:
        65-byte r || s || v signature

    Raises:
        UnknownVerifyingContractError: If the request's chain has no
            verifying contract configured
        ConstructionError: If a field value cannot be ABI-encoded
        SigningError: If the signer fails or returns a malformed signature
    """
    try:
        signable = request.signable_message()
    except (EncodingError, ValueError, TypeError) as e:
        raise ConstructionError(f"Cannot encode {request.EIP712_TYPE}: {str(e)}") from e
    try:
        signed = signer.sign_message(signable)
    except Exception as e:
        logger.error(f"Signer {getattr(signer, 'address', '<unknown>')} failed to sign {request.EIP712_TYPE}: {e}")
        raise SigningError(f"Failed to sign {request.EIP712_TYPE}: {str(e)}") from e

    signature = getattr(signed, "signature", signed)
    if not isinstance(signature, (bytes, bytearray)) or len(signature) != 65:
        raise SigningError(f"Signer returned an invalid signature: {signature!r}")
    return bytes(signature)


def recover_signer(request: Eip712Struct, signature: bytes) -> str:
    """
    Recover the address that produced a signature over a request.

    Args:
        request: The signed request fields
        signature: 65-byte signature

    Returns:
        Checksummed address of the signer
    """
    return to_checksum(Account.recover_message(request.signable_message(), signature=signature))


def signer_address(signer: Signer) -> str:
    """
    Get a signer's checksummed address.

    Raises:
        SigningError: If the signer exposes no usable address
    """
    try:
        return to_checksum(signer.address)
    except (AttributeError, ValueError) as e:
        raise SigningError(f"Signer has no valid address: {e}") from e
