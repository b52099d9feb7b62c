"""
Core types shared by Gelato relay requests and responses.
"""
import re
from enum import IntEnum
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator, PlainSerializer
from web3 import Web3

# Magic value used to specify the chain-native token
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

UINT256_MAX = 2**256 - 1

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_HASH32_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_DECIMAL_RE = re.compile(r"^[0-9]+$")


class PaymentType(IntEnum):
    """
    Gelato payment type.

    Controls which fields a relay request carries and how the relayer is
    paid. Serialized on the wire as its integer value.
    """
    # The target smart contract pays Gelato as the call is forwarded, in
    # `feeToken`, which must be a whitelisted payment token.
    SYNCHRONOUS = 0
    # The sponsor holds a Gas Tank balance, possibly on another chain
    # (`sponsorChainId`). Charged off-chain after an event is emitted.
    ASYNC_GAS_TANK = 1
    # The sponsor holds a Gas Tank balance on the executing chain. Fees are
    # deducted during the transaction.
    SYNC_GAS_TANK = 2
    # The sponsor pre-approves the relay contract; fees are pulled with
    # `IERC20(feeToken).transferFrom(...)` during execution.
    SYNC_PULL_FEE = 3


def to_checksum(value: Any) -> str:
    """
    Normalize an address to its EIP-55 checksummed form.

    Args:
        value: 0x-prefixed hex string (any case) or 20 raw bytes

    Returns:
        Checksummed address string

    Raises:
        ValueError: If the value is not a 20-byte address
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise ValueError(f"Address must be 20 bytes, got {len(value)}")
        value = "0x" + bytes(value).hex()
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise ValueError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(value.lower())


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two addresses ignoring checksum casing."""
    if a is None or b is None:
        return False
    return a.lower() == b.lower()


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        text = value[2:] if value[:2] in ("0x", "0X") else value
        try:
            return bytes.fromhex(text)
        except ValueError as e:
            raise ValueError(f"Invalid hex data: {value!r}") from e
    raise ValueError(f"Expected bytes or hex string, got {type(value).__name__}")


def _to_signature(value: Any) -> bytes:
    raw = _to_bytes(value)
    if len(raw) != 65:
        raise ValueError(f"Signature must be 65 bytes (r, s, v), got {len(raw)}")
    return raw


def to_hash32(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise ValueError(f"Hash must be 32 bytes, got {len(value)}")
        return "0x" + bytes(value).hex()
    if not isinstance(value, str) or not _HASH32_RE.match(value):
        raise ValueError(f"Invalid 32-byte hash: {value!r}")
    return value.lower()


def parse_decimal(value: Any) -> int:
    """
    Parse an unsigned integer that may arrive as a decimal string.

    Args:
        value: int or decimal string

    Returns:
        Parsed integer

    Raises:
        ValueError: If the value is negative, fractional, hex, or out of
            uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Expected an integer, got a boolean")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _DECIMAL_RE.match(value):
        number = int(value)
    else:
        raise ValueError(f"Expected a non-negative integer or decimal string, got {value!r}")
    if number < 0 or number > UINT256_MAX:
        raise ValueError(f"Value out of uint256 range: {number}")
    return number


def _hex(value: bytes) -> str:
    return "0x" + value.hex()


# 20-byte account identifier, always held in checksummed form
Address = Annotated[str, BeforeValidator(to_checksum)]

# ERC20 token the relayer is paid in; NATIVE_TOKEN means the chain's asset
FeeToken = Address

# Call data, 0x-prefixed hex on the wire
HexData = Annotated[bytes, BeforeValidator(_to_bytes), PlainSerializer(_hex, return_type=str, when_used="json")]

# 65-byte r || s || v signature, 0x-prefixed hex on the wire
Signature = Annotated[bytes, BeforeValidator(_to_signature), PlainSerializer(_hex, return_type=str, when_used="json")]

# Unsigned integer carried as a decimal string on the wire
DecimalInt = Annotated[int, BeforeValidator(parse_decimal), PlainSerializer(str, return_type=str, when_used="json")]

# Relay task identifier, a 32-byte hash in lowercase hex
TaskId = Annotated[str, BeforeValidator(to_hash32)]

# Transaction hash, same shape as a task id
TxHash = TaskId
