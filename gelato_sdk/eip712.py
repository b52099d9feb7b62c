"""
EIP-712 canonicalization of relay requests.

The relay contracts verify signatures over the EIP-712 hash of a request,
so every signed request type must encode its fields exactly as the
contract's type string declares them.
"""
from typing import Any, ClassVar, Dict, List, Sequence, Tuple

from eth_abi import encode
from eth_account.messages import SignableMessage, encode_typed_data
from web3 import Web3

from .exceptions import UnknownVerifyingContractError

EIP712_DOMAIN_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
)


def encode_type(primary_type: str, fields: Sequence[Tuple[str, str]]) -> str:
    """Render an EIP-712 type string, e.g. ``Mail(address to,string contents)``."""
    members = ",".join(f"{kind} {name}" for name, kind in fields)
    return f"{primary_type}({members})"


def hash_struct(primary_type: str, fields: Sequence[Tuple[str, str]], values: Dict[str, Any]) -> bytes:
    """
    Compute the EIP-712 ``hashStruct`` of a flat struct.

    Dynamic ``bytes`` and ``string`` members are replaced by their keccak
    hash; every other member is ABI-encoded as-is.

    Args:
        primary_type: Struct name
        fields: Ordered (name, solidity type) pairs
        values: Member values keyed by name

    Returns:
        32-byte struct hash
    """
    abi_types: List[str] = ["bytes32"]
    abi_values: List[Any] = [Web3.keccak(text=encode_type(primary_type, fields))]
    for name, kind in fields:
        value = values[name]
        if kind == "bytes":
            abi_types.append("bytes32")
            abi_values.append(Web3.keccak(value))
        elif kind == "string":
            abi_types.append("bytes32")
            abi_values.append(Web3.keccak(text=value))
        else:
            abi_types.append(kind)
            abi_values.append(value)
    return bytes(Web3.keccak(encode(abi_types, abi_values)))


class Eip712Struct:
    """
    Mixin giving a request its EIP-712 domain, struct hash and typed data.

    Subclasses declare the domain name, the struct name and its ordered
    fields, and implement :meth:`verifying_contract` and
    :meth:`eip712_message`. They must expose a ``chain_id`` attribute.
    """

    EIP712_NAME: ClassVar[str]
    EIP712_VERSION: ClassVar[str] = "V1"
    EIP712_TYPE: ClassVar[str]
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]]

    def verifying_contract(self) -> str:
        """Address of the contract that verifies this request's signatures."""
        raise NotImplementedError

    def eip712_message(self) -> Dict[str, Any]:
        """Member values keyed by their EIP-712 field names."""
        raise NotImplementedError

    def _require_contract(self, contract: Any, label: str) -> str:
        if contract is None:
            raise UnknownVerifyingContractError(label, self.chain_id)
        return contract

    @classmethod
    def type_string(cls) -> str:
        return encode_type(cls.EIP712_TYPE, cls.EIP712_FIELDS)

    @classmethod
    def type_hash(cls) -> bytes:
        return bytes(Web3.keccak(text=cls.type_string()))

    def domain(self) -> Dict[str, Any]:
        """
        The EIP-712 domain for this request.

        Raises:
            UnknownVerifyingContractError: If no contract is configured for
                the request's chain
        """
        return {
            "name": self.EIP712_NAME,
            "version": self.EIP712_VERSION,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract(),
        }

    def domain_separator(self) -> bytes:
        return hash_struct("EIP712Domain", EIP712_DOMAIN_FIELDS, self.domain())

    def struct_hash(self) -> bytes:
        return hash_struct(self.EIP712_TYPE, self.EIP712_FIELDS, self.eip712_message())

    def signing_hash(self) -> bytes:
        """The digest that is actually signed: keccak(0x1901 || domain || struct)."""
        return bytes(Web3.keccak(b"\x19\x01" + self.domain_separator() + self.struct_hash()))

    def typed_data(self) -> Dict[str, Any]:
        """Full EIP-712 message, as accepted by ``eth_signTypedData_v4``."""
        return {
            "types": {
                "EIP712Domain": [{"name": n, "type": t} for n, t in EIP712_DOMAIN_FIELDS],
                self.EIP712_TYPE: [{"name": n, "type": t} for n, t in self.EIP712_FIELDS],
            },
            "primaryType": self.EIP712_TYPE,
            "domain": self.domain(),
            "message": self.eip712_message(),
        }

    def signable_message(self) -> SignableMessage:
        return encode_typed_data(full_message=self.typed_data())
