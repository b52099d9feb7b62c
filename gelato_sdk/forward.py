"""
Forward call and forward request types.

A :class:`ForwardCall` is relayed as-is and paid for by the target
contract. A :class:`ForwardRequest` is signed by its sponsor against the
chain's ``GelatoRelayForwarder`` and becomes a :class:`SignedForwardRequest`.
"""
import logging
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import NonNegativeInt, model_validator

from .config import NetworkConfig
from .eip712 import Eip712Struct
from .exceptions import InvalidPaymentFields, WrongSignerError
from .models import WireModel
from .signer import Signer, recover_signer, sign_typed, signer_address
from .types import (
    NATIVE_TOKEN,
    ZERO_ADDRESS,
    Address,
    DecimalInt,
    FeeToken,
    HexData,
    PaymentType,
    Signature,
    same_address,
)

logger = logging.getLogger(__name__)


class RelayRequest(WireModel):
    """Legacy relay transaction, posted to ``relays/{chainId}``."""
    dest: Address
    data: HexData = b""
    token: FeeToken = NATIVE_TOKEN
    relayer_fee: DecimalInt


class ForwardCall(WireModel):
    """Unsigned call whose fee is paid by the target contract (payment type 0)."""

    TYPE_ID: ClassVar[str] = "ForwardCall"

    chain_id: DecimalInt
    target: Address
    data: HexData = b""
    fee_token: FeeToken = NATIVE_TOKEN
    gas: DecimalInt


class ForwardRequest(WireModel, Eip712Struct):
    """
    Request forwarded through ``GelatoRelayForwarder`` on behalf of a sponsor.

    Payment types 1-3 require a sponsor. A type 0 request may leave the
    sponsor unset; signing fills it with the signer's address.
    """

    EIP712_NAME: ClassVar[str] = "GelatoRelayForwarder"
    EIP712_TYPE: ClassVar[str] = "ForwardRequest"
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("chainId", "uint256"),
        ("target", "address"),
        ("data", "bytes"),
        ("feeToken", "address"),
        ("paymentType", "uint256"),
        ("maxFee", "uint256"),
        ("gas", "uint256"),
        ("sponsor", "address"),
        ("sponsorChainId", "uint256"),
        ("nonce", "uint256"),
        ("enforceSponsorNonce", "bool"),
        ("enforceSponsorNonceOrdering", "bool"),
    )

    chain_id: DecimalInt
    target: Address
    data: HexData = b""
    fee_token: FeeToken = NATIVE_TOKEN
    payment_type: PaymentType = PaymentType.ASYNC_GAS_TANK
    max_fee: DecimalInt = 0
    gas: DecimalInt
    sponsor: Optional[Address] = None
    sponsor_chain_id: DecimalInt
    nonce: NonNegativeInt = 0
    enforce_sponsor_nonce: bool = True
    enforce_sponsor_nonce_ordering: bool = True

    @model_validator(mode="after")
    def _check_sponsor(self) -> "ForwardRequest":
        if self.payment_type != PaymentType.SYNCHRONOUS and self.sponsor is None:
            raise InvalidPaymentFields(["sponsor"], self.payment_type)
        return self

    def verifying_contract(self) -> str:
        return self._require_contract(NetworkConfig.get_forwarder(self.chain_id), "Forwarder")

    def eip712_message(self) -> Dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "target": self.target,
            "data": self.data,
            "feeToken": self.fee_token,
            "paymentType": int(self.payment_type),
            "maxFee": self.max_fee,
            "gas": self.gas,
            "sponsor": self.sponsor or ZERO_ADDRESS,
            "sponsorChainId": self.sponsor_chain_id,
            "nonce": self.nonce,
            "enforceSponsorNonce": self.enforce_sponsor_nonce,
            "enforceSponsorNonceOrdering": self.enforce_sponsor_nonce_ordering,
        }

    def sign(self, signer: Signer) -> "SignedForwardRequest":
        """
        Sign as the sponsor.

        Args:
            signer: Signing capability for the sponsor account

        Returns:
            The signed request. ``self`` is left untouched.

        Raises:
            WrongSignerError: If the request names a different sponsor
            UnknownVerifyingContractError: If no forwarder is known for the chain
            SigningError: If the signer fails
        """
        address = signer_address(signer)
        request = self
        if self.sponsor is None:
            request = self.replace(sponsor=address)
        elif not same_address(self.sponsor, address):
            raise WrongSignerError(self.sponsor, address)

        signature = sign_typed(request, signer)
        logger.debug(f"Signed ForwardRequest for chain {request.chain_id} as sponsor {address}")
        return SignedForwardRequest(request=request, sponsor_signature=signature)

    def sponsor_with(self, signer: Signer) -> "SignedForwardRequest":
        """Replace the sponsor with the signer's address, then sign."""
        return self.replace(sponsor=signer_address(signer)).sign(signer)

    def to_forward_call(self) -> ForwardCall:
        """The same call, relayed without a sponsor signature."""
        return ForwardCall(
            chain_id=self.chain_id,
            target=self.target,
            data=self.data,
            fee_token=self.fee_token,
            gas=self.gas,
        )


class SignedForwardRequest(WireModel):
    """A forward request together with its sponsor's signature."""

    TYPE_ID: ClassVar[str] = "ForwardRequest"

    request: ForwardRequest
    sponsor_signature: Signature

    @property
    def chain_id(self) -> int:
        return self.request.chain_id

    def to_wire(self) -> Dict[str, Any]:
        return {
            "typeId": self.TYPE_ID,
            **self.request.to_wire(),
            "sponsorSignature": "0x" + self.sponsor_signature.hex(),
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "SignedForwardRequest":
        fields = dict(data)
        type_id = fields.pop("typeId", cls.TYPE_ID)
        if type_id != cls.TYPE_ID:
            raise ValueError(f"Expected typeId {cls.TYPE_ID}, got {type_id!r}")
        signature = fields.pop("sponsorSignature", None)
        return cls(request=ForwardRequest.from_wire(fields), sponsor_signature=signature)

    def verify(self) -> bool:
        """Whether the signature recovers to the request's sponsor."""
        return same_address(recover_signer(self.request, self.sponsor_signature), self.request.sponsor)

    def responsor(self, signer: Signer) -> "SignedForwardRequest":
        """Sign the same request with a new sponsor. ``self`` is left untouched."""
        return self.request.sponsor_with(signer)
