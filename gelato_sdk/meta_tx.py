"""
Meta-transaction request types.

A :class:`MetaTxRequest` is signed by the user and optionally by a sponsor
against the chain's ``GelatoMetaBox`` contract.
"""
import logging
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import NonNegativeInt

from .config import NetworkConfig
from .eip712 import Eip712Struct
from .exceptions import InappropriatePaymentTypeError, WrongSignerError
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


class MetaTxRequest(WireModel, Eip712Struct):
    """
    Meta-transaction executed through ``GelatoMetaBox``.

    Only payment types 1-3 can be signed. The sponsor and its chain id are
    optional; absent values encode as zero in the signed message.
    """

    EIP712_NAME: ClassVar[str] = "GelatoMetaBox"
    EIP712_TYPE: ClassVar[str] = "MetaTxRequest"
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("chainId", "uint256"),
        ("target", "address"),
        ("data", "bytes"),
        ("feeToken", "address"),
        ("paymentType", "uint256"),
        ("maxFee", "uint256"),
        ("gas", "uint256"),
        ("user", "address"),
        ("sponsor", "address"),
        ("sponsorChainId", "uint256"),
        ("nonce", "uint256"),
        ("deadline", "uint256"),
    )

    chain_id: DecimalInt
    target: Address
    data: HexData = b""
    fee_token: FeeToken = NATIVE_TOKEN
    payment_type: PaymentType = PaymentType.ASYNC_GAS_TANK
    max_fee: DecimalInt
    gas: DecimalInt
    user: Address
    sponsor: Optional[Address] = None
    sponsor_chain_id: Optional[DecimalInt] = None
    nonce: NonNegativeInt = 0
    deadline: Optional[NonNegativeInt] = None

    def verifying_contract(self) -> str:
        return self._require_contract(NetworkConfig.get_meta_box(self.chain_id), "MetaBox")

    def eip712_message(self) -> Dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "target": self.target,
            "data": self.data,
            "feeToken": self.fee_token,
            "paymentType": int(self.payment_type),
            "maxFee": self.max_fee,
            "gas": self.gas,
            "user": self.user,
            "sponsor": self.sponsor or ZERO_ADDRESS,
            "sponsorChainId": self.sponsor_chain_id or 0,
            "nonce": self.nonce,
            "deadline": self.deadline or 0,
        }

    def with_sponsor(self, sponsor: str, sponsor_chain_id: Optional[int] = None) -> "MetaTxRequest":
        """
        Copy of this request naming a sponsor.

        ``sponsor_chain_id`` defaults to the existing value, then to the
        request's own chain id.
        """
        if sponsor_chain_id is None:
            sponsor_chain_id = self.sponsor_chain_id if self.sponsor_chain_id is not None else self.chain_id
        return self.replace(sponsor=sponsor, sponsor_chain_id=sponsor_chain_id)

    def _sign_as(self, signer: Signer, expected: Optional[str]) -> bytes:
        address = signer_address(signer)
        if not same_address(address, expected):
            raise WrongSignerError(expected, address)
        if self.payment_type == PaymentType.SYNCHRONOUS:
            raise InappropriatePaymentTypeError(self.payment_type)
        return sign_typed(self, signer)

    def user_sign(self, signer: Signer) -> bytes:
        """
        Sign as the user.

        Raises:
            WrongSignerError: If the signer is not the request's user
            InappropriatePaymentTypeError: If the payment type is 0
            UnknownVerifyingContractError: If no meta box is known for the chain
            SigningError: If the signer fails
        """
        return self._sign_as(signer, self.user)

    def sponsor_sign(self, signer: Signer) -> bytes:
        """Sign as the sponsor. Raises like :meth:`user_sign`."""
        return self._sign_as(signer, self.sponsor)

    def sign(self, user: Signer, sponsor: Optional[Signer] = None) -> "SignedMetaTxRequest":
        """
        Produce a signed request with a user signature and, when a sponsor
        signer is given, a sponsor signature.

        A request without a sponsor takes the sponsor signer's address.
        """
        request = self
        sponsor_signature = None
        if sponsor is not None:
            if request.sponsor is None:
                request = request.with_sponsor(signer_address(sponsor))
            sponsor_signature = request.sponsor_sign(sponsor)
        user_signature = request.user_sign(user)
        logger.debug(
            f"Signed MetaTxRequest for chain {request.chain_id} "
            f"(user {request.user}, sponsor {request.sponsor})"
        )
        return SignedMetaTxRequest(
            request=request,
            user_signature=user_signature,
            sponsor_signature=sponsor_signature,
        )


class SignedMetaTxRequest(WireModel):
    """A meta-transaction with its user's and optionally its sponsor's signature."""

    TYPE_ID: ClassVar[str] = "MetaTxRequest"

    request: MetaTxRequest
    user_signature: Signature
    sponsor_signature: Optional[Signature] = None

    @property
    def chain_id(self) -> int:
        return self.request.chain_id

    def to_wire(self) -> Dict[str, Any]:
        return {
            "typeId": self.TYPE_ID,
            **self.request.to_wire(),
            "userSignature": "0x" + self.user_signature.hex(),
            "sponsorSignature": "0x" + self.sponsor_signature.hex() if self.sponsor_signature else None,
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "SignedMetaTxRequest":
        fields = dict(data)
        type_id = fields.pop("typeId", cls.TYPE_ID)
        if type_id != cls.TYPE_ID:
            raise ValueError(f"Expected typeId {cls.TYPE_ID}, got {type_id!r}")
        user_signature = fields.pop("userSignature", None)
        sponsor_signature = fields.pop("sponsorSignature", None)
        return cls(
            request=MetaTxRequest.from_wire(fields),
            user_signature=user_signature,
            sponsor_signature=sponsor_signature,
        )

    def verify(self) -> bool:
        """Whether the user signature, and the sponsor signature if present, recover correctly."""
        if not same_address(recover_signer(self.request, self.user_signature), self.request.user):
            return False
        if self.sponsor_signature is None:
            return True
        return same_address(recover_signer(self.request, self.sponsor_signature), self.request.sponsor)
