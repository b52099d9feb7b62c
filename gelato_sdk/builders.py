"""
Immutable builders for relay requests.

Each setter returns a new builder, so a partially filled builder can be
shared as a template. ``build()`` checks the fields the payment type
requires and reports every missing one at once.
"""
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .exceptions import ConstructionError, InvalidPaymentFields
from .forward import ForwardRequest, SignedForwardRequest
from .meta_tx import MetaTxRequest, SignedMetaTxRequest
from .signer import Signer, signer_address
from .types import NATIVE_TOKEN, PaymentType

# Fields that must be set before build(), by payment type
FORWARD_REQUIRED: Dict[PaymentType, Tuple[str, ...]] = {
    PaymentType.SYNCHRONOUS: ("target", "gas"),
    PaymentType.ASYNC_GAS_TANK: ("target", "gas", "max_fee", "sponsor", "nonce"),
    PaymentType.SYNC_GAS_TANK: ("target", "gas", "max_fee", "sponsor", "nonce"),
    PaymentType.SYNC_PULL_FEE: ("target", "gas", "max_fee", "sponsor", "nonce"),
}

META_TX_REQUIRED: Tuple[str, ...] = ("target", "gas", "max_fee", "user")


def _payment_type(value: Any) -> PaymentType:
    try:
        return PaymentType(value)
    except ValueError as e:
        raise ConstructionError(f"Unknown payment type: {value!r}") from e


class _Builder:
    """Shared copy-on-write behaviour for the request builders."""

    def update(self, **fields: Any):
        """Return a copy of this builder with the given fields replaced."""
        unknown = set(fields) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise ConstructionError(f"Unknown builder fields: {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **fields)

    def _missing(self, required: Tuple[str, ...]) -> List[str]:
        return [name for name in required if getattr(self, name) is None]


@dataclass(frozen=True)
class ForwardRequestBuilder(_Builder):
    """
    Builder for :class:`ForwardRequest`.

    Example:
        >>> builder = ForwardRequestBuilder(chain_id=137).update(target=target, gas=100_000)
        >>> request = builder.update(payment_type=PaymentType.SYNCHRONOUS).build()
    """
    chain_id: int = 1
    target: Optional[str] = None
    data: Any = b""
    fee_token: str = NATIVE_TOKEN
    payment_type: PaymentType = PaymentType.ASYNC_GAS_TANK
    max_fee: Optional[int] = None
    gas: Optional[int] = None
    sponsor: Optional[str] = None
    sponsor_chain_id: Optional[int] = None
    nonce: Optional[int] = None
    enforce_sponsor_nonce: bool = True
    enforce_sponsor_nonce_ordering: bool = True
    sponsor_signer: Optional[Signer] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_transaction(cls, tx: Dict[str, Any], **overrides: Any) -> "ForwardRequestBuilder":
        """
        Seed a builder from a web3 transaction dict.

        ``to``, ``data``, ``gas``, ``nonce`` and ``chainId`` are copied, and
        ``from`` becomes the sponsor.
        """
        seeded = _from_tx(tx, {"from": "sponsor"})
        seeded.update(overrides)
        return cls().update(**seeded)

    def sponsored_by(self, signer: Signer) -> "ForwardRequestBuilder":
        """Use ``signer`` as the sponsor, for both the address and :meth:`build_signed`."""
        return self.update(sponsor=signer_address(signer), sponsor_signer=signer)

    def missing_fields(self) -> List[str]:
        return self._missing(FORWARD_REQUIRED[_payment_type(self.payment_type)])

    def build(self) -> ForwardRequest:
        """
        Build the unsigned request.

        Raises:
            InvalidPaymentFields: If a field the payment type requires is unset
            ConstructionError: If a field value is invalid
        """
        missing = self.missing_fields()
        if missing:
            raise InvalidPaymentFields(missing, PaymentType(self.payment_type))

        try:
            return ForwardRequest(
                chain_id=self.chain_id,
                target=self.target,
                data=self.data,
                fee_token=self.fee_token,
                payment_type=self.payment_type,
                max_fee=self.max_fee if self.max_fee is not None else 0,
                gas=self.gas,
                sponsor=self.sponsor,
                sponsor_chain_id=self.sponsor_chain_id if self.sponsor_chain_id is not None else self.chain_id,
                nonce=self.nonce if self.nonce is not None else 0,
                enforce_sponsor_nonce=self.enforce_sponsor_nonce,
                enforce_sponsor_nonce_ordering=self.enforce_sponsor_nonce_ordering,
            )
        except ValidationError as e:
            raise ConstructionError(f"Invalid ForwardRequest fields: {e}") from e

    def build_signed(self) -> SignedForwardRequest:
        """Build and sign with the signer given to :meth:`sponsored_by`."""
        if self.sponsor_signer is None:
            raise ConstructionError("No sponsor signer set, call sponsored_by() first")
        return self.build().sign(self.sponsor_signer)


@dataclass(frozen=True)
class MetaTxRequestBuilder(_Builder):
    """Builder for :class:`MetaTxRequest`. Payment type 0 is not accepted."""
    chain_id: int = 1
    target: Optional[str] = None
    data: Any = b""
    fee_token: str = NATIVE_TOKEN
    payment_type: PaymentType = PaymentType.ASYNC_GAS_TANK
    max_fee: Optional[int] = None
    gas: Optional[int] = None
    user: Optional[str] = None
    sponsor: Optional[str] = None
    sponsor_chain_id: Optional[int] = None
    nonce: int = 0
    deadline: Optional[int] = None
    user_signer: Optional[Signer] = field(default=None, repr=False, compare=False)
    sponsor_signer: Optional[Signer] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_transaction(cls, tx: Dict[str, Any], **overrides: Any) -> "MetaTxRequestBuilder":
        """Seed a builder from a web3 transaction dict; ``from`` becomes the user."""
        seeded = _from_tx(tx, {"from": "user"})
        seeded.update(overrides)
        return cls().update(**seeded)

    def with_user(self, signer: Signer) -> "MetaTxRequestBuilder":
        return self.update(user=signer_address(signer), user_signer=signer)

    def sponsored_by(self, signer: Signer) -> "MetaTxRequestBuilder":
        return self.update(sponsor=signer_address(signer), sponsor_signer=signer)

    def missing_fields(self) -> List[str]:
        return self._missing(META_TX_REQUIRED)

    def build(self) -> MetaTxRequest:
        """
        Build the unsigned request.

        Raises:
            InvalidPaymentFields: If target, gas, max_fee or user is unset
            ConstructionError: If the payment type is 0 or a field value is invalid
        """
        if _payment_type(self.payment_type) == PaymentType.SYNCHRONOUS:
            raise ConstructionError("Payment type 0 (synchronous) cannot be used with meta-transactions")
        missing = self.missing_fields()
        if missing:
            raise InvalidPaymentFields(missing, PaymentType(self.payment_type))

        sponsor_chain_id = self.sponsor_chain_id
        if self.sponsor is not None and sponsor_chain_id is None:
            sponsor_chain_id = self.chain_id

        try:
            return MetaTxRequest(
                chain_id=self.chain_id,
                target=self.target,
                data=self.data,
                fee_token=self.fee_token,
                payment_type=self.payment_type,
                max_fee=self.max_fee,
                gas=self.gas,
                user=self.user,
                sponsor=self.sponsor,
                sponsor_chain_id=sponsor_chain_id,
                nonce=self.nonce,
                deadline=self.deadline,
            )
        except ValidationError as e:
            raise ConstructionError(f"Invalid MetaTxRequest fields: {e}") from e

    def build_signed(self) -> SignedMetaTxRequest:
        """Build and sign with the signers given to :meth:`with_user` and :meth:`sponsored_by`."""
        if self.user_signer is None:
            raise ConstructionError("No user signer set, call with_user() first")
        return self.build().sign(self.user_signer, self.sponsor_signer)


def _from_tx(tx: Dict[str, Any], renames: Dict[str, str]) -> Dict[str, Any]:
    mapping = {"to": "target", "data": "data", "gas": "gas", "nonce": "nonce", "chainId": "chain_id", **renames}
    return {name: tx[key] for key, name in mapping.items() if tx.get(key) is not None}
