"""
Data models for the Gelato relay SDK.

Requests and responses share :class:`WireModel`, which maps snake_case
attributes to the camelCase JSON the relay service speaks.
"""
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .exceptions import ConstructionError
from .types import DecimalInt, TaskId, TxHash


class WireModel(BaseModel):
    """Immutable model with a camelCase JSON representation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    # Discriminator the service expects in request bodies, if any
    TYPE_ID: ClassVar[Optional[str]] = None

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the JSON-compatible dict sent to the service."""
        body = self.model_dump(mode="json", by_alias=True)
        if self.TYPE_ID is not None:
            return {"typeId": self.TYPE_ID, **body}
        return body

    @classmethod
    def from_wire(cls, data: Dict[str, Any]):
        """Parse a wire dict back into a model."""
        return cls.model_validate(data)

    def replace(self, **fields: Any):
        """
        Copy with some fields changed, validated like a new instance.

        Raises:
            ConstructionError: If a field is unknown or a changed value is invalid
        """
        unknown = set(fields) - set(type(self).model_fields)
        if unknown:
            raise ConstructionError(f"Unknown {type(self).__name__} fields: {', '.join(sorted(unknown))}")
        try:
            return type(self).model_validate({**self.model_dump(), **fields})
        except ValidationError as e:
            raise ConstructionError(f"Invalid {type(self).__name__} fields: {e}") from e


class RelayResponse(WireModel):
    """Response to a relay request, contains an ID for the task"""
    task_id: TaskId


class RelayChainsResponse(WireModel):
    """Response to the relay chains request"""
    relays: List[DecimalInt]

    def chain_ids(self) -> Set[int]:
        return set(self.relays)


class EstimatedFeeResponse(WireModel):
    """Oracle-recommended fee, carried as a decimal string"""
    estimated_fee: DecimalInt


class TaskState(str, Enum):
    """Task states reported by the relay backend."""
    CHECK_PENDING = "CheckPending"
    EXEC_PENDING = "ExecPending"
    EXEC_SUCCESS = "ExecSuccess"
    EXEC_REVERTED = "ExecReverted"
    WAITING_FOR_CONFIRMATION = "WaitingForConfirmation"
    BLACKLISTED = "Blacklisted"
    CANCELLED = "Cancelled"
    NOT_FOUND = "NotFound"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = {
    TaskState.EXEC_SUCCESS,
    TaskState.EXEC_REVERTED,
    TaskState.BLACKLISTED,
    TaskState.CANCELLED,
    TaskState.NOT_FOUND,
}


class Check(WireModel):
    """Result of the backend's last check on a task"""
    task_state: TaskState
    message: Optional[str] = None
    reason: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="created_at")


class Execution(WireModel):
    """On-chain execution details of a task"""
    status: str
    transaction_hash: TxHash
    block_number: int
    created_at: str = Field(..., alias="created_at")


class TransactionStatus(WireModel):
    """Status of a single relay task"""
    service: str
    chain: str
    task_id: TaskId
    task_state: TaskState
    created_at: str = Field(..., alias="created_at")
    # Either a bare date string or a full Check
    last_check: Optional[Union[Check, str]] = None
    execution: Optional[Execution] = None
    last_execution: Optional[str] = None

    @property
    def transaction_hash(self) -> Optional[str]:
        return self.execution.transaction_hash if self.execution else None

    @property
    def check(self) -> Optional[Check]:
        """The last check, if the backend reported more than a date."""
        return self.last_check if isinstance(self.last_check, Check) else None


class TaskStatusResponse(WireModel):
    """Response to the task status call. Contains an array of task statuses"""
    data: List[TransactionStatus]

    def first(self) -> Optional[TransactionStatus]:
        return self.data[0] if self.data else None
