"""Core domain models used across layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator, Literal, Union

from astro_client.errors import ApplicationError, TransportError, ValidationError


class FailureKind(str, Enum):
    """Why a call did not produce a usable payload."""

    TRANSPORT = "transport"
    APPLICATION = "application"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Success:
    """Confirmed backend success carrying the endpoint payload."""

    payload: Any

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.payload


@dataclass(frozen=True, slots=True)
class Failure:
    """Failed call with a human-readable message and no payload."""

    kind: FailureKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        """Raise the error matching this failure."""

        if self.kind is FailureKind.APPLICATION:
            raise ApplicationError(self.message)
        if self.kind is FailureKind.VALIDATION:
            raise ValidationError(self.message)
        raise TransportError(self.message)


CallOutcome = Union[Success, Failure]


@dataclass(slots=True)
class PendingCall:
    """One in-flight request tracked by the envelope."""

    endpoint: str
    loading: Any = None
    target: Any = None


@dataclass(frozen=True, slots=True)
class ModelInfo:
    """Generation model advertised by the backend."""

    name: str
    size: int | None = None
    modified_at: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> ModelInfo:
        return cls(name=str(data["name"]), size=data.get("size"), modified_at=data.get("modified_at"))


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One entry of the chat transcript."""

    content: str
    author: Literal["user", "assistant"]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class BatchItemResult:
    """Outcome for one unit of work in a batch."""

    item_id: str
    outcome: CallOutcome

    @property
    def ok(self) -> bool:
        return self.outcome.ok


@dataclass(frozen=True, slots=True)
class BatchSummary:
    total: int
    succeeded: int
    failed: int


@dataclass(frozen=True, slots=True)
class BatchReport:
    """Ordered per-item results of one batch; never shorter than the batch."""

    items: tuple[BatchItemResult, ...]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[BatchItemResult]:
        return iter(self.items)

    @property
    def summary(self) -> BatchSummary:
        succeeded = sum(1 for item in self.items if item.ok)
        return BatchSummary(total=len(self.items), succeeded=succeeded, failed=len(self.items) - succeeded)


class ConnectionStatus(str, Enum):
    """Backend connection state shown next to the model selector."""

    UNKNOWN = "unknown"
    CONNECTED = "connected"
    CONFIRMING = "confirming"
    DEGRADED = "degraded"
