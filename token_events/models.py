"""
Token Event Models - Operations as fetched from the indexer and dispatch outcomes.

Operations wrap the raw TzKT JSON. Accessors fail closed: a missing
attribute reads as None rather than raising, so matching and extraction
can treat "absent" as "does not match".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, TYPE_CHECKING

from token_events.utils import get_path

if TYPE_CHECKING:
    from token_events.exceptions import TokenEventError
    from token_events.handlers.schemas import TokenEvent


class OperationKind(str, Enum):
    """Source kind of an operation; handlers declare which one they accept."""
    TRANSACTION = "transaction"
    ORIGINATION = "origination"


class DiffAction(str, Enum):
    """Bigmap diff actions reported by TzKT."""
    ALLOCATE = "allocate"
    ADD_KEY = "add_key"
    UPDATE_KEY = "update_key"
    REMOVE_KEY = "remove_key"
    REMOVE = "remove"


class FailureCategory(str, Enum):
    """Outcome class of a failed (operation, handler) unit."""
    UNSUPPORTED = "unsupported"  # expected business rejection
    MALFORMED = "malformed"  # identity fields missing
    SCHEMA = "schema"  # extraction/schema drift, a defect
    ERROR = "error"  # unexpected exception in extraction, a defect


IDENTITY_FIELDS = ("hash", "counter", "nonce")


@dataclass(frozen=True)
class BigmapDiff:
    """One point mutation of a bigmap entry."""
    bigmap: Optional[int]
    path: Optional[str]
    action: Optional[str]
    key: Any = None
    value: Any = None
    
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BigmapDiff":
        """Create from a raw TzKT diff record."""
        content = data.get("content") or {}
        return cls(
            bigmap=data.get("bigmap"),
            path=data.get("path"),
            action=data.get("action"),
            key=content.get("key") if isinstance(content, Mapping) else None,
            value=content.get("value") if isinstance(content, Mapping) else None,
        )
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "bigmap": self.bigmap,
            "path": self.path,
            "action": self.action,
            "content": {"key": self.key, "value": self.value},
        }
    
    def get(self, path: str, default: Any = None) -> Any:
        """Resolve a dotted path against the raw diff shape (e.g. 'content.value.creator')."""
        return get_path(self.to_dict(), path, default)


@dataclass(frozen=True)
class Operation:
    """
    Immutable operation record (transaction or origination).
    
    `data` is the raw JSON mapping exactly as returned by the indexer.
    """
    kind: OperationKind
    data: Mapping[str, Any] = field(default_factory=dict)
    
    @classmethod
    def transaction(cls, data: Mapping[str, Any]) -> "Operation":
        return cls(kind=OperationKind.TRANSACTION, data=data)
    
    @classmethod
    def origination(cls, data: Mapping[str, Any]) -> "Operation":
        return cls(kind=OperationKind.ORIGINATION, data=data)
    
    def get(self, path: str, default: Any = None) -> Any:
        """Fail-closed dotted path lookup into the raw record."""
        return get_path(self.data, path, default)
    
    @property
    def id(self) -> Optional[int]:
        return self.data.get("id")
    
    @property
    def hash(self) -> Optional[str]:
        return self.data.get("hash")
    
    @property
    def counter(self) -> Optional[int]:
        return self.data.get("counter")
    
    @property
    def nonce(self) -> Optional[int]:
        return self.data.get("nonce")
    
    @property
    def level(self) -> Optional[int]:
        return self.data.get("level")
    
    @property
    def timestamp(self) -> Optional[str]:
        return self.data.get("timestamp")
    
    @property
    def raw_diffs(self) -> list[Mapping[str, Any]]:
        """Diffs as raw dicts; empty when the indexer omitted them."""
        return list(self.data.get("diffs") or [])
    
    @property
    def diffs(self) -> list[BigmapDiff]:
        return [BigmapDiff.from_dict(diff) for diff in self.raw_diffs]
    
    @property
    def missing_identity_fields(self) -> list[str]:
        """Identity fields absent from the record. A null nonce is present."""
        return [name for name in IDENTITY_FIELDS if name not in self.data]
    
    @property
    def has_identity(self) -> bool:
        return not self.missing_identity_fields


@dataclass
class DispatchFailure:
    """A failed (operation, handler) unit."""
    operation_id: Optional[int]
    handler_type: str
    category: FailureCategory
    error: "TokenEventError"
    
    @property
    def is_defect(self) -> bool:
        """Schema drift or unexpected exceptions are bugs, not data."""
        return self.category in (FailureCategory.SCHEMA, FailureCategory.ERROR)
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "handler_type": self.handler_type,
            "category": self.category.value,
            "error": self.error.to_dict(),
        }


@dataclass
class DispatchResult:
    """Events and failures produced by dispatching a batch of operations."""
    events: list["TokenEvent"] = field(default_factory=list)
    failures: list[DispatchFailure] = field(default_factory=list)
    operations_processed: int = 0
    
    @property
    def defects(self) -> list[DispatchFailure]:
        return [failure for failure in self.failures if failure.is_defect]
    
    @property
    def has_defects(self) -> bool:
        return any(failure.is_defect for failure in self.failures)
    
    def extend(self, other: "DispatchResult") -> None:
        """Merge another result into this one, keeping order."""
        self.events.extend(other.events)
        self.failures.extend(other.failures)
        self.operations_processed += other.operations_processed
    
    def raise_for_defects(self) -> None:
        """Raise the first defect, if any. Business rejections never raise."""
        for failure in self.failures:
            if failure.is_defect:
                raise failure.error
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "events": len(self.events),
            "failures": [failure.to_dict() for failure in self.failures],
            "operations_processed": self.operations_processed,
        }
