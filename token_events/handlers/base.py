"""
Handler contract.

A handler declares which operations it accepts (source kind + pattern),
the event type it emits, the schema that event must satisfy, and an
extraction function. Extraction returns the handler-specific payload
(one mapping, or a list for several events per operation); the
dispatcher adds id/type/opid/ophash/timestamp/level and validates.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence, Type, Union

from token_events.handlers.schemas import TokenEvent
from token_events.matcher import Pattern, validate_pattern
from token_events.models import Operation, OperationKind


Payload = Mapping[str, Any]
ExtractResult = Union[Payload, Sequence[Payload]]


@dataclass(frozen=True)
class HandlerMeta:
    """Human readable description of an event kind."""
    event_description: str = ""
    event_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class Handler:
    """One registered event kind."""
    source: OperationKind
    type: str
    accept: Pattern
    exec: Callable[[Operation], ExtractResult]
    schema: Type[TokenEvent] = TokenEvent
    meta: HandlerMeta = field(default_factory=HandlerMeta)
    
    def __post_init__(self) -> None:
        validate_pattern(self.accept)
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "type": self.type,
            "accept": dict(self.accept),
            "description": self.meta.event_description,
            "fields": list(self.meta.event_fields),
        }
