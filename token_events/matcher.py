"""
Pattern Matcher - Accept rules over semantic attributes of an operation.

A pattern is a mapping of attribute name to expected literal. Each
attribute resolves through PATTERN_PATHS; adding a new attribute only
needs a new table entry.
"""

from typing import Any, Mapping

from token_events.exceptions import ConfigurationError
from token_events.models import Operation


Pattern = Mapping[str, Any]


PATTERN_PATHS: dict[str, str] = {
    "entrypoint": "parameter.entrypoint",
    "target_address": "target.address",
    "sender_address": "sender.address",
    "initiator_address": "initiator.address",
    "originated_contract": "originatedContract.address",
}


_UNRESOLVED = object()


def validate_pattern(pattern: Pattern) -> None:
    """Reject attributes that have no entry in PATTERN_PATHS."""
    unknown = sorted(name for name in pattern if name not in PATTERN_PATHS)
    if unknown:
        raise ConfigurationError(
            message=f"Unknown pattern attribute(s): {', '.join(unknown)}",
            config_key="accept",
            context={"supported": sorted(PATTERN_PATHS)},
        )


def matches(operation: Operation, pattern: Pattern) -> bool:
    """
    True iff every declared attribute resolves to its expected value.
    
    An empty pattern matches every operation. A path that does not
    resolve (or an attribute missing from the table) is a non-match.
    """
    for name, expected in pattern.items():
        path = PATTERN_PATHS.get(name)
        if path is None:
            return False
        
        value = operation.get(path, _UNRESOLVED)
        if value is _UNRESOLVED or value != expected:
            return False
    
    return True
