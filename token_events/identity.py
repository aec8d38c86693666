"""
Event Identity - Deterministic ids for emitted events.

The id depends only on immutable operation fields, so re-ingesting the
same operation (overlapping pages, retried jobs, replays) yields the same
id and the sink can upsert instead of duplicating.
"""

import hashlib

from token_events.exceptions import MalformedOperationError
from token_events.models import Operation


NONCE_UNSET = "unset"
DIGEST_SIZE = 16  # 128-bit


def event_id_input(handler_type: str, operation: Operation, sub_index: int = 0) -> str:
    """Canonical digest input. A null nonce renders as 'unset', zero as '0'."""
    nonce = operation.nonce
    nonce_part = NONCE_UNSET if nonce is None else str(nonce)
    return f"{handler_type}:{operation.hash}:{operation.counter}:{nonce_part}:{sub_index}"


def create_event_id(handler_type: str, operation: Operation, sub_index: int = 0) -> str:
    """
    Derive a 32 char hex id for one event.
    
    Args:
        handler_type: Event type tag of the emitting handler
        operation: Source operation (must carry hash, counter and nonce)
        sub_index: Ordinal of the event among those the handler emits for this operation
        
    Raises:
        MalformedOperationError: If hash, counter or nonce is missing
    """
    missing = operation.missing_identity_fields
    if missing:
        raise MalformedOperationError(
            message=(
                "operation does not have all the properties needed "
                "(counter, hash and nonce) to create an event id"
            ),
            operation_id=operation.id,
            handler_type=handler_type,
            missing_fields=missing,
        )
    
    payload = event_id_input(handler_type, operation, sub_index).encode("utf-8")
    return hashlib.blake2b(payload, digest_size=DIGEST_SIZE).hexdigest()
