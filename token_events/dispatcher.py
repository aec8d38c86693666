"""
Event Dispatcher - Runs matching handlers over operations.

============================================================
WORKFLOW
============================================================
For each operation:
1. Select handlers registered for the operation's source kind
2. Keep those whose accept pattern matches
3. Run extraction; every payload gets a sub-index starting at 0
4. Assign the event id, add the common operation fields
5. Validate against the handler schema

============================================================
FAILURE ISOLATION
============================================================
Each (operation, handler) pair is one unit. A failing unit is
recorded as a DispatchFailure and never stops other handlers on the
same operation or other operations in the batch. Business rejections
(UnsupportedDomainValueError) are expected outcomes; schema violations
and unexpected exceptions are defects, logged at error level and kept
in the result.
============================================================
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from token_events.exceptions import (
    MalformedOperationError,
    SchemaViolationError,
    TokenEventError,
    UnsupportedDomainValueError,
)
from token_events.handlers.base import Handler
from token_events.handlers.schemas import TokenEvent
from token_events.identity import create_event_id
from token_events.matcher import matches
from token_events.models import DispatchFailure, DispatchResult, FailureCategory, Operation
from token_events.registry import HandlerRegistry


logger = logging.getLogger(__name__)


class EventDispatcher:
    """
    Turns operations into validated token events.
    
    Usage:
        dispatcher = EventDispatcher(create_default_registry(settings))
        result = dispatcher.dispatch(operations)
        
        for event in result.events:
            sink(event)
        
        result.raise_for_defects()
    """
    
    def __init__(self, registry: HandlerRegistry) -> None:
        self._registry = registry
    
    @property
    def registry(self) -> HandlerRegistry:
        return self._registry
    
    def matching_handlers(self, operation: Operation) -> list[Handler]:
        """Handlers of the operation's kind whose pattern accepts it."""
        return [
            handler
            for handler in self._registry.for_source(operation.kind)
            if matches(operation, handler.accept)
        ]
    
    def run_handler(self, handler: Handler, operation: Operation) -> list[TokenEvent]:
        """
        Execute one (operation, handler) unit.
        
        Raises:
            UnsupportedDomainValueError: Handler rejected the operation
            MalformedOperationError: Operation lacks identity fields
            SchemaViolationError: Extraction output failed validation
        """
        extracted = handler.exec(operation)
        payloads = [extracted] if isinstance(extracted, Mapping) else list(extracted)
        
        events = []
        for sub_index, payload in enumerate(payloads):
            candidate = {
                **payload,
                "id": create_event_id(handler.type, operation, sub_index),
                "type": handler.type,
                "opid": str(operation.id) if operation.id is not None else None,
                "ophash": operation.hash,
                "timestamp": operation.timestamp,
                "level": operation.level,
            }
            events.append(self._validate(handler, operation, candidate))
        
        return events
    
    def _validate(
        self,
        handler: Handler,
        operation: Operation,
        candidate: dict[str, Any],
    ) -> TokenEvent:
        try:
            return handler.schema.model_validate(candidate)
        except ValidationError as e:
            raise SchemaViolationError(
                message=f"{handler.type} event failed schema validation ({e.error_count()} errors)",
                operation_id=operation.id,
                handler_type=handler.type,
                errors=[
                    {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
                    for error in e.errors()
                ],
                original_error=e,
            )
    
    def dispatch_operation(self, operation: Operation) -> DispatchResult:
        """Run every matching handler on one operation, isolating failures."""
        result = DispatchResult(operations_processed=1)
        
        for handler in self.matching_handlers(operation):
            try:
                events = self.run_handler(handler, operation)
            except UnsupportedDomainValueError as e:
                logger.info(f"[{handler.type}] Skipped opid={operation.id}: {e.message}")
                result.failures.append(
                    self._failure(operation, handler, FailureCategory.UNSUPPORTED, e)
                )
            except MalformedOperationError as e:
                logger.warning(f"[{handler.type}] Malformed opid={operation.id}: {e}")
                result.failures.append(
                    self._failure(operation, handler, FailureCategory.MALFORMED, e)
                )
            except SchemaViolationError as e:
                logger.error(f"[{handler.type}] Schema violation opid={operation.id}: {e.errors}")
                result.failures.append(
                    self._failure(operation, handler, FailureCategory.SCHEMA, e)
                )
            except Exception as e:
                logger.exception(f"[{handler.type}] Extraction failed opid={operation.id}")
                error = e if isinstance(e, TokenEventError) else TokenEventError(
                    message=f"Unexpected error: {e}",
                    original_error=e,
                )
                result.failures.append(
                    self._failure(operation, handler, FailureCategory.ERROR, error)
                )
            else:
                result.events.extend(events)
        
        return result
    
    def dispatch(
        self,
        operations: Iterable[Operation],
        max_workers: Optional[int] = None,
    ) -> DispatchResult:
        """
        Dispatch a batch of operations.
        
        Operations are independent, so with max_workers > 1 they fan out
        over a thread pool. Returns once every operation is done; events
        keep the input operation order either way.
        """
        operations = list(operations)
        result = DispatchResult()
        
        if max_workers and max_workers > 1 and len(operations) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                partials = list(executor.map(self.dispatch_operation, operations))
        else:
            partials = [self.dispatch_operation(operation) for operation in operations]
        
        for partial in partials:
            result.extend(partial)
        
        logger.info(
            f"Dispatched {result.operations_processed} operations: "
            f"{len(result.events)} events, {len(result.failures)} failures "
            f"({len(result.defects)} defects)"
        )
        return result
    
    @staticmethod
    def _failure(
        operation: Operation,
        handler: Handler,
        category: FailureCategory,
        error: TokenEventError,
    ) -> DispatchFailure:
        return DispatchFailure(
            operation_id=operation.id,
            handler_type=handler.type,
            category=category,
            error=error.bind(operation.id, handler.type),
        )
