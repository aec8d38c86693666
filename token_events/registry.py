"""
Handler Registry - Explicit table of event handlers.

Built once at startup and passed by reference into the dispatcher.
Handlers are indexed by event type and grouped by source kind, so a
transaction handler is never evaluated against an origination.
"""

import logging
from typing import Any, Iterable, Iterator, Optional

from token_events.config import Settings
from token_events.handlers import build_default_handlers
from token_events.handlers.base import Handler
from token_events.models import OperationKind


logger = logging.getLogger(__name__)


class HandlerRegistry:
    """
    Registry of token event handlers.
    
    Usage:
        registry = HandlerRegistry(build_default_handlers(settings))
        registry.register(my_handler)
        
        for handler in registry.for_source(OperationKind.TRANSACTION):
            ...
    """
    
    def __init__(self, handlers: Optional[Iterable[Handler]] = None) -> None:
        self._handlers: dict[str, Handler] = {}
        self._order: list[str] = []
        
        for handler in handlers or ():
            self.register(handler)
    
    def register(self, handler: Handler) -> None:
        """Register a handler; an existing handler of the same type is replaced."""
        if handler.type in self._handlers:
            logger.warning(f"Handler '{handler.type}' already registered, replacing")
        else:
            self._order.append(handler.type)
        
        self._handlers[handler.type] = handler
        logger.debug(f"Registered handler '{handler.type}' ({handler.source.value})")
    
    def unregister(self, handler_type: str) -> Optional[Handler]:
        """Unregister a handler."""
        handler = self._handlers.pop(handler_type, None)
        if handler is not None:
            self._order.remove(handler_type)
            logger.info(f"Unregistered handler '{handler_type}'")
        return handler
    
    def get(self, handler_type: str) -> Optional[Handler]:
        """Get a handler by event type."""
        return self._handlers.get(handler_type)
    
    def list_types(self) -> list[str]:
        """Registered event types in registration order."""
        return self._order.copy()
    
    def for_source(self, source: OperationKind) -> list[Handler]:
        """Handlers accepting operations of the given kind."""
        return [
            self._handlers[name]
            for name in self._order
            if self._handlers[name].source == source
        ]
    
    def get_stats(self) -> dict[str, Any]:
        return {
            "total_handlers": len(self._handlers),
            "by_source": {
                kind.value: len(self.for_source(kind)) for kind in OperationKind
            },
            "handlers": [self._handlers[name].to_dict() for name in self._order],
        }
    
    def __iter__(self) -> Iterator[Handler]:
        return iter([self._handlers[name] for name in self._order])
    
    def __len__(self) -> int:
        return len(self._handlers)
    
    def __contains__(self, handler_type: object) -> bool:
        return handler_type in self._handlers
    
    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(handlers={len(self._handlers)})>"


def create_default_registry(settings: Optional[Settings] = None) -> HandlerRegistry:
    """Registry holding every built-in handler."""
    registry = HandlerRegistry(build_default_handlers(settings))
    logger.info(f"Handler registry ready with {len(registry)} handlers")
    return registry
