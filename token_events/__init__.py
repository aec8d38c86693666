"""
Token Events Package - Turns TzKT operations into normalized token events.

Features:
- Declarative handlers (source kind + accept pattern + extraction)
- Bigmap diff lookup shared by every handler
- Reproducible event ids, safe to re-ingest
- Paginated, de-duplicating TzKT fetch
- Per (operation, handler) failure isolation

Quick Start:
    from token_events import (
        EventDispatcher,
        IngestionService,
        Settings,
        TzktClient,
        create_default_registry,
    )
    
    async def ingest(sink):
        settings = Settings.from_env()
        dispatcher = EventDispatcher(create_default_registry(settings))
        
        async with TzktClient(settings) as client:
            service = IngestionService(client, dispatcher, sink=sink)
            result = await service.ingest_transactions({
                "target": settings.objkt_marketplace_v3,
            })
        
        result.raise_for_defects()

Adding New Handlers:
    handler = Handler(
        source=OperationKind.TRANSACTION,
        type="MY_EVENT",
        accept={"entrypoint": "collect", "target_address": "KT1..."},
        exec=extract_my_event,
        schema=MyEvent,
    )
    registry.register(handler)
"""

from token_events.config import Settings, configure_logging
from token_events.diffs import filter_diffs, find_diff
from token_events.dispatcher import EventDispatcher
from token_events.exceptions import (
    ConfigurationError,
    FetchError,
    MalformedOperationError,
    SchemaViolationError,
    TokenEventError,
    UnsupportedDomainValueError,
)
from token_events.fetcher import TzktClient
from token_events.handlers import build_default_handlers
from token_events.handlers.base import Handler, HandlerMeta
from token_events.handlers.schemas import TokenEvent
from token_events.identity import create_event_id
from token_events.ingestion import IngestionService
from token_events.matcher import PATTERN_PATHS, matches
from token_events.models import (
    BigmapDiff,
    DiffAction,
    DispatchFailure,
    DispatchResult,
    FailureCategory,
    Operation,
    OperationKind,
)
from token_events.registry import HandlerRegistry, create_default_registry


__version__ = "1.0.0"

__all__ = [
    # Config
    "Settings",
    "configure_logging",
    
    # Models
    "Operation",
    "OperationKind",
    "BigmapDiff",
    "DiffAction",
    "DispatchResult",
    "DispatchFailure",
    "FailureCategory",
    "TokenEvent",
    
    # Exceptions
    "TokenEventError",
    "FetchError",
    "MalformedOperationError",
    "UnsupportedDomainValueError",
    "SchemaViolationError",
    "ConfigurationError",
    
    # Core
    "matches",
    "PATTERN_PATHS",
    "find_diff",
    "filter_diffs",
    "create_event_id",
    
    # Handlers
    "Handler",
    "HandlerMeta",
    "HandlerRegistry",
    "build_default_handlers",
    "create_default_registry",
    "EventDispatcher",
    
    # Fetching
    "TzktClient",
    "IngestionService",
]
