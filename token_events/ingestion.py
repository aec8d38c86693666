"""
Ingestion Service - Fetch operations, dispatch them, hand events to the sink.

The core ends at the sink: persistence and job scheduling live outside.
FetchError propagates to the caller (no retries); per-unit dispatch
failures come back in the DispatchResult.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from token_events.dispatcher import EventDispatcher
from token_events.fetcher import TzktClient
from token_events.handlers.schemas import TokenEvent
from token_events.models import DispatchResult, Operation


logger = logging.getLogger(__name__)


EventSink = Callable[[TokenEvent], Union[None, Awaitable[None]]]


class IngestionService:
    """
    One ingestion pass: TzKT -> dispatcher -> sink.
    
    Usage:
        async with TzktClient(settings) as client:
            service = IngestionService(client, EventDispatcher(registry), sink=store.upsert)
            result = await service.ingest_transactions({"level.ge": 2_000_000})
    """
    
    def __init__(
        self,
        client: TzktClient,
        dispatcher: EventDispatcher,
        sink: Optional[EventSink] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher
        self._sink = sink
        self._max_workers = max_workers
    
    async def ingest_transactions(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        per_page: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> DispatchResult:
        operations = await self._client.get_transactions(filters, per_page, max_pages)
        return await self.ingest(operations)
    
    async def ingest_originations(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        per_page: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> DispatchResult:
        operations = await self._client.get_originations(filters, per_page, max_pages)
        return await self.ingest(operations)
    
    async def ingest(self, operations: list[Operation]) -> DispatchResult:
        """Dispatch already fetched operations and emit every event."""
        # Dispatch is synchronous (and may fan out over threads); keep it off the loop.
        result = await asyncio.to_thread(
            self._dispatcher.dispatch, operations, self._max_workers
        )
        
        if self._sink is not None:
            for event in result.events:
                outcome = self._sink(event)
                if inspect.isawaitable(outcome):
                    await outcome
        
        logger.info(
            f"Ingested {len(operations)} operations -> {len(result.events)} events"
        )
        return result
