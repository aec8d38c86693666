"""
Ingestion service tests.
"""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from token_events.dispatcher import EventDispatcher
from token_events.exceptions import FetchError
from token_events.handlers.base import Handler
from token_events.ingestion import IngestionService
from token_events.models import OperationKind
from token_events.registry import HandlerRegistry, create_default_registry

from tests.token_events.factories import make_transaction


@pytest.fixture
def client():
    client = MagicMock()
    client.get_transactions = AsyncMock(return_value=[
        make_transaction(),
        make_transaction(id=2, counter=1, parameter={"entrypoint": "transfer", "value": []}),
    ])
    client.get_originations = AsyncMock(return_value=[])
    return client


class TestIngestionService:
    """Tests for IngestionService."""
    
    @pytest.mark.asyncio
    async def test_sync_sink_receives_events(self, client, settings):
        received = []
        service = IngestionService(client, EventDispatcher(create_default_registry(settings)), sink=received.append)
        
        result = await service.ingest_transactions({"target": settings.objkt_marketplace_v3})
        
        assert len(result.events) == 1
        assert received == result.events
        client.get_transactions.assert_awaited_once_with(
            {"target": settings.objkt_marketplace_v3}, None, None
        )
    
    @pytest.mark.asyncio
    async def test_async_sink_awaited(self, client, settings):
        sink = AsyncMock()
        service = IngestionService(client, EventDispatcher(create_default_registry(settings)), sink=sink)
        
        result = await service.ingest_transactions()
        
        sink.assert_awaited_once_with(result.events[0])
    
    @pytest.mark.asyncio
    async def test_originations(self, client, settings):
        service = IngestionService(client, EventDispatcher(create_default_registry(settings)))
        
        result = await service.ingest_originations({"level": 10}, per_page=100)
        
        assert result.events == []
        client.get_originations.assert_awaited_once_with({"level": 10}, 100, None)
    
    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, client, settings):
        client.get_transactions = AsyncMock(side_effect=FetchError("HTTP 503", status_code=503))
        service = IngestionService(client, EventDispatcher(create_default_registry(settings)))
        
        with pytest.raises(FetchError):
            await service.ingest_transactions()
    
    @pytest.mark.asyncio
    async def test_dispatch_does_not_block_event_loop(self):
        def slow_extract(operation):
            time.sleep(0.05)
            return []
        
        registry = HandlerRegistry([
            Handler(
                source=OperationKind.TRANSACTION,
                type="SLOW",
                accept={"entrypoint": "retract_ask"},
                exec=slow_extract,
            ),
        ])
        service = IngestionService(MagicMock(), EventDispatcher(registry), max_workers=4)
        operations = [make_transaction(id=index, counter=index) for index in range(1, 21)]
        ticks = 0
        
        async def ticker():
            nonlocal ticks
            while True:
                await asyncio.sleep(0.01)
                ticks += 1
        
        task = asyncio.create_task(ticker())
        try:
            result = await service.ingest(operations)
        finally:
            task.cancel()
        
        assert result.operations_processed == 20
        assert ticks > 0
