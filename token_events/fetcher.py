"""
TzKT Client - Paginated, de-duplicating retrieval of operation records.

Pages are fetched strictly one after another: whether to continue
depends on the size of the previous page. A page shorter than `limit`
is the end of data; `max_pages` caps iteration on a live, growing chain.
Because the set can grow between requests, a record at a page boundary
may show up twice, so results are de-duplicated by id.

No retries here. A failed request raises FetchError to the caller.
"""

import asyncio
import logging
import time
from typing import Any, Mapping, Optional

import aiohttp

from token_events.config import Settings
from token_events.exceptions import FetchError
from token_events.models import Operation, OperationKind


logger = logging.getLogger(__name__)


TRANSACTION_FIELDS = (
    "id,level,timestamp,block,hash,counter,nonce,sender,target,amount,"
    "parameter,status,hasInternals,initiator,storage,diffs"
)
ORIGINATION_FIELDS = (
    "id,nonce,level,timestamp,block,counter,hash,initiator,sender,status,"
    "storage,originatedContract"
)

ENDPOINTS = {
    OperationKind.TRANSACTION: "operations/transactions",
    OperationKind.ORIGINATION: "operations/originations",
}


def dedupe_by_id(records: list[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    """Keep the first occurrence of every id, preserving order."""
    seen: set[Any] = set()
    unique = []
    for record in records:
        record_id = record.get("id")
        if record_id in seen:
            continue
        seen.add(record_id)
        unique.append(record)
    return unique


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


class TzktClient:
    """
    Read-only client for the TzKT indexer API.
    
    Usage:
        async with TzktClient(settings) as client:
            transactions = await client.get_transactions({
                "target": OBJKT_CONTRACT_MARKETPLACE_V3,
                "level.ge": 2_000_000,
            })
    """
    
    DEFAULT_TIMEOUT = 30.0
    
    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._settings = settings or Settings()
        self._base_url = self._settings.tzkt_api_url.rstrip("/")
        self._timeout = self._settings.request_timeout or self.DEFAULT_TIMEOUT
        self._session = session
        self._owns_session = session is None
        self._requests_made = 0
    
    @property
    def name(self) -> str:
        return "tzkt"
    
    @property
    def requests_made(self) -> int:
        return self._requests_made
    
    # ─────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────
    
    async def fetch_all(
        self,
        endpoint: str,
        filters: Optional[Mapping[str, Any]] = None,
        per_page: Optional[int] = None,
        max_pages: Optional[int] = None,
        select: str = TRANSACTION_FIELDS,
    ) -> list[Mapping[str, Any]]:
        """
        Fetch every page of an operations endpoint.
        
        Args:
            endpoint: Path relative to the API root (e.g. "operations/transactions")
            filters: Arbitrary TzKT filter key/value pairs
            per_page: Page size (`limit`)
            max_pages: Hard cap on the number of requests
            select: Comma separated field selection
            
        Returns:
            Raw records, unique by id, in first-seen order
            
        Raises:
            FetchError: If any page request fails
        """
        per_page = per_page or self._settings.per_page
        max_pages = max_pages or self._settings.max_pages
        if per_page < 1 or max_pages < 1:
            raise ValueError("per_page and max_pages must be >= 1")
        
        url = f"{self._base_url}/{endpoint.lstrip('/')}"
        records: list[Mapping[str, Any]] = []
        page = 0
        
        while page < max_pages:
            params = {key: _query_value(value) for key, value in (filters or {}).items()}
            params.update({
                "offset": str(page * per_page),
                "limit": str(per_page),
                "status": "applied",
                "select": select,
            })
            
            batch = await self._make_request("GET", url, params=params)
            if not isinstance(batch, list):
                raise FetchError(
                    message=f"Expected a JSON array, got {type(batch).__name__}",
                    request_url=url,
                )
            
            records.extend(batch)
            logger.debug(f"[{self.name}] {endpoint} page={page} size={len(batch)}")
            
            if len(batch) < per_page:
                break
            
            page += 1
        else:
            logger.warning(
                f"[{self.name}] {endpoint} stopped at max_pages={max_pages}, "
                f"more data may be available"
            )
        
        unique = dedupe_by_id(records)
        if len(unique) != len(records):
            logger.debug(
                f"[{self.name}] Dropped {len(records) - len(unique)} duplicate records"
            )
        return unique
    
    async def get_transactions(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        per_page: Optional[int] = None,
        max_pages: Optional[int] = None,
        select: str = TRANSACTION_FIELDS,
    ) -> list[Operation]:
        """Applied transactions matching `filters`."""
        records = await self.fetch_all(
            ENDPOINTS[OperationKind.TRANSACTION], filters, per_page, max_pages, select
        )
        return [Operation.transaction(record) for record in records]
    
    async def get_originations(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        per_page: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> list[Operation]:
        """Applied originations matching `filters`."""
        records = await self.fetch_all(
            ENDPOINTS[OperationKind.ORIGINATION], filters, per_page, max_pages, ORIGINATION_FIELDS
        )
        return [Operation.origination(record) for record in records]
    
    # ─────────────────────────────────────────────────────────────
    # Blocks
    # ─────────────────────────────────────────────────────────────
    
    async def get_latest_block_level(self) -> int:
        """Level of the head block (block count minus one)."""
        count = await self._make_request("GET", f"{self._base_url}/blocks/count")
        return int(count) - 1
    
    async def get_block_quotes(self, level: int, currencies: list[str]) -> dict[str, float]:
        """Fiat quotes attached to a block."""
        result = await self._make_request(
            "GET",
            f"{self._base_url}/blocks/{level}",
            params={"quote": ",".join(currencies)},
        )
        return dict(result.get("quote") or {})
    
    # ─────────────────────────────────────────────────────────────
    # HTTP Helpers
    # ─────────────────────────────────────────────────────────────
    
    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session
    
    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        """Make HTTP request, mapping every failure to FetchError."""
        session = await self._get_session()
        self._requests_made += 1
        
        start_time = time.time()
        try:
            async with session.request(method, url, params=params) as response:
                latency_ms = (time.time() - start_time) * 1000
                logger.debug(f"[{self.name}] {method} {url} -> {response.status} ({latency_ms:.0f}ms)")
                
                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=url,
                        context={"params": params or {}},
                    )
                
                return await response.json()
                
        except aiohttp.ClientError as e:
            raise FetchError(
                message=f"Connection error: {e}",
                request_url=url,
                original_error=e,
                context={"params": params or {}},
            )
        except asyncio.TimeoutError as e:
            raise FetchError(
                message=f"Timed out after {self._timeout}s",
                request_url=url,
                original_error=e,
                context={"params": params or {}},
            )
        except ValueError as e:
            raise FetchError(
                message=f"Invalid JSON response: {e}",
                request_url=url,
                original_error=e,
                context={"params": params or {}},
            )
    
    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────
    
    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
    
    async def __aenter__(self) -> "TzktClient":
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
    
    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(url={self._base_url})>"
