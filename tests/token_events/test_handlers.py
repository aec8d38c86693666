"""
Marketplace handler tests, dispatched end to end through the default registry.
"""

import pytest

from token_events.config import Settings
from token_events.dispatcher import EventDispatcher
from token_events.exceptions import UnsupportedDomainValueError
from token_events.handlers import build_default_handlers
from token_events.handlers import (
    eightbid_24x24_monochrome_cancel_swap,
    objkt_fulfill_ask_v3,
    objkt_retract_ask_v3,
)
from token_events.handlers.eightbid_24x24_monochrome_cancel_swap import (
    EVENT_TYPE_8BID_24X24_MONOCHROME_CANCEL_SWAP,
    EightbidCancelSwap24x24MonochromeEvent,
)
from token_events.handlers.objkt_fulfill_ask_v3 import (
    EVENT_TYPE_OBJKT_FULFILL_ASK_V3,
    ObjktFulfillAskV3Event,
)
from token_events.handlers.objkt_retract_ask_v3 import (
    EVENT_TYPE_OBJKT_RETRACT_ASK_V3,
    ObjktRetractAskV3Event,
)
from token_events.identity import create_event_id
from token_events.models import FailureCategory
from token_events.registry import create_default_registry

from tests.token_events.factories import (
    ARTIST,
    BUYER,
    EIGHTBID_MARKETPLACE,
    FA2_ADDRESS,
    OTEZ_ADDRESS,
    SELLER,
    ask_diff,
    make_transaction,
)


@pytest.fixture
def dispatcher(settings):
    return EventDispatcher(create_default_registry(settings))


# ============================================================
# OBJKT RETRACT ASK V3
# ============================================================

class TestObjktRetractAskV3:
    """Tests for OBJKT_RETRACT_ASK_V3."""
    
    def test_emits_one_event(self, dispatcher, retract_ask_transaction):
        result = dispatcher.dispatch([retract_ask_transaction])
        
        assert result.failures == []
        assert len(result.events) == 1
        event = result.events[0]
        assert isinstance(event, ObjktRetractAskV3Event)
        assert event.type == EVENT_TYPE_OBJKT_RETRACT_ASK_V3
        assert event.ask_id == "1001"
        assert event.seller_address == SELLER
        assert event.fa2_address == FA2_ADDRESS
        assert event.token_id == "7"
        assert event.artist_address is None
    
    def test_id_is_reproducible(self, dispatcher, retract_ask_transaction):
        first = dispatcher.dispatch([retract_ask_transaction]).events[0]
        again = dispatcher.dispatch([retract_ask_transaction]).events[0]
        
        assert first.id == again.id
        assert first.id == create_event_id(EVENT_TYPE_OBJKT_RETRACT_ASK_V3, retract_ask_transaction)
    
    def test_other_marketplace_ignored(self, dispatcher):
        operation = make_transaction(target={"address": EIGHTBID_MARKETPLACE})
        
        result = dispatcher.dispatch([operation])
        
        assert result.events == []
        assert result.failures == []
    
    def test_missing_diff_is_schema_violation(self, dispatcher):
        operation = make_transaction(diffs=[ask_diff(ask_id="999")])
        
        result = dispatcher.dispatch([operation])
        
        assert result.events == []
        assert result.failures[0].category == FailureCategory.SCHEMA
    
    def test_configured_marketplace(self):
        settings = Settings(objkt_marketplace_v3=EIGHTBID_MARKETPLACE)
        dispatcher = EventDispatcher(create_default_registry(settings))
        operation = make_transaction(target={"address": EIGHTBID_MARKETPLACE})
        
        result = dispatcher.dispatch([operation])
        
        assert [event.type for event in result.events] == [EVENT_TYPE_OBJKT_RETRACT_ASK_V3]
    
    def test_missing_ask_id_reads_no_diff(self):
        operation = make_transaction(parameter={"entrypoint": "retract_ask"})
        
        payload = objkt_retract_ask_v3.extract(operation)
        
        assert payload["ask_id"] is None
        assert payload["seller_address"] is None


# ============================================================
# OBJKT FULFILL ASK V3
# ============================================================

class TestObjktFulfillAskV3:
    """Tests for OBJKT_FULFILL_ASK_V3."""
    
    def test_tez_sale(self, dispatcher, fulfill_ask_transaction):
        result = dispatcher.dispatch([fulfill_ask_transaction])
        
        assert result.failures == []
        event = result.events[0]
        assert isinstance(event, ObjktFulfillAskV3Event)
        assert event.type == EVENT_TYPE_OBJKT_FULFILL_ASK_V3
        assert event.implements == "SALE"
        assert event.price == "1500000"
        assert event.buyer_address == BUYER
        assert event.seller_address == SELLER
        assert event.ask_id == "1001"
    
    def test_remove_key_diff_also_accepted(self, dispatcher):
        operation = make_transaction(
            parameter={"entrypoint": "fulfill_ask", "value": {"ask_id": "1001", "proxy": None}},
            diffs=[ask_diff(action="remove_key")],
        )
        
        assert len(dispatcher.dispatch([operation]).events) == 1
    
    def test_unmapped_fa12_currency_rejected(self, dispatcher):
        operation = make_transaction(
            parameter={"entrypoint": "fulfill_ask", "value": {"ask_id": "1001", "proxy": None}},
            diffs=[ask_diff(action="update_key", currency={"fa12": OTEZ_ADDRESS})],
        )
        
        result = dispatcher.dispatch([operation])
        
        assert result.events == []
        failure = result.failures[0]
        assert failure.category == FailureCategory.UNSUPPORTED
        assert isinstance(failure.error, UnsupportedDomainValueError)
        assert failure.error.value == OTEZ_ADDRESS
        assert not result.has_defects
    
    def test_mapped_tez_like_currency_accepted(self):
        settings = Settings(currency_mappings={OTEZ_ADDRESS: "otez"})
        dispatcher = EventDispatcher(create_default_registry(settings))
        operation = make_transaction(
            parameter={"entrypoint": "fulfill_ask", "value": {"ask_id": "1001", "proxy": None}},
            diffs=[ask_diff(action="update_key", currency={"fa12": OTEZ_ADDRESS})],
        )
        
        result = dispatcher.dispatch([operation])
        
        assert len(result.events) == 1
    
    def test_extract_raises_directly(self):
        operation = make_transaction(
            parameter={"entrypoint": "fulfill_ask", "value": {"ask_id": "1001"}},
            diffs=[ask_diff(action="update_key", currency={"fa2": {"address": FA2_ADDRESS}})],
        )
        
        with pytest.raises(UnsupportedDomainValueError, match="unsupported currency"):
            objkt_fulfill_ask_v3.extract(operation)
    
    def test_drifted_asks_bigmap_is_defect(self, dispatcher):
        """The ask diff moved to another bigmap: a bug, not a rejected sale."""
        operation = make_transaction(
            parameter={"entrypoint": "fulfill_ask", "value": {"ask_id": "1001"}},
            diffs=[ask_diff(action="update_key", bigmap=999999)],
        )
        
        result = dispatcher.dispatch([operation])
        
        assert result.events == []
        failure = result.failures[0]
        assert failure.category == FailureCategory.SCHEMA
        assert failure.is_defect
        assert result.has_defects
    
    def test_missing_ask_id_reads_no_diff(self):
        operation = make_transaction(
            parameter={"entrypoint": "fulfill_ask", "value": {}},
            diffs=[ask_diff(action="update_key")],
        )
        
        payload = objkt_fulfill_ask_v3.extract(operation)
        
        assert payload["ask_id"] is None
        assert payload["fa2_address"] is None
        assert payload["seller_address"] is None


# ============================================================
# 8BIDOU 24X24 MONOCHROME CANCEL SWAP
# ============================================================

def swap_diff(swap_id: str = "55") -> dict:
    return {
        "bigmap": 128202,
        "path": "swap_list",
        "action": "update_key",
        "content": {
            "key": swap_id,
            "value": {
                "nft_contract_address": FA2_ADDRESS,
                "nft_id": "12",
                "seller": SELLER,
                "creator": ARTIST,
                "nft_amount": "0",
                "payment": "2000000",
            },
        },
    }


class TestEightbidCancelSwap:
    """Tests for 8BID_24X24_MONOCHROME_CANCEL_SWAP."""
    
    def test_emits_event(self, dispatcher):
        operation = make_transaction(
            target={"address": EIGHTBID_MARKETPLACE},
            parameter={"entrypoint": "cancelswap", "value": "55"},
            diffs=[swap_diff("54"), swap_diff("55")],
        )
        
        result = dispatcher.dispatch([operation])
        
        assert result.failures == []
        event = result.events[0]
        assert isinstance(event, EightbidCancelSwap24x24MonochromeEvent)
        assert event.type == EVENT_TYPE_8BID_24X24_MONOCHROME_CANCEL_SWAP
        assert event.swap_id == "55"
        assert event.artist_address == ARTIST
        assert event.seller_address == SELLER
        assert event.token_id == "12"
        assert event.id == create_event_id(EVENT_TYPE_8BID_24X24_MONOCHROME_CANCEL_SWAP, operation)
    
    def test_missing_swap_id_reads_no_diff(self):
        operation = make_transaction(
            target={"address": EIGHTBID_MARKETPLACE},
            parameter={"entrypoint": "cancelswap"},
            diffs=[swap_diff("55")],
        )
        
        payload = eightbid_24x24_monochrome_cancel_swap.extract(operation)
        
        assert payload["swap_id"] is None
        assert payload["fa2_address"] is None
        assert payload["artist_address"] is None


class TestHandlerTable:
    """Tests for the default handler table."""
    
    def test_every_handler_documented(self, settings):
        for handler in build_default_handlers(settings):
            assert handler.meta.event_description
            assert "fa2_address" in handler.meta.event_fields
            assert handler.to_dict()["type"] == handler.type
