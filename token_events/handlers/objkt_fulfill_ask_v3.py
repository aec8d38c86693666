"""An ask was fulfilled (a sale) on the objkt.com v3 marketplace."""

import functools
from typing import Any, Mapping, Optional

from token_events.config import Settings
from token_events.diffs import find_diff
from token_events.exceptions import UnsupportedDomainValueError
from token_events.handlers.base import Handler, HandlerMeta
from token_events.handlers.schemas import SALE_INTERFACE, PgBigInt, TezosAddress, TokenEvent
from token_events.models import DiffAction, Operation, OperationKind
from token_events.utils import extract_objkt_currency, get_path, is_tez_like_currency_strict


EVENT_TYPE_OBJKT_FULFILL_ASK_V3 = "OBJKT_FULFILL_ASK_V3"

ASKS_BIGMAP_ID = 574013
ASKS_BIGMAP_PATH = "asks"


class ObjktFulfillAskV3Event(TokenEvent):
    ask_id: PgBigInt
    seller_address: TezosAddress
    buyer_address: TezosAddress
    artist_address: Optional[TezosAddress] = None
    price: PgBigInt


def extract(
    operation: Operation,
    currency_mappings: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    ask_id = operation.get("parameter.value.ask_id")
    diff = None
    if ask_id is not None:
        diff = find_diff(
            operation.raw_diffs,
            ASKS_BIGMAP_ID,
            ASKS_BIGMAP_PATH,
            (DiffAction.REMOVE_KEY.value, DiffAction.UPDATE_KEY.value),
            ask_id,
        )
    ask = diff.value if diff else None
    
    # No ask diff: the null fields below fail schema validation as a defect.
    if ask is not None:
        currency = extract_objkt_currency(get_path(ask, "currency"), currency_mappings)
        if not is_tez_like_currency_strict(currency):
            raise UnsupportedDomainValueError(
                message="unsupported currency",
                operation_id=operation.id,
                handler_type=EVENT_TYPE_OBJKT_FULFILL_ASK_V3,
                field_name="currency",
                value=currency,
            )
    
    amount = operation.get("amount")
    
    return {
        "implements": SALE_INTERFACE,
        "price": str(amount) if amount is not None else None,
        "fa2_address": get_path(ask, "token.address"),
        "token_id": get_path(ask, "token.token_id"),
        "buyer_address": operation.get("sender.address"),
        "seller_address": get_path(ask, "creator"),
        "ask_id": ask_id,
    }


def create_handler(settings: Settings) -> Handler:
    return Handler(
        source=OperationKind.TRANSACTION,
        type=EVENT_TYPE_OBJKT_FULFILL_ASK_V3,
        accept={
            "entrypoint": "fulfill_ask",
            "target_address": settings.objkt_marketplace_v3,
        },
        exec=functools.partial(extract, currency_mappings=dict(settings.currency_mappings)),
        schema=ObjktFulfillAskV3Event,
        meta=HandlerMeta(
            event_description=(
                f"An ask was fulfilled on objkt.com "
                f"(marketplace contract: {settings.objkt_marketplace_v3})."
            ),
            event_fields=(
                "fa2_address", "token_id", "seller_address", "buyer_address", "price", "ask_id",
            ),
        ),
    )
