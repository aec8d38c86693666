"""An ask was canceled on the objkt.com v3 marketplace."""

from typing import Any, Optional

from token_events.config import Settings
from token_events.diffs import find_diff
from token_events.handlers.base import Handler, HandlerMeta
from token_events.handlers.schemas import PgBigInt, TezosAddress, TokenEvent
from token_events.models import DiffAction, Operation, OperationKind
from token_events.utils import get_path


EVENT_TYPE_OBJKT_RETRACT_ASK_V3 = "OBJKT_RETRACT_ASK_V3"

ASKS_BIGMAP_ID = 574013
ASKS_BIGMAP_PATH = "asks"


class ObjktRetractAskV3Event(TokenEvent):
    ask_id: PgBigInt
    seller_address: TezosAddress
    artist_address: Optional[TezosAddress] = None


def extract(operation: Operation) -> dict[str, Any]:
    ask_id = operation.get("parameter.value")
    diff = None
    if ask_id is not None:
        diff = find_diff(
            operation.raw_diffs, ASKS_BIGMAP_ID, ASKS_BIGMAP_PATH, DiffAction.REMOVE_KEY.value, ask_id
        )
    ask = diff.value if diff else None
    
    # TODO: emit artist_address once the v3 ask value carries the artist
    return {
        "fa2_address": get_path(ask, "token.address"),
        "token_id": get_path(ask, "token.token_id"),
        "seller_address": get_path(ask, "creator"),
        "ask_id": ask_id,
    }


def create_handler(settings: Settings) -> Handler:
    return Handler(
        source=OperationKind.TRANSACTION,
        type=EVENT_TYPE_OBJKT_RETRACT_ASK_V3,
        accept={
            "entrypoint": "retract_ask",
            "target_address": settings.objkt_marketplace_v3,
        },
        exec=extract,
        schema=ObjktRetractAskV3Event,
        meta=HandlerMeta(
            event_description=(
                f"An ask was canceled on objkt.com "
                f"(marketplace contract: {settings.objkt_marketplace_v3})."
            ),
            event_fields=("fa2_address", "token_id", "seller_address", "ask_id"),
        ),
    )
