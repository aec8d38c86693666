"""A swap was canceled on the 8bidou 24x24 monochrome marketplace."""

from typing import Any

from token_events.config import Settings
from token_events.diffs import find_diff
from token_events.handlers.base import Handler, HandlerMeta
from token_events.handlers.schemas import PgBigInt, TezosAddress, TokenEvent
from token_events.models import DiffAction, Operation, OperationKind
from token_events.utils import get_path


EVENT_TYPE_8BID_24X24_MONOCHROME_CANCEL_SWAP = "8BID_24X24_MONOCHROME_CANCEL_SWAP"

SWAP_LIST_BIGMAP_ID = 128202
SWAP_LIST_BIGMAP_PATH = "swap_list"


class EightbidCancelSwap24x24MonochromeEvent(TokenEvent):
    swap_id: PgBigInt
    seller_address: TezosAddress
    artist_address: TezosAddress


def extract(operation: Operation) -> dict[str, Any]:
    swap_id = operation.get("parameter.value")
    diff = None
    # A null key would match any swap
    if swap_id is not None:
        diff = find_diff(
            operation.raw_diffs,
            SWAP_LIST_BIGMAP_ID,
            SWAP_LIST_BIGMAP_PATH,
            DiffAction.UPDATE_KEY.value,
            swap_id,
        )
    swap = diff.value if diff else None
    
    return {
        "fa2_address": get_path(swap, "nft_contract_address"),
        "token_id": get_path(swap, "nft_id"),
        "seller_address": get_path(swap, "seller"),
        "artist_address": get_path(swap, "creator"),
        "swap_id": swap_id,
    }


def create_handler(settings: Settings) -> Handler:
    marketplace = settings.eightbidou_24x24_monochrome_marketplace
    return Handler(
        source=OperationKind.TRANSACTION,
        type=EVENT_TYPE_8BID_24X24_MONOCHROME_CANCEL_SWAP,
        accept={
            "entrypoint": "cancelswap",
            "target_address": marketplace,
        },
        exec=extract,
        schema=EightbidCancelSwap24x24MonochromeEvent,
        meta=HandlerMeta(
            event_description=(
                f"A swap was canceled on 8bidou 24x24 monochrome "
                f"(marketplace contract: {marketplace})."
            ),
            event_fields=(
                "fa2_address", "token_id", "seller_address", "artist_address", "swap_id",
            ),
        ),
    )
