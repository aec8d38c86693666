"""
Handlers package - One module per event kind.

`build_default_handlers` assembles the table once at startup; the
registry receives it explicitly instead of modules registering
themselves on import.
"""

from typing import Optional

from token_events.config import Settings
from token_events.handlers import (
    eightbid_24x24_monochrome_cancel_swap,
    objkt_fulfill_ask_v3,
    objkt_retract_ask_v3,
)
from token_events.handlers.base import Handler, HandlerMeta
from token_events.handlers.schemas import SALE_INTERFACE, TokenEvent


HANDLER_MODULES = (
    objkt_retract_ask_v3,
    objkt_fulfill_ask_v3,
    eightbid_24x24_monochrome_cancel_swap,
)


def build_default_handlers(settings: Optional[Settings] = None) -> list[Handler]:
    """Instantiate every built-in handler for the given settings."""
    settings = settings or Settings()
    return [module.create_handler(settings) for module in HANDLER_MODULES]


__all__ = [
    "Handler",
    "HandlerMeta",
    "TokenEvent",
    "SALE_INTERFACE",
    "HANDLER_MODULES",
    "build_default_handlers",
]
