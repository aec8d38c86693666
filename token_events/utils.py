"""
Shared helpers for handlers: fail-closed path lookup, currency and royalty helpers.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union


_MISSING = object()


def get_path(data: Any, path: Union[str, Iterable[str]], default: Any = None) -> Any:
    """
    Resolve a dotted path inside nested mappings/lists.
    
    Never raises: a missing key, an out of range index or a
    non-container along the way yields `default`.
    
    Args:
        data: Root object (usually a raw TzKT record)
        path: Dotted string ("parameter.value.ask_id") or sequence of segments
        default: Returned when the path does not resolve
        
    Returns:
        Resolved value or default
    """
    segments = path.split(".") if isinstance(path, str) else list(path)
    current = data
    
    for segment in segments:
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        elif isinstance(current, (list, tuple)) and segment.lstrip("-").isdigit():
            index = int(segment)
            current = current[index] if -len(current) <= index < len(current) else _MISSING
        else:
            return default
        
        if current is _MISSING:
            return default
    
    return current


# ─────────────────────────────────────────────────────────────
# Currencies
# ─────────────────────────────────────────────────────────────

TEZ_LIKE_CURRENCIES = ("tez", "otez")


def extract_objkt_currency(
    currency: Any,
    mappings: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Map an objkt currency variant to a symbol.
    
    `{"tez": {}}` -> "tez"; `{"fa12": "KT1..."}` -> mapped symbol, or the
    token address itself when no mapping is known. Anything else -> None.
    """
    if not isinstance(currency, Mapping):
        return None
    
    if "tez" in currency:
        return "tez"
    
    if "fa12" in currency:
        address = currency["fa12"]
        if mappings and address in mappings:
            return mappings[address]
        return address
    
    return None


def is_tez_like_currency(currency: Any) -> bool:
    """Missing currency counts as tez."""
    if not currency:
        return True
    return currency in TEZ_LIKE_CURRENCIES


def is_tez_like_currency_strict(currency: Any) -> bool:
    return currency in TEZ_LIKE_CURRENCIES


# ─────────────────────────────────────────────────────────────
# Royalties
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RoyaltyShares:
    """Royalty split: amount per address, scaled by 10**decimals."""
    decimals: int
    shares: dict[str, str] = field(default_factory=dict)
    
    def to_dict(self) -> dict[str, Any]:
        return {"decimals": self.decimals, "shares": dict(self.shares)}


def splits_to_royalty_shares(
    splits: Iterable[Mapping[str, str]],
    total_royalties: str,
) -> RoyaltyShares:
    """Convert per-mille splits of a total royalty into absolute shares."""
    total = int(total_royalties)
    shares = {
        split["address"]: str(total * int(split["pct"]))
        for split in splits
    }
    return RoyaltyShares(decimals=6, shares=shares)


def royalties_to_royalty_shares(
    receiver_address: str,
    total_royalties: str,
    decimals: int = 3,
) -> RoyaltyShares:
    """Single receiver gets the whole royalty."""
    return RoyaltyShares(decimals=decimals, shares={receiver_address: total_royalties})
