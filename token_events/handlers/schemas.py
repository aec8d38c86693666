"""
Pydantic schemas for emitted token events.

Field types mirror what the downstream store accepts: opid and other
bigint columns travel as decimal strings within the Postgres bigint
range, addresses are base58 Tezos addresses.
"""

import re
from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict


PG_BIGINT_MIN = -(2 ** 63)
PG_BIGINT_MAX = 2 ** 63 - 1

_BASE58 = "[1-9A-HJ-NP-Za-km-z]"
TEZOS_ADDRESS_RE = re.compile(rf"^(tz1|tz2|tz3|tz4|KT1){_BASE58}{{33}}$")
CONTRACT_ADDRESS_RE = re.compile(rf"^KT1{_BASE58}{{33}}$")
INTEGER_RE = re.compile(r"^-?\d+$")


SALE_INTERFACE = "SALE"


# =============================================================
# FIELD VALIDATORS
# =============================================================

def _tezos_address(value: str) -> str:
    if not TEZOS_ADDRESS_RE.match(value):
        raise ValueError(f"not a tezos address: {value!r}")
    return value


def _contract_address(value: str) -> str:
    if not CONTRACT_ADDRESS_RE.match(value):
        raise ValueError(f"not a contract address: {value!r}")
    return value


def _pg_bigint(value: str) -> str:
    if not INTEGER_RE.match(value):
        raise ValueError(f"not an integer string: {value!r}")
    if not PG_BIGINT_MIN <= int(value) <= PG_BIGINT_MAX:
        raise ValueError(f"out of bigint range: {value!r}")
    return value


def _positive_integer(value: int) -> int:
    if value < 1:
        raise ValueError(f"not a positive integer: {value!r}")
    return value


def _iso_date_string(value: str) -> str:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"not an ISO-8601 date: {value!r}")
    return value


TezosAddress = Annotated[str, AfterValidator(_tezos_address)]
ContractAddress = Annotated[str, AfterValidator(_contract_address)]
PgBigInt = Annotated[str, AfterValidator(_pg_bigint)]
PositiveInteger = Annotated[int, AfterValidator(_positive_integer)]
IsoDateString = Annotated[str, AfterValidator(_iso_date_string)]


# =============================================================
# EVENT SCHEMAS
# =============================================================

class TokenEvent(BaseModel):
    """Fields every token event carries."""
    model_config = ConfigDict(extra="forbid", frozen=True, strict=True)
    
    id: str
    type: str
    implements: Optional[str] = None
    opid: PgBigInt
    ophash: str
    timestamp: IsoDateString
    level: PositiveInteger
    fa2_address: ContractAddress
    token_id: str
