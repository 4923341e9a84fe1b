import re
from datetime import datetime, timezone
from decimal import Decimal


EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Label followed by one of the supported naming-service suffixes
ENS_SUFFIXES = ("eth", "xyz", "luxe", "kred", "art", "club")
ENS_NAME_RE = re.compile(
    r"^[a-zA-Z0-9-]+\.(" + "|".join(ENS_SUFFIXES) + r")$", re.IGNORECASE
)

WEI_PER_ETHER = 10**18


def is_evm_address(value: str) -> bool:
    """0x + 40 hex chars."""
    return bool(EVM_ADDRESS_RE.match(value.strip()))


def is_ens_name(value: str) -> bool:
    return bool(ENS_NAME_RE.match(value.strip()))


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address equality; empty values never match."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


def short_address(address: str, chars: int = 6) -> str:
    """Truncate: 0x1234...abcd"""
    if len(address) <= chars * 2 + 3:
        return address
    return f"{address[:chars]}...{address[-chars:]}"


def wei_to_ether(wei: int | str) -> Decimal:
    return Decimal(int(wei)) / Decimal(WEI_PER_ETHER)


def from_timestamp(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)
