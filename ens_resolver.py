import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional, Sequence

import httpx
from web3 import AsyncWeb3

from errors import EmptyInputError, InvalidFormatError, NameNotFoundError
from utils import is_ens_name, is_evm_address


logger = logging.getLogger(__name__)

ENS_API_URL = "https://api.ensideas.com/ens/resolve"

DEFAULT_RPC_URLS = [
    "https://eth-mainnet.g.alchemy.com/v2/demo",
    "https://ethereum.publicnode.com",
    "https://cloudflare-eth.com",
]

PROVIDER_TIMEOUT = 8.0


# ── Race helper ───────────────────────────────────────────────────────────────


def _discard_result(task: asyncio.Future) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Late provider call failed: %s", task.exception())


async def first_success(
    operations: Sequence[Callable[[], Awaitable[Optional[str]]]],
    timeout: float = PROVIDER_TIMEOUT,
    accept: Callable[[str], bool] = bool,
) -> Optional[str]:
    """Run ``operations`` in order, each raced against ``timeout``.

    Returns the first accepted result. A timeout, an exception or a rejected
    result moves on to the next operation. Calls that lose the race keep
    running and their outcome is discarded.
    """
    for i, op in enumerate(operations):
        task = asyncio.ensure_future(op())
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            logger.info("Provider %d timed out after %.1fs", i, timeout)
            task.add_done_callback(_discard_result)
            continue
        try:
            result = task.result()
        except Exception as e:
            logger.info("Provider %d failed: %s", i, e)
            continue
        if result and accept(result):
            return result
        logger.debug("Provider %d returned no usable result", i)
    return None


# ── Providers ─────────────────────────────────────────────────────────────────


class EnsApiLookup:
    """Primary lookup through the public ENS resolution API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = PROVIDER_TIMEOUT,
    ):
        self.base_url = (base_url or os.getenv("ENS_API_URL", ENS_API_URL)).rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get(self, client: httpx.AsyncClient, name: str) -> dict:
        resp = await client.get(f"{self.base_url}/{name}", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    async def resolve(self, name: str) -> Optional[str]:
        if self._client is not None:
            data = await self._get(self._client, name)
        else:
            async with httpx.AsyncClient() as client:
                data = await self._get(client, name)
        if not isinstance(data, dict):
            return None
        return data.get("address") or None


class Web3NameProvider:
    """ENS resolution over a JSON-RPC endpoint."""

    def __init__(self, rpc_url: str):
        self.rpc_url = rpc_url
        self._w3: Optional[AsyncWeb3] = None

    @property
    def w3(self) -> AsyncWeb3:
        if self._w3 is None:
            self._w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        return self._w3

    async def resolve(self, name: str) -> Optional[str]:
        address = await self.w3.ens.address(name)
        return str(address) if address else None

    async def reverse(self, address: str) -> Optional[str]:
        return await self.w3.ens.name(AsyncWeb3.to_checksum_address(address))

    def __repr__(self) -> str:
        return f"Web3NameProvider({self.rpc_url!r})"


def default_rpc_urls() -> list[str]:
    raw = os.getenv("ETH_RPC_URLS", "")
    urls = [u.strip() for u in raw.split(",") if u.strip()]
    return urls or list(DEFAULT_RPC_URLS)


# ── Resolver ──────────────────────────────────────────────────────────────────


class IdentityResolver:
    """Turns user input (address or ENS name) into a checked address."""

    def __init__(
        self,
        lookup: Optional[EnsApiLookup] = None,
        providers: Optional[Sequence[Web3NameProvider]] = None,
        timeout: float = PROVIDER_TIMEOUT,
    ):
        self.lookup = lookup or EnsApiLookup()
        if providers is None:
            providers = [Web3NameProvider(url) for url in default_rpc_urls()]
        self.providers = list(providers)
        self.timeout = timeout

    async def resolve(self, identifier: str) -> str:
        value = (identifier or "").strip()
        if not value:
            raise EmptyInputError()

        if is_evm_address(value):
            return value

        if not is_ens_name(value):
            raise InvalidFormatError(value)

        name = value.lower()
        address = await self._resolve_primary(name)
        if address:
            return address

        address = await first_success(
            [lambda p=p: p.resolve(name) for p in self.providers],
            timeout=self.timeout,
            accept=is_evm_address,
        )
        if address:
            logger.info("Resolved %s via fallback provider", name)
            return address

        raise NameNotFoundError(name)

    async def _resolve_primary(self, name: str) -> Optional[str]:
        try:
            address = await self.lookup.resolve(name)
        except (httpx.HTTPError, ValueError) as e:
            logger.info("ENS API lookup failed for %s: %s", name, e)
            return None
        if address and is_evm_address(address):
            logger.info("Resolved %s via ENS API", name)
            return address
        return None

    async def lookup_name(self, address: str) -> Optional[str]:
        """Reverse-resolve an address to its primary ENS name, if any."""
        if not is_evm_address(address):
            return None
        return await first_success(
            [lambda p=p: p.reverse(address) for p in self.providers],
            timeout=self.timeout,
        )
