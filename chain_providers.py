import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from errors import FetchError, MissingApiKeyError
from models import Transaction


logger = logging.getLogger(__name__)

# ── Etherscan V2 Unified API ──────────────────────────────────────────────────
# Single endpoint + chainid param. One API key covers all chains.

ETHERSCAN_V2_BASE = "https://api.etherscan.io/v2/api"
ETHEREUM_CHAIN_ID = 1

# Transactions per page; a full page means the history is truncated
PAGE_SIZE = 100

_NO_TRANSACTIONS = "No transactions found"


# ── Base Provider ─────────────────────────────────────────────────────────────


class ChainProvider(ABC):
    """Source of an address's transaction history, most recent first."""

    @abstractmethod
    async def fetch(
        self, address: str, page: int = 1, page_size: int = PAGE_SIZE
    ) -> list[Transaction]:
        ...


# ── Etherscan Provider ────────────────────────────────────────────────────────


class EtherscanProvider(ChainProvider):
    def __init__(
        self,
        api_key: Optional[str] = None,
        chain_id: Optional[int] = None,
        api_base: str = ETHERSCAN_V2_BASE,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("ETHERSCAN_API_KEY", "")
        self.chain_id = chain_id or int(os.getenv("ETHERSCAN_CHAIN_ID", ETHEREUM_CHAIN_ID))
        self.api_base = api_base
        self.timeout = timeout
        self._client = client

    # ── Etherscan API helpers ──────────────────────────────────────────────

    async def _api_call(self, client: httpx.AsyncClient, params: dict) -> dict:
        params["chainid"] = self.chain_id
        params["apikey"] = self.api_key
        try:
            resp = await client.get(self.api_base, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise FetchError(f"Etherscan request failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"Etherscan returned invalid JSON: {e}") from e

        if data.get("status") == "0":
            result = data.get("result")
            message = data.get("message") or ""
            if isinstance(result, str) and "API Key" in result:
                raise MissingApiKeyError(
                    "ETHERSCAN_API_KEY missing or invalid. "
                    "Get a free key at https://etherscan.io/apis"
                )
            if message.startswith(_NO_TRANSACTIONS):
                return {"status": "1", "result": []}
            raise FetchError(
                f"Etherscan error: {result if isinstance(result, str) else message}"
            )
        return data

    # ── Transaction History ────────────────────────────────────────────────

    async def fetch(
        self, address: str, page: int = 1, page_size: int = PAGE_SIZE
    ) -> list[Transaction]:
        if not self.api_key:
            raise MissingApiKeyError(
                "Etherscan API key is not configured. "
                "Add ETHERSCAN_API_KEY to your .env file."
            )

        params = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": page,
            "offset": page_size,
            "sort": "desc",
        }
        if self._client is not None:
            data = await self._api_call(self._client, params)
        else:
            async with httpx.AsyncClient() as client:
                data = await self._api_call(client, params)

        rows = data.get("result") or []
        if not isinstance(rows, list):
            raise FetchError("Etherscan returned an unexpected result payload")

        transactions: list[Transaction] = []
        for row in rows[:page_size]:
            try:
                transactions.append(Transaction.from_etherscan(row))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping malformed transaction row %s: %s", row.get("hash"), e)
        logger.info("Fetched %d transactions for %s", len(transactions), address)
        return transactions
