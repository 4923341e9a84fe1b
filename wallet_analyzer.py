import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from chain_providers import PAGE_SIZE, ChainProvider
from ens_resolver import IdentityResolver
from errors import ProviderRateLimitedError, UnknownAnalysisError
from models import AnalysisResult, Transaction, WalletReport
from orchestrator import AnalysisOrchestrator
from summarizer import summarize
from utils import is_evm_address


logger = logging.getLogger(__name__)

# Caller-side retry policy for the analysis call
RETRY_ATTEMPTS = 1
RETRY_DELAY = 60.0

_RETRYABLE = (ProviderRateLimitedError, UnknownAnalysisError)


class WalletAnalyzer:
    """Runs the resolve -> fetch -> summarize -> analyze pipeline."""

    def __init__(
        self,
        resolver: IdentityResolver,
        source: ChainProvider,
        orchestrator: AnalysisOrchestrator,
        retry_attempts: int = RETRY_ATTEMPTS,
        retry_delay: Optional[float] = None,
    ):
        self.resolver = resolver
        self.source = source
        self.orchestrator = orchestrator
        self.retry_attempts = retry_attempts
        self.retry_delay = (
            retry_delay
            if retry_delay is not None
            else float(os.getenv("ANALYSIS_RETRY_DELAY", RETRY_DELAY))
        )

    async def resolve(self, identifier: str) -> str:
        return await self.resolver.resolve(identifier)

    async def get_transactions(self, address: str) -> list[Transaction]:
        return await self.source.fetch(address, page=1, page_size=PAGE_SIZE)

    async def analyze(self, identifier: str) -> WalletReport:
        address = await self.resolve(identifier)
        transactions = await self.get_transactions(address)
        analysis = await self._analyze_with_retry(transactions, address)

        ens_name = identifier.strip().lower() if not is_evm_address(identifier) else None
        if ens_name is None:
            ens_name = await self.resolver.lookup_name(address)

        return WalletReport(
            identifier=identifier,
            address=address,
            ens_name=ens_name,
            summary=summarize(transactions, address, page_size=PAGE_SIZE),
            analysis=analysis,
            generated_at=datetime.now(timezone.utc),
        )

    async def _analyze_with_retry(
        self, transactions: list[Transaction], address: str
    ) -> AnalysisResult:
        attempt = 0
        while True:
            try:
                return await self.orchestrator.analyze(transactions, address)
            except _RETRYABLE as e:
                if attempt >= self.retry_attempts:
                    raise
                attempt += 1
                logger.warning(
                    "Analysis failed (%s), retrying in %.0fs [%d/%d]",
                    e, self.retry_delay, attempt, self.retry_attempts,
                )
                await asyncio.sleep(self.retry_delay)
