import asyncio
import json
import logging
from typing import Optional, Protocol, Sequence

from pydantic import ValidationError

from cache import AnalysisCache, CacheKey
from chain_providers import PAGE_SIZE
from errors import (
    AnalysisServiceError,
    MalformedResponseError,
    NoDataError,
    ProviderRateLimitedError,
    RateLimitedError,
    UnauthorizedError,
    UnknownAnalysisError,
)
from models import AnalysisResult, Transaction
from prompts import SYSTEM_PROMPT, build_analysis_prompt
from rate_limiter import ANALYSIS_MIN_INTERVAL, RateLimiter
from summarizer import fingerprint, summarize
from utils import is_evm_address


logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 1500
TEMPERATURE = 0.3


class AnalysisService(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = ...,
        temperature: float = ...,
    ) -> Optional[str]:
        ...


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_analysis(content: Optional[str]) -> AnalysisResult:
    if not content or not content.strip():
        raise MalformedResponseError("No analysis received from the AI provider.")
    try:
        payload = json.loads(_strip_code_fence(content))
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"AI response is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedResponseError("AI response is not a JSON object.")
    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(f"AI response is missing required fields: {e}") from e


def map_service_error(error: AnalysisServiceError) -> Exception:
    if error.status_code == 429:
        return ProviderRateLimitedError()
    if error.status_code == 401:
        return UnauthorizedError()
    return UnknownAnalysisError(f"Failed to analyze wallet with AI: {error}")


class AnalysisOrchestrator:
    """Guards the analysis call with caching, deduplication and rate limiting."""

    def __init__(
        self,
        service: AnalysisService,
        rate_limiter: Optional[RateLimiter] = None,
        cache: Optional[AnalysisCache] = None,
        page_size: int = PAGE_SIZE,
    ):
        self.service = service
        self.rate_limiter = rate_limiter or RateLimiter(ANALYSIS_MIN_INTERVAL, name="ai_analysis")
        self.cache = cache if cache is not None else AnalysisCache()
        self.page_size = page_size
        self._in_flight: dict[CacheKey, asyncio.Future] = {}

    @staticmethod
    def cache_key(transactions: Sequence[Transaction], address: str) -> CacheKey:
        return address.lower(), fingerprint(transactions)

    async def analyze(
        self, transactions: Sequence[Transaction], address: str
    ) -> AnalysisResult:
        if not transactions:
            raise NoDataError()
        if not is_evm_address(address):
            raise ValueError(f"Unrecognized address format: {address}")

        key = self.cache_key(transactions, address)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Analysis cache hit for %s", address)
            return cached

        pending = self._in_flight.get(key)
        if pending is not None:
            logger.info("Joining in-flight analysis for %s", address)
            return await asyncio.shield(pending)

        if not self.rate_limiter.can_proceed():
            wait = self.rate_limiter.time_until_next_allowed()
            logger.info("Analysis rate limited for %.1fs", wait)
            raise RateLimitedError(wait)

        self.rate_limiter.record_invocation()

        task = asyncio.ensure_future(self._run(key, list(transactions), address))
        self._in_flight[key] = task
        task.add_done_callback(lambda t: self._finish(key, t))
        return await asyncio.shield(task)

    def _finish(self, key: CacheKey, task: asyncio.Future) -> None:
        self._in_flight.pop(key, None)
        # Mark the outcome retrieved even if every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _run(
        self, key: CacheKey, transactions: list[Transaction], address: str
    ) -> AnalysisResult:
        summary = summarize(transactions, address, page_size=self.page_size)
        prompt = build_analysis_prompt(summary)

        try:
            content = await self.service.complete(
                SYSTEM_PROMPT,
                prompt,
                max_tokens=MAX_OUTPUT_TOKENS,
                temperature=TEMPERATURE,
            )
        except AnalysisServiceError as e:
            raise map_service_error(e) from e
        except Exception as e:
            raise UnknownAnalysisError(f"Failed to analyze wallet with AI: {e}") from e

        result = parse_analysis(content)
        self.cache.put(key, result)
        logger.info("Analysis complete for %s (%d transactions)", address, len(transactions))
        return result
