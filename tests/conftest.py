"""Shared pytest fixtures."""

from __future__ import annotations

import itertools
import json
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from models import AnalysisResult, Transaction, WalletReport
from summarizer import summarize


SUBJECT = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"
OTHER = "0x1111111111111111111111111111111111111111"
THIRD = "0x2222222222222222222222222222222222222222"

ANALYSIS_PAYLOAD: dict[str, Any] = {
    "summary": "Active personal wallet.",
    "insights": ["Mostly outgoing transfers", "Few counterparties"],
    "behaviorPattern": "Regular small transfers.",
    "riskAssessment": "Low risk.",
    "recommendations": ["Use a hardware wallet"],
}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def subject() -> str:
    return SUBJECT


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tx_factory() -> Callable[..., Transaction]:
    """Build Transactions with unique hashes and easy overrides."""
    counter = itertools.count(1)

    def _build(**overrides: Any) -> Transaction:
        n = next(counter)
        fields: dict[str, Any] = {
            "block_number": 18_000_000 + n,
            "timestamp": 1_700_000_000,
            "hash": f"0x{n:064x}",
            "from_address": OTHER,
            "to_address": SUBJECT,
            "value": 10**18,
        }
        fields.update(overrides)
        return Transaction(**fields)

    return _build


@pytest.fixture
def analysis_json() -> str:
    return json.dumps(ANALYSIS_PAYLOAD)


@pytest.fixture
def analysis_result() -> AnalysisResult:
    return AnalysisResult.model_validate(ANALYSIS_PAYLOAD)


@pytest.fixture
def wallet_report(
    tx_factory: Callable[..., Transaction], analysis_result: AnalysisResult
) -> WalletReport:
    txs = [
        tx_factory(timestamp=1_700_086_400, from_address=SUBJECT, to_address=OTHER),
        tx_factory(timestamp=1_700_000_000),
    ]
    return WalletReport(
        identifier="example.eth",
        address=SUBJECT,
        ens_name="example.eth",
        summary=summarize(txs, SUBJECT),
        analysis=analysis_result,
        generated_at=datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc),
    )
