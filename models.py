from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Direction = Literal["incoming", "outgoing", "self", "unrelated"]


# ── Core Data Models ──────────────────────────────────────────────────────────


class Transaction(BaseModel):
    """One normal transaction row from the block explorer (values in wei)."""

    model_config = ConfigDict(frozen=True)

    block_number: int = 0
    timestamp: int
    hash: str
    from_address: str
    to_address: str = ""
    value: int = 0
    gas: int = 0
    gas_price: int = 0
    gas_used: int = 0
    is_error: bool = False
    function_name: Optional[str] = None

    @property
    def success(self) -> bool:
        return not self.is_error

    @classmethod
    def from_etherscan(cls, data: dict[str, Any]) -> "Transaction":
        """Create a Transaction from an Etherscan ``txlist`` row (all strings)."""
        fn = data.get("functionName") or ""
        return cls(
            block_number=int(data.get("blockNumber") or 0),
            timestamp=int(data.get("timeStamp") or 0),
            hash=data.get("hash", ""),
            from_address=data.get("from", ""),
            to_address=data.get("to") or "",
            value=int(data.get("value") or 0),
            gas=int(data.get("gas") or 0),
            gas_price=int(data.get("gasPrice") or 0),
            gas_used=int(data.get("gasUsed") or 0),
            is_error=data.get("isError", "0") == "1",
            function_name=fn.split("(")[0] if fn else None,
        )


class RecentTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    direction: Direction
    value: Decimal
    counterparty: str
    timestamp: datetime
    hash: str


class TransactionSummary(BaseModel):
    """Aggregate profile of one address over a fetched transaction sample."""

    model_config = ConfigDict(frozen=True)

    address: str
    total_transactions: int = 0
    outgoing_count: int = 0
    incoming_count: int = 0
    total_sent: Decimal = Decimal(0)
    total_received: Decimal = Decimal(0)
    average_transaction_value: Decimal = Decimal(0)
    unique_counterparties: int = 0
    first_transaction_date: Optional[datetime] = None
    last_transaction_date: Optional[datetime] = None
    transaction_frequency: str
    recent_transactions: list[RecentTransaction] = []
    is_limited_sample: bool = False
    sample_size: int = 0

    @property
    def net_flow(self) -> Decimal:
        return self.total_received - self.total_sent


class AnalysisResult(BaseModel):
    """Structured analysis returned by the language model."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: str
    insights: list[str]
    behavior_pattern: str = Field(validation_alias="behaviorPattern")
    risk_assessment: str = Field(validation_alias="riskAssessment")
    recommendations: list[str]


class WalletReport(BaseModel):
    identifier: str
    address: str
    ens_name: Optional[str] = None
    summary: TransactionSummary
    analysis: AnalysisResult
    generated_at: datetime


# ── API Models ────────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str
    version: str


class ResolveRequest(BaseModel):
    identifier: str = Field(..., description="Ethereum address (0x...) or ENS name")


class ResolveResponse(BaseModel):
    identifier: str
    address: str
    ens_name: Optional[str] = None


class AnalyzeRequest(BaseModel):
    identifier: str = Field(..., description="Ethereum address (0x...) or ENS name")


class AnalyzeResponse(BaseModel):
    success: bool
    identifier: str
    error: Optional[str] = None
    error_code: Optional[str] = None
    retry_after_seconds: Optional[int] = None
    report: Optional[WalletReport] = None
    processing_time_ms: Optional[int] = None
