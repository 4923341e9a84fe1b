import io
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from typing import Literal

from dotenv import load_dotenv
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from fastmcp import FastMCP

load_dotenv()

from agent import WalletInsightsAgent
from cache import AnalysisCache
from chain_providers import EtherscanProvider
from ens_resolver import IdentityResolver
from errors import (
    AnalysisError,
    FetchError,
    MissingApiKeyError,
    NoDataError,
    ProviderRateLimitedError,
    RateLimitedError,
    ResolutionError,
)
from exports import to_csv, to_excel, to_json
from models import (
    AnalyzeRequest,
    AnalyzeResponse,
    HealthResponse,
    ResolveRequest,
    ResolveResponse,
)
from orchestrator import AnalysisOrchestrator
from rate_limiter import ANALYSIS_MIN_INTERVAL, RateLimiter
from wallet_analyzer import WalletAnalyzer

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("wallet_insights")

VERSION = "1.0.0"


# ── Error mapping ─────────────────────────────────────────────────────────────


def status_for(error: Exception) -> int:
    if isinstance(error, ResolutionError):
        return 422
    if isinstance(error, NoDataError):
        return 404
    if isinstance(error, RateLimitedError):
        return 429
    if isinstance(error, (ProviderRateLimitedError, MissingApiKeyError)):
        return 503
    return 502


def error_response(identifier: str, error: Exception, start: float) -> JSONResponse:
    elapsed = int((time.time() - start) * 1000)
    retry_after = error.retry_after_seconds if isinstance(error, RateLimitedError) else None
    body = AnalyzeResponse(
        success=False,
        identifier=identifier,
        error=str(error),
        error_code=getattr(error, "code", "unknown"),
        retry_after_seconds=retry_after,
        processing_time_ms=elapsed,
    )
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=status_for(error),
        content=body.model_dump(mode="json"),
        headers=headers,
    )


# ── MCP Server (mounted at /mcp) ─────────────────────────────────────────────

mcp = FastMCP(
    name="Ethereum Wallet Insights Agent",
    instructions=(
        "Analyzes Ethereum wallets. Provide a 0x address or an ENS name and get a "
        "transaction summary plus an AI behavioral analysis (summary, insights, "
        "behavior pattern, risk assessment, recommendations)."
    ),
)


@mcp.tool()
async def analyze_wallet_mcp(identifier: str) -> dict:
    """
    Analyze an Ethereum wallet by address or ENS name.

    Args:
        identifier: 0x address or ENS name (e.g. vitalik.eth).

    Returns:
        Wallet report with transaction summary and AI analysis, or an error.
    """
    try:
        report = await analyzer.analyze(identifier)
    except (ResolutionError, FetchError, AnalysisError) as e:
        return {"success": False, "error": str(e), "error_code": e.code}
    return report.model_dump(mode="json")


# ── Lifespan ──────────────────────────────────────────────────────────────────

analyzer: WalletAnalyzer | None = None


def build_analyzer() -> WalletAnalyzer:
    resolver = IdentityResolver()
    orchestrator = AnalysisOrchestrator(
        service=WalletInsightsAgent(),
        rate_limiter=RateLimiter(ANALYSIS_MIN_INTERVAL, name="ai_analysis"),
        cache=AnalysisCache(),
    )
    return WalletAnalyzer(resolver, EtherscanProvider(), orchestrator)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global analyzer
    analyzer = build_analyzer()
    print("  Ethereum Wallet Insights Agent ready")
    yield
    print("  Shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Ethereum Wallet Insights Agent",
    description=(
        "Resolves an Ethereum address or ENS name, fetches its recent transaction "
        "history from Etherscan and returns an AI-powered behavioral analysis.\n\n"
        "Exposes **REST** (`/analyze`, `/resolve`), **MCP** (`/mcp`), and **A2A** "
        "(`/a2a`) endpoints."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/mcp", mcp.http_app())


# ── Info ──────────────────────────────────────────────────────────────────────


@app.get("/", tags=["Info"])
def root(request: Request):
    base = str(request.base_url).rstrip("/")
    return {
        "name": "Ethereum Wallet Insights Agent",
        "version": VERSION,
        "endpoints": {
            "docs": f"{base}/docs",
            "health": f"{base}/health",
            "resolve": f"{base}/resolve",
            "analyze": f"{base}/analyze",
            "a2a_card": f"{base}/.well-known/agent.json",
            "a2a_tasks": f"{base}/a2a",
            "mcp": f"{base}/mcp",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Info"])
def health():
    return HealthResponse(status="ok", version=VERSION)


# ── Resolve ───────────────────────────────────────────────────────────────────


@app.post("/resolve", tags=["Wallet"])
async def resolve_identifier(req: ResolveRequest):
    """Resolve an address or ENS name to a checked address (plus reverse name)."""
    start = time.time()
    try:
        address = await analyzer.resolve(req.identifier)
    except ResolutionError as e:
        return error_response(req.identifier, e, start)
    ens_name = await analyzer.resolver.lookup_name(address)
    return ResolveResponse(identifier=req.identifier, address=address, ens_name=ens_name)


# ── Core: Analyze Wallet ──────────────────────────────────────────────────────


@app.post("/analyze", tags=["Wallet"])
async def analyze_wallet(
    req: AnalyzeRequest,
    format: Literal["json", "csv", "excel"] = Query(
        default="json",
        description="Output format: json (default) | csv | excel",
    ),
    download: bool = Query(
        default=False,
        description="With format=json, return the report as a file attachment",
    ),
):
    """
    Analyze an Ethereum wallet by address or ENS name.

    - Resolves ENS names (.eth, .xyz, .luxe, .kred, .art, .club)
    - Fetches the 100 most recent transactions from Etherscan
    - Returns the transaction summary and a structured AI analysis

    Repeated requests for an unchanged history are served from cache;
    new analyses are limited to one every 10 seconds.
    """
    start = time.time()

    try:
        report = await analyzer.analyze(req.identifier)
    except (ResolutionError, FetchError, AnalysisError) as e:
        logger.info("Analysis of %s failed: %s", req.identifier, e)
        return error_response(req.identifier, e, start)

    elapsed = int((time.time() - start) * 1000)
    short = report.address[:12]

    if format == "json" and download:
        return StreamingResponse(
            content=io.BytesIO(to_json(report)),
            media_type="application/json",
            headers={
                "Content-Disposition": f'attachment; filename="wallet_{short}_report.json"'
            },
        )

    if format == "csv":
        return StreamingResponse(
            content=io.BytesIO(to_csv(report)),
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="wallet_{short}_report.csv"'
            },
        )

    if format == "excel":
        return StreamingResponse(
            content=io.BytesIO(to_excel(report)),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={
                "Content-Disposition": f'attachment; filename="wallet_{short}_report.xlsx"'
            },
        )

    return AnalyzeResponse(
        success=True, identifier=req.identifier, report=report,
        processing_time_ms=elapsed,
    )


# ── A2A: Agent Card ──────────────────────────────────────────────────────────


@app.get("/.well-known/agent.json", tags=["A2A"])
def agent_card(request: Request):
    """Google A2A Agent Card: describes this agent's identity and capabilities."""
    base = str(request.base_url).rstrip("/")
    return JSONResponse({
        "name": "Ethereum Wallet Insights Agent",
        "description": (
            "Ethereum wallet analyzer. Provide an address or ENS name and receive a "
            "transaction summary with an AI-powered behavioral analysis."
        ),
        "url": base,
        "version": VERSION,
        "capabilities": {
            "streaming": False,
            "pushNotifications": False,
            "stateTransitionHistory": False,
        },
        "authentication": {"schemes": []},
        "defaultInputModes": ["application/json"],
        "defaultOutputModes": ["application/json"],
        "skills": [
            {
                "id": "analyze_wallet",
                "name": "Analyze Wallet",
                "description": (
                    "Analyze an Ethereum wallet's recent transactions. Returns counts, "
                    "ETH volumes, counterparties, activity frequency and an AI analysis "
                    "with insights, risk assessment and recommendations."
                ),
                "tags": ["web3", "ethereum", "ens", "wallet", "analytics"],
                "examples": [
                    "Analyze vitalik.eth",
                    "Analyze this wallet: 0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
                ],
                "inputModes": ["application/json"],
                "outputModes": ["application/json"],
            }
        ],
    })


# ── A2A: JSON-RPC Task Endpoint ──────────────────────────────────────────────


@app.post("/a2a", tags=["A2A"])
async def a2a_endpoint(request: Request):
    """
    Google A2A Protocol, JSON-RPC 2.0 task endpoint.

    Send a task whose text part is an address or ENS name and receive the report.
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({
            "jsonrpc": "2.0", "id": None,
            "error": {"code": -32700, "message": "Parse error"},
        })

    rpc_id = body.get("id")
    method = body.get("method", "")
    params = body.get("params", {})

    def rpc_error(code: int, message: str, data: dict | None = None):
        error = {"code": code, "message": message}
        if data:
            error["data"] = data
        return JSONResponse({"jsonrpc": "2.0", "id": rpc_id, "error": error})

    if method != "tasks/send":
        return rpc_error(-32601, f"Method '{method}' not supported. Use 'tasks/send'.")

    parts = params.get("message", {}).get("parts", [])
    text_part = next(
        (p.get("text", "") for p in parts if p.get("type") == "text"), None
    )

    if not text_part:
        return rpc_error(
            -32602,
            "No text part found. Send a 'text' part containing the address or ENS name.",
        )

    identifier = text_part.strip()

    try:
        report = await analyzer.analyze(identifier)
    except (ResolutionError, FetchError, AnalysisError) as e:
        return rpc_error(-32603, f"Analysis failed: {e}", {"error_code": e.code})

    task_id = params.get("id", str(uuid.uuid4()))

    return JSONResponse({
        "jsonrpc": "2.0",
        "id": rpc_id,
        "result": {
            "id": task_id,
            "status": {
                "state": "completed",
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            },
            "artifacts": [
                {
                    "name": "wallet_report",
                    "description": f"Wallet analysis for {identifier}",
                    "parts": [{"type": "data", "data": report.model_dump(mode="json")}],
                }
            ],
        },
    })


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("APP_ENV", "development") == "development",
    )
