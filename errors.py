"""Error taxonomy for resolution, fetching and analysis."""

from typing import Optional


# ── Resolution ────────────────────────────────────────────────────────────────


class ResolutionError(Exception):
    code = "resolution_error"


class EmptyInputError(ResolutionError):
    code = "empty_input"

    def __init__(self, message: str = "Please enter a wallet address or ENS name."):
        super().__init__(message)


class InvalidFormatError(ResolutionError):
    code = "invalid_format"

    def __init__(self, identifier: str):
        super().__init__(
            f"'{identifier}' is neither a valid Ethereum address "
            "nor a supported ENS name (.eth, .xyz, .luxe, .kred, .art, .club)."
        )
        self.identifier = identifier


class NameNotFoundError(ResolutionError):
    code = "name_not_found"

    def __init__(self, name: str):
        super().__init__(f"ENS name '{name}' not found or does not resolve to an address.")
        self.name = name


# ── Transaction fetch ─────────────────────────────────────────────────────────


class FetchError(Exception):
    code = "fetch_failed"


class MissingApiKeyError(FetchError):
    code = "missing_api_key"


# ── Analysis ──────────────────────────────────────────────────────────────────


class AnalysisError(Exception):
    code = "analysis_error"


class NoDataError(AnalysisError):
    code = "no_data"

    def __init__(self, message: str = "No transactions to analyze for this wallet."):
        super().__init__(message)


class RateLimitedError(AnalysisError):
    """Local rate limit; the caller may retry after ``retry_after`` seconds."""

    code = "rate_limited"

    def __init__(self, retry_after: float):
        self.retry_after = max(0.0, retry_after)
        super().__init__(
            f"Rate limit: please wait {self.retry_after_seconds} seconds "
            "before making another analysis request."
        )

    @property
    def retry_after_seconds(self) -> int:
        whole = int(self.retry_after)
        return whole if whole == self.retry_after else whole + 1


class ProviderRateLimitedError(AnalysisError):
    code = "provider_rate_limited"

    def __init__(self, message: str = "Rate limit exceeded. Please wait before making another request."):
        super().__init__(message)


class UnauthorizedError(AnalysisError):
    code = "unauthorized"

    def __init__(self, message: str = "Invalid AI provider API key. Please check your configuration."):
        super().__init__(message)


class MalformedResponseError(AnalysisError):
    code = "malformed_response"


class UnknownAnalysisError(AnalysisError):
    code = "unknown"


# ── Provider transport ────────────────────────────────────────────────────────


class AnalysisServiceError(Exception):
    """Raised by the AI agent when the provider call itself fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
