"""
Exception taxonomy for template fetching.

Source-level errors carry the source name so the orchestrator can attribute
failures to a circuit breaker. RateLimitError carries the server-requested
wait in seconds.
"""
from typing import Dict, Optional


class TemplateFetchError(Exception):
    """Base class for every error raised by the template pipeline"""


class SourceFetchError(TemplateFetchError):
    """A single source could not be fetched"""

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source
        self.message = message

    def __str__(self):
        return f"[{self.source}] {self.message}"


class SourceTimeoutError(SourceFetchError):
    pass


class SourceConnectionError(SourceFetchError):
    pass


class SourceHTTPError(SourceFetchError):
    def __init__(self, source: str, status_code: int, message: Optional[str] = None):
        super().__init__(source, message or f"HTTP {status_code}")
        self.status_code = status_code


class RateLimitError(SourceHTTPError):
    """HTTP 429 or equivalent; retry_after is the wait in seconds"""

    def __init__(self, source: str, retry_after: Optional[float] = None, message: Optional[str] = None):
        super().__init__(source, 429, message or f"HTTP 429 Too Many Requests (retry-after: {retry_after})")
        self.retry_after = retry_after


class UnknownSourceError(TemplateFetchError):
    def __init__(self, source: str):
        super().__init__(f"Unknown template source: {source}")
        self.source = source


class AllSourcesFailedError(TemplateFetchError):
    """Every attempted source failed or was skipped by its circuit breaker"""

    def __init__(self, errors: Dict[str, str]):
        summary = ", ".join(f"{name}: {err}" for name, err in errors.items()) or "no sources attempted"
        super().__init__(f"All template sources failed ({summary})")
        self.errors = errors


class FetchTimeoutError(TemplateFetchError):
    def __init__(self, timeout: float):
        super().__init__(f"Template fetch timed out after {timeout}s")
        self.timeout = timeout
