"""
Typed failure conditions for the activity search core.

Every condition carries a machine-readable ``code`` and a ``retryable`` flag
so the transport layer can map it to a user-facing message without knowing
where it was raised.

Propagation rules:
- SearchProviderError is absorbed by the agent loop and shown to the model
- StorageUnavailable on cache writes is logged, the fresh result still returns
- DuplicateFingerprint on cache writes falls back to re-reading the row
- Everything else aborts the request and reaches the caller
"""


class ActivitySearchError(Exception):
    """Base class for all activity search failures."""

    code: str = "activity_search_error"
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Serialize for SSE error events and JSON error bodies."""
        return {
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }


class SearchProviderError(ActivitySearchError):
    """The web-search provider answered with a non-2xx status or a bad body."""

    code = "search_provider_error"
    retryable = True

    def __init__(self, status_code: int | None, body: str):
        super().__init__(f"Search provider error ({status_code}): {body[:500]}")
        self.status_code = status_code
        self.body = body


class SearchUnavailable(ActivitySearchError):
    """The web-search provider could not be reached at all."""

    code = "search_unavailable"
    retryable = True


class OperationTimeout(ActivitySearchError):
    """An external call or the whole agent run exceeded its time budget."""

    code = "timeout"
    retryable = True

    def __init__(self, operation: str, seconds: float):
        super().__init__(f"{operation} timed out after {seconds:g}s")
        self.operation = operation
        self.seconds = seconds


class ModelProviderError(ActivitySearchError):
    """The generative model API rejected or failed a request."""

    code = "model_provider_error"
    retryable = True


class MalformedAgentOutput(ActivitySearchError):
    """The agent's final text does not match the recommendations schema."""

    code = "malformed_agent_output"
    retryable = True


class AgentLoopExceeded(ActivitySearchError):
    """The agent kept calling tools past the iteration bound."""

    code = "agent_loop_exceeded"
    retryable = True

    def __init__(self, max_iterations: int):
        super().__init__(
            f"Agent exceeded maximum iterations ({max_iterations}) without a final answer"
        )
        self.max_iterations = max_iterations


class StorageUnavailable(ActivitySearchError):
    """The cache database could not be reached or failed the request."""

    code = "storage_unavailable"
    retryable = True


class DuplicateFingerprint(ActivitySearchError):
    """A cache row with the same fingerprint already exists."""

    code = "duplicate_fingerprint"
    retryable = False

    def __init__(self, cache_key: str):
        super().__init__(f"Cache entry already exists for key {cache_key[:12]}...")
        self.cache_key = cache_key
