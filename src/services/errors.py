"""Exception hierarchy for video acquisition and analysis."""


class InfringementFinderError(Exception):
    """Base class for all application errors."""


class SourceError(InfringementFinderError):
    """A retrieval source could not produce results."""


class AllInstancesFailedError(SourceError):
    """Every proxy instance failed for a single request."""

    def __init__(self, source_name: str, attempts: int, last_error: Exception | None = None):
        self.source_name = source_name
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"All {source_name} instances failed after {attempts} attempts{detail}")


class SourceParseError(SourceError):
    """A source returned output that does not match its expected schema."""


class AcquisitionError(InfringementFinderError):
    """Every configured source failed for one acquisition call."""

    def __init__(self, query: str, failures: dict[str, str]):
        self.query = query
        self.failures = failures
        details = "; ".join(f"{name}: {reason}" for name, reason in failures.items())
        super().__init__(f"All video sources failed for '{query}' ({details})")


class InvalidRequestError(InfringementFinderError):
    """A caller request is missing required fields."""


class KeywordResearchError(InfringementFinderError):
    """The keyword provider failed; always recovered with a fallback set."""
