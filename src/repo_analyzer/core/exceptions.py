"""Exception hierarchy for Repo Analyzer API.

Every error carries the HTTP status it maps to, so the API layer can turn any
of them into a JSON response without knowing where it was raised.
"""


class RepoAnalyzerError(Exception):
    """Base exception for Repo Analyzer API."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(RepoAnalyzerError):
    """Raised when the shared API key is missing or does not match."""

    status_code = 401


class ValidationError(RepoAnalyzerError):
    """Raised when a request is missing data or carries malformed data."""

    status_code = 400


class NotFoundError(RepoAnalyzerError):
    """Raised when a route or a job does not exist."""

    status_code = 404


class MethodNotAllowedError(RepoAnalyzerError):
    """Raised when a known path is called with the wrong verb."""

    status_code = 405


class RequestTimeoutError(RepoAnalyzerError):
    """Raised when reading the request payload takes too long."""

    status_code = 408


class PayloadTooLargeError(RepoAnalyzerError):
    """Raised when an uploaded file exceeds the size limit."""

    status_code = 413


class UpstreamError(RepoAnalyzerError):
    """Raised when a backing service fails."""

    status_code = 500


class StoreError(UpstreamError):
    """Raised when an object store write fails."""
    pass


class UpstreamTimeoutError(UpstreamError):
    """Raised when a backing service does not answer in time."""

    status_code = 504


class InvalidTransitionError(RepoAnalyzerError):
    """Raised when a job update would break the job state machine."""

    status_code = 409


class AnalysisError(RepoAnalyzerError):
    """Raised by an analyzer when a repository cannot be analyzed."""
    pass
