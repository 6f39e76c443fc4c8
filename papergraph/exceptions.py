"""
PaperGraph Exceptions - Custom exception hierarchy for the extraction pipeline.

All exceptions inherit from PaperGraphError for easy catching of library-specific errors.
"""


class PaperGraphError(Exception):
    """
    Base exception for all PaperGraph errors.

    Example:
        try:
            provider = get_provider("openai")
        except PaperGraphError as e:
            print(f"PaperGraph error: {e}")
    """
    pass


class ConfigError(PaperGraphError):
    """
    Invalid or incomplete configuration.

    Raised when:
    - Provider name is unknown
    - No API key is available for the selected provider
    """
    pass


class ProviderError(PaperGraphError):
    """
    Error communicating with the model provider.

    Raised when:
    - API key is rejected
    - Rate limit exceeded (after retries)
    - Network/connection error or timeout
    - Provider returns an unexpected response
    """
    pass


class ResponseParseError(ProviderError):
    """
    The completion text did not contain parseable JSON.

    The pipeline has no schema guarantee from the model, but it does need
    a JSON object to sanitize. A completion without one fails its stage.
    """
    pass


class StageError(PaperGraphError):
    """
    A pipeline stage failed.

    Wraps the underlying provider or parser error with the stage number
    and name, e.g. "Stage 1 (Classification) failed: Rate limit exceeded".
    """

    def __init__(self, stage: int, stage_name: str, cause: BaseException):
        self.stage = stage
        self.stage_name = stage_name
        self.cause = cause
        super().__init__(f"Stage {stage} ({stage_name}) failed: {cause}")


class ExtractionCancelledError(PaperGraphError):
    """
    The extraction was cancelled through its cancellation token.

    Kept separate from ProviderError so callers can tell a user-initiated
    cancel apart from a failing model call.
    """

    def __init__(self, message: str = "Extraction cancelled"):
        super().__init__(message)


class GraphFinalizedError(PaperGraphError):
    """
    Attempt to modify an extraction graph that already reached a terminal
    status (completed or failed).
    """
    pass
