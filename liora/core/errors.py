"""
Error types for Liora.

Every error carries a category, a stable code and whether the failed
operation can be retried. The API layer maps these onto HTTP status codes.
"""

from enum import Enum


class ErrorType(str, Enum):
    """Broad error categories."""

    NETWORK = "network"
    VALIDATION = "validation"
    AUTH = "auth"
    SESSION = "session"
    STATE = "state"
    AGENT = "agent"
    RETRIEVAL = "retrieval"
    LLM = "llm"


class LioraError(Exception):
    """Base class for all Liora errors."""

    error_type: ErrorType = ErrorType.AGENT
    default_code: str = "LIORA_ERROR"
    retryable: bool = False

    def __init__(self, message: str, code: str | None = None, retryable: bool | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if retryable is not None:
            self.retryable = retryable

    def to_dict(self) -> dict:
        return {
            "type": self.error_type.value,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }


class SessionNotFoundError(LioraError, LookupError):
    """Raised when a session id is unknown."""

    error_type = ErrorType.SESSION
    default_code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class StateTransitionError(LioraError):
    """Raised when an invalid state transition is attempted."""

    error_type = ErrorType.STATE
    default_code = "INVALID_TRANSITION"


class InvalidRequestError(LioraError):
    """Raised when caller-supplied data fails validation."""

    error_type = ErrorType.VALIDATION
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NetworkError(LioraError):
    """Raised when an outbound call cannot reach its service."""

    error_type = ErrorType.NETWORK
    default_code = "NETWORK_ERROR"
    retryable = True


class AuthError(LioraError):
    """Raised when an outbound service rejects our credentials."""

    error_type = ErrorType.AUTH
    default_code = "AUTH_ERROR"


class AgentError(LioraError):
    """Raised by an agent that failed to complete its task."""

    error_type = ErrorType.AGENT
    default_code = "AGENT_ERROR"

    def __init__(self, agent_id: str, message: str):
        super().__init__(f"[{agent_id}] {message}")
        self.agent_id = agent_id


class RetrievalError(LioraError):
    """Raised when the RAG backend fails to return data."""

    error_type = ErrorType.RETRIEVAL
    default_code = "RETRIEVAL_ERROR"
    retryable = True


class LLMError(LioraError):
    """Raised when the LLM gateway fails or returns unusable output."""

    error_type = ErrorType.LLM
    default_code = "LLM_ERROR"
    retryable = True


def get_error_message(error: BaseException | str | None) -> str:
    """Get a human-readable message for any error value."""
    if error is None:
        return "An unexpected error occurred"
    if isinstance(error, str):
        return error
    if isinstance(error, LioraError):
        return error.message
    return str(error) or error.__class__.__name__


def is_retryable_error(error: BaseException) -> bool:
    """Whether the operation that raised this error may be retried."""
    if isinstance(error, LioraError):
        return error.retryable
    return isinstance(error, (TimeoutError, ConnectionError))
