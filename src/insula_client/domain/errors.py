"""Error taxonomy shared by adapters and view models."""

SESSION_EXPIRED_MESSAGE = (
    "Tu sesión ha expirado. Por favor, inicia sesión nuevamente."
)
CONNECTION_FAILED_MESSAGE = (
    "No se pudo conectar con el servidor. "
    "Por favor, verifica tu conexión a internet."
)


class InsulaError(Exception):
    """Base error carrying a message suitable for display."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(InsulaError):
    """Input rejected, either client-side or by the backend with a 4xx."""


class AuthError(InsulaError):
    """Missing or expired bearer token."""


class NetworkError(InsulaError):
    """Transport-level failure; the backend was never reached."""


class ServerError(InsulaError):
    """Non-2xx backend response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ServerError):
    """The record was deleted or is not owned by the caller."""


def user_message(exc: InsulaError) -> str:
    """Map an error to the text shown inline on a screen."""
    if isinstance(exc, AuthError):
        return SESSION_EXPIRED_MESSAGE
    if isinstance(exc, NetworkError):
        return CONNECTION_FAILED_MESSAGE
    return exc.message
