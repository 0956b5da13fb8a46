"""Authenticated session state shared across screens."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from insula_client.domain.errors import AuthError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """Identity of the signed-in user."""

    id: str
    email: str
    display_name: str | None = None


@dataclass(frozen=True)
class SessionState:
    """Snapshot delivered to subscribers."""

    token: str | None
    user: SessionUser | None

    @property
    def is_authenticated(self) -> bool:
        """Whether a bearer token is available."""
        return self.token is not None


SessionListener = Callable[[SessionState], None]


@dataclass
class SessionContext:
    """Holds the bearer token from sign-in until sign-out."""

    _state: SessionState = field(default_factory=lambda: SessionState(None, None))
    _listeners: list[SessionListener] = field(default_factory=list)

    @property
    def state(self) -> SessionState:
        """Current session snapshot."""
        return self._state

    @property
    def token(self) -> str | None:
        """Current bearer token, if signed in."""
        return self._state.token

    def require_token(self) -> str:
        """Return the bearer token or raise ``AuthError``."""
        if self._state.token is None:
            raise AuthError("No active session")
        return self._state.token

    def sign_in(self, token: str, user: SessionUser | None = None) -> None:
        """Start or refresh the session."""
        self._set(SessionState(token=token, user=user))

    def sign_out(self) -> None:
        """End the session."""
        self._set(SessionState(token=None, user=None))

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, state: SessionState) -> None:
        self._state = state
        _logger.info("Session changed: authenticated=%s", state.is_authenticated)
        for listener in list(self._listeners):
            listener(state)
