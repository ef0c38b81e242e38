from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

log = logging.getLogger("client.session")


class SessionEvent(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"


@dataclass(frozen=True)
class SessionUser:
    id: int
    name: str
    email: Optional[str] = None


SessionListener = Callable[[SessionEvent, "Session"], None]


class Session:
    """
    Authentication state for one client.

    Passed explicitly to every request builder. Login and logout transitions
    are announced to subscribers.
    """

    def __init__(self, token: Optional[str] = None, user: Optional[SessionUser] = None) -> None:
        self._token = token or None
        self._user = user if self._token else None
        self._listeners: list[SessionListener] = []

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[SessionUser]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def login(self, token: str, user: Optional[SessionUser] = None) -> None:
        if not token:
            raise ValueError("token must not be empty")
        self._token = token
        self._user = user
        self._notify(SessionEvent.LOGIN)

    def logout(self) -> None:
        if self._token is None:
            return
        self._token = None
        self._user = None
        self._notify(SessionEvent.LOGOUT)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; the returned callable removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception:
                log.exception("session.listener_fail event=%s", event.value)
