from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from cozinhe_comigo.app.domain.models import InternStatusCode
from cozinhe_comigo.client.errors import ApiError
from cozinhe_comigo.client.session import Session

log = logging.getLogger("client.retry")

T = TypeVar("T")

_AUTH_FAILURE_MARKER = "invalid or expired"


def is_auth_failure(error: ApiError) -> bool:
    """True when the server rejected the token itself, not the caller's rights."""
    if error.status_code is not None and error.status_code != InternStatusCode.UNAUTHORIZED.value:
        return False
    return _AUTH_FAILURE_MARKER in (error.message or "").lower()


class AuthRetryPolicy:
    """
    Two attempts at most: first with the session's token, then, if the token
    was rejected as invalid or expired, once more without it after logging
    the session out.
    """

    def __init__(self, classify: Callable[[ApiError], bool] = is_auth_failure) -> None:
        self._classify = classify

    def execute(self, send: Callable[[Optional[str]], T], session: Session) -> T:
        token = session.token
        try:
            return send(token)
        except ApiError as error:
            if token is None or not self._classify(error):
                raise
            log.info("auth.retry_anonymous status=%s", error.status)
            session.logout()
        return send(None)
