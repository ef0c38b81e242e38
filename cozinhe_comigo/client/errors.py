from __future__ import annotations

from typing import Any, Optional


class ApiError(Exception):
    def __init__(
        self,
        status: int,
        message: str,
        status_code: Optional[str] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.status = status
        self.message = message
        self.status_code = status_code
        self.body = body


class ApiTimeoutError(ApiError):
    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(0, f"Network timeout after {timeout_seconds}s: {url}")
        self.url = url
        self.timeout_seconds = timeout_seconds
