"""State shared by the client controllers.

The bearer token, toast messages and navigation are passed in explicitly as a
:class:`ClientContext` instead of being read from ambient storage.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

import httpx
import jwt

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong, please try again"


@dataclass
class Toast:
    title: str
    variant: str = "fail"


class Toaster:
    """Collects user-visible notifications."""

    def __init__(self):
        self.toasts: List[Toast] = []

    def toast(self, title: str, variant: str = "fail") -> Toast:
        t = Toast(title=title, variant=variant)
        self.toasts.append(t)
        logger.info("toast[%s]: %s", variant, title)
        return t

    @property
    def last(self) -> Optional[Toast]:
        return self.toasts[-1] if self.toasts else None


class Navigator:
    """Records where the client was sent and how often it reloaded."""

    def __init__(self, location: str = "/"):
        self.location = location
        self.history: List[str] = [location]
        self.reloads = 0

    def navigate(self, path: str) -> None:
        self.location = path
        self.history.append(path)

    def reload(self) -> None:
        self.reloads += 1


class Session:
    """Holds the caller's bearer token."""

    def __init__(self, token: Optional[str] = None):
        self.token = token

    def set_token(self, token: str) -> None:
        self.token = token

    def clear(self) -> None:
        self.token = None

    def claims(self) -> Optional[dict]:
        # Display logic only: the signature is not checked here, the API
        # authorizes every write itself.
        if not self.token:
            return None
        try:
            return jwt.decode(self.token, options={"verify_signature": False})
        except jwt.DecodeError:
            return None

    @property
    def username(self) -> Optional[str]:
        claims = self.claims()
        return claims.get("username") if claims else None

    def is_expired(self, now: Optional[float] = None) -> bool:
        claims = self.claims()
        if not claims or "exp" not in claims:
            return False
        return claims["exp"] <= (now if now is not None else time.time())

    def auth_headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


@dataclass
class ClientContext:
    session: Session = field(default_factory=Session)
    toaster: Toaster = field(default_factory=Toaster)
    navigator: Navigator = field(default_factory=Navigator)


@dataclass
class Result:
    """Outcome of a controller operation that talks to the API."""

    ok: bool
    data: Any = None
    error: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def failure(cls, exc: Exception, fallback: str = GENERIC_ERROR) -> "Result":
        status = None
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
        return cls(ok=False, error=error_message(exc, fallback), status=status)


def error_message(exc: Exception, fallback: str = GENERIC_ERROR) -> str:
    """Pick the message the API sent with a failed response, if any."""
    if not isinstance(exc, httpx.HTTPStatusError):
        return fallback
    try:
        body = exc.response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback
    message = body.get("detail", body.get("message"))
    if isinstance(message, list):
        first = message[0] if message else None
        if isinstance(first, dict):
            return first.get("msg") or fallback
        return str(first) if first else fallback
    if isinstance(message, str) and message:
        return message
    return fallback
