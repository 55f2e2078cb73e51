"""
Token service focused solely on session issuance.
Wraps session token signing and the cookie the transport must set for it.
"""

from dataclasses import dataclass, asdict
from datetime import timedelta
from typing import Optional
from starlette.responses import Response
import structlog

from ...core.config import Settings, get_settings
from ...core.exceptions import UnauthorizedError
from ...core.security import SecurityService

logger = structlog.get_logger()


@dataclass(frozen=True)
class CookieDirectives:
    """How the transport must set (or clear) the session cookie."""

    key: str
    value: str
    max_age: int
    httponly: bool = True
    secure: bool = False
    samesite: str = "strict"
    path: str = "/"

    def apply(self, response: Response) -> None:
        response.set_cookie(**asdict(self))


@dataclass(frozen=True)
class IssuedSession:
    token: str
    cookie: CookieDirectives


class TokenService:
    """Service responsible for establishing browser sessions."""

    def __init__(
        self,
        cookie_name: Optional[str] = None,
        lifetime: Optional[timedelta] = None,
        secure_cookies: Optional[bool] = None,
        settings: Optional[Settings] = None
    ):
        settings = settings or get_settings()
        self.cookie_name = cookie_name or settings.SESSION_COOKIE_NAME
        self.lifetime = lifetime or timedelta(days=settings.SESSION_TOKEN_EXPIRE_DAYS)
        self.secure_cookies = settings.is_production if secure_cookies is None else secure_cookies
        self.secret_key = settings.SECRET_KEY

    def issue_session(self, account_id: str) -> IssuedSession:
        """
        Sign a session token for ``account_id`` and describe its cookie.

        Args:
            account_id: Account the session belongs to

        Returns:
            Token plus cookie directives
        """
        token = SecurityService.create_session_token(
            account_id, expires_delta=self.lifetime, secret_key=self.secret_key
        )
        cookie = CookieDirectives(
            key=self.cookie_name,
            value=token,
            max_age=int(self.lifetime.total_seconds()),
            secure=self.secure_cookies
        )
        logger.debug("Session issued", account_id=account_id)
        return IssuedSession(token=token, cookie=cookie)

    def clear_session(self) -> CookieDirectives:
        """Directives that expire the session cookie on the client."""
        return CookieDirectives(
            key=self.cookie_name,
            value="",
            max_age=0,
            secure=self.secure_cookies
        )

    def resolve_account_id(self, token: Optional[str]) -> str:
        """
        Validate a presented session token.

        Raises:
            UnauthorizedError: If the token is missing, tampered with or expired
        """
        if not token:
            raise UnauthorizedError("Unauthorized - no token provided")
        return SecurityService.decode_session_token(token, secret_key=self.secret_key)
