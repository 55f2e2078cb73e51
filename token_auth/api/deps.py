"""
Dependency injection for FastAPI endpoints.
Provides the auth service and the authenticated account id.
"""
from fastapi import Request
import structlog

from ..services.auth_service import AuthService

logger = structlog.get_logger()


def get_auth_service(request: Request) -> AuthService:
    """The service instance wired by the application factory."""
    return request.app.state.auth_service


async def get_current_account_id(request: Request) -> str:
    """
    Resolve the account id from the session cookie.

    Args:
        request: FastAPI request object

    Returns:
        Account ID carried by the session token

    Raises:
        UnauthorizedError: If the cookie is missing or its token is invalid
    """
    token_service = get_auth_service(request).token_service
    token = request.cookies.get(token_service.cookie_name)
    account_id = token_service.resolve_account_id(token)
    request.state.account_id = account_id
    return account_id
