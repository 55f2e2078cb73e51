"""
Authentication endpoints for the auth service.
Implements signup, email verification, login, logout, password reset and session checks.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.database import get_db
from ..schemas.auth_schemas import (
    SignupRequest, VerifyEmailRequest, LoginRequest,
    ForgotPasswordRequest, ResetPasswordRequest,
    AuthResponse, MessageResponse, CheckAuthResponse, ErrorResponse
)
from ..services.auth_service import AuthService
from .deps import get_auth_service, get_current_account_id

logger = structlog.get_logger()
router = APIRouter(tags=["authentication"])


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def signup(
    payload: SignupRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new account.

    - **name**: Display name
    - **email**: Email address (must be unique)
    - **password**: Password

    Sets the session cookie and mails a verification code.
    """
    result = await auth_service.signup(db, payload.name, payload.email, payload.password)
    result.session.cookie.apply(response)
    return AuthResponse(message="User created successfully", user=result.user)


@router.post(
    "/verify-email",
    response_model=AuthResponse,
    responses={400: {"model": ErrorResponse}}
)
async def verify_email(
    payload: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Confirm the email address with the mailed six-digit code."""
    user = await auth_service.verify_email(db, payload.code)
    return AuthResponse(message="Email verified successfully", user=user)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={400: {"model": ErrorResponse}}
)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate with email and password.

    Unverified accounts may log in; clients gate on ``user.isVerified``.
    """
    result = await auth_service.login(db, payload.email, payload.password)
    result.session.cookie.apply(response)
    return AuthResponse(message="Logged in successfully", user=result.user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    auth_service: AuthService = Depends(get_auth_service)
):
    auth_service.logout().apply(response)
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}}
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Mail a password reset link to the account owner."""
    await auth_service.forgot_password(db, payload.email)
    return MessageResponse(message="Password reset link sent to your email")


@router.post(
    "/reset-password/{token}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}}
)
async def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Replace the password using a reset token from the mailed link."""
    await auth_service.reset_password(db, token, payload.password)
    return MessageResponse(message="Password reset successful")


@router.get(
    "/check-auth",
    response_model=CheckAuthResponse,
    responses={401: {"model": ErrorResponse}}
)
async def check_auth(
    account_id: str = Depends(get_current_account_id),
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Return the account behind the session cookie."""
    user = await auth_service.check_auth(db, account_id)
    return CheckAuthResponse(user=user)
