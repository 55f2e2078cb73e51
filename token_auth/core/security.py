from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
import secrets
import structlog

from .config import settings
from .exceptions import InfrastructureError, UnauthorizedError, ValidationError

logger = structlog.get_logger()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
)

SESSION_TOKEN_TYPE = "session"
VERIFICATION_CODE_MIN = 100000
VERIFICATION_CODE_MAX = 999999
RESET_TOKEN_BYTES = 20

_dummy_password_hash: Optional[str] = None


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the representation used for every stored timestamp."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SecurityService:
    """Handles password hashing and secret generation"""

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Generate a salted bcrypt hash"""
        if not password:
            raise ValidationError("Password is required")
        try:
            hashed = pwd_context.hash(password)
        except Exception as e:
            logger.error("Password hashing failed", error=str(e))
            raise InfrastructureError("Password hashing failed") from e
        if not hashed:
            raise InfrastructureError("Password hashing failed")
        return hashed

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        if not plain_password or not hashed_password:
            return False
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning("Stored password hash could not be verified", error=str(e))
            return False

    @staticmethod
    def burn_password_check(plain_password: str) -> None:
        """Spend the same bcrypt work as a real verification against a throwaway hash."""
        global _dummy_password_hash
        if _dummy_password_hash is None:
            _dummy_password_hash = pwd_context.hash(secrets.token_urlsafe(16))
        SecurityService.verify_password(plain_password or "x", _dummy_password_hash)

    @staticmethod
    def generate_verification_code() -> str:
        """Six-digit numeric email verification code"""
        span = VERIFICATION_CODE_MAX - VERIFICATION_CODE_MIN + 1
        return str(VERIFICATION_CODE_MIN + secrets.randbelow(span))

    @staticmethod
    def generate_reset_token() -> str:
        """Random password reset token, 40 hex characters"""
        return secrets.token_hex(RESET_TOKEN_BYTES)

    @staticmethod
    def create_session_token(
        account_id: str,
        expires_delta: Optional[timedelta] = None,
        secret_key: Optional[str] = None
    ) -> str:
        """Create signed session JWT bound to the account"""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(days=settings.SESSION_TOKEN_EXPIRE_DAYS))

        to_encode = {
            "sub": str(account_id),
            "type": SESSION_TOKEN_TYPE,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(to_encode, secret_key or settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_session_token(token: str, secret_key: Optional[str] = None) -> str:
        """Verify a session JWT and return the account id it carries"""
        try:
            payload = jwt.decode(token, secret_key or settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError as e:
            logger.debug("Session token rejected", error=str(e))
            raise UnauthorizedError("Unauthorized - invalid token")

        account_id = payload.get("sub")
        if payload.get("type") != SESSION_TOKEN_TYPE or not account_id:
            raise UnauthorizedError("Unauthorized - invalid token")
        return account_id
