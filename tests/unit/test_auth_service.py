"""
Tests for the authentication services.
Tests AuthService and the flow services behind it with mocked collaborators.
"""
import pytest
import threading
from dataclasses import replace
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from token_auth.core.exceptions import (
    ConflictError,
    ConcurrentUpdateError,
    InfrastructureError,
    InvalidCredentialsError,
    InvalidOrExpiredError,
    NotFoundError,
    UnauthorizedError,
    ValidationError
)
from token_auth.core.security import SecurityService
from token_auth.interfaces.notification_interface import NotificationTemplate
from token_auth.schemas.account_schemas import AccountResponse
from token_auth.services.auth.base import MAX_SAVE_ATTEMPTS
from token_auth.services.auth_service import AuthService

from tests.factories import AccountRecordFactory, DEFAULT_PASSWORD


@pytest.fixture
def mock_dependencies():
    """Create mock dependencies for AuthService."""
    return {
        'account_repository': AsyncMock(),
        'notification_dispatcher': AsyncMock()
    }


@pytest.fixture
def auth_service(mock_dependencies, token_service, clock):
    """Create AuthService instance with mocked dependencies."""
    return AuthService(**mock_dependencies, token_service=token_service, clock=clock)


def saved_as_is(db, account):
    return replace(account, version=account.version + 1)


@pytest.mark.unit
@pytest.mark.auth
class TestSignup:
    """Test cases for signup."""

    async def test_signup_success(self, auth_service, mock_dependencies, mock_db, clock):
        """Test successful registration."""
        # Arrange
        repository = mock_dependencies['account_repository']
        repository.get_by_email.return_value = None
        repository.get_by_verification_token.return_value = None

        async def create(db, **fields):
            return AccountRecordFactory(**fields)

        repository.create.side_effect = create

        # Act
        result = await auth_service.signup(mock_db, "Ana", "Ana@Example.com ", DEFAULT_PASSWORD)

        # Assert
        assert isinstance(result.user, AccountResponse)
        assert result.user.email == "ana@example.com"
        assert result.user.is_verified is False
        assert SecurityService.decode_session_token(result.session.token) == result.user.id

        fields = repository.create.call_args.kwargs
        assert fields["name"] == "Ana"
        assert SecurityService.verify_password(DEFAULT_PASSWORD, fields["password_hash"])
        assert fields["verification_token"].isdigit() and len(fields["verification_token"]) == 6
        assert fields["verification_token_expires_at"] == clock.now + timedelta(hours=24)

        mock_dependencies['notification_dispatcher'].send.assert_awaited_once()
        template, recipient, context = mock_dependencies['notification_dispatcher'].send.call_args.args
        assert template == NotificationTemplate.VERIFICATION_EMAIL
        assert recipient == "ana@example.com"
        assert context["verification_code"] == fields["verification_token"]

    @pytest.mark.parametrize("name,email,password", [
        ("", "ana@example.com", "pw123456"),
        ("Ana", None, "pw123456"),
        ("Ana", "ana@example.com", "   "),
    ])
    async def test_signup_missing_fields(self, auth_service, mock_dependencies, mock_db, name, email, password):
        with pytest.raises(ValidationError) as exc_info:
            await auth_service.signup(mock_db, name, email, password)

        assert exc_info.value.message == "All fields are required"
        mock_dependencies['account_repository'].create.assert_not_called()

    async def test_signup_existing_email(self, auth_service, mock_dependencies, mock_db):
        mock_dependencies['account_repository'].get_by_email.return_value = AccountRecordFactory()

        with pytest.raises(ConflictError) as exc_info:
            await auth_service.signup(mock_db, "Ana", "ana@example.com", "pw123456")

        assert exc_info.value.message == "User already exists"
        mock_dependencies['account_repository'].create.assert_not_called()
        mock_dependencies['notification_dispatcher'].send.assert_not_called()

    async def test_signup_dispatch_failure_surfaces(self, auth_service, mock_dependencies, mock_db):
        repository = mock_dependencies['account_repository']
        repository.get_by_email.return_value = None
        repository.create.return_value = AccountRecordFactory(email="ana@example.com")
        repository.get_by_verification_token.return_value = None
        mock_dependencies['notification_dispatcher'].send.side_effect = InfrastructureError(
            "Failed to send verification email: provider returned 500"
        )

        with pytest.raises(InfrastructureError):
            await auth_service.signup(mock_db, "Ana", "ana@example.com", "pw123456")

        repository.create.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.auth
class TestVerifyEmail:
    """Test cases for email verification."""

    async def test_verify_email_success(self, auth_service, mock_dependencies, mock_db, clock):
        account = AccountRecordFactory()
        repository = mock_dependencies['account_repository']
        repository.get_by_verification_token.return_value = account
        repository.save.side_effect = saved_as_is

        user = await auth_service.verify_email(mock_db, account.verification_token)

        assert user.is_verified is True
        repository.get_by_verification_token.assert_awaited_once_with(
            mock_db, account.verification_token, clock.now
        )
        saved = repository.save.call_args.args[1]
        assert saved.is_verified is True
        assert saved.verification_token is None
        assert saved.verification_token_expires_at is None

        template, recipient, context = mock_dependencies['notification_dispatcher'].send.call_args.args
        assert template == NotificationTemplate.WELCOME_EMAIL
        assert recipient == account.email
        assert context["name"] == account.name

    @pytest.mark.parametrize("code", ["000000", "", None])
    async def test_verify_email_unknown_code(self, auth_service, mock_dependencies, mock_db, code):
        mock_dependencies['account_repository'].get_by_verification_token.return_value = None

        with pytest.raises(InvalidOrExpiredError) as exc_info:
            await auth_service.verify_email(mock_db, code)

        assert exc_info.value.message == "Invalid or expired verification code"
        mock_dependencies['notification_dispatcher'].send.assert_not_called()

    async def test_verify_email_lost_race(self, auth_service, mock_dependencies, mock_db):
        """A concurrent verifier consumed the code between lookup and save."""
        account = AccountRecordFactory()
        repository = mock_dependencies['account_repository']
        repository.get_by_verification_token.side_effect = [account, None]
        repository.save.side_effect = ConcurrentUpdateError()

        with pytest.raises(InvalidOrExpiredError):
            await auth_service.verify_email(mock_db, account.verification_token)

        mock_dependencies['notification_dispatcher'].send.assert_not_called()


@pytest.mark.unit
@pytest.mark.auth
class TestLogin:
    """Test cases for login."""

    async def test_login_success(self, auth_service, mock_dependencies, mock_db, clock):
        account = AccountRecordFactory(verified=True, email="ana@example.com")
        repository = mock_dependencies['account_repository']
        repository.get_by_email.return_value = account
        repository.save.side_effect = saved_as_is

        result = await auth_service.login(mock_db, "ana@example.com", DEFAULT_PASSWORD)

        assert result.user.id == account.id
        assert result.user.last_login == clock.now
        assert SecurityService.decode_session_token(result.session.token) == account.id

    async def test_login_unverified_account_is_allowed(self, auth_service, mock_dependencies, mock_db):
        account = AccountRecordFactory(email="ana@example.com")
        repository = mock_dependencies['account_repository']
        repository.get_by_email.return_value = account
        repository.save.side_effect = saved_as_is

        result = await auth_service.login(mock_db, "ana@example.com", DEFAULT_PASSWORD)

        assert result.user.is_verified is False

    async def test_login_wrong_password_and_unknown_email_look_alike(self, auth_service, mock_dependencies, mock_db):
        repository = mock_dependencies['account_repository']

        repository.get_by_email.return_value = AccountRecordFactory(email="ana@example.com")
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await auth_service.login(mock_db, "ana@example.com", "wrong")

        repository.get_by_email.return_value = None
        with patch.object(SecurityService, "burn_password_check") as burn:
            with pytest.raises(InvalidCredentialsError) as unknown_email:
                await auth_service.login(mock_db, "nobody@example.com", "wrong")

        burn.assert_called_once_with("wrong")
        assert type(wrong_password.value) is type(unknown_email.value)
        assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"
        repository.save.assert_not_called()

    async def test_login_retries_after_concurrent_update(self, auth_service, mock_dependencies, mock_db, clock):
        account = AccountRecordFactory(email="ana@example.com")
        fresh = replace(account, version=2, is_verified=True)
        repository = mock_dependencies['account_repository']
        repository.get_by_email.return_value = account
        repository.get_by_id.return_value = fresh
        repository.save.side_effect = [ConcurrentUpdateError(), replace(fresh, version=3, last_login=clock.now)]

        result = await auth_service.login(mock_db, "ana@example.com", DEFAULT_PASSWORD)

        assert result.user.is_verified is True
        assert repository.save.await_count == 2
        retried = repository.save.call_args_list[1].args[1]
        assert retried.version == 2
        assert retried.last_login == clock.now

    async def test_login_gives_up_after_repeated_conflicts(self, auth_service, mock_dependencies, mock_db):
        account = AccountRecordFactory(email="ana@example.com")
        repository = mock_dependencies['account_repository']
        repository.get_by_email.return_value = account
        repository.get_by_id.return_value = account
        repository.save.side_effect = ConcurrentUpdateError()

        with pytest.raises(ConcurrentUpdateError):
            await auth_service.login(mock_db, "ana@example.com", DEFAULT_PASSWORD)

        assert repository.save.await_count == MAX_SAVE_ATTEMPTS

    async def test_password_check_runs_off_the_event_loop(self, auth_service, mock_dependencies, mock_db):
        mock_dependencies['account_repository'].get_by_email.return_value = AccountRecordFactory(email="ana@example.com")
        threads = []

        def record_thread(plain_password, hashed_password):
            threads.append(threading.get_ident())
            return False

        with patch.object(SecurityService, "verify_password", side_effect=record_thread):
            with pytest.raises(InvalidCredentialsError):
                await auth_service.login(mock_db, "ana@example.com", "wrong")

        assert len(threads) == 1
        assert threads[0] != threading.get_ident()

    def test_logout_clears_cookie(self, auth_service):
        directives = auth_service.logout()

        assert directives.key == "token"
        assert directives.max_age == 0


@pytest.mark.unit
@pytest.mark.auth
class TestPasswordReset:
    """Test cases for forgot-password and reset-password."""

    async def test_forgot_password_unknown_email(self, auth_service, mock_dependencies, mock_db):
        mock_dependencies['account_repository'].get_by_email.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await auth_service.forgot_password(mock_db, "nobody@example.com")

        assert exc_info.value.message == "User not found"
        assert exc_info.value.status_code == 400

    async def test_forgot_password_sets_token_and_mails_link(self, auth_service, mock_dependencies, mock_db, clock):
        account = AccountRecordFactory(email="ana@example.com")
        repository = mock_dependencies['account_repository']
        repository.get_by_email.return_value = account
        repository.save.side_effect = saved_as_is

        await auth_service.forgot_password(mock_db, "ana@example.com")

        saved = repository.save.call_args.args[1]
        assert len(saved.reset_password_token) == 40
        assert saved.reset_password_expires_at == clock.now + timedelta(hours=1)

        template, recipient, context = mock_dependencies['notification_dispatcher'].send.call_args.args
        assert template == NotificationTemplate.PASSWORD_RESET_REQUEST
        assert recipient == "ana@example.com"
        assert context["reset_url"] == f"http://localhost:5173/reset-password/{saved.reset_password_token}"

    @pytest.mark.parametrize("password", ["", "   ", None])
    async def test_reset_password_blank_password(self, auth_service, mock_dependencies, mock_db, password):
        with pytest.raises(ValidationError) as exc_info:
            await auth_service.reset_password(mock_db, "a" * 40, password)

        assert exc_info.value.message == "Password is required"
        mock_dependencies['account_repository'].get_by_reset_token.assert_not_called()

    async def test_reset_password_unknown_token(self, auth_service, mock_dependencies, mock_db):
        mock_dependencies['account_repository'].get_by_reset_token.return_value = None

        with pytest.raises(InvalidOrExpiredError) as exc_info:
            await auth_service.reset_password(mock_db, "a" * 40, "new-password")

        assert exc_info.value.message == "Invalid or expired reset token"

    async def test_reset_password_replaces_hash_and_clears_token(self, auth_service, mock_dependencies, mock_db):
        account = AccountRecordFactory(reset_pending=True)
        repository = mock_dependencies['account_repository']
        repository.get_by_reset_token.return_value = account
        repository.save.side_effect = saved_as_is

        await auth_service.reset_password(mock_db, account.reset_password_token, "new-password")

        saved = repository.save.call_args.args[1]
        assert SecurityService.verify_password("new-password", saved.password_hash)
        assert not SecurityService.verify_password(DEFAULT_PASSWORD, saved.password_hash)
        assert saved.reset_password_token is None
        assert saved.reset_password_expires_at is None
        assert mock_dependencies['notification_dispatcher'].send.call_args.args[0] == (
            NotificationTemplate.PASSWORD_RESET_SUCCESS
        )


@pytest.mark.unit
@pytest.mark.auth
class TestCheckAuth:

    async def test_check_auth_returns_view(self, auth_service, mock_dependencies, mock_db):
        account = AccountRecordFactory()
        mock_dependencies['account_repository'].get_by_id.return_value = account

        user = await auth_service.check_auth(mock_db, account.id)

        assert user.id == account.id
        dumped = user.model_dump(by_alias=True)
        assert "isVerified" in dumped
        assert "password_hash" not in dumped
        assert "passwordHash" not in dumped

    async def test_check_auth_deleted_account(self, auth_service, mock_dependencies, mock_db):
        mock_dependencies['account_repository'].get_by_id.return_value = None

        with pytest.raises(UnauthorizedError) as exc_info:
            await auth_service.check_auth(mock_db, "missing")

        assert exc_info.value.message == "User not found"
        assert exc_info.value.status_code == 401


@pytest.mark.unit
@pytest.mark.auth
class TestLifecycleWithClock:
    """Expiry behaviour against the in-memory store."""

    async def test_verification_code_expires(self, memory_auth_service, notifications, clock, mock_db):
        await memory_auth_service.signup(mock_db, "Ana", "ana@example.com", "pw123456")
        code = notifications.last(NotificationTemplate.VERIFICATION_EMAIL)["verification_code"]

        clock.advance(hours=24)

        with pytest.raises(InvalidOrExpiredError) as expired:
            await memory_auth_service.verify_email(mock_db, code)
        with pytest.raises(InvalidOrExpiredError) as wrong:
            await memory_auth_service.verify_email(mock_db, "000000" if code != "000000" else "111111")
        assert expired.value.message == wrong.value.message

    async def test_reset_token_expires_after_an_hour(self, memory_auth_service, notifications, clock, mock_db):
        await memory_auth_service.signup(mock_db, "Ana", "ana@example.com", "pw123456")
        await memory_auth_service.forgot_password(mock_db, "ana@example.com")
        token = notifications.last(NotificationTemplate.PASSWORD_RESET_REQUEST)["reset_url"].rsplit("/", 1)[-1]

        clock.advance(hours=1)

        with pytest.raises(InvalidOrExpiredError):
            await memory_auth_service.reset_password(mock_db, token, "new-password")

    async def test_newer_reset_request_replaces_older_token(self, memory_auth_service, notifications, mock_db):
        await memory_auth_service.signup(mock_db, "Ana", "ana@example.com", "pw123456")
        await memory_auth_service.forgot_password(mock_db, "ana@example.com")
        first = notifications.last(NotificationTemplate.PASSWORD_RESET_REQUEST)["reset_url"].rsplit("/", 1)[-1]
        await memory_auth_service.forgot_password(mock_db, "ana@example.com")
        second = notifications.last(NotificationTemplate.PASSWORD_RESET_REQUEST)["reset_url"].rsplit("/", 1)[-1]

        with pytest.raises(InvalidOrExpiredError):
            await memory_auth_service.reset_password(mock_db, first, "new-password")
        await memory_auth_service.reset_password(mock_db, second, "new-password")

        result = await memory_auth_service.login(mock_db, "ana@example.com", "new-password")
        assert result.user.email == "ana@example.com"


@pytest.mark.unit
@pytest.mark.auth
class TestVerificationCodeAllocation:
    """A code still pending for one account is never issued to another."""

    async def test_pending_code_is_drawn_again(self, memory_auth_service, memory_repository, notifications, mock_db):
        codes = ["123456", "123456", "654321"]
        with patch.object(SecurityService, "generate_verification_code", side_effect=codes):
            await memory_auth_service.signup(mock_db, "Ana", "ana@example.com", "pw123456")
            await memory_auth_service.signup(mock_db, "Bo", "bo@example.com", "pw123456")

        assert notifications.sent[1][2]["verification_code"] == "654321"

        user = await memory_auth_service.verify_email(mock_db, "123456")

        assert user.email == "ana@example.com"
        bo = await memory_repository.get_by_email(mock_db, "bo@example.com")
        assert bo.is_verified is False

    async def test_signup_fails_when_every_draw_is_taken(self, memory_auth_service, memory_repository, mock_db):
        with patch.object(SecurityService, "generate_verification_code", return_value="123456"):
            await memory_auth_service.signup(mock_db, "Ana", "ana@example.com", "pw123456")

            with pytest.raises(InfrastructureError):
                await memory_auth_service.signup(mock_db, "Bo", "bo@example.com", "pw123456")

        assert await memory_repository.get_by_email(mock_db, "bo@example.com") is None

    async def test_expired_code_is_free_again(self, memory_auth_service, clock, mock_db):
        with patch.object(SecurityService, "generate_verification_code", return_value="123456"):
            await memory_auth_service.signup(mock_db, "Ana", "ana@example.com", "pw123456")
            clock.advance(hours=24)
            await memory_auth_service.signup(mock_db, "Bo", "bo@example.com", "pw123456")

        user = await memory_auth_service.verify_email(mock_db, "123456")

        assert user.email == "bo@example.com"
