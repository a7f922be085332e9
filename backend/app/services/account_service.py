"""
Account lifecycle

Registration, email confirmation, login and the two password reset flows.

States per user: UNVERIFIED (is_active=False) -> ACTIVE (is_active=True).
Password reset is not a stored state; it lives entirely in the verification
ledger (code flow, canonical) or in a signed reset token (link flow). The two
flows never accept each other's credential.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tortoise.transactions import in_transaction

from app.core.exceptions import (
    InactiveAccountError,
    InternalError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    InvalidResetTokenError,
    InvalidTokenError,
    MissingFieldsError,
    UnknownEmailError,
)
from app.core.security import (
    TokenIssuer,
    TokenKind,
    hash_password,
    secret_fingerprint,
    utc_now,
    verify_password,
)
from app.models.user import User
from app.services.credential_store import CredentialStore, normalize_email
from app.services.notifier_base import Message, Notifier
from app.services.notifier_factory import get_notifier
from app.services.verification_ledger import VerificationLedger

logger = logging.getLogger("uvicorn.error")

RESET_LINK_PATH = "/api/v1/auth/reset-password/token/"


@dataclass
class RegistrationResult:
    user_id: str
    verification_code: Optional[str] = None  # only filled in dummy mode


@dataclass
class LoginResult:
    user: User
    token: str


@dataclass
class ResetRequestResult:
    verification_code: Optional[str] = None  # code flow, dummy mode only
    reset_link: Optional[str] = None         # link flow, dummy mode only


def _require(**values: Any) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise MissingFieldsError(missing)


def split_name(name: str) -> tuple[Optional[str], Optional[str]]:
    parts = (name or "").split()
    if not parts:
        return None, None
    return parts[0], (" ".join(parts[1:]) or None)


class AccountService:

    def __init__(
        self,
        store: CredentialStore,
        ledger: VerificationLedger,
        tokens: TokenIssuer,
        notifier: Notifier,
        public_base_url: str = "http://localhost:8000",
        require_active_login: bool = False,
        expose_verification_codes: bool = False,
    ):
        self.store = store
        self.ledger = ledger
        self.tokens = tokens
        self.notifier = notifier
        self.public_base_url = public_base_url.rstrip("/")
        self.require_active_login = require_active_login
        self.expose_verification_codes = expose_verification_codes
        self._dummy_hash: Optional[str] = None

    # ---- registration & confirmation ----

    async def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> RegistrationResult:
        """
        Create an UNVERIFIED user and mail a verification code.

        A failed mail dispatch does not fail the registration; the user and
        the verification record stay in place and a new code can be requested
        through forgot-password.
        """
        name = (name or "").strip()
        email = normalize_email(email)
        _require(name=name, email=email, password=(password or "").strip())
        first_name, last_name = split_name(name)
        # User row and its first code are committed together or not at all
        async with in_transaction():
            user = await self.store.create_user(
                email=email,
                password=password,
                name=name,
                first_name=first_name,
                last_name=last_name,
            )
            code = await self.ledger.issue(user.id)

        if user.needs_verification_notice:
            try:
                await self._send_code(user, code, purpose="confirm your email address")
            except Exception:
                logger.exception("[register] verification mail to user %s failed", user.id)
            finally:
                user.needs_verification_notice = False

        return RegistrationResult(
            user_id=str(user.id),
            verification_code=code if self.expose_verification_codes else None,
        )

    async def confirm_email(self, user_id: Any, code: Optional[str]) -> User:
        """Consume a verification code and activate the account."""
        _require(token=code)
        await self.ledger.consume(user_id, code)
        return await self.store.set_active(user_id, True)

    # ---- login ----

    async def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        _require(email=email, password=password)
        user = await self.store.find_by_email(email)
        if user is None:
            # Burn a hash comparison so unknown emails take as long as wrong passwords
            verify_password(password, self._get_dummy_hash())
            raise InvalidCredentialsError()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        if self.require_active_login and not user.is_active:
            raise InactiveAccountError()

        await self.store.touch_last_login(user)
        token = self.tokens.issue(user, TokenKind.SESSION)
        return LoginResult(user=user, token=token)

    async def authenticate(self, token: str) -> User:
        """
        Resolve a session bearer token to a fresh user record.

        Raises:
            InvalidTokenError / ExpiredTokenError: from token verification
            InvalidTokenError: token subject no longer exists
        """
        payload = self.tokens.verify(token, kind=TokenKind.SESSION)
        user = await self.store.find_by_id(payload.get("sub"))
        if user is None:
            raise InvalidTokenError("unauthorized, user not found")
        return user

    # ---- password reset: code flow (canonical) ----

    async def forgot_password(self, email: Optional[str]) -> ResetRequestResult:
        """
        Issue a new verification code and mail it.

        Note: unknown emails are reported as such (UnknownEmailError).
        """
        user = await self._user_for_reset(email)
        code = await self.ledger.issue(user.id)
        await self._dispatch_or_fail(user, lambda: self._send_code(user, code, purpose="reset your password"))
        return ResetRequestResult(verification_code=code if self.expose_verification_codes else None)

    async def reset_password(self, email: Optional[str], code: Optional[str], new_password: Optional[str]) -> User:
        """
        Replace the password after consuming a valid code for the account.

        An unknown email fails exactly like a wrong code.
        """
        _require(token=code, password=new_password)
        user = await self.store.find_by_email(email)
        if user is None:
            raise InvalidOrExpiredCodeError()
        await self.ledger.consume(user.id, code)
        return await self.store.replace_secret(user.id, new_password)

    # ---- password reset: link flow (variant) ----

    async def forgot_password_link(self, email: Optional[str]) -> ResetRequestResult:
        """
        Mail a link embedding a short-lived reset token.

        The token carries a fingerprint of the current password hash, so it
        stops working once the password has been changed.
        """
        user = await self._user_for_reset(email)
        token = self.tokens.issue(
            user,
            TokenKind.RESET,
            extra_claims={"pwf": secret_fingerprint(user.password_hash)},
        )
        link = f"{self.public_base_url}{RESET_LINK_PATH}{token}"
        message = Message(
            to=user.email,
            subject="Password reset link",
            body=(
                f"Use this link to reset your password: {link}\n"
                "The link expires in a few minutes. If you did not ask for it, ignore this email."
            ),
        )
        await self._dispatch_or_fail(user, lambda: self.notifier.send(message))
        return ResetRequestResult(reset_link=link if self.expose_verification_codes else None)

    async def reset_password_with_token(self, token: Optional[str], new_password: Optional[str]) -> User:
        """
        Replace the password using a reset token.

        Raises:
            ExpiredTokenError: token lapsed
            InvalidResetTokenError: bad/foreign token, session token, or already used
        """
        _require(password=new_password)
        try:
            payload = self.tokens.verify(token, kind=TokenKind.RESET)
        except InvalidTokenError:
            raise InvalidResetTokenError()

        user = await self.store.find_by_id(payload.get("sub"))
        if user is None or payload.get("pwf") != secret_fingerprint(user.password_hash):
            raise InvalidResetTokenError()
        return await self.store.replace_secret(user.id, new_password)

    # ---- authenticated ----

    async def change_password(self, user: User, new_password: Optional[str]) -> User:
        _require(newPassword=new_password)
        return await self.store.replace_secret(user.id, new_password)

    # ---- helpers ----

    async def _user_for_reset(self, email: Optional[str]) -> User:
        _require(email=email)
        user = await self.store.find_by_email(email)
        if user is None:
            raise UnknownEmailError()
        return user

    async def _send_code(self, user: User, code: str, purpose: str) -> None:
        minutes = int(self.ledger.ttl.total_seconds() // 60)
        await self.notifier.send(Message(
            to=user.email,
            subject="Your verification code",
            body=(
                f"Your verification code is {code}. Please do not share this with anyone.\n"
                f"Use it to {purpose}. It expires in {minutes} minutes."
            ),
        ))

    async def _dispatch_or_fail(self, user: User, send: Callable) -> None:
        try:
            await send()
        except Exception as e:
            logger.exception("[mail] dispatch to user %s failed", user.id)
            raise InternalError("Failed to send email") from e

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = hash_password("not-a-real-password")
        return self._dummy_hash


def build_account_service(
    settings,
    notifier: Optional[Notifier] = None,
    clock: Callable[[], dt.datetime] = utc_now,
) -> AccountService:
    """Wire the lifecycle service from settings. Called once at startup."""
    if notifier is None:
        notifier = get_notifier(settings)

    return AccountService(
        store=CredentialStore(),
        ledger=VerificationLedger(
            code_length=settings.verification_code_length,
            ttl_minutes=settings.verification_code_ttl_minutes,
            clock=clock,
        ),
        tokens=TokenIssuer(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_alg,
            session_ttl_minutes=settings.session_token_expire_minutes,
            reset_ttl_minutes=settings.reset_token_expire_minutes,
            clock=clock,
        ),
        notifier=notifier,
        public_base_url=settings.public_base_url,
        require_active_login=settings.require_active_login,
        expose_verification_codes=settings.expose_verification_codes,
    )
