"""
Verification Ledger

Short-lived, single-use codes tied to a user. Issuing a code replaces any
outstanding one for the same user; consuming a code deletes it.
"""
import asyncio
import datetime as dt
import logging
import secrets
import string
from typing import Any, Callable, List

from tortoise.transactions import in_transaction

from app.core.exceptions import InvalidOrExpiredCodeError, UserNotFoundError
from app.core.security import utc_now
from app.models.user import User
from app.models.verification import CODE_MAX_LENGTH, VerificationRecord
from app.services.credential_store import parse_user_id

logger = logging.getLogger("uvicorn.error")

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_code(length: int = 6) -> str:
    """Random [A-Z0-9] code of the given length."""
    if not 1 <= length <= CODE_MAX_LENGTH:
        raise ValueError(f"code length must be between 1 and {CODE_MAX_LENGTH}")
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


class VerificationLedger:

    def __init__(
        self,
        code_length: int = 6,
        ttl_minutes: int = 10,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        if not 1 <= code_length <= CODE_MAX_LENGTH:
            raise ValueError(f"code length must be between 1 and {CODE_MAX_LENGTH}")
        self.code_length = code_length
        self.ttl = dt.timedelta(minutes=ttl_minutes)
        self._clock = clock

    async def issue(self, user_id: Any) -> str:
        """
        Issue a fresh code for a user, invalidating every earlier one.

        The user row is locked for the duration of the transaction (on
        backends with SELECT ... FOR UPDATE) so two concurrent issues for the
        same user cannot both leave a record behind.
        """
        uid = parse_user_id(user_id)
        if uid is None:
            raise UserNotFoundError(user_id)

        code = generate_code(self.code_length)
        expires_at = self._clock() + self.ttl
        async with in_transaction():
            owner = await User.select_for_update().filter(id=uid).first()
            if owner is None:
                raise UserNotFoundError(user_id)
            await VerificationRecord.filter(user_id=uid).delete()
            await VerificationRecord.create(user_id=uid, code=code, expires_at=expires_at)
        return code

    async def consume(self, user_id: Any, code: Any) -> None:
        """
        Accept a code exactly once.

        Raises:
            InvalidOrExpiredCodeError: no matching record, record expired,
                or another request consumed it first
        """
        uid = parse_user_id(user_id)
        if uid is None or not isinstance(code, str):
            raise InvalidOrExpiredCodeError()
        code = code.strip()
        # Anything else (e.g. a signed reset token) can never match a stored code
        if len(code) != self.code_length:
            raise InvalidOrExpiredCodeError()

        async with in_transaction():
            record = await VerificationRecord.filter(user_id=uid, code=code).first()
            if record is None or self._clock() >= _as_utc(record.expires_at):
                raise InvalidOrExpiredCodeError()
            deleted = await VerificationRecord.filter(id=record.id).delete()
            if not deleted:
                raise InvalidOrExpiredCodeError()

    async def outstanding(self, user_id: Any) -> List[VerificationRecord]:
        uid = parse_user_id(user_id)
        if uid is None:
            return []
        return await VerificationRecord.filter(user_id=uid).order_by("-created_at")

    async def purge_expired(self) -> int:
        """Delete every record whose expiry has passed. Returns the number removed."""
        return await VerificationRecord.filter(expires_at__lte=self._clock()).delete()

    async def run_purge_loop(self, interval_seconds: float) -> None:
        """Background task: purge expired codes every `interval_seconds` until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                removed = await self.purge_expired()
                if removed:
                    logger.info("[verification] purged %d expired codes", removed)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("[verification] purge pass failed")
