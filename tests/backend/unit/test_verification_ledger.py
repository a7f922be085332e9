"""
Unit tests for services.verification_ledger.
Runs against the in-memory SQLite database.
"""
import asyncio
import re
import uuid

import pytest

from app.core.exceptions import InvalidOrExpiredCodeError, UserNotFoundError
from app.models.verification import VerificationRecord
from app.services.verification_ledger import CODE_ALPHABET, VerificationLedger, generate_code


pytestmark = pytest.mark.asyncio


@pytest.fixture
def ledger(db, clock):
    return VerificationLedger(code_length=6, ttl_minutes=10, clock=clock)


async def test_generate_code_alphabet_and_length():
    for length in (4, 6, 8):
        code = generate_code(length)
        assert len(code) == length
        assert set(code) <= set(CODE_ALPHABET)
    assert re.fullmatch(r"[A-Z0-9]{6}", generate_code())


async def test_generate_code_rejects_out_of_range_length():
    with pytest.raises(ValueError):
        generate_code(0)
    with pytest.raises(ValueError):
        generate_code(17)


async def test_code_length_must_fit_the_column():
    with pytest.raises(ValueError):
        VerificationLedger(code_length=17)
    with pytest.raises(ValueError):
        VerificationLedger(code_length=0)
    assert VerificationLedger(code_length=16).code_length == 16


async def test_issue_persists_single_record_with_expiry(ledger, clock, create_user):
    user, _ = await create_user()
    code = await ledger.issue(user.id)

    records = await ledger.outstanding(user.id)
    assert len(records) == 1
    assert records[0].code == code
    assert abs((records[0].expires_at - clock()).total_seconds() - 600) < 1


async def test_code_length_is_configurable(db, clock, create_user):
    user, _ = await create_user()
    code = await VerificationLedger(code_length=8, clock=clock).issue(user.id)
    assert len(code) == 8


async def test_second_issue_invalidates_first(ledger, create_user):
    user, _ = await create_user()
    first = await ledger.issue(user.id)
    second = await ledger.issue(user.id)

    assert len(await ledger.outstanding(user.id)) == 1
    if first != second:
        with pytest.raises(InvalidOrExpiredCodeError):
            await ledger.consume(user.id, first)
    await ledger.consume(user.id, second)


async def test_issue_does_not_touch_other_users(ledger, create_user):
    alice, _ = await create_user()
    bob, _ = await create_user()
    alice_code = await ledger.issue(alice.id)
    await ledger.issue(bob.id)

    await ledger.consume(alice.id, alice_code)


async def test_issue_for_unknown_user_fails(ledger):
    with pytest.raises(UserNotFoundError):
        await ledger.issue(uuid.uuid4())
    with pytest.raises(UserNotFoundError):
        await ledger.issue("not-a-uuid")


async def test_consume_is_single_use(ledger, create_user):
    user, _ = await create_user()
    code = await ledger.issue(user.id)

    await ledger.consume(user.id, code)
    assert await ledger.outstanding(user.id) == []
    with pytest.raises(InvalidOrExpiredCodeError):
        await ledger.consume(user.id, code)


async def test_consume_requires_matching_user(ledger, create_user):
    owner, _ = await create_user()
    other, _ = await create_user()
    code = await ledger.issue(owner.id)

    with pytest.raises(InvalidOrExpiredCodeError):
        await ledger.consume(other.id, code)
    # Still usable by its owner
    await ledger.consume(owner.id, code)


@pytest.mark.parametrize("bad_code", ["", None, "WRONG1", 123456, "ABC", "X" * 300])
async def test_consume_rejects_bad_codes(ledger, create_user, bad_code):
    user, _ = await create_user()
    await ledger.issue(user.id)
    with pytest.raises(InvalidOrExpiredCodeError):
        await ledger.consume(user.id, bad_code)


async def test_consume_rejects_malformed_user_id(ledger):
    with pytest.raises(InvalidOrExpiredCodeError):
        await ledger.consume("nope", "ABC123")


async def test_code_rejected_at_expiry_instant(ledger, clock, create_user):
    user, _ = await create_user()
    code = await ledger.issue(user.id)

    clock.advance(minutes=10)  # now == expires_at
    with pytest.raises(InvalidOrExpiredCodeError):
        await ledger.consume(user.id, code)


async def test_code_accepted_just_before_expiry(ledger, clock, create_user):
    user, _ = await create_user()
    code = await ledger.issue(user.id)

    clock.advance(minutes=9, seconds=59)
    await ledger.consume(user.id, code)


async def test_purge_expired_removes_only_lapsed_records(ledger, clock, create_user):
    stale_user, _ = await create_user()
    fresh_user, _ = await create_user()
    await ledger.issue(stale_user.id)
    clock.advance(minutes=5)
    await ledger.issue(fresh_user.id)

    clock.advance(minutes=6)  # first record lapsed, second has 4 minutes left
    removed = await ledger.purge_expired()

    assert removed == 1
    assert await ledger.outstanding(stale_user.id) == []
    assert len(await ledger.outstanding(fresh_user.id)) == 1


async def test_purge_loop_runs_until_cancelled(ledger, clock, create_user):
    user, _ = await create_user()
    await ledger.issue(user.id)
    clock.advance(minutes=11)

    task = asyncio.create_task(ledger.run_purge_loop(0.01))
    for _ in range(100):
        await asyncio.sleep(0.01)
        if await VerificationRecord.all().count() == 0:
            break
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await VerificationRecord.all().count() == 0
