import asyncio
import time

import pytest
import redis
from fastapi import HTTPException

from conftest import FakeWallet, make_provider, make_session, make_user, run_settlements
from marketplace import locks
from marketplace.domain.settlement.events import SessionCompleted
from marketplace.domain.settlement.publisher import EarningsSettlement, settle_completed_session
from marketplace.domain.settlement.wallet_client import WalletClient, WalletNotConfigured


def event():
    return SessionCompleted(session_id=7, provider_id=3, amount=4125, currency="FCFA")


def test_publish_delivers_event_to_wallet():
    wallet = FakeWallet()

    assert asyncio.run(EarningsSettlement(wallet=wallet).publish(event())) is True
    assert wallet.calls == [{"provider_id": 3, "session_id": 7, "amount": 4125, "currency": "FCFA"}]


def test_publish_swallows_wallet_errors():
    assert asyncio.run(EarningsSettlement(wallet=FakeWallet(fail=True)).publish(event())) is False


def test_unconfigured_wallet_is_skipped():
    client = WalletClient(base_url=None)

    assert client.is_configured is False
    with pytest.raises(WalletNotConfigured):
        asyncio.run(client.process_earning(3, 7, 4125, "FCFA"))
    assert asyncio.run(EarningsSettlement(wallet=client).publish(event())) is False


def test_wallet_url_is_normalized():
    assert WalletClient(base_url="https://wallet.example.com/").base_url == "https://wallet.example.com"


def test_settlement_only_for_completed_sessions(db, wallet, settlement):
    seeker = make_user(db)
    provider = make_provider(db)
    session = make_session(db, seeker, provider, status="in_progress")

    assert settle_completed_session(db, session, settlement) is False
    assert wallet.calls == []


def test_settlement_stamps_session(db, wallet, settlement):
    seeker = make_user(db)
    provider = make_provider(db)
    session = make_session(db, seeker, provider, status="completed")

    assert settle_completed_session(db, session, settlement) is True
    assert session.earnings_settled_at is not None
    assert settle_completed_session(db, session, settlement) is False

    # The wallet is only called once the queued delivery runs
    assert wallet.calls == []
    run_settlements(settlement)
    assert len(wallet.calls) == 1


def test_failed_payment_is_not_settled(db, wallet, settlement):
    seeker = make_user(db)
    provider = make_provider(db)
    session = make_session(db, seeker, provider, status="completed", payment_status="failed")

    assert settle_completed_session(db, session, settlement) is False
    assert wallet.calls == []


def test_schedule_lock_is_exclusive_per_provider(monkeypatch):
    monkeypatch.setattr(locks, "SCHEDULE_LOCK_TIMEOUT", 0.05)

    with locks.provider_schedule_lock(1):
        with pytest.raises(HTTPException) as exc:
            with locks.provider_schedule_lock(1):
                pass
        assert exc.value.status_code == 409

        # Other providers are unaffected
        with locks.provider_schedule_lock(2):
            pass

    with locks.provider_schedule_lock(1):
        pass


def test_schedule_lock_without_provider_is_a_no_op():
    with locks.provider_schedule_lock(None):
        with locks.provider_schedule_lock(None):
            pass


def test_unreachable_redis_falls_back_to_local_lock(monkeypatch):
    attempts = []

    class UnreachableRedis:
        def __init__(self, **kwargs):
            attempts.append(kwargs)

        def ping(self):
            raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(locks, "SCHEDULE_LOCK_BACKEND", "redis")
    monkeypatch.setattr(locks, "SCHEDULE_LOCK_TIMEOUT", 0.05)
    monkeypatch.setattr(locks, "redis_client", None)
    monkeypatch.setattr(locks, "redis_failed_at", None)
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setattr(locks.redis, "Redis", UnreachableRedis)

    with locks.provider_schedule_lock(1):
        # The local fallback still serializes the provider
        with pytest.raises(HTTPException) as exc:
            with locks.provider_schedule_lock(1):
                pass
        assert exc.value.status_code == 409

    # The failure is remembered, so no reconnect during the cooldown
    assert len(attempts) == 1

    monkeypatch.setattr(locks, "redis_failed_at", time.time() - locks.REDIS_RETRY_COOLDOWN - 1)
    with locks.provider_schedule_lock(1):
        pass
    assert len(attempts) == 2
