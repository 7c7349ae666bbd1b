"""Unit tests for rate limiting and request screening helpers"""

import threading
import pytest
from datetime import timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from recouply_assessment.domain.exceptions import RateLimitExceeded
from recouply_assessment.domain.models import RateLimitConfig, RateLimitResult, RateLimitWindow
from recouply_assessment.domain.rate_limiting import (
    DEFAULT_RATE_LIMIT,
    RATE_LIMIT_CONFIGS,
    InMemoryRateLimitStore,
    RateLimiter,
    apply_hit,
    config_for,
    detect_bot_behavior,
    get_client_ip,
    validate_honeypot,
)
from recouply_assessment.infrastructure.database.models import Base
from recouply_assessment.infrastructure.database.repositories import SqlRateLimitStore


def exhaust(limiter: RateLimiter, identifier: str, action_type: str, times: int) -> list:
    return [limiter.check(identifier, action_type) for _ in range(times)]


def test_first_request_opens_window(rate_limiter: RateLimiter):
    result = rate_limiter.check("10.0.0.1", "form_submit")

    assert result.allowed is True
    assert result.blocked is False
    assert result.remaining == 9


def test_blocks_after_max_requests(rate_limiter: RateLimiter, clock):
    results = exhaust(rate_limiter, "10.0.0.1", "form_submit", 10)
    assert all(r.allowed for r in results)
    assert [r.remaining for r in results] == list(range(9, -1, -1))

    denied = rate_limiter.check("10.0.0.1", "form_submit")
    assert denied.allowed is False
    assert denied.blocked is True
    assert denied.blocked_until == clock.now + timedelta(minutes=15)
    assert denied.remaining == 0


def test_block_outlasts_window(rate_limiter: RateLimiter, clock):
    exhaust(rate_limiter, "10.0.0.1", "form_submit", 11)

    clock.advance(minutes=10)  # window (5 min) over, block (15 min) still active
    assert rate_limiter.check("10.0.0.1", "form_submit").allowed is False

    clock.advance(minutes=5, seconds=1)
    after_block = rate_limiter.check("10.0.0.1", "form_submit")
    assert after_block.allowed is True
    assert after_block.remaining == 9


def test_window_expiry_resets_count(rate_limiter: RateLimiter, clock):
    exhaust(rate_limiter, "10.0.0.1", "form_submit", 8)

    clock.advance(minutes=5)
    result = rate_limiter.check("10.0.0.1", "form_submit")

    assert result.allowed is True
    assert result.remaining == 9


def test_keys_are_independent(rate_limiter: RateLimiter):
    exhaust(rate_limiter, "10.0.0.1", "contact_form", 4)

    assert rate_limiter.check("10.0.0.1", "contact_form").allowed is False
    assert rate_limiter.check("10.0.0.2", "contact_form").allowed is True
    assert rate_limiter.check("10.0.0.1", "form_submit").allowed is True


def test_unknown_action_uses_default_config(rate_limiter: RateLimiter):
    assert config_for("something_new") == DEFAULT_RATE_LIMIT
    assert rate_limiter.check("10.0.0.1", "something_new").remaining == 99


def test_custom_config_overrides_table(rate_limiter: RateLimiter, clock):
    tight = RateLimitConfig(max_requests=1, window_minutes=1, block_duration_minutes=2)

    assert rate_limiter.check("user-1", "form_submit", tight).allowed is True
    denied = rate_limiter.check("user-1", "form_submit", tight)
    assert denied.allowed is False
    assert denied.blocked_until == clock.now + timedelta(minutes=2)


def test_enforce_raises_with_result(rate_limiter: RateLimiter):
    exhaust(rate_limiter, "10.0.0.1", "login_attempt", 5)

    with pytest.raises(RateLimitExceeded) as exc_info:
        rate_limiter.enforce("10.0.0.1", "login_attempt")

    assert exc_info.value.result.blocked is True
    assert "Rate limit exceeded" in str(exc_info.value)


def test_retry_after_seconds(rate_limiter: RateLimiter, clock):
    exhaust(rate_limiter, "10.0.0.1", "form_submit", 10)
    denied = rate_limiter.check("10.0.0.1", "form_submit")

    assert rate_limiter.retry_after_seconds(denied) == 900
    clock.advance(seconds=60)
    assert rate_limiter.retry_after_seconds(denied) == 840
    assert rate_limiter.retry_after_seconds(RateLimitResult(allowed=False)) == 900


def test_store_reset_clears_windows(clock):
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, clock=clock)
    exhaust(limiter, "10.0.0.1", "contact_form", 4)

    store.reset()

    assert limiter.check("10.0.0.1", "contact_form").allowed is True


def test_config_table():
    assert RATE_LIMIT_CONFIGS["form_submit"] == RateLimitConfig(10, 5, 15)
    assert RATE_LIMIT_CONFIGS["contact_form"] == RateLimitConfig(3, 60, 60)
    assert RATE_LIMIT_CONFIGS["login_attempt"] == RateLimitConfig(5, 15, 15)


def test_sql_store_blocks_and_recovers(session_factory, clock):
    store = SqlRateLimitStore(session_factory)
    limiter = RateLimiter(store, clock=clock)

    results = exhaust(limiter, "10.0.0.9", "contact_form", 4)
    assert [r.allowed for r in results] == [True, True, True, False]

    window = store.get(("10.0.0.9", "contact_form"))
    assert window.count == 3
    assert window.blocked_until == clock.now + timedelta(minutes=60)

    clock.advance(minutes=61)
    assert limiter.check("10.0.0.9", "contact_form").allowed is True

    store.reset()
    assert store.get(("10.0.0.9", "contact_form")) is None


def hit_concurrently(limiters: list, identifier: str, action_type: str, hits_per_limiter: int) -> list:
    """Fire every hit from its own thread at once; returns results and any errors"""
    barrier = threading.Barrier(len(limiters) * hits_per_limiter)
    results, errors = [], []

    def worker(limiter: RateLimiter):
        barrier.wait()
        try:
            results.append(limiter.check(identifier, action_type))
        except Exception as e:
            errors.append(e)

    threads = [
        threading.Thread(target=worker, args=(limiter,))
        for limiter in limiters
        for _ in range(hits_per_limiter)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results + errors


def test_limiters_sharing_memory_store_respect_limit(clock):
    store = InMemoryRateLimitStore()
    limiters = [RateLimiter(store, clock=clock), RateLimiter(store, clock=clock)]

    results = hit_concurrently(limiters, "10.0.0.1", "form_submit", 8)

    assert sum(r.allowed for r in results) == 10
    assert store.get(("10.0.0.1", "form_submit")).blocked_until is not None


def test_limiters_sharing_sql_store_respect_limit(tmp_path, clock):
    """Each limiter stands in for a worker; the database row is the only shared state"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'limits.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    store = SqlRateLimitStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    limiters = [RateLimiter(store, clock=clock) for _ in range(6)]

    results = hit_concurrently(limiters, "10.0.0.9", "contact_form", 1)

    assert all(isinstance(r, RateLimitResult) for r in results)
    assert sum(r.allowed for r in results) == 3
    assert store.get(("10.0.0.9", "contact_form")).count == 3
    engine.dispose()


def test_sql_store_counts_existing_window(session_factory, clock):
    store = SqlRateLimitStore(session_factory)
    first, second = RateLimiter(store, clock=clock), RateLimiter(store, clock=clock)

    assert first.check("10.0.0.9", "contact_form").remaining == 2
    assert second.check("10.0.0.9", "contact_form").remaining == 1
    assert first.check("10.0.0.9", "contact_form").remaining == 0
    assert second.check("10.0.0.9", "contact_form").allowed is False


def test_apply_hit_returns_new_window(clock):
    config = RateLimitConfig(max_requests=2, window_minutes=5, block_duration_minutes=15)
    window = RateLimitWindow(count=2, window_start=clock.now)

    stored, result = apply_hit(window, config, clock.now)

    assert result.allowed is False
    assert stored.blocked_until == clock.now + timedelta(minutes=15)
    assert window.blocked_until is None


@pytest.mark.parametrize(
    "headers, expected",
    [
        ({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}, "203.0.113.7"),
        ({"x-real-ip": "198.51.100.2"}, "198.51.100.2"),
        ({"cf-connecting-ip": "192.0.2.44"}, "192.0.2.44"),
        ({"x-forwarded-for": " ", "x-real-ip": "198.51.100.2"}, "198.51.100.2"),
        ({}, "unknown"),
    ],
)
def test_get_client_ip(headers, expected):
    assert get_client_ip(headers) == expected


def test_validate_honeypot():
    assert validate_honeypot(None) is True
    assert validate_honeypot("   ") is True
    assert validate_honeypot("http://spam.example") is False


@pytest.mark.parametrize(
    "user_agent, expected",
    [
        (None, (True, "missing_user_agent")),
        ("short", (True, "missing_user_agent")),
        ("curl/8.4.0", (True, "bot_user_agent")),
        ("python-requests/2.31", (True, "bot_user_agent")),
        ("Mozilla/5.0 (compatible; Googlebot/2.1)", (True, "bot_user_agent")),
        ("Mozilla/5.0 (Macintosh; Intel Mac OS X 14_2) Safari/605.1.15", (False, None)),
    ],
)
def test_detect_bot_behavior(user_agent, expected):
    assert detect_bot_behavior(user_agent) == expected
