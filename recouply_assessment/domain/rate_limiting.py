"""Fixed-window rate limiting with temporary blocking, backed by an injected store"""

import re
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Mapping, Optional, Protocol, Tuple

from recouply_assessment.domain.exceptions import RateLimitExceeded
from recouply_assessment.domain.models import RateLimitConfig, RateLimitResult, RateLimitWindow
from recouply_assessment.utils.date_utils import ensure_utc, seconds_until, utc_now

RATE_LIMIT_CONFIGS: Dict[str, RateLimitConfig] = {
    "form_submit": RateLimitConfig(max_requests=10, window_minutes=5, block_duration_minutes=15),
    "ai_command": RateLimitConfig(max_requests=50, window_minutes=60, block_duration_minutes=30),
    "file_upload": RateLimitConfig(max_requests=20, window_minutes=60, block_duration_minutes=15),
    "api_call": RateLimitConfig(max_requests=100, window_minutes=60, block_duration_minutes=15),
    "contact_form": RateLimitConfig(max_requests=3, window_minutes=60, block_duration_minutes=60),
    "login_attempt": RateLimitConfig(max_requests=5, window_minutes=15, block_duration_minutes=15),
    "signup_attempt": RateLimitConfig(max_requests=3, window_minutes=60, block_duration_minutes=60),
    "email_send": RateLimitConfig(max_requests=50, window_minutes=60, block_duration_minutes=30),
    "data_import": RateLimitConfig(max_requests=10, window_minutes=60, block_duration_minutes=30),
}

DEFAULT_RATE_LIMIT = RateLimitConfig(max_requests=100, window_minutes=60, block_duration_minutes=15)

# Retry-After when no block expiry is known
DEFAULT_RETRY_AFTER_SECONDS = 900

BOT_USER_AGENT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (r"bot", r"crawler", r"spider", r"scraper", r"curl", r"wget", r"python-requests", r"httpie")
]

RateLimitKey = Tuple[str, str]  # (identifier, action_type)


class RateLimitStore(Protocol):
    """
    Storage for per-key rate limit windows.

    hit() must read, decide and write as one atomic step, so limiters in
    different threads or processes sharing a store never overrun the limit.
    """

    def hit(self, key: RateLimitKey, config: RateLimitConfig, now: datetime) -> RateLimitResult: ...

    def get(self, key: RateLimitKey) -> Optional[RateLimitWindow]: ...

    def reset(self) -> None: ...


class InMemoryRateLimitStore:
    """Process-local store; suitable for a single worker and for tests"""

    def __init__(self):
        self._windows: Dict[RateLimitKey, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def hit(self, key: RateLimitKey, config: RateLimitConfig, now: datetime) -> RateLimitResult:
        with self._lock:
            window, result = apply_hit(self._windows.get(key), config, now)
            self._windows[key] = window
            return result

    def get(self, key: RateLimitKey) -> Optional[RateLimitWindow]:
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                return None
            return RateLimitWindow(window.count, window.window_start, window.blocked_until)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def apply_hit(
    window: Optional[RateLimitWindow],
    config: RateLimitConfig,
    now: datetime,
) -> Tuple[RateLimitWindow, RateLimitResult]:
    """
    Count one request against the current window.

    Returns the window to store and the verdict. The given window is not
    modified. Order of checks:
    1. Still blocked: deny
    2. No window, expired block, or window over: open a fresh window at 1
    3. Window already at max_requests: block for block_duration_minutes and deny
    4. Otherwise increment
    """
    if window is not None and window.blocked_until is not None:
        blocked_until = ensure_utc(window.blocked_until)
        if now < blocked_until:
            return window, _denied(blocked_until)

    window_length = timedelta(minutes=config.window_minutes)
    if (
        window is None
        or window.blocked_until is not None
        or now - ensure_utc(window.window_start) >= window_length
    ):
        fresh = RateLimitWindow(count=1, window_start=now)
        return fresh, RateLimitResult(allowed=True, remaining=max(config.max_requests - 1, 0))

    if window.count >= config.max_requests:
        blocked_until = now + timedelta(minutes=config.block_duration_minutes)
        blocked = RateLimitWindow(window.count, window.window_start, blocked_until)
        return blocked, _denied(blocked_until)

    counted = RateLimitWindow(window.count + 1, window.window_start)
    return counted, RateLimitResult(allowed=True, remaining=config.max_requests - counted.count)


def config_for(action_type: str) -> RateLimitConfig:
    return RATE_LIMIT_CONFIGS.get(action_type, DEFAULT_RATE_LIMIT)


class RateLimiter:
    """
    Count requests per (identifier, action) inside a fixed window.

    Once a caller has used up max_requests in the current window, the next
    request blocks the key for block_duration_minutes. While blocked every
    request is denied; after the block expires a fresh window starts.
    """

    def __init__(self, store: RateLimitStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def check(
        self,
        identifier: str,
        action_type: str,
        config: RateLimitConfig | None = None,
    ) -> RateLimitResult:
        """Record one request and report whether it may proceed"""
        config = config or config_for(action_type)
        return self.store.hit((identifier, action_type), config, ensure_utc(self.clock()))

    def enforce(self, identifier: str, action_type: str, config: RateLimitConfig | None = None) -> RateLimitResult:
        """
        Like check(), but raise when the request is not allowed.

        Raises:
            RateLimitExceeded: carrying the denying RateLimitResult
        """
        result = self.check(identifier, action_type, config)
        if not result.allowed:
            raise RateLimitExceeded(result)
        return result

    def retry_after_seconds(self, result: RateLimitResult) -> int:
        if result.blocked_until is None:
            return DEFAULT_RETRY_AFTER_SECONDS
        return seconds_until(result.blocked_until, self.clock())


def _denied(blocked_until: datetime) -> RateLimitResult:
    return RateLimitResult(
        allowed=False,
        blocked=True,
        blocked_until=blocked_until,
        remaining=0,
        message="Rate limit exceeded. Please try again later.",
    )


def get_client_ip(headers: Mapping[str, str], fallback: str = "unknown") -> str:
    """Client address from proxy headers: first X-Forwarded-For hop, then X-Real-IP, then CF-Connecting-IP"""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return headers.get("x-real-ip") or headers.get("cf-connecting-ip") or fallback


def validate_honeypot(value: str | None) -> bool:
    """Honeypot form fields must stay empty"""
    return not value or value.strip() == ""


def detect_bot_behavior(user_agent: str | None) -> tuple[bool, str | None]:
    """Returns (is_bot, reason)"""
    if not user_agent or len(user_agent) < 10:
        return True, "missing_user_agent"

    if any(pattern.search(user_agent) for pattern in BOT_USER_AGENT_PATTERNS):
        return True, "bot_user_agent"

    return False, None
