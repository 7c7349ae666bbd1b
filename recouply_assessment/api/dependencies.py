"""Dependency injection for FastAPI endpoints"""

import logging
from functools import lru_cache
from fastapi import Depends, HTTPException, Request
from recouply_assessment.config import settings
from recouply_assessment.domain.exceptions import RateLimitExceeded
from recouply_assessment.domain.rate_limiting import InMemoryRateLimitStore, RateLimiter, get_client_ip
from recouply_assessment.infrastructure.clients.webhook import AssessmentWebhookClient
from recouply_assessment.infrastructure.database.repositories import SqlRateLimitStore
from recouply_assessment.infrastructure.database.session import SessionLocal
from recouply_assessment.infrastructure.observability.metrics import rate_limited_counter


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_webhook_client() -> AssessmentWebhookClient:
    """Provide assessment webhook client instance"""
    return AssessmentWebhookClient()


@lru_cache
def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter; the store is chosen by settings.rate_limit_backend"""
    if settings.rate_limit_backend == "database":
        return RateLimiter(SqlRateLimitStore(SessionLocal))
    return RateLimiter(InMemoryRateLimitStore())


def rate_limited(action_type: str):
    """Build a dependency that counts the request against action_type for the client IP"""

    def enforce(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
        if not settings.rate_limiting_enabled:
            return

        fallback = request.client.host if request.client else "unknown"
        identifier = get_client_ip(request.headers, fallback=fallback)
        try:
            limiter.enforce(identifier, action_type)
        except RateLimitExceeded as e:
            rate_limited_counter.labels(action=action_type).inc()
            logging.warning(
                f"Rate limit exceeded for {action_type}",
                extra={"request_id": get_request_id(request), "action": action_type},
            )
            raise HTTPException(
                status_code=429,
                detail={
                    "error": str(e),
                    "blocked_until": e.result.blocked_until.isoformat() if e.result.blocked_until else None,
                },
                headers={"Retry-After": str(limiter.retry_after_seconds(e.result))},
            )

    return enforce
