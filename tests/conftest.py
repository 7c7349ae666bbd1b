"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from recouply_assessment.api.main import create_app
from recouply_assessment.api.dependencies import get_webhook_client, get_rate_limiter
from recouply_assessment.domain.models import AgeBand, AssessmentInput, LossPercentBand
from recouply_assessment.domain.rate_limiting import InMemoryRateLimitStore, RateLimiter
from recouply_assessment.infrastructure.database.models import Base
from recouply_assessment.infrastructure.database.session import get_db


# Test database: one shared in-memory connection
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeClock:
    """Manually advanced UTC clock"""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingWebhookClient:
    """Stands in for the webhook client; keeps every event it is given"""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    async def send_event(self, payload: Dict[str, Any]) -> bool:
        self.events.append(payload)
        return True


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Create test database and session"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(InMemoryRateLimitStore(), clock=clock)


@pytest.fixture
def webhooks() -> RecordingWebhookClient:
    return RecordingWebhookClient()


@pytest.fixture
def client(db: Session, rate_limiter: RateLimiter, webhooks: RecordingWebhookClient) -> TestClient:
    """Create FastAPI test client with test database, isolated limiter and recorded webhooks"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_webhook_client] = lambda: webhooks
    return TestClient(app)


@pytest.fixture
def scenario_input() -> AssessmentInput:
    """100 invoices, $50k overdue, 31-60 days, 11-20% loss, 18% cost of capital"""
    return AssessmentInput(
        overdue_count=100,
        overdue_total=Decimal("50000"),
        age_band=AgeBand.DAYS_31_60,
        loss_pct_band=LossPercentBand.PCT_11_20,
        annual_rate=Decimal("18"),
    )


@pytest.fixture
def scenario_payload() -> Dict[str, Any]:
    """Same scenario as scenario_input, as the JSON body a form would send"""
    return {
        "overdue_count": 100,
        "overdue_total": 50000,
        "age_band": "31-60",
        "loss_pct_band": "11-20%",
        "annual_rate": 18,
    }
