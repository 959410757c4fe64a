import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gateway import models  # noqa: F401
from gateway.database import Base, get_db
from gateway.dependencies import get_ai_provider, get_channel_provider, get_scheduler
from gateway.main import app
from gateway.services.channel.base import ChannelProvider, MediaPayload, SendResult
from gateway.services.dispatch_service import FixedIntervalScheduler
from gateway.services.llm.base import DocumentAIProvider, LLMResponse

RISK_JSON = (
    '{"riskScore": 72, "summary": "Termination clause favors the landlord.", '
    '"keyFindings": ["No notice period", "Deposit is non-refundable", "Auto-renewal", "Extra finding"], '
    '"recommendations": ["Negotiate a 60-day notice period"]}'
)


class FakeChannel(ChannelProvider):
    def __init__(self, media=None, media_error=None, fail_for=(), send_error=None):
        self.sent = []
        self.media_requests = []
        self.media = media or MediaPayload(data=b"%PDF-1.4 test", content_type="application/pdf")
        self.media_error = media_error
        self.fail_for = set(fail_for)
        self.send_error = send_error

    async def send_message(self, to, body):
        self.sent.append((to, body))
        if self.send_error:
            raise self.send_error
        if to in self.fail_for:
            return SendResult(success=False, error="Provider rejected", error_code="63016")
        return SendResult(success=True, message_sid=f"SM{len(self.sent):04d}", status="queued")

    async def fetch_media(self, url):
        self.media_requests.append(url)
        if self.media_error:
            raise self.media_error
        return self.media

    async def fetch_account(self):
        return {"sid": "AC123", "friendly_name": "LegalDocs", "status": "active", "type": "Full"}


class FakeAI(DocumentAIProvider):
    def __init__(self, extraction='{"parties": ["Tenant", "Landlord"]}', analysis=RISK_JSON):
        self.extraction = extraction
        self.analysis = analysis
        self.calls = []

    async def extract_document(self, *, data_base64, content_type, document_type):
        self.calls.append(("extract", document_type, content_type))
        if isinstance(self.extraction, Exception):
            raise self.extraction
        return LLMResponse(content=self.extraction, model="test-model")

    async def analyze_risk(self, *, document_text, document_type, language, jurisdiction):
        self.calls.append(("analyze", document_type, language, jurisdiction))
        if isinstance(self.analysis, Exception):
            raise self.analysis
        return LLMResponse(content=self.analysis, model="test-model")


class VirtualClock:
    """Monotonic clock whose sleep() advances time instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def db_session():
    """Real SQLite in-memory database, fresh per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def fake_ai():
    return FakeAI()


@pytest.fixture
def virtual_clock():
    return VirtualClock()


@pytest.fixture
def client(db_session, fake_channel, fake_ai, virtual_clock):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_channel_provider] = lambda: fake_channel
    app.dependency_overrides[get_ai_provider] = lambda: fake_ai
    app.dependency_overrides[get_scheduler] = lambda: FixedIntervalScheduler(
        0.1, clock=virtual_clock, sleep=virtual_clock.sleep
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
