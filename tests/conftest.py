# tests/conftest.py
from __future__ import annotations

import json
import os
from collections.abc import AsyncIterator, Callable, Generator, Iterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RETRY_JOB_ENABLED", "false")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key-0123456789")
os.environ.setdefault("STREAM_API_URL", "http://stream.test")
os.environ.setdefault("STREAM_API_TOKEN", "stream-token")
os.environ.setdefault("ENVIRONMENT", "test")

from hookstream.api.v1.dependencies import get_stream_api_client_dep
from hookstream.core.events import EventKind
from hookstream.db.session import Base
from hookstream.db.session import get_db as app_get_session
from hookstream.main import app as fastapi_app
from hookstream.models import Client
from hookstream.services.stream_api import StreamApiClient, StreamApiConfig
from hookstream.services.tenants import ClientService

TEST_DB_URL = "sqlite://"
ADMIN_HEADERS = {"X-API-Key": "test-admin-key-0123456789"}


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


class FakeStreamApi:
    """In-process stand-in for the stream API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.failing_resource_ids: set[str] = set()
        self.status_code = 201
        self.error: Exception | None = None

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        body = json.loads(request.content)
        if body["scope"]["resourceId"] in self.failing_resource_ids:
            return httpx.Response(500, text="Internal Server Error")
        if self.status_code >= 300:
            return httpx.Response(self.status_code, text="Internal Server Error")
        return httpx.Response(self.status_code, json={"eventId": body["eventId"]})


@pytest.fixture()
def stream_api() -> FakeStreamApi:
    return FakeStreamApi()


@pytest.fixture()
def stream_config() -> StreamApiConfig:
    return StreamApiConfig(
        base_url="http://stream.test",
        token="stream-token",
        timeout_seconds=5.0,
        application="hookstream",
        version="1.0.0",
        environment="test",
    )


@pytest_asyncio.fixture()
async def stream_client(
    stream_api: FakeStreamApi, stream_config: StreamApiConfig
) -> AsyncIterator[StreamApiClient]:
    client = StreamApiClient(stream_config, transport=httpx.MockTransport(stream_api.handler))
    yield client
    await client.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(
    app: FastAPI, stream_api: FakeStreamApi, stream_config: StreamApiConfig
) -> Iterator[TestClient]:
    # A fresh stream client per test keeps its HTTP pool on the TestClient's loop.
    def _stream_client_override() -> StreamApiClient:
        return StreamApiClient(stream_config, transport=httpx.MockTransport(stream_api.handler))

    app.dependency_overrides[get_stream_api_client_dep] = _stream_client_override
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_stream_api_client_dep, None)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return dict(ADMIN_HEADERS)


@pytest.fixture()
def tenant(db_session: Session) -> Client:
    """Create an enabled tenant with every event kind switched on."""
    return ClientService(db_session).create(account_id=42, account_name="Acme Studio")


@pytest.fixture()
def disable_kind(db_session: Session) -> Callable[[Client, EventKind], None]:
    """Return a helper that switches one event kind off for a tenant."""

    def _disable(tenant: Client, kind: EventKind) -> None:
        for config in tenant.webhook_configs:
            if config.event_type == kind.value:
                config.enabled = False
        db_session.commit()

    return _disable
