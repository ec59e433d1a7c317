import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TRIGGER_SECRET"] = "test-secret"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["FETCH_ON_STARTUP"] = "false"
os.environ["LOG_FORMAT"] = "text"

from datetime import datetime, timezone
from unittest.mock import MagicMock, AsyncMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from newswire.news.schemas.upstream import RawArticle


@pytest.fixture
def test_engine():
    from newswire.core.database import create_tables, drop_tables

    # Single shared in-memory connection so every session sees the same tables
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    try:
        yield engine
    finally:
        drop_tables(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def test_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_article(test_db):
    from newswire.models.article import Article

    def _make(url, title="Title", category="general", published_at=None, **fields):
        article = Article(
            url=url,
            title=title,
            category=category,
            published_at=published_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
            source=fields.pop("source", "Example News"),
            **fields,
        )
        test_db.add(article)
        test_db.commit()
        test_db.refresh(article)
        return article

    return _make


@pytest.fixture
def raw_article():
    def _raw(url="https://example.com/a", title="Headline", published_at="2024-01-01T10:00:00Z", **fields):
        payload = {
            "source": {"id": None, "name": fields.pop("source_name", "Example News")},
            "title": title,
            "description": fields.pop("description", "Short description"),
            "url": url,
            "urlToImage": fields.pop("urlToImage", "https://example.com/a.jpg"),
            "publishedAt": published_at,
            "content": fields.pop("content", "Body text"),
        }
        payload.update(fields)
        return RawArticle.model_validate(payload)

    return _raw


@pytest.fixture
def mock_news_client():
    client = MagicMock()
    client.search = AsyncMock(return_value=[])
    return client


@pytest.fixture
def mock_httpx_response():
    response = MagicMock()
    response.status_code = 200
    response.json = MagicMock(return_value={"status": "ok", "totalResults": 0, "articles": []})
    return response


@pytest.fixture
async def async_client(test_db):
    from httpx import AsyncClient, ASGITransport
    from newswire.main import app
    from newswire.core.database import get_db

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Use ASGITransport for direct app interaction
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
