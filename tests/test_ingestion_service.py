import asyncio
from datetime import datetime

import pytest
from unittest.mock import patch

from newswire.core.exceptions import PlanRestrictedError, StoreError, UpstreamError
from newswire.models.article import Article
from newswire.news.services.ingestion_service import IngestionConfig, IngestionService
from newswire.repositories.article_repository import ArticleRepository


CONFIG = IngestionConfig(home_topic="india", categories=("technology", "science"))


def _stored(session_factory):
    db = session_factory()
    try:
        return {a.url: a for a in db.query(Article).all()}
    finally:
        db.close()


@pytest.fixture
def service(mock_news_client, session_factory):
    return IngestionService(mock_news_client, session_factory, CONFIG)


def test_topics_put_home_feed_first():
    assert CONFIG.topics == ["india", "technology", "science"]
    assert CONFIG.category_for("india") == "general"
    assert CONFIG.category_for("science") == "science"


def test_config_from_settings():
    from newswire.config import Settings

    settings = Settings(home_page_topic="world", news_categories="tech, arts")
    config = IngestionConfig.from_settings(settings)

    assert config.topics == ["world", "tech", "arts"]
    assert config.general_category == "general"


@pytest.mark.asyncio
async def test_run_searches_every_topic_in_order(service, mock_news_client):
    await service.run()

    searched = [call.args[0] for call in mock_news_client.search.await_args_list]
    assert searched == ["india", "technology", "science"]


@pytest.mark.asyncio
async def test_articles_are_stored_under_mapped_category(service, mock_news_client, session_factory, raw_article):
    responses = {
        "india": [raw_article(url="https://example.com/home")],
        "technology": [raw_article(url="https://example.com/tech")],
        "science": [raw_article(url="https://example.com/sci")],
    }
    mock_news_client.search.side_effect = lambda topic: responses[topic]

    result = await service.run()

    stored = _stored(session_factory)
    assert stored["https://example.com/home"].category == "general"
    assert stored["https://example.com/tech"].category == "technology"
    assert stored["https://example.com/sci"].category == "science"
    assert result.stored == 3


@pytest.mark.asyncio
async def test_second_run_with_same_results_inserts_nothing(service, mock_news_client, session_factory, raw_article):
    batch = [raw_article(url=f"https://example.com/{i}") for i in range(3)]
    mock_news_client.search.side_effect = lambda topic: batch if topic == "technology" else []

    first = await service.run()
    second = await service.run()

    assert first.stored == 3
    assert second.stored == 0
    assert second.duplicates == 3
    assert len(_stored(session_factory)) == 3


@pytest.mark.asyncio
async def test_removed_and_incomplete_records_are_never_stored(service, mock_news_client, session_factory, raw_article):
    batch = [
        raw_article(url="https://removed.com", title="[Removed]"),
        raw_article(url="", title="No url"),
        raw_article(url=None, title="Null url"),
        raw_article(url="https://example.com/untitled", title=""),
        raw_article(url="https://example.com/undated", published_at=None),
        raw_article(url="https://example.com/keep", title="Keep me"),
    ]
    mock_news_client.search.side_effect = lambda topic: batch if topic == "science" else []

    result = await service.run()

    stored = _stored(session_factory)
    assert list(stored) == ["https://example.com/keep"]
    science = next(t for t in result.topics if t.topic == "science")
    assert science.skipped == 5
    assert all(a.title != "[Removed]" for a in stored.values())


@pytest.mark.asyncio
async def test_seven_digit_fraction_timestamp_is_stored(service, mock_news_client, session_factory, raw_article):
    batch = [raw_article(url="https://example.com/precise", published_at="2024-05-22T14:13:07.5366667Z")]
    mock_news_client.search.side_effect = lambda topic: batch if topic == "technology" else []

    result = await service.run()

    assert result.stored == 1
    stored = _stored(session_factory)["https://example.com/precise"]
    assert stored.published_at.replace(tzinfo=None) == datetime(2024, 5, 22, 14, 13, 7, 536666)


@pytest.mark.asyncio
async def test_skipped_articles_are_logged_with_reason(service, mock_news_client, raw_article):
    batch = [
        raw_article(url="https://example.com/undated", published_at="not a date"),
        raw_article(url="https://removed.com", title="[Removed]"),
    ]
    mock_news_client.search.side_effect = lambda topic: batch if topic == "science" else []

    with patch("newswire.news.services.ingestion_service.logger") as mock_logger:
        await service.run()

    skipped = [
        call.kwargs for call in mock_logger.info.call_args_list
        if call.args and call.args[0] == "ingestion_article_skipped"
    ]
    assert skipped == [
        {"topic": "science", "url": "https://example.com/undated", "reason": "unparseable_published_at"},
        {"topic": "science", "url": "https://removed.com", "reason": "removed_by_upstream"},
    ]


@pytest.mark.asyncio
async def test_duplicate_url_in_one_batch_is_stored_once(service, mock_news_client, session_factory, raw_article):
    batch = [
        raw_article(url="a", title="T1", published_at="2024-01-01"),
        raw_article(url="a", title="T1-dup", published_at="2024-01-02"),
    ]
    mock_news_client.search.side_effect = lambda topic: batch if topic == "science" else []

    await service.run()

    stored = _stored(session_factory)
    assert len(stored) == 1
    assert stored["a"].title == "T1"
    assert stored["a"].category == "science"


@pytest.mark.asyncio
async def test_existing_article_is_not_recategorised(service, mock_news_client, session_factory, make_article, raw_article):
    make_article("https://example.com/shared", category="technology")
    mock_news_client.search.side_effect = (
        lambda topic: [raw_article(url="https://example.com/shared")] if topic == "science" else []
    )

    await service.run()

    assert _stored(session_factory)["https://example.com/shared"].category == "technology"


@pytest.mark.asyncio
async def test_upstream_failure_skips_only_that_topic(service, mock_news_client, session_factory, raw_article):
    def search(topic):
        if topic == "india":
            raise PlanRestrictedError("Developer accounts are limited", topic=topic)
        if topic == "technology":
            raise UpstreamError("Too many requests", status_code=429, topic=topic)
        return [raw_article(url="https://example.com/sci")]

    mock_news_client.search.side_effect = search

    result = await service.run()

    assert result.failed_topics == ["india", "technology"]
    assert list(_stored(session_factory)) == ["https://example.com/sci"]


@pytest.mark.asyncio
async def test_store_failure_on_one_article_does_not_stop_the_run(service, mock_news_client, session_factory, raw_article):
    batch = [raw_article(url="https://example.com/bad"), raw_article(url="https://example.com/good")]
    mock_news_client.search.side_effect = lambda topic: batch if topic == "technology" else []

    original = ArticleRepository.insert_if_absent

    def flaky_insert(repo, values):
        if values["url"] == "https://example.com/bad":
            raise StoreError("disk full")
        return original(repo, values)

    with patch.object(ArticleRepository, "insert_if_absent", flaky_insert):
        result = await service.run()

    tech = next(t for t in result.topics if t.topic == "technology")
    assert tech.errors == 1
    assert tech.stored == 1
    assert list(_stored(session_factory)) == ["https://example.com/good"]


@pytest.mark.asyncio
async def test_insert_race_counts_as_duplicate(service, mock_news_client, session_factory, raw_article):
    mock_news_client.search.side_effect = (
        lambda topic: [raw_article(url="https://example.com/race")] if topic == "technology" else []
    )

    # Another writer stores the url after the lookup but before the insert
    with patch.object(ArticleRepository, "insert_if_absent", return_value=False):
        result = await service.run()

    tech = next(t for t in result.topics if t.topic == "technology")
    assert tech.stored == 0
    assert tech.duplicates == 1


@pytest.mark.asyncio
async def test_overlapping_run_is_skipped(service, mock_news_client):
    release = asyncio.Event()

    async def slow_search(topic):
        await release.wait()
        return []

    mock_news_client.search.side_effect = slow_search

    first = asyncio.create_task(service.run())
    await asyncio.sleep(0)
    assert service.is_running

    overlapping = await service.run()
    assert overlapping.skipped is True

    release.set()
    finished = await first
    assert finished.skipped is False
    assert not service.is_running


@pytest.mark.asyncio
async def test_long_fields_are_truncated_to_column_size(service, mock_news_client, session_factory, raw_article):
    long_title = "x" * 400
    mock_news_client.search.side_effect = (
        lambda topic: [raw_article(url="https://example.com/long", title=long_title, source_name="s" * 150)]
        if topic == "technology" else []
    )

    await service.run()

    article = _stored(session_factory)["https://example.com/long"]
    assert len(article.title) == 255
    assert len(article.source) == 100
