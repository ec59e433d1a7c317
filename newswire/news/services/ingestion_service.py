"""
News Ingestion Service
Synchronises the articles table with NewsAPI for a fixed list of topics:
1. Search NewsAPI once per topic (home feed keyword first)
2. Drop removed, untitled and url-less records
3. Deduplicate against the current batch and the articles table
4. Insert new rows under the topic's category

A failure is terminal only to the topic (upstream) or the article (store) it happened in.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import structlog
from sqlalchemy.orm import Session

from ...core.exceptions import PlanRestrictedError, StoreError, UpstreamError
from ...repositories.article_repository import ArticleRepository
from ..schemas.upstream import RawArticle
from .news_api_client import NewsApiClient

logger = structlog.get_logger(__name__)

REMOVED_TITLE = "[Removed]"


@dataclass(frozen=True)
class IngestionConfig:
    home_topic: str = "india"
    categories: Tuple[str, ...] = ("technology", "business", "sports", "science", "health")
    general_category: str = "general"
    removed_title: str = REMOVED_TITLE

    @classmethod
    def from_settings(cls, settings) -> "IngestionConfig":
        return cls(
            home_topic=settings.home_page_topic,
            categories=tuple(settings.news_categories),
            general_category=settings.general_category,
        )

    @property
    def topics(self) -> List[str]:
        return [self.home_topic, *self.categories]

    def category_for(self, topic: str) -> str:
        return self.general_category if topic == self.home_topic else topic


@dataclass
class TopicResult:
    topic: str
    category: str
    fetched: int = 0
    stored: int = 0
    duplicates: int = 0
    skipped: int = 0
    errors: int = 0
    failed: bool = False
    error: Optional[str] = None


@dataclass
class IngestionRunResult:
    started_at: datetime
    finished_at: Optional[datetime] = None
    skipped: bool = False
    topics: List[TopicResult] = field(default_factory=list)

    @property
    def stored(self) -> int:
        return sum(t.stored for t in self.topics)

    @property
    def duplicates(self) -> int:
        return sum(t.duplicates for t in self.topics)

    @property
    def failed_topics(self) -> List[str]:
        return [t.topic for t in self.topics if t.failed]

    def to_dict(self) -> Dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "skipped": self.skipped,
            "stored": self.stored,
            "duplicates": self.duplicates,
            "failed_topics": self.failed_topics,
        }


class IngestionService:
    """Fetches every configured topic from NewsAPI and stores unseen articles"""

    def __init__(
        self,
        client: NewsApiClient,
        session_factory: Callable[[], Session],
        config: Optional[IngestionConfig] = None,
    ):
        self.client = client
        self.session_factory = session_factory
        self.config = config or IngestionConfig()
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run(self) -> IngestionRunResult:
        """
        Run one ingestion pass over all topics.
        Returns immediately with a skipped result if another pass is in progress.
        """
        if self._lock.locked():
            logger.warning("ingestion_run_skipped", reason="run already in progress")
            return IngestionRunResult(started_at=datetime.now(), finished_at=datetime.now(), skipped=True)

        async with self._lock:
            result = IngestionRunResult(started_at=datetime.now())
            topics = self.config.topics
            logger.info("ingestion_run_started", topics=topics)

            db = self.session_factory()
            try:
                repo = ArticleRepository(db)
                for topic in topics:
                    result.topics.append(await self._ingest_topic(repo, topic))
            finally:
                db.close()

            result.finished_at = datetime.now()
            logger.info(
                "ingestion_run_completed",
                stored=result.stored,
                duplicates=result.duplicates,
                failed_topics=result.failed_topics,
                duration_seconds=round((result.finished_at - result.started_at).total_seconds(), 2),
            )
            return result

    async def _ingest_topic(self, repo: ArticleRepository, topic: str) -> TopicResult:
        category = self.config.category_for(topic)
        stats = TopicResult(topic=topic, category=category)
        logger.info("ingestion_topic_fetching", topic=topic)

        try:
            raw_articles = await self.client.search(topic)
        except PlanRestrictedError as e:
            logger.error(
                "ingestion_topic_plan_restricted",
                topic=topic,
                status_code=e.status_code,
                error=e.message,
                hint="NewsAPI developer plans cannot be used from a server",
            )
            stats.failed, stats.error = True, e.message
            return stats
        except UpstreamError as e:
            logger.error(
                "ingestion_topic_failed", topic=topic, status_code=e.status_code, error_code=e.error_code, error=e.message
            )
            stats.failed, stats.error = True, e.message
            return stats

        stats.fetched = len(raw_articles)
        seen_urls = set()

        for raw in raw_articles:
            reason = self._skip_reason(raw)
            if reason:
                logger.info("ingestion_article_skipped", topic=topic, url=raw.url, reason=reason)
                stats.skipped += 1
                continue

            if raw.url in seen_urls:
                stats.duplicates += 1
                continue
            seen_urls.add(raw.url)

            try:
                if repo.find_by_url(raw.url) is not None:
                    stats.duplicates += 1
                    continue

                if repo.insert_if_absent(self._to_row(raw, category)):
                    stats.stored += 1
                else:
                    # Another writer stored it between the lookup and the insert
                    stats.duplicates += 1
            except StoreError as e:
                logger.error("ingestion_article_store_failed", topic=topic, url=raw.url, error=e.message)
                stats.errors += 1

        logger.info(
            "ingestion_topic_completed",
            topic=topic,
            category=category,
            fetched=stats.fetched,
            stored=stats.stored,
            duplicates=stats.duplicates,
            skipped=stats.skipped,
            errors=stats.errors,
        )
        return stats

    def _skip_reason(self, raw: RawArticle) -> Optional[str]:
        if not raw.url:
            return "missing_url"
        if not raw.title:
            return "missing_title"
        if raw.title == self.config.removed_title:
            return "removed_by_upstream"
        # published_at is the sort key and cannot be null
        if raw.published_at is None:
            return "unparseable_published_at"
        return None

    @staticmethod
    def _to_row(raw: RawArticle, category: str) -> Dict:
        return {
            "title": raw.title[:255],
            "url": raw.url,
            "source": raw.source_name[:100] if raw.source_name else None,
            "description": raw.description,
            "content": raw.content,
            "image_url": raw.image_url,
            "category": category,
            "published_at": raw.published_at,
        }
