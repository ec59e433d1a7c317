from .article_service import ArticleService
from .ingestion_service import IngestionConfig, IngestionRunResult, IngestionService
from .news_api_client import NewsApiClient
from .scheduler import IngestionScheduler

__all__ = [
    "ArticleService",
    "IngestionConfig",
    "IngestionRunResult",
    "IngestionService",
    "NewsApiClient",
    "IngestionScheduler",
]
