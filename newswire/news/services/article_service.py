"""
Read-only Article Service for API endpoints
Handles only database reads - fetching is done by the ingestion job
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from ...models.article import Article
from ...repositories.article_repository import ArticleRepository


class ArticleService:

    def __init__(self, db: Session, home_sentinel: str = "home", recent_limit: int = 100):
        self.repo = ArticleRepository(db)
        self.home_sentinel = home_sentinel
        self.recent_limit = recent_limit

    def get_articles(self, category: Optional[str] = None) -> List[Article]:
        """Articles for one category, or the most recent across all of them for the home feed"""
        if not category or category == self.home_sentinel:
            return self.repo.list_recent(self.recent_limit)
        return self.repo.list_by_category(category)
