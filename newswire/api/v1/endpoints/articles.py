from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...dependencies import get_article_service
from ....news.schemas.responses import ArticleResponse
from ....news.services.article_service import ArticleService

router = APIRouter()


@router.get("/articles", response_model=List[ArticleResponse])
async def list_articles(
    category: Optional[str] = Query(None, description="Category to filter by; omit or 'home' for the latest articles"),
    article_service: ArticleService = Depends(get_article_service)
):
    """Stored articles, newest first"""
    # StoreError is turned into an opaque 500 by the application handler
    return article_service.get_articles(category)
