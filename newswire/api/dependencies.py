import secrets
from typing import Optional

from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core.database import get_db
from ..core.exceptions import AuthError
from ..news.services.article_service import ArticleService
from ..news.services.scheduler import IngestionScheduler


def get_article_service(db: Session = Depends(get_db)) -> ArticleService:
    settings = get_settings()
    return ArticleService(
        db,
        home_sentinel=settings.home_category_sentinel,
        recent_limit=settings.recent_articles_limit,
    )


def get_scheduler(request: Request) -> IngestionScheduler:
    return request.app.state.scheduler


def verify_trigger_secret(
    secret: Optional[str] = Query(None, description="Shared trigger secret")
) -> None:
    expected = get_settings().trigger_secret
    if not expected or not secret:
        raise AuthError()
    if not secrets.compare_digest(secret.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError()
