from datetime import datetime, timezone
from typing import Dict, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from sqlalchemy import text

from ....core.database import get_db
from ....repositories.article_repository import ArticleRepository
from ....config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

router = APIRouter()


@router.get("/health")
async def health_check(
    request: Request,
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    try:
        db.execute(text("SELECT 1"))
        article_count = ArticleRepository(db).count()
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "database": "unhealthy",
                "error": "Database connectivity failed",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        )

    scheduler = getattr(request.app.state, "scheduler", None)
    last_run = scheduler.last_result if scheduler else None

    return {
        "status": "healthy",
        "service": "Newswire API",
        "version": "0.1.0",
        "environment": "development" if settings.debug else "production",
        "database": "healthy",
        "articles": article_count,
        "ingestion": {
            "running": bool(scheduler and scheduler.service.is_running),
            "last_run": last_run.to_dict() if last_run else None,
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
