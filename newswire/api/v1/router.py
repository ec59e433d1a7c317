from fastapi import APIRouter

from .endpoints import articles, trigger

api_router = APIRouter()

# Browsing client reads - /api/articles
api_router.include_router(articles.router, tags=["articles"])

# Manual ingestion trigger - /api/trigger-fetch
api_router.include_router(trigger.router, tags=["ingestion"])
