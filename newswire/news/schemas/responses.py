"""Article API response schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class ArticleResponse(BaseModel):
    """A stored article as served to the browsing client"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    url: str
    source: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    published_at: datetime
    created_at: Optional[datetime] = None


class TriggerResponse(BaseModel):
    status: str  # accepted, already_running
    message: str
