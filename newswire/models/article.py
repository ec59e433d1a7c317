from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from sqlalchemy.sql import func

from ..core.database import Base


class Article(Base):
    """
    A news article cached from NewsAPI.
    Rows are written once by the ingestion job and never updated; url is the dedupe key.
    """
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(255), nullable=False)
    url = Column(Text, nullable=False, unique=True)
    source = Column(String(100))
    description = Column(Text)
    content = Column(Text)
    image_url = Column(Text)
    category = Column(String(50))

    published_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_articles_category", "category"),
        Index("idx_articles_published_at", "published_at"),
    )

    def __repr__(self):
        return f"<Article(id={self.id}, title='{self.title[:50]}...', category='{self.category}')>"
