from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import StoreError
from ..models.article import Article


class ArticleRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_url(self, url: str) -> Optional[Article]:
        try:
            return self.session.query(Article).filter(Article.url == url).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to look up article {url}: {str(e)}")

    def insert(self, article: Article) -> Article:
        try:
            self.session.add(article)
            self.session.commit()
            self.session.refresh(article)
            return article
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to insert article {article.url}: {str(e)}")

    def insert_if_absent(self, values: Dict[str, Any]) -> bool:
        """Insert a row unless one with the same url exists. Returns True when a row was written."""
        dialect = self.session.get_bind().dialect.name

        if dialect == "postgresql":
            stmt = postgresql.insert(Article).values(**values).on_conflict_do_nothing(index_elements=["url"])
        elif dialect == "sqlite":
            stmt = sqlite.insert(Article).values(**values).on_conflict_do_nothing(index_elements=["url"])
        else:
            stmt = insert(Article).values(**values)

        try:
            result = self.session.execute(stmt)
            self.session.commit()
            return result.rowcount > 0
        except IntegrityError:
            # Engines without ON CONFLICT still reject the duplicate through the unique constraint
            self.session.rollback()
            return False
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to insert article {values.get('url')}: {str(e)}")

    def list_by_category(self, category: str) -> List[Article]:
        try:
            return (
                self.session.query(Article)
                .filter(Article.category == category)
                .order_by(desc(Article.published_at), desc(Article.id))
                .all()
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to list articles for category {category}: {str(e)}")

    def list_recent(self, limit: int = 100) -> List[Article]:
        try:
            return (
                self.session.query(Article)
                .order_by(desc(Article.published_at), desc(Article.id))
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to list recent articles: {str(e)}")

    def count(self) -> int:
        try:
            return self.session.query(func.count(Article.id)).scalar() or 0
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to count articles: {str(e)}")
