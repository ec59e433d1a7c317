from .responses import ArticleResponse, TriggerResponse
from .upstream import RawArticle

__all__ = ["ArticleResponse", "TriggerResponse", "RawArticle"]
