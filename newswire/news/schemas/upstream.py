"""Records returned by the NewsAPI /everything endpoint"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# NewsAPI relays publisher timestamps verbatim, some with 7+ fractional digits
_LONG_FRACTION = re.compile(r"(\.\d{6})\d+")


class RawArticle(BaseModel):
    """
    One upstream article. Every field is optional because NewsAPI omits or nulls them freely;
    the nested source object is only trusted when it is a mapping.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="urlToImage")
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt")
    source: Optional[Any] = None

    @field_validator("published_at", mode="wrap")
    @classmethod
    def coerce_published_at(cls, value, handler):
        """Unusable timestamps become None; naive ones are taken as UTC."""
        if value == "":
            return None
        if isinstance(value, str):
            value = _LONG_FRACTION.sub(r"\1", value.strip())
        try:
            parsed = handler(value)
        except ValidationError:
            return None

        if parsed is None:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    @property
    def source_name(self) -> Optional[str]:
        if isinstance(self.source, dict):
            name = self.source.get("name")
            return name if isinstance(name, str) and name else None
        return None
