"""Normalized row model."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Untrusted scrape provider record, shape not guaranteed
RawRecord = Mapping[str, Any]


class NormalizedRow(BaseModel):
    """Flat projection of one scraped post, used for export and analysis."""

    model_config = ConfigDict(populate_by_name=True)

    account_bio: str | None = Field(default=None, alias="accountBio")
    post_text: str | None = Field(default=None, alias="postText")
    post_url: str | None = Field(default=None, alias="postUrl")

    # Engagement metrics
    like_count: int | float | None = Field(default=None, alias="likeCount")
    reply_count: int | float | None = Field(default=None, alias="replyCount")
    share_count: int | float | None = Field(default=None, alias="shareCount")
    quote_count: int | float | None = Field(default=None, alias="quoteCount")
    view_count: int | float | None = Field(default=None, alias="viewCount")

    def to_record(self) -> dict[str, Any]:
        """Present fields only, keyed by export (camelCase) name."""
        return self.model_dump(by_alias=True, exclude_none=True)
