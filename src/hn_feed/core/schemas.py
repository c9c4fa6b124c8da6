"""Pydantic models for the records that flow through the enrichment pipeline.

The same models serve as the JSON wire format of ``GET /stories`` and as the
serialised form stored in the cache (``model_dump_json`` /
``model_validate_json``), so a cached value and a freshly computed one are
indistinguishable to callers.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hn_feed.config.defaults import PLACEHOLDER_IMAGE

#: Longest description (ellipsis included) a record may carry.
DESCRIPTION_MAX_CHARS: int = 200


class MetadataResult(BaseModel):
    """Image and description scraped from one linked page.

    Attributes:
        image: Absolute image URL, or the placeholder sentinel.
        description: Sanitised description, possibly empty.
    """

    model_config = ConfigDict(frozen=True)

    image: str = PLACEHOLDER_IMAGE
    description: str = ""


class FaviconResult(BaseModel):
    """Best-effort icon for a domain.

    Attributes:
        domain: Host with any leading ``www.`` removed.
        icon: Absolute icon URL, or the placeholder sentinel.
    """

    model_config = ConfigDict(frozen=True)

    domain: str
    icon: str = PLACEHOLDER_IMAGE


class StoryRecord(BaseModel):
    """A story as served to the feed.

    Upstream fields are passed through with safe defaults for anything the
    item omits.  ``image`` and ``description`` are always present, including
    on the error record built when the item itself could not be fetched.

    Attributes:
        id: Upstream item id.
        title: Story title.
        url: Linked URL, or the discussion page for text posts.
        score: Points.
        time: Submission time (Unix seconds).
        by: Submitter username.
        descendants: Comment count.
        image: Representative image URL or a sentinel path.
        description: Sanitised, bounded description; may be empty.
        domain: Host of ``url`` without ``www.``; empty when unparseable.
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str = ""
    url: str
    score: int = 0
    time: int = 0
    by: str = ""
    descendants: int = 0
    image: str = PLACEHOLDER_IMAGE
    description: str = Field(default="", max_length=DESCRIPTION_MAX_CHARS)
    domain: str = ""

    @field_validator("title", "by", mode="before")
    @classmethod
    def none_to_empty(cls, v: str | None) -> str:
        """Upstream sends ``null`` for deleted users and some job posts."""
        return "" if v is None else v

    @field_validator("score", "time", "descendants", mode="before")
    @classmethod
    def none_to_zero(cls, v: int | None) -> int:
        return 0 if v is None else v

    @field_validator("image", mode="before")
    @classmethod
    def empty_image_to_placeholder(cls, v: str | None) -> str:
        return v or PLACEHOLDER_IMAGE
