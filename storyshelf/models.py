# storyshelf/models.py
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


SourceType = Literal["primary", "licensed", "ebook"]
StoryStatus = Literal["ongoing", "completed"]


def split_genres(value: Union[str, List[str], None]) -> List[str]:
    """Accept genres as a list or as the comma-separated form used in storage."""
    if value is None:
        return []
    if isinstance(value, str):
        return [g.strip() for g in value.split(",") if g.strip()]
    return [str(g).strip() for g in value if str(g).strip()]


class Record(BaseModel):
    """The unit handed to the search index.

    ``source_type`` is set by whoever produces the record and is never
    inferred from the other fields.
    """

    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    title: str
    author: str = ""
    genres: List[str] = Field(default_factory=list)
    source_type: SourceType = "primary"

    @field_validator("genres", mode="before")
    @classmethod
    def _split_genres(cls, value):
        return split_genres(value)

    @field_validator("author", mode="before")
    @classmethod
    def _author_or_empty(cls, value):
        return value or ""


class PurchaseLink(BaseModel):
    name: str
    url: str


class CatalogItem(BaseModel):
    """A row of one of the three catalog partitions."""

    id: int
    title: str
    slug: str = ""
    author: str = ""
    description: str = ""
    cover_image: str = ""
    genres: List[str] = Field(default_factory=list)
    status: StoryStatus = "ongoing"
    purchase_links: List[PurchaseLink] = Field(default_factory=list)

    @field_validator("genres", mode="before")
    @classmethod
    def _split_genres(cls, value):
        return split_genres(value)

    def to_record(self, source_type: SourceType) -> Record:
        return Record(
            id=self.id,
            title=self.title,
            author=self.author,
            genres=list(self.genres),
            source_type=source_type,
        )


class CreateItemRequest(BaseModel):
    title: str
    slug: Optional[str] = None
    author: str = ""
    description: str = ""
    cover_image: str = ""
    genres: List[str] = Field(
        default_factory=list,
        description="Genres as a list or a comma-separated string.",
    )
    status: StoryStatus = "ongoing"
    purchase_links: List[PurchaseLink] = Field(default_factory=list)

    @field_validator("genres", mode="before")
    @classmethod
    def _split_genres(cls, value):
        return split_genres(value)


class UpdateStoryRequest(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    genres: Optional[List[str]] = None
    status: Optional[StoryStatus] = None

    @field_validator("genres", mode="before")
    @classmethod
    def _split_genres(cls, value):
        if value is None:
            return None
        return split_genres(value)


class Hit(BaseModel):
    """One search result, tagged with the partition it came from.

    ``rank`` is the 1-based position within its own source. ``score`` is
    only set for primary hits answered by the index; substring matches
    (fallback and secondary sources) are unranked.
    """

    record_id: Union[int, str]
    source_type: SourceType
    rank: int
    score: Optional[float] = None
    title: str
    author: str = ""
    genres: List[str] = Field(default_factory=list)
    purchase_links: List[PurchaseLink] = Field(default_factory=list)


class SearchResult(BaseModel):
    """Hits per source plus their concatenation.

    ``combined_hits`` lists primary hits first, then licensed, then
    ebook, each in its source's own order. Scores are not normalised
    across sources. ``degraded`` is true when primary hits came from the
    linear scan instead of the index.
    """

    query: str = ""
    primary_hits: List[Hit] = Field(default_factory=list)
    licensed_hits: List[Hit] = Field(default_factory=list)
    ebook_hits: List[Hit] = Field(default_factory=list)
    combined_hits: List[Hit] = Field(default_factory=list)
    degraded: bool = False
    unavailable_sources: List[SourceType] = Field(default_factory=list)
