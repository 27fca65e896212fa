"""Pydantic models for OpenAlex Works API responses."""

from pydantic import BaseModel, Field, field_validator


class AuthorRef(BaseModel):
    id: str | None = None
    display_name: str | None = None


class Authorship(BaseModel):
    author: AuthorRef | None = None


class LocationSource(BaseModel):
    display_name: str | None = None


class Location(BaseModel):
    source: LocationSource | None = None


class OpenAccess(BaseModel):
    is_oa: bool | None = None
    oa_url: str | None = None


class Keyword(BaseModel):
    keyword: str | None = None
    display_name: str | None = None


class Concept(BaseModel):
    display_name: str | None = None


class Work(BaseModel):
    """A work as returned by /works and /works/{id}."""

    id: str | None = None
    title: str | None = None
    abstract_inverted_index: dict[str, list[int]] | None = None
    publication_year: int | None = None
    authorships: list[Authorship] = Field(default_factory=list)
    primary_location: Location | None = None
    cited_by_count: int | None = None
    open_access: OpenAccess | None = None
    doi: str | None = None
    keywords: list[Keyword] = Field(default_factory=list)
    concepts: list[Concept] = Field(default_factory=list)

    @field_validator("authorships", "keywords", "concepts", mode="before")
    @classmethod
    def _drop_nulls(cls, value):
        return [item for item in (value or []) if item]


class Meta(BaseModel):
    count: int | None = 0
    page: int | None = None
    per_page: int | None = None


class WorksResponse(BaseModel):
    """Response from the /works list endpoint."""

    meta: Meta | None = None
    results: list[Work | None] | None = Field(default_factory=list)
