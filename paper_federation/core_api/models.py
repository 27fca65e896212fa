"""Pydantic models for CORE API v3 responses."""

from pydantic import BaseModel, Field, field_validator


class CoreAuthor(BaseModel):
    name: str | None = None


class Journal(BaseModel):
    title: str | None = None


class CoreWork(BaseModel):
    """A work as returned by /search/works and /works/{id}."""

    id: str | None = None
    title: str | None = None
    abstract: str | None = None
    year_published: int | None = Field(None, alias="yearPublished")
    authors: list[CoreAuthor] = Field(default_factory=list)
    publisher: str | None = None
    journals: list[Journal] = Field(default_factory=list)
    citation_count: int | None = Field(None, alias="citationCount")
    download_url: str | None = Field(None, alias="downloadUrl")
    doi: str | None = None
    field_of_study: str | None = Field(None, alias="fieldOfStudy")

    model_config = {"populate_by_name": True}

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        # CORE ids are numeric
        return str(value) if value is not None else None

    @field_validator("authors", "journals", mode="before")
    @classmethod
    def _drop_nulls(cls, value):
        return [item for item in (value or []) if item]


class CoreSearchResponse(BaseModel):
    total_hits: int | None = Field(0, alias="totalHits")
    limit: int | None = None
    offset: int | None = None
    results: list[CoreWork | None] | None = Field(default_factory=list)

    model_config = {"populate_by_name": True}
