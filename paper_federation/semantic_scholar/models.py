"""Pydantic models for Semantic Scholar API responses."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class Author(BaseModel):
    """Author information."""

    author_id: str | None = Field(None, alias="authorId")
    name: str | None = None


class OpenAccessPdf(BaseModel):
    """Open access PDF information."""

    url: str | None = None
    status: str | None = None


class PaperRecord(BaseModel):
    """Paper as returned by /paper/search and /paper/{id}."""

    paper_id: str | None = Field(None, alias="paperId")
    title: str | None = None
    abstract: str | None = None
    authors: list[Author] = Field(default_factory=list)
    year: int | None = None
    venue: str | None = None
    citation_count: int | None = Field(None, alias="citationCount")
    is_open_access: bool | None = Field(None, alias="isOpenAccess")
    open_access_pdf: OpenAccessPdf | None = Field(None, alias="openAccessPdf")
    external_ids: dict[str, Any] | None = Field(None, alias="externalIds")
    fields_of_study: list[str] | None = Field(None, alias="fieldsOfStudy")

    model_config = {"populate_by_name": True}

    @field_validator("authors", mode="before")
    @classmethod
    def _drop_null_authors(cls, value):
        return [a for a in (value or []) if a]


class SearchResponse(BaseModel):
    """Response from the paper search endpoint."""

    total: int | None = 0
    offset: int = 0
    next: int | None = None
    data: list[PaperRecord | None] | None = Field(default_factory=list)
