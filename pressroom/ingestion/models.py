"""Data models for ingestion."""

from typing import List, Optional

from pydantic import BaseModel, Field


class SearchResult(BaseModel):
    """One web search hit."""

    title: str = Field(..., description="Result title")
    snippet: str = Field(..., description="Result snippet")
    link: str = Field(..., description="Result URL")


class SourceDocument(BaseModel):
    """Search result annotated with extracted page text."""

    result: SearchResult = Field(..., description="Originating search result")
    text: str = Field("", description="Extracted main text")
    fetch_success: bool = Field(True, description="Whether fetch and extraction succeeded")
    error: Optional[str] = Field(None, description="Error message if failed")

    @property
    def link(self) -> str:
        return self.result.link


class SourceBundle(BaseModel):
    """Everything gathered for one topic."""

    topic: str = Field(..., description="Requested topic")
    documents: List[SourceDocument] = Field(default_factory=list, description="Documents in search order")
    used_fallback: bool = Field(False, description="Whether curated fallback sources were used")

    @property
    def links(self) -> List[str]:
        """All search links in gathering order, duplicates removed."""
        return list(dict.fromkeys(doc.link for doc in self.documents))

    @property
    def usable(self) -> List[SourceDocument]:
        """Documents whose page text was fetched successfully."""
        return [doc for doc in self.documents if doc.fetch_success and doc.text.strip()]

    def is_empty(self) -> bool:
        return not self.documents
