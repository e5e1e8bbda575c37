"""Pydantic schemas for the Q&A generation and document endpoints.

Field names accept both snake_case and the camelCase used by the web
frontend (``qaCount``, ``sourceType``...).
"""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from productqa.services.generation import GeneratedItem, SourceTag


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class GenerateQARequest(BaseModel):
    """Body of POST /qa/generate.

    Range and scope checks happen when the PipelineRequest is built, so
    they surface as 400 responses with a readable message.
    """

    url: str = Field(
        ...,
        min_length=1,
        description='Product page URL, or "source_code_input" to parse source_code',
        examples=["https://shop.example.jp/items/123"],
    )
    source_code: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("source_code", "sourceCode"),
        description="Raw page HTML (raw-markup mode only)",
    )
    qa_count: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("qa_count", "qaCount"),
        description="Number of Q&A items to generate (10-100)",
        examples=[30],
    )
    source_type: str = Field(
        "both",
        validation_alias=AliasChoices("source_type", "sourceType"),
        description="specified_url, external or both",
    )
    api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("api_key", "apiKey"),
        description="Anthropic API key overriding the server default",
    )


class ResearchRequest(BaseModel):
    """Body of POST /qa/research."""

    query: str = Field(..., min_length=1, description="Free-form product question")
    api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("api_key", "apiKey"),
        description="Anthropic API key overriding the server default",
    )

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value.strip()


class QAItemIn(BaseModel):
    """One Q&A pair submitted for document rendering."""

    question: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("question", "q")
    )
    answer: str = Field(..., min_length=1, validation_alias=AliasChoices("answer", "a"))
    source_type: Optional[SourceTag] = Field(
        None, validation_alias=AliasChoices("source_type", "sourceType")
    )

    @field_validator("source_type", mode="before")
    @classmethod
    def unknown_source_is_unlabelled(cls, value):
        if isinstance(value, SourceTag):
            return value
        if isinstance(value, str) and value in {tag.value for tag in SourceTag}:
            return value
        return None

    def to_item(self) -> GeneratedItem:
        return GeneratedItem(
            question=self.question, answer=self.answer, source_tag=self.source_type
        )


class DocumentRequest(BaseModel):
    """Body of POST /documents/{format}."""

    title: str = ""
    url: str = Field("", validation_alias=AliasChoices("url", "productUrl"))
    qa: List[QAItemIn] = Field(
        default_factory=list, validation_alias=AliasChoices("qa", "qaData")
    )
    include_labels: bool = Field(
        False, validation_alias=AliasChoices("include_labels", "includeLabels")
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class HealthCheckResponse(BaseModel):
    """Health check response schema."""

    status: str
    version: str
    environment: str
    generator_configured: bool


class ResearchResponse(BaseModel):
    """Answer of POST /qa/research; always tagged external."""

    answer: str
    source_type: SourceTag = Field(SourceTag.EXTERNAL, serialization_alias="sourceType")
