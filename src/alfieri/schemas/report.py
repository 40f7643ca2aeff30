"""Pydantic schemas for pipeline results."""

from pydantic import BaseModel, Field


class ProblemReport(BaseModel):
    """A problem met while processing one newsletter."""

    kind: str  # Exception class name, e.g. "ParseError"
    film: str | None = None
    message: str


class PipelineReport(BaseModel):
    """Summary of one pass of the ingestion pipeline."""

    blocks: int = 0
    records: int = 0
    published: int = 0
    duplicates: int = 0
    publication_failures: int = 0
    withheld: int = 0  # Not published because the dedup store failed
    storage_failed: bool = False
    newsletter_link: str | None = None
    problems: list[ProblemReport] = Field(default_factory=list)
