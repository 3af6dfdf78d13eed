"""Source descriptors and processing report schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class SourceDescriptor(BaseModel):
    """External configuration identifying one feed."""

    id: str
    url: str
    name: str
    category: str
    country: str = ""
    active: bool = True
    article_limit: int | None = Field(
        default=None,
        ge=1,
        description="Per-source item limit; overrides the run-wide limit when set",
    )


class SourceResult(BaseModel):
    """Counters and errors for one processed source."""

    stored: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)


class SourceBreakdown(BaseModel):
    """Per-source line of a processing report."""

    source: str
    stored: int
    skipped: int


class ProcessingReport(BaseModel):
    """Aggregate result of one multi-source run."""

    total_stored: int = 0
    total_skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    source_results: list[SourceBreakdown] = Field(default_factory=list)

    @property
    def status(self) -> Literal["success", "partial"]:
        """Status label: any recorded error makes the run partial."""
        return "partial" if self.errors else "success"
