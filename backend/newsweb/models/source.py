"""News source model - configured syndication feeds."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from newsweb.schemas.source import SourceDescriptor


class NewsSource(SQLModel, table=True):
    """A feed the pipeline ingests from."""

    __tablename__ = "news_sources"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    url: str = Field(max_length=2048)
    name: str = Field(max_length=200)
    category: str = Field(max_length=50, index=True)
    country: str = Field(default="", max_length=50, index=True)
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_descriptor(self) -> SourceDescriptor:
        """Read-only view handed to the orchestrators."""
        return SourceDescriptor(
            id=str(self.id),
            url=self.url,
            name=self.name,
            category=self.category,
            country=self.country,
            active=self.active,
        )
