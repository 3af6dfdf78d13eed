"""User model for PostgreSQL."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """User account model; the pipeline only needs it as an article author."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    name: str | None = Field(default=None, max_length=100)
    role: str = Field(default="USER", max_length=20)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
