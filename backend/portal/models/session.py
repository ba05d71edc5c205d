from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class SessionRecord(SQLModel, table=True):
    __tablename__ = "sessions"

    id: str = Field(primary_key=True)
    data: str  # Fernet token of the JSON payload
    expires_at: datetime = Field(index=True, sa_type=DateTime(timezone=True))

    def expires_at_utc(self) -> datetime:
        # SQLite hands back naive values; everything stored is UTC
        if self.expires_at.tzinfo is None:
            return self.expires_at.replace(tzinfo=UTC)
        return self.expires_at
