from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class BoutRecord(SQLModel, table=True):
    """Flat, persisted form of one bout. A category bracket is all rows sharing (tournament_id, category_key)."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "bout_id", name="uq_tournament_bout"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(index=True)
    category_key: str = Field(index=True)
    bout_id: str
    position: int  # Arena order within the category

    # Slots: competitor dict | "BYE" | null
    red: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    blue: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    winner: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))

    round: str
    ring_id: Optional[str] = Field(default=None)
    bout_number: Optional[str] = Field(default=None)

    parent_id: Optional[str] = Field(default=None)
    left_child_id: Optional[str] = Field(default=None)
    right_child_id: Optional[str] = Field(default=None)

    is_table_mode: bool = Field(default=False)
    score: Optional[float] = Field(default=None)
    rank: Optional[int] = Field(default=None)

    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
