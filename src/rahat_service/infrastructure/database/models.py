"""SQLAlchemy database models."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CaseDB(Base):
    """SQLAlchemy model for cases table.

    Victim name and contact are copied out of the victim JSON so that
    free-text search can run in the database.
    """

    __tablename__ = "cases"

    case_id = Column(String(32), primary_key=True, index=True)

    victim = Column(JSON, nullable=False)
    victim_name = Column(String(200), nullable=False, index=True)
    victim_contact = Column(String(200), nullable=False, index=True)
    case_sdm = Column(String(100), nullable=False, index=True)

    status = Column(String(40), nullable=False, default="created", index=True)
    stage = Column(Integer, nullable=False, default=1, index=True)

    documents = Column(JSON, nullable=False, default=list)
    remarks = Column(JSON, nullable=False, default=list)
    payment = Column(JSON, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
