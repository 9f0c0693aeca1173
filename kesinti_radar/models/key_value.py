from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from kesinti_radar.database import Base


class KeyValueEntry(Base):
    """One serialized blob per key (e.g. the saved address list)."""
    __tablename__ = "key_value_entries"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
