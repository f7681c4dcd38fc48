"""
Key-value entry model - the substrate of the local entity store.

Each row holds one whole-collection snapshot (or one counter) serialized as JSON.
"""
from sqlalchemy import Column, DateTime, Integer, String, Text, func

from ..database import Base


class KeyValueEntry(Base):
    """
    Key-Value Entry Model

    Fields:
    - key: Storage key (e.g. "patients", "next_patient_id")
    - value: JSON document for the key
    - version: Incremented on every write, used for optimistic concurrency checks
    - updated_at: When the entry was last written
    """
    __tablename__ = "kv_entries"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        """String representation of the entry"""
        return f"<KeyValueEntry(key={self.key}, version={self.version})>"
