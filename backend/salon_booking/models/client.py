# backend/salon_booking/models/client.py
"""Client model; email is stored lower-cased and mobile as digits only."""

from sqlalchemy import Column, DateTime, Index, String
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    mobile = Column(String(32), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("ix_clients_name", "first_name", "last_name"),)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Client {self.id}: {self.full_name}>"
