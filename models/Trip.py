from sqlalchemy import Column, String, Date, DateTime, JSON, func
from database import Base
import uuid


def _uuid() -> str:
    return str(uuid.uuid4())


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String(36), primary_key=True, default=_uuid)
    custom_id = Column(String(40), unique=True, nullable=True, index=True)  # shareable code, e.g. "paris-a3x7k2"
    name = Column(String(150), nullable=False)
    destination = Column(String(150), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    cover_image_url = Column(String(500), nullable=True)
    manager_id = Column(String, nullable=True, index=True)

    # Ledgers and plan details are written back whole on every save
    participants = Column(JSON, nullable=False, default=list)
    contributions = Column(JSON, nullable=False, default=list)  # initial fund round
    additional_contributions = Column(JSON, nullable=False, default=list)
    expenses = Column(JSON, nullable=False, default=list)
    timeline = Column(JSON, nullable=False, default=list)
    packing_list = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
