from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid
from app.core.database import Base


class Practice(Base):
    __tablename__ = "practices"
    __table_args__ = (
        Index("idx_practices_location_date", "location", "event_date"),
        Index("idx_practices_recurrence_group_id", "recurrence_group_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Schedule
    event_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    location = Column(String, nullable=False)
    max_participants = Column(Integer, nullable=False, default=1)

    # Description
    team_name = Column(String, nullable=True)
    content = Column(Text, nullable=True)
    level = Column(String, nullable=True)
    conditions = Column(Text, nullable=True)
    fee = Column(String, nullable=True)

    # Ownership (user id issued by the identity provider)
    owner_id = Column(String, nullable=False, index=True)
    display_name = Column(String, nullable=True)

    # Shared by every occurrence generated from one recurrence rule
    recurrence_group_id = Column(
        UUID(as_uuid=True), ForeignKey("recurrence_groups.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Practice(id={self.id}, date={self.event_date}, location={self.location})>"
