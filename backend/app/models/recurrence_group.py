from sqlalchemy import Column, Date, DateTime, SmallInteger, String
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid
from app.core.database import Base


class RecurrenceGroup(Base):
    """Recurrence rule a batch of practices was generated from.

    ``id`` doubles as the ``recurrence_group_id`` stamped on the batch.
    """

    __tablename__ = "recurrence_groups"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(String, nullable=False)

    type = Column(String, nullable=False)  # weekly | monthly_by_date | monthly_by_nth_weekday
    anchor_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    day_of_week = Column(SmallInteger, nullable=True)  # 0 = Monday
    nth_week = Column(SmallInteger, nullable=True)  # 1..5

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<RecurrenceGroup(id={self.id}, type={self.type}, end_date={self.end_date})>"
