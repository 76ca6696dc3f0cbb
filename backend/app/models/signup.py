from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid
from app.core.database import Base


class Signup(Base):
    __tablename__ = "signups"
    __table_args__ = (UniqueConstraint("practice_id", "user_id", name="uq_signups_practice_user"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    practice_id = Column(
        UUID(as_uuid=True), ForeignKey("practices.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
