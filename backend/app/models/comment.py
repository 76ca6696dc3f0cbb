from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid
from app.core.database import Base


class PracticeComment(Base):
    __tablename__ = "practice_comments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    practice_id = Column(
        UUID(as_uuid=True), ForeignKey("practices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String, nullable=False)

    type = Column(String, nullable=False, default="comment")  # comment | join | cancel
    comment = Column(Text, nullable=True)
    display_name = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<PracticeComment(id={self.id}, type={self.type})>"


class CommentLike(Base):
    __tablename__ = "comment_likes"
    __table_args__ = (Index("idx_comment_likes_comment_id", "comment_id"),)

    user_id = Column(String, primary_key=True)
    comment_id = Column(
        UUID(as_uuid=True), ForeignKey("practice_comments.id", ondelete="CASCADE"), primary_key=True
    )

    created_at = Column(DateTime, default=datetime.utcnow)
