from sqlalchemy import Column, DateTime, String
from datetime import datetime
from app.core.database import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id = Column(String, primary_key=True)
    display_name = Column(String, nullable=True)
    calendar_feed_token = Column(String, nullable=True, unique=True)

    # Equipment and play
    racket = Column(String, nullable=True)
    forehand_rubber = Column(String, nullable=True)
    backhand_rubber = Column(String, nullable=True)
    play_style = Column(String, nullable=True)
    dominant_hand = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<UserProfile(user_id={self.user_id})>"
