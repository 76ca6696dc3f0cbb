from app.models.practice import Practice
from app.models.recurrence_group import RecurrenceGroup
from app.models.comment import PracticeComment, CommentLike
from app.models.signup import Signup
from app.models.user_profile import UserProfile

__all__ = ["Practice", "RecurrenceGroup", "PracticeComment", "CommentLike", "Signup", "UserProfile"]
