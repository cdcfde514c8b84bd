from app.feedback_sessions.repository import FeedbackSessionRepository
from app.feedback_sessions.service import FeedbackSessionService
from app.db.models import FeedbackSession

__all__ = ["FeedbackSessionRepository", "FeedbackSessionService", "FeedbackSession"]
