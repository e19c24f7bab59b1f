from .user.user import User
from .feedback.feedback_model import Feedback, FeedbackCategory, FeedbackStatus
from .feedback.comment_model import FeedbackComment
