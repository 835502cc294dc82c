"""Database models."""
from app.models.user import User
from app.models.subscription import SubscriptionTier, UserSubscription
from app.models.course import Course, CourseTopic
from app.models.mcq import Mcq, McqTopicLink, BookmarkedMcq, McqFeedback
from app.models.content import StaticPage, Blog, Review
from app.models.video import VideoGroup, VideoSubgroup

__all__ = [
    "User",
    "SubscriptionTier",
    "UserSubscription",
    "Course",
    "CourseTopic",
    "Mcq",
    "McqTopicLink",
    "BookmarkedMcq",
    "McqFeedback",
    "StaticPage",
    "Blog",
    "Review",
    "VideoGroup",
    "VideoSubgroup",
]
