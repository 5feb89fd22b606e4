"""Database models"""

from app.models.social_account import SocialAccountLink
from app.models.social_post import SocialPost
from app.models.user_style_profile import UserStyleProfile

__all__ = [
    "SocialAccountLink",
    "SocialPost",
    "UserStyleProfile",
]
