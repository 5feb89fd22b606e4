"""Pydantic schemas"""

from app.schemas.captions import CaptionRequest, CaptionResult
from app.schemas.instagram import (
    ActionResponse,
    AuthorizationUrlResponse,
    ConnectByUsernameRequest,
    LinkedProfileResponse,
    RefreshResponse,
)
from app.schemas.posts import MediaKind, PostRecord
from app.schemas.style import (
    CaptionLength,
    EngagementInsights,
    ManualStyleDeclaration,
    StyleProfile,
    UsageLevel,
)

__all__ = [
    "CaptionRequest",
    "CaptionResult",
    "ActionResponse",
    "AuthorizationUrlResponse",
    "ConnectByUsernameRequest",
    "LinkedProfileResponse",
    "RefreshResponse",
    "MediaKind",
    "PostRecord",
    "CaptionLength",
    "EngagementInsights",
    "ManualStyleDeclaration",
    "StyleProfile",
    "UsageLevel",
]
