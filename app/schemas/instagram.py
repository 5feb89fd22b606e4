"""
Instagram account and ingestion API schemas.
"""

from typing import Optional

from pydantic import Field

from app.schemas.style import CamelModel


class ConnectByUsernameRequest(CamelModel):
    """Public Instagram username to scrape."""
    username: str = Field(..., min_length=1, max_length=64)


class ActionResponse(CamelModel):
    """Generic success/message envelope."""
    success: bool
    message: str


class RefreshResponse(CamelModel):
    """
    Result of POST /instagram/refresh-posts.

    `posts` is the number of posts retrieved, or an empty list when nothing
    could be retrieved (partial).
    """
    success: bool = True
    posts: int | list = 0
    partial: Optional[bool] = None
    message: Optional[str] = None


class LinkedProfileResponse(CamelModel):
    """Currently linked Instagram account."""
    username: Optional[str] = None
    account_id: Optional[str] = None
    connected: bool
    has_token: bool


class AuthorizationUrlResponse(CamelModel):
    """Instagram authorize URL the client should redirect to."""
    authorization_url: str
