"""
SocialAccountLink model — a user's single Instagram connection.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class SocialAccountLink(Base):
    """
    At most one link per user; relinking overwrites the row in place.

    A link made through OAuth carries an access token and is refreshed with
    the Graph API connector. A link made by username has no token and is
    refreshed with the scraper connector.
    """

    __tablename__ = "social_account_links"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    external_account_id: Mapped[Optional[str]] = mapped_column(String(64))
    external_username: Mapped[Optional[str]] = mapped_column(String(64))
    access_token: Mapped[Optional[str]] = mapped_column(Text)
    token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    connected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def has_token(self) -> bool:
        return bool(self.access_token)

    def __repr__(self) -> str:
        return f"<SocialAccountLink(user_id={self.user_id}, username={self.external_username})>"
