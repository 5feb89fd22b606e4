"""API Route modules"""

from app.api.routes.captions import router as captions_router
from app.api.routes.instagram import router as instagram_router
from app.api.routes.instagram_oauth import router as instagram_oauth_router

__all__ = [
    "captions_router",
    "instagram_router",
    "instagram_oauth_router",
]
