"""v1 API routes.

Every route except the workflow callback is scoped to the authenticated
user (/api/v1/...).
"""

from api.routes.v1.generations import router as generations_router
from api.routes.v1.voice_profiles import router as voice_profiles_router
from api.routes.v1.webhooks import router as webhooks_router

__all__ = [
    "generations_router",
    "voice_profiles_router",
    "webhooks_router",
]
