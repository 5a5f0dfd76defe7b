from app.schemas.storage import PresignRequest, PresignResponse
from app.schemas.user import CallerIdentity

__all__ = [
    "CallerIdentity",
    "PresignRequest",
    "PresignResponse",
]
