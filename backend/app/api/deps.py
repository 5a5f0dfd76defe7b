from fastapi import Header

from app.schemas import CallerIdentity
from app.services.identity import authenticate


async def get_current_caller(
    authorization: str | None = Header(default=None),
) -> CallerIdentity:
    return await authenticate(authorization)
