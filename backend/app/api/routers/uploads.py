import logging

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import ValidationError

from app.api.deps import get_current_caller
from app.core.exceptions import InvalidInputError, UnexpectedError, UploadError
from app.schemas import CallerIdentity, PresignRequest, PresignResponse
from app.services import uploads as upload_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


async def _read_payload(request: Request) -> PresignRequest:
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidInputError("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise InvalidInputError()
    try:
        return PresignRequest.model_validate(body)
    except ValidationError as exc:
        raise InvalidInputError() from exc


@router.options("/s3-upload", include_in_schema=False)
async def upload_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK)


@router.post("/s3-upload", response_model=PresignResponse)
async def create_upload_url(
    request: Request,
    caller: CallerIdentity = Depends(get_current_caller),
) -> PresignResponse:
    payload = await _read_payload(request)
    try:
        upload = upload_service.create_presigned_upload(
            caller,
            payload.file_name,
            payload.content_type,
        )
    except UploadError:
        raise
    except Exception as exc:
        logger.exception("Error generating signed URL")
        raise UnexpectedError(str(exc)) from exc

    return PresignResponse(
        upload_url=upload.upload_url,
        public_url=upload.public_url,
        key=upload.key,
    )
