import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from app.core.config import ObjectStoreSettings, Settings, get_settings
from app.core.exceptions import ConfigurationError, InvalidInputError
from app.schemas import CallerIdentity
from app.services import sigv4
from app.services.sigv4 import SigningCredentials, SigningRequest, UploadTarget

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"


@dataclass(frozen=True)
class PresignedUpload:
    upload_url: str
    public_url: str
    key: str


def validate_upload_intent(
    file_name: str | None,
    content_type: str | None,
    allowed_content_types: Iterable[str],
) -> None:
    if not file_name or not content_type:
        raise InvalidInputError("Missing fileName or contentType")
    if content_type not in set(allowed_content_types):
        raise InvalidInputError("Invalid file type. Only images are allowed.")


def resolve_configuration() -> tuple[SigningCredentials, str, str]:
    """Read signing credentials, bucket and region for this request only."""
    config = ObjectStoreSettings()
    secret = config.secret_access_key.get_secret_value() if config.secret_access_key else ""

    missing = [
        name
        for name, value in (
            ("AWS_ACCESS_KEY_ID", config.access_key_id),
            ("AWS_SECRET_ACCESS_KEY", secret),
            ("AWS_S3_BUCKET", config.bucket),
            ("AWS_REGION", config.region),
        )
        if not value
    ]
    if missing:
        logger.error("Missing object storage configuration: %s", ", ".join(missing))
        raise ConfigurationError()

    credentials = SigningCredentials(
        access_key_id=config.access_key_id,
        secret_access_key=secret,
    )
    return credentials, config.bucket, config.region


def file_extension(file_name: str) -> str:
    _, dot, ext = file_name.rpartition(".")
    return ext if dot and ext else DEFAULT_EXTENSION


def derive_object_key(caller_id: str, file_name: str, prefix: str = "profiles") -> str:
    millis = time.time_ns() // 1_000_000
    return f"{prefix}/{caller_id}/{millis}-{uuid4()}.{file_extension(file_name)}"


def create_presigned_upload(
    caller: CallerIdentity,
    file_name: str | None,
    content_type: str | None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> PresignedUpload:
    settings = settings or get_settings()
    validate_upload_intent(file_name, content_type, settings.allowed_upload_content_types)

    credentials, bucket, region = resolve_configuration()
    key = derive_object_key(caller.id, file_name, prefix=settings.upload_key_prefix)
    target = UploadTarget(bucket=bucket, region=region, object_key=key)
    request = SigningRequest(content_type=content_type, expires_in=settings.upload_url_ttl)

    upload_url = sigv4.presign(credentials, target, request, now=now)
    logger.info("Generated signed URL for user %s, key: %s", caller.id, key)
    return PresignedUpload(
        upload_url=upload_url,
        public_url=sigv4.public_url(target),
        key=key,
    )
