"""AWS Signature Version 4 presigning for single-object S3 uploads.

Produces query-string-authenticated URLs that let a browser ``PUT`` one object
directly into a bucket. The object body is not hashed at presign time, so the
payload hash is always ``UNSIGNED-PAYLOAD``.

Reference: https://docs.aws.amazon.com/AmazonS3/latest/API/sigv4-query-string-auth.html
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import quote

ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE = "s3"
TERMINATOR = "aws4_request"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"

# SigV4 refuses presigned URLs valid for longer than seven days.
MAX_EXPIRES_SECONDS = 7 * 24 * 60 * 60

# RFC 3986 unreserved characters; quote() always leaves A-Z a-z 0-9 alone.
_UNRESERVED = "-_.~"


@dataclass(frozen=True)
class SigningCredentials:
    access_key_id: str
    secret_access_key: str = field(repr=False)


@dataclass(frozen=True)
class UploadTarget:
    bucket: str
    region: str
    object_key: str

    @property
    def host(self) -> str:
        return virtual_host(self.bucket, self.region)


@dataclass(frozen=True)
class SigningRequest:
    content_type: str
    expires_in: int = 3600
    method: str = "PUT"

    def __post_init__(self) -> None:
        if isinstance(self.expires_in, bool) or not isinstance(self.expires_in, int):
            raise TypeError("expires_in must be an integer number of seconds")
        if not 0 < self.expires_in <= MAX_EXPIRES_SECONDS:
            raise ValueError(
                f"expires_in must be between 1 and {MAX_EXPIRES_SECONDS} seconds"
            )


def uri_encode(value: str, *, keep_slash: bool = False) -> str:
    safe = _UNRESERVED + ("/" if keep_slash else "")
    return quote(value, safe=safe, encoding="utf-8")


def format_timestamps(now: datetime) -> tuple[str, str]:
    """Return ``(amz_date, date_stamp)`` for a single instant."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    amz_date = now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return amz_date, amz_date[:8]


def credential_scope(date_stamp: str, region: str, service: str = SERVICE) -> str:
    return f"{date_stamp}/{region}/{service}/{TERMINATOR}"


def virtual_host(bucket: str, region: str) -> str:
    return f"{bucket}.{SERVICE}.{region}.amazonaws.com"


def canonical_uri(object_key: str) -> str:
    return "/" + uri_encode(object_key, keep_slash=True)


def canonical_query_string(params: Mapping[str, str]) -> str:
    pairs = sorted((uri_encode(name), uri_encode(value)) for name, value in params.items())
    return "&".join(f"{name}={value}" for name, value in pairs)


def canonical_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """Return the canonical header block and the signed-headers list.

    Every header line, the last one included, ends with a newline.
    """
    items = sorted((name.strip().lower(), " ".join(value.split())) for name, value in headers.items())
    block = "".join(f"{name}:{value}\n" for name, value in items)
    signed = ";".join(name for name, _ in items)
    return block, signed


def canonical_request(
    method: str,
    uri: str,
    query: Mapping[str, str],
    headers: Mapping[str, str],
    payload_hash: str = UNSIGNED_PAYLOAD,
) -> str:
    header_block, signed_headers = canonical_headers(headers)
    return "\n".join(
        [
            method,
            uri,
            canonical_query_string(query),
            header_block,
            signed_headers,
            payload_hash,
        ]
    )


def string_to_sign(amz_date: str, scope: str, request: str) -> str:
    digest = hashlib.sha256(request.encode("utf-8")).hexdigest()
    return "\n".join([ALGORITHM, amz_date, scope, digest])


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_access_key: str,
    date_stamp: str,
    region: str,
    service: str = SERVICE,
) -> bytes:
    k_date = _hmac_sha256(f"AWS4{secret_access_key}".encode("utf-8"), date_stamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, TERMINATOR)


def sign(signing_key: bytes, to_sign: str) -> str:
    return hmac.new(signing_key, to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def presign(
    credentials: SigningCredentials,
    target: UploadTarget,
    request: SigningRequest,
    now: datetime | None = None,
) -> str:
    """Build a presigned URL authorizing ``request.method`` on ``target``.

    The uploader must send the same ``Content-Type`` header it was signed for.
    Identical inputs and instant always yield the identical URL.
    """
    amz_date, date_stamp = format_timestamps(now or datetime.now(timezone.utc))
    scope = credential_scope(date_stamp, target.region)
    host = target.host
    uri = canonical_uri(target.object_key)

    headers = {"content-type": request.content_type, "host": host}
    _, signed_headers = canonical_headers(headers)
    query = {
        "X-Amz-Algorithm": ALGORITHM,
        "X-Amz-Credential": f"{credentials.access_key_id}/{scope}",
        "X-Amz-Date": amz_date,
        "X-Amz-Expires": str(request.expires_in),
        "X-Amz-SignedHeaders": signed_headers,
    }

    creq = canonical_request(request.method, uri, query, headers)
    signing_key = derive_signing_key(credentials.secret_access_key, date_stamp, target.region)
    signature = sign(signing_key, string_to_sign(amz_date, scope, creq))

    return f"https://{host}{uri}?{canonical_query_string(query)}&X-Amz-Signature={signature}"


def public_url(target: UploadTarget) -> str:
    return f"https://{target.host}{canonical_uri(target.object_key)}"
