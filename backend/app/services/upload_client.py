"""Client for the profile-photo upload flow.

Asks the API for a presigned URL, then sends the bytes straight to the object
store. Mirrors what the web client does so scripts and tests can exercise the
whole round trip.
"""

import argparse
import asyncio
import mimetypes
import os
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path

import httpx

from app.core.config import DEFAULT_ALLOWED_CONTENT_TYPES
from app.schemas import PresignResponse

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class UploadClientError(Exception):
    """Raised when a profile-photo upload cannot be completed."""


def _error_message(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    return data.get("error") if isinstance(data, dict) else None


class ProfilePhotoUploader:
    def __init__(
        self,
        api_base_url: str,
        access_token: str,
        allowed_content_types: Iterable[str] = DEFAULT_ALLOWED_CONTENT_TYPES,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_base_url = api_base_url.rstrip("/")
        self._access_token = access_token
        self.allowed_content_types = frozenset(allowed_content_types)
        self.max_upload_bytes = max_upload_bytes
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def get_signed_upload_url(self, file_name: str, content_type: str) -> PresignResponse:
        async with self._client() as client:
            try:
                response = await client.post(
                    f"{self.api_base_url}/s3-upload",
                    json={"fileName": file_name, "contentType": content_type},
                    headers={"Authorization": f"Bearer {self._access_token}"},
                )
            except httpx.HTTPError as exc:
                raise UploadClientError("Failed to get upload URL") from exc

        if response.is_error:
            raise UploadClientError(_error_message(response) or "Failed to get upload URL")
        return PresignResponse.model_validate(response.json())

    async def upload(self, data: bytes, file_name: str, content_type: str) -> str:
        """Upload ``data`` and return the object's public URL."""
        if content_type not in self.allowed_content_types:
            raise UploadClientError("Invalid file type. Only images are allowed.")
        if len(data) > self.max_upload_bytes:
            limit_mb = self.max_upload_bytes // (1024 * 1024)
            raise UploadClientError(f"File too large. Maximum size is {limit_mb}MB.")

        signed = await self.get_signed_upload_url(file_name, content_type)

        async with self._client() as client:
            try:
                response = await client.put(
                    signed.upload_url,
                    content=data,
                    headers={"Content-Type": content_type},
                )
            except httpx.HTTPError as exc:
                raise UploadClientError("Failed to upload file to S3") from exc

        if response.is_error:
            raise UploadClientError("Failed to upload file to S3")
        return signed.public_url


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Upload a profile photo through the Rollcall API.")
    parser.add_argument("path", type=Path, help="image file to upload")
    parser.add_argument("--api-url", default=os.environ.get("ROLLCALL_API_URL"), help="API base URL")
    parser.add_argument(
        "--token",
        default=os.environ.get("ROLLCALL_ACCESS_TOKEN"),
        help="bearer token (defaults to ROLLCALL_ACCESS_TOKEN)",
    )
    parser.add_argument("--content-type", help="override the type guessed from the file name")
    args = parser.parse_args(argv)

    if not args.api_url or not args.token:
        parser.error("--api-url and --token (or ROLLCALL_API_URL / ROLLCALL_ACCESS_TOKEN) are required")

    content_type = args.content_type or mimetypes.guess_type(args.path.name)[0] or ""
    uploader = ProfilePhotoUploader(args.api_url, args.token)
    try:
        public_url = asyncio.run(uploader.upload(args.path.read_bytes(), args.path.name, content_type))
    except (OSError, UploadClientError) as exc:
        print(f"Upload failed: {exc}", file=sys.stderr)
        return 1

    print(public_url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
