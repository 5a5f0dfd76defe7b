from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Longest lifetime a presigned upload URL may be given by deployment config.
MAX_UPLOAD_URL_TTL = 3600

DEFAULT_ALLOWED_CONTENT_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: Literal["local", "prod", "test"] = Field(default="local", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")

    auth_backend: Literal["supabase", "jwt"] = Field(default="supabase", alias="AUTH_BACKEND")
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: str | None = Field(default=None, alias="SUPABASE_ANON_KEY")
    supabase_jwt_secret: str | None = Field(default=None, alias="SUPABASE_JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_audience: str = Field(default="authenticated", alias="JWT_AUDIENCE")
    auth_timeout_seconds: float = Field(default=10.0, gt=0, alias="AUTH_TIMEOUT_SECONDS")

    allowed_upload_content_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_CONTENT_TYPES),
        alias="ALLOWED_UPLOAD_CONTENT_TYPES",
    )
    upload_url_ttl: int = Field(
        default=MAX_UPLOAD_URL_TTL,
        gt=0,
        le=MAX_UPLOAD_URL_TTL,
        alias="UPLOAD_URL_TTL",
    )
    upload_key_prefix: str = Field(default="profiles", min_length=1, alias="UPLOAD_KEY_PREFIX")

    cors_allow_origin: str = Field(default="*", alias="CORS_ALLOW_ORIGIN")


class ObjectStoreSettings(BaseSettings):
    """Object-store credentials and target.

    Deliberately not cached: a fresh instance is read for every signing
    operation and dropped when the request finishes.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    access_key_id: str | None = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    secret_access_key: SecretStr | None = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    bucket: str | None = Field(default=None, alias="AWS_S3_BUCKET")
    region: str | None = Field(default=None, alias="AWS_REGION")


@lru_cache
def get_settings() -> Settings:
    return Settings()
