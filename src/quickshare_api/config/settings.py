# src/quickshare_api/config/settings.py
from typing import List, Optional
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

LOCAL_MODES = ("local-dev", "aws-mock")
VALID_MODES = ("local-dev", "aws-mock", "aws-prod")
MOTO_SERVER_URL = "http://localhost:5000"


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Keyword arguments (tests, scripts)
    2. Environment variables
    3. .env file (if exists)
    4. Default values in this class (lowest priority)

    Usage:
        from quickshare_api.config.settings import get_settings
        settings = get_settings()
        app = create_app(settings)

    The object is built once per process and handed to ``create_app`` and
    ``create_backend`` explicitly; nothing reads it from module globals.
    """

    # Application Settings
    app_name: str = Field(
        default="quickshare-api",
        description="Application name"
    )

    # Deployment Mode
    deployment_mode: str = Field(
        default="local-dev",
        description="Deployment mode: local-dev, aws-mock, or aws-prod"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    # Object store
    s3_bucket_name: str = Field(
        default="quickshare-uploads",
        description="Bucket holding uploaded files"
    )

    upload_prefix: str = Field(
        default="user-uploads",
        description="Key prefix every upload is stored under"
    )

    public_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for unauthenticated object links (defaults to the S3 endpoint)"
    )

    # Hosted table (PostgREST-style REST endpoint)
    backend_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("backend_url", "BACKEND_URL", "SUPABASE_URL"),
        description="Base URL of the hosted backend"
    )

    backend_anon_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("backend_anon_key", "BACKEND_ANON_KEY", "SUPABASE_ANON_KEY"),
        description="Public anonymous key"
    )

    backend_service_role_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "backend_service_role_key", "BACKEND_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_ROLE_KEY"
        ),
        description="Service-role key, server side only"
    )

    posts_table: str = Field(
        default="text_posts",
        description="Table holding text posts"
    )

    request_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for calls to the hosted table"
    )

    # Local table stand-in
    sqlite_db_path: str = Field(
        default="quickshare.db",
        description="SQLite file used for posts in local modes"
    )

    # Listing / uploads
    files_page_size: int = Field(
        default=12,
        ge=1,
        description="Number of files per listing page"
    )

    upload_concurrency: int = Field(
        default=4,
        ge=1,
        description="Maximum number of uploads in flight per batch"
    )

    max_upload_size_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest file accepted by POST /api/upload"
    )

    count_cache_ttl_seconds: float = Field(
        default=30.0,
        ge=0,
        description="How long a cached file count stays fresh"
    )

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed to call the API from a browser"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("deployment_mode", mode="before")
    @classmethod
    def normalize_deployment_mode(cls, v):
        """Normalize deployment mode values for backwards compatibility."""
        if v:
            mode_mapping = {
                "local-mock": "local-dev",
                "local": "local-dev",
                "cloud": "aws-prod",
            }
            return mode_mapping.get(v, v)
        return v

    @field_validator("deployment_mode")
    @classmethod
    def validate_deployment_mode(cls, v):
        """Validate deployment mode is one of the allowed values."""
        if v not in VALID_MODES:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {list(VALID_MODES)}")
        return v

    @field_validator("upload_prefix")
    @classmethod
    def strip_prefix_slashes(cls, v: str) -> str:
        return v.strip("/")

    @model_validator(mode="after")
    def fill_local_defaults(self) -> Self:
        """Point local modes at the moto server with mock credentials unless told otherwise."""
        if self.deployment_mode in LOCAL_MODES:
            if self.aws_endpoint_url is None:
                self.aws_endpoint_url = MOTO_SERVER_URL
            if self.aws_access_key_id is None:
                self.aws_access_key_id = "mock"
            if self.aws_secret_access_key is None:
                self.aws_secret_access_key = "mock"
        return self

    @property
    def table_api_key(self) -> Optional[str]:
        """Key used by the server for table calls; the service role wins over the anon key."""
        return self.backend_service_role_key or self.backend_anon_key

    def masked(self) -> dict:
        """Settings as a dict with secrets blanked, for display."""
        data = self.model_dump()
        for key in ("aws_secret_access_key", "backend_service_role_key", "backend_anon_key"):
            if data.get(key):
                data[key] = "****"
        return data

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
