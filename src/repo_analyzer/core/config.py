"""Configuration management for Repo Analyzer API."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

FALLBACK_BUCKET = "repo-analyzer"
FALLBACK_REGION = "eu-central-1"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # "development" disables API key checks; never set it in a deployed service
    ENV: str = Field(
        default="production", validation_alias=AliasChoices("ENV", "NODE_ENV")
    )
    SERVICE_NAME: str = "repo-analyzer-api"
    SERVICE_VERSION: str = "0.1.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Authentication
    API_KEY: str = ""
    REQUIRE_AUTH_FOR_ANALYZE: bool = True

    # Object storage
    STORAGE_BACKEND: str = "s3"  # "s3", "r2" or "local"
    AWS_S3_BUCKET: str = ""
    AWS_REGION: str = ""
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    S3_ENDPOINT_URL: str = ""
    R2_ACCOUNT_ID: str = ""
    STORAGE_DOMAIN: str = Field(
        default="", validation_alias=AliasChoices("STORAGE_DOMAIN", "R2_DOMAIN")
    )
    LOCAL_STORAGE_PATH: str = "data/objects"
    OBJECT_ACL: str = "public-read"

    # Upload constraints
    MAX_UPLOAD_MB: int = 10
    UPLOAD_READ_TIMEOUT_SECONDS: float = 30.0
    STORE_WRITE_TIMEOUT_SECONDS: float = 60.0

    # Analysis jobs
    JOB_STORE_PATH: str = ""  # Empty = in-memory job table
    ANALYSIS_WORKERS: int = 2
    ANALYSIS_TIMEOUT_SECONDS: float = 300.0

    CORS_ALLOW_ORIGINS: str = "*"  # Comma-separated

    @property
    def is_development(self) -> bool:
        """Whether the service runs in local development mode."""
        return self.ENV.strip().lower() == "development"

    @property
    def default_bucket(self) -> str:
        """Configured bucket, falling back to the built-in default."""
        return self.AWS_S3_BUCKET or FALLBACK_BUCKET

    @property
    def default_region(self) -> str:
        """Configured region, falling back to the built-in default."""
        return self.AWS_REGION or FALLBACK_REGION

    @property
    def max_upload_bytes(self) -> int:
        """Convert MAX_UPLOAD_MB to bytes."""
        return self.MAX_UPLOAD_MB * 1024 * 1024

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS_ALLOW_ORIGINS into a list."""
        origins = [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",")]
        return [origin for origin in origins if origin] or ["*"]


# Singleton settings instance
settings = Settings()
