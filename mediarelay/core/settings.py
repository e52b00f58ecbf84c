"""Settings for the media relay."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mediarelay.core.exceptions import StorageConfigurationError

MAX_UPLOAD_SIZE = 50 * 1024 * 1024  # 50 MiB


class RelaySettings(BaseSettings):
    """Process configuration, read from the environment and ``.env``.

    Built once at startup and handed to the app; handlers read it
    from ``app.state`` through dependencies.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "mediarelay"
    debug: bool = False
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 4000
    cors_origins: str = ""

    upload_dir: str = "uploads"
    upload_folder: str = "contenidos_ingles"
    max_upload_size: int = Field(MAX_UPLOAD_SIZE, gt=0)
    # 0 disables the timeout
    outbound_timeout_seconds: float = Field(60.0, ge=0)

    storage_backend: Literal["cloudinary", "s3"] = "cloudinary"

    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None

    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_default_region: str = "us-east-1"
    aws_bucket_name: str | None = None
    aws_url: str | None = None
    aws_retry_attempts: int = 3
    s3_public_url: str | None = None
    s3_acl: str | None = "public-read"

    @property
    def outbound_timeout(self) -> float | None:
        return self.outbound_timeout_seconds or None

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def missing_storage_fields(self, backend: str | None = None) -> list[str]:
        """Return the environment variables the selected backend still needs."""
        if (backend or self.storage_backend) == "cloudinary":
            required = {
                "CLOUDINARY_CLOUD_NAME": self.cloudinary_cloud_name,
                "CLOUDINARY_API_KEY": self.cloudinary_api_key,
                "CLOUDINARY_API_SECRET": self.cloudinary_api_secret,
            }
        else:
            required = {
                "AWS_BUCKET_NAME": self.aws_bucket_name,
                "AWS_ACCESS_KEY_ID": self.aws_access_key_id,
                "AWS_SECRET_ACCESS_KEY": self.aws_secret_access_key,
            }
        return [name for name, value in required.items() if not value]

    def validate_storage(self, backend: str | None = None) -> None:
        """Raise if the selected storage backend is not fully configured.

        Raises:
            StorageConfigurationError: Listing the missing variables
        """
        missing = self.missing_storage_fields(backend)
        if missing:
            raise StorageConfigurationError(missing_fields=missing)
