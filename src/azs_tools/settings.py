"""Tool settings loaded from environment variables."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for azs-tools.

    Values are read from ``AZS_``-prefixed environment variables
    (case-insensitive) and optionally from a ``.env`` file in the working
    directory.
    """

    arm_endpoint: str = "https://management.azure.com"
    # Azure Stack exposes the gallery on the admin management endpoint.
    admin_endpoint: str = ""
    subscription_id: str = ""

    storage_account_name: str = ""
    storage_account_key: str = ""
    storage_endpoint_suffix: str = "core.windows.net"

    subscriptions_api_version: str = "2022-12-01"
    providers_api_version: str = "2021-04-01"
    gallery_api_version: str = "2015-04-01"

    request_timeout: int = 30
    packager_timeout: int = 600

    model_config = SettingsConfigDict(
        env_prefix="AZS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("arm_endpoint", "admin_endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("request_timeout", "packager_timeout")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timeouts must be positive")
        return value

    @property
    def gallery_endpoint(self) -> str:
        """Endpoint hosting ``Microsoft.Gallery.Admin``."""
        return self.admin_endpoint or self.arm_endpoint


settings = Settings()
