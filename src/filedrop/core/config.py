"""Configuration management for the File Drop relay."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "filedrop-event-processor"
    SERVICE_VERSION: str = "1.0.0"

    # GCP Configuration
    GCP_PROJECT_ID: str = ""
    GCP_REGION: str = "europe-west1"

    # Storage Configuration
    STORAGE_BACKEND: str = "gcs"  # "gcs" or "local"
    GCS_BUCKET_NAME: str = ""  # Used when BUCKET_CONFIG carries no name
    LOCAL_STORAGE_PATH: str = "./data/buckets"

    # Routing table, JSON: {"name": ..., "subdirectories": [...]}
    BUCKET_CONFIG: str = '{"subdirectories": []}'

    # Consumer dispatch
    DISPATCH_TIMEOUT: float = 10.0  # seconds to wait for the consumer to accept
    DISPATCH_AUTH_ENABLED: bool = False  # attach a Google-signed ID token

    LOG_LEVEL: str = "INFO"

    @property
    def is_local(self) -> bool:
        """Whether the service runs in local development mode."""
        return self.ENV == "local"


# Singleton settings instance
settings = Settings()
