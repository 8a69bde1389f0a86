"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Missing storage credentials do not stop the process. The app starts in a
degraded "storage not configured" mode and reports it through
/wasabi-config and /initialize.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """
    
    # API Configuration
    api_title: str = "VipAccess API"
    api_version: str = "v1"
    app_env: str = Field(
        default="development",
        description="Deployment environment. System reset is refused when this is 'production'."
    )
    api_keys: str = Field(
        default="dev-key-1",
        description="Comma-separated API keys for admin-only endpoints."
    )
    
    # Wasabi (S3-compatible) Storage Configuration
    wasabi_access_key_id: str = Field(
        default="",
        description="Wasabi access key ID"
    )
    wasabi_secret_access_key: str = Field(
        default="",
        description="Wasabi secret access key"
    )
    wasabi_bucket_name: str = Field(
        default="",
        description="Bucket for content files (videos, payment-proof images)"
    )
    wasabi_metadata_bucket_name: str = Field(
        default="",
        description="Bucket for JSON metadata documents"
    )
    wasabi_region: str = Field(
        default="us-east-1",
        description="Wasabi region"
    )
    wasabi_endpoint: str = Field(
        default="https://s3.wasabisys.com",
        description="S3-compatible endpoint URL. Path-style addressing is always used."
    )
    wasabi_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real object storage. Enables local dev without credentials."
    )
    signed_url_expiry_seconds: int = Field(
        default=3600,
        description="Lifetime of signed read URLs."
    )
    
    # Application Behavior
    max_upload_size_mb: int = Field(
        default=500,
        description="Maximum upload size in MB for /upload."
    )
    
    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    
    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]
    
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
    
    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"
    
    def validate_required_fields(self) -> list[str]:
        """
        Return the storage variables that are missing.
        
        This is separate from Pydantic validation because an unconfigured
        storage backend is a supported degraded mode, not a startup error.
        Mock mode needs no credentials.
        """
        missing = []
        
        if self.wasabi_mock_mode:
            return missing
        
        if not self.wasabi_access_key_id:
            missing.append("WASABI_ACCESS_KEY_ID")
        if not self.wasabi_secret_access_key:
            missing.append("WASABI_SECRET_ACCESS_KEY")
        if not self.wasabi_bucket_name:
            missing.append("WASABI_BUCKET_NAME")
        if not self.wasabi_metadata_bucket_name:
            missing.append("WASABI_METADATA_BUCKET_NAME")
        
        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Using lru_cache means we only load settings once per process.
    For tests, call get_settings.cache_clear() or pass Settings
    directly to create_app().
    """
    return Settings()
