"""Application configuration management."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = Field(default="spapi-oauth-service", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # SP-API application
    spapi_app_id: str = Field(alias="SPAPI_APP_ID")
    sp_oauth_endpoint: str = Field(
        default="https://sellercentral.amazon.com",
        alias="SP_OAUTH_ENDPOINT"
    )
    spapi_endpoint: str = Field(
        default="https://sellingpartnerapi-na.amazon.com",
        alias="SPAPI_ENDPOINT"
    )
    verify_credentials: bool = Field(default=True, alias="VERIFY_CREDENTIALS")

    # Login with Amazon (LWA)
    lwa_client_id: Optional[str] = Field(default=None, alias="LWA_CLIENT_ID")
    lwa_client_secret: Optional[str] = Field(default=None, alias="LWA_CLIENT_SECRET")
    lwa_token_url: str = Field(default="https://api.amazon.com/auth/o2/token", alias="LWA_TOKEN_URL")

    # Authorization flow
    state_ttl_seconds: int = Field(default=1800, alias="STATE_TTL_SECONDS")
    flow_cookie_name: str = Field(default="spapi_auth_flow", alias="FLOW_COOKIE_NAME")
    cookie_secure: bool = Field(default=False, alias="COOKIE_SECURE")
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    # AWS Secrets Manager
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    aws_access_key_id: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    secrets_manager_enabled: bool = Field(default=False, alias="SECRETS_MANAGER_ENABLED")
    lwa_secrets_arn: Optional[str] = Field(default=None, alias="LWA_SECRETS_ARN")

    # Monitoring
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")


# Global settings instance
settings = Settings()
