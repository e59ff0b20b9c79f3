"""Application configuration using Pydantic Settings."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "peer-tutoring-core"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "*"

    # Logging
    log_level: str = "INFO"

    # Auth (tokens are issued elsewhere; only verified here)
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    # Storage backend: "local" or "dynamodb"
    storage_backend: str = "local"
    aws_region: str = "us-east-1"
    sessions_table_name: str = "TutoringSessions"
    users_table_name: str = "Users"
    notifications_table_name: str = "Notifications"

    # AWS credentials (optional, uses default credential chain if not set)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None

    # Recommendation model: "none" disables the AI path, "bedrock" enables it
    recommendation_model_type: str = "none"
    recommendation_timeout_seconds: float = 10.0
    recommendation_limit: int = 5
    recommendation_history_limit: int = 10

    # Bedrock configuration
    bedrock_model_id: str = "amazon.nova-lite-v1:0"
    bedrock_max_tokens: int = 1024
    bedrock_temperature: float = 0.7
    bedrock_top_p: float = 0.9

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]


# Create a singleton instance
settings = Settings()
