"""Configuration management using pydantic-settings"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Backend endpoints
    api_base_url: str = Field(default="http://localhost:5000/api", description="REST backend base URL")
    socket_url: str = Field(default="http://localhost:5000", description="Socket.IO server URL")
    request_timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")

    # Identity of the viewing user
    api_token: Optional[str] = Field(default=None, description="Bearer token for the REST backend")
    user_id: Optional[str] = Field(default=None, description="Current user id")
    user_name: str = Field(default="", description="Current user display name")
    user_role: str = Field(default="buyer", description="Marketplace role: buyer, seller or admin")

    # Refresh settings
    poll_interval_seconds: float = Field(default=5.0, description="Fallback polling interval")

    download_dir: str = Field(default="./data/contracts", description="Where downloaded PDFs are written")
    log_level: str = Field(default="INFO", description="Logging level")

    # View service
    host: str = Field(default="127.0.0.1", description="View service bind host")
    port: int = Field(default=8000, description="View service port")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    """Get application settings"""
    return Settings()
