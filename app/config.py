"""
Configuration settings for nodeflow, read from the environment or .env.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    APP_NAME: str = "nodeflow"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Workflow Engine
    EXECUTION_TIMEOUT: float = 60.0  # Seconds, whole run
    HTTP_TIMEOUT: float = 10.0  # Seconds, per integration call
    LOOKUP_MAX_DEPTH: int = 2
    EMAIL_SENDER: str = "weather-alerts@example.com"

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
