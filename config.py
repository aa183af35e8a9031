from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    # For SQLite (default, no extra driver needed)
    DATABASE_URL: str = "sqlite:///./finance.db"

    # For PostgreSQL (requires psycopg2-binary)
    # DATABASE_URL: str = "postgresql://postgres:postgres@db:5432/finance"

    # JWT Settings
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Security
    PASSWORD_MIN_LENGTH: int = 8

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Logging
    LOG_LEVEL: str = "INFO"

    # Reports
    CURRENCY: str = "USD"

    class Config:
        env_file = ".env"


settings = Settings()
