from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./helpdesk.db"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Auth (bearer JWT issued by the identity provider)
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_JWKS_URL: Optional[str] = None  # when set, tokens are verified against the JWKS instead of the secret

    # Real-time notification sink
    BROADCAST_URL: Optional[str] = None
    BROADCAST_TOKEN: Optional[str] = None
    BROADCAST_TIMEOUT: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
