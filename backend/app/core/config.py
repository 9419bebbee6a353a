import json
from functools import lru_cache
from typing import List

import boto3
from pydantic_settings import BaseSettings


# Keys that may be supplied through AWS Secrets Manager instead of the environment
SECRET_KEYS = (
    "CLERK_SECRET_KEY",
    "CLERK_JWKS_URL",
    "CLERK_ISSUER",
    "CLERK_AUDIENCE",
    "GEMINI_API_KEY",
)


def _load_secrets(secret_name: str, region: str) -> dict:
    """Fetch sensitive config from AWS Secrets Manager."""
    client = boto3.client("secretsmanager", region_name=region)
    response = client.get_secret_value(SecretId=secret_name)
    return json.loads(response["SecretString"])


class Settings(BaseSettings):
    """Application settings and configuration"""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Tharawat Investment API"

    # Clerk Auth
    CLERK_SECRET_KEY: str = ""
    CLERK_JWKS_URL: str = ""
    CLERK_ISSUER: str = ""
    CLERK_AUDIENCE: str | None = None

    # Secrets Manager entry merged over the environment when set
    SECRETS_NAME: str | None = None

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60

    # AWS Settings
    AWS_REGION: str = "us-east-1"

    # Database
    DYNAMODB_ENDPOINT: str | None = None  # For local development
    TABLE_PREFIX: str = ""

    # AI generation
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # Allocation summarizer
    ALLOCATION_RENORMALIZE: bool = True
    ALLOCATION_TOLERANCE: float = 0.5

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool | None = None

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"


def build_settings() -> Settings:
    """Read settings from the environment, then overlay Secrets Manager values."""
    settings = Settings()
    if settings.SECRETS_NAME:
        secrets = _load_secrets(settings.SECRETS_NAME, settings.AWS_REGION)
        overrides = {key: secrets[key] for key in SECRET_KEYS if key in secrets}
        settings = settings.model_copy(update=overrides)
    return settings


@lru_cache
def get_settings() -> Settings:
    return build_settings()
