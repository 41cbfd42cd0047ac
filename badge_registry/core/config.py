from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Badge Registry"
    DATABASE_URL: str = "sqlite+aiosqlite:///./badge_registry.db"
    ENVIRONMENT: str = "development"

    # Required to advance the block counter over HTTP
    ADMIN_TOKEN: str = "change-me-admin-token"

    # Registry behaviour toggles
    TRACK_REGISTRY_STATS: bool = True
    PERSIST_BADGE_EXPIRY: bool = True

    LOGFIRE_TOKEN: str = ""
    SENTRY_DSN: str = ""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Validate that required secrets are set in production
        if self.ENVIRONMENT == "production":
            if self.ADMIN_TOKEN == "change-me-admin-token":
                raise ValueError(
                    "ADMIN_TOKEN must be set in production environment. "
                    "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
                )

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
