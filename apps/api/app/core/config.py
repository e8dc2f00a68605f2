"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./recruitment.db"

    # Session Token (issued elsewhere, verified here; supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 4

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Public site (used to build absolute upload URLs)
    PUBLIC_BASE_URL: str = ""

    # Upload collaborator (local disk)
    LOCAL_STORAGE_PATH: str = "/tmp/recruitment-uploads"
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024

    # Console client
    API_BASE_URL: str = "http://localhost:8000"
    CLIENT_MAX_RETRIES: int = 2
    CLIENT_RETRY_BASE_DELAY: float = 0.5
    CLIENT_TIMEOUT_SECONDS: float = 15.0

    # Rate limiting (slowapi; per client address, per minute)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    RATE_LIMIT_PUBLIC_READ: int = 120
    RATE_LIMIT_PUBLIC_SUBMIT: int = 10
    RATE_LIMIT_UPLOAD: int = 20

    # Analytics reads are capped to keep the pivot in memory
    ANALYTICS_MAX_SUBMISSIONS: int = 1000

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV != "dev"


settings = Settings()
