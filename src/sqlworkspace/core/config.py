"""Configuration management for SQL Workspace."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    ENV: str = "local"
    SERVICE_NAME: str = "sql-workspace"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database Configuration (MySQL via SQLAlchemy async engine)
    DB_DRIVER: str = "mysql+aiomysql"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = ""
    DB_POOL_SIZE: int = 10  # Requests beyond this wait for a free connection
    DB_ECHO: bool = False

    # LLM Configuration (any OpenAI-compatible endpoint, Groq by default)
    LLM_ENABLED: bool = True
    LLM_API_KEY: str = ""
    LLM_BASE_URL: str = "https://api.groq.com/openai/v1"
    LLM_MODEL: str = "llama-3.3-70b-versatile"
    LLM_MAX_TOKENS: int = 1024

    # HTTP Configuration
    CORS_ORIGINS: str = "http://localhost:3000"  # Comma-separated

    # Table browsing
    TABLE_PREVIEW_ROWS: int = 10
    TABLE_PAGE_DEFAULT_LIMIT: int = 1000
    TABLE_PAGE_MAX_LIMIT: int = 1000

    @property
    def database_url(self) -> URL:
        """Build the SQLAlchemy URL from the DB_* settings."""
        return URL.create(
            drivername=self.DB_DRIVER,
            username=self.DB_USER,
            password=self.DB_PASSWORD or None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME or None,
        )

    @property
    def database_configured(self) -> bool:
        return bool(self.DB_NAME)

    @property
    def llm_configured(self) -> bool:
        return self.LLM_ENABLED and bool(self.LLM_API_KEY)

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        if not self.CORS_ORIGINS:
            return []
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Singleton settings instance
settings = Settings()
