"""Application configuration"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Proposal Engine API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    # WHY: Tokens are issued by the identity service; we only verify them
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 1440  # 24 hours

    # Database
    DATABASE_URL: str

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # ERP (SoftOne web services)
    # WHY: Credentials are injected from the environment, never from request bodies
    ERP_BASE_URL: str = "https://aic.oncloud.gr/s1services"
    ERP_USERNAME: str = ""
    ERP_PASSWORD: str = ""
    ERP_QUOTE_SERIES: str = "7001"
    ERP_TIMEOUT_SECONDS: float = 30.0
    ERP_RESPONSE_ENCODING: str = "windows-1253"  # Greek single-byte code page
    ERP_DEFAULT_VAT_CODE: str = "1410"
    ERP_DEFAULT_COMMENTS: str = "Proposal generated from CRM"

    @property
    def erp_configured(self) -> bool:
        """
        Check if ERP credentials are present.

        WHY: Without credentials every ERP call is rejected upstream, so we
        fail fast with a clear error instead of a confusing remote message.
        """
        return all([self.ERP_BASE_URL, self.ERP_USERNAME, self.ERP_PASSWORD])

    @property
    def async_database_url(self) -> str:
        """Get async database URL"""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")


settings = Settings()
