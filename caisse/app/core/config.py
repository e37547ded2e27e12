from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # "memory" keeps products/customers/shifts in process memory, "sql" uses DATABASE_URL
    STORAGE_BACKEND: str = "memory"
    DATABASE_URL: str = "sqlite+pysqlite:///:memory:"
    SEED_DEMO_DATA: bool = True

    REGISTER_ID: str = "CAISSE 01"
    TIMEZONE: str = "Africa/Casablanca"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Receipt header (DGI mandatory identifiers)
    BUSINESS_NAME: str = "SUPERMARCHÉ AL AMINE"
    BUSINESS_ADDRESS: str = "123 Avenue Hassan II, Casablanca"
    BUSINESS_PHONE: str = "0522-123456"
    BUSINESS_RC: str = "12345 Casablanca"
    BUSINESS_ICE: str = "001234567890123"
    BUSINESS_TP: str = "TP1234567"
    BUSINESS_CNSS: str | None = "J123456789"

    # Empty list means "use the localised defaults"
    RECEIPT_MENTIONS: list[str] = []


settings = Settings()
