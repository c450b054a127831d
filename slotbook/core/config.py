from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    SCHEDULE_TIMEZONE: str = "America/Los_Angeles"

    STORE_PROVIDER: str = "memory"  # "memory" | "json" | "firestore"
    JSON_STORE_PATH: str = "./data/schedule.json"
    FIREBASE_PROJECT_ID: str | None = None

    AUTH_PROVIDER: str = "mock"  # "mock" | "firebase"
    ADMIN_USER_IDS: list[str] = []

    MAX_GENERATION_DAYS: int = 366
    PACKAGE_EXPIRATION_MONTHS: int = 12
    CLIENT_BOOKINGS_LIMIT: int = 20

    PAYMENT_WEBHOOK_SECRET: str | None = None


settings = Settings()
