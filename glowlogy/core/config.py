from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    STORE_PROVIDER: str = "memory"  # "memory" | "firestore"
    FIRESTORE_PROJECT_ID: str | None = None
    FIRESTORE_API_KEY: str | None = None
    FIRESTORE_ACCESS_TOKEN: str | None = None
    FIRESTORE_BASE_URL: str = "https://firestore.googleapis.com/v1"
    FIRESTORE_TIMEOUT_SECONDS: float = 10.0

    CACHE_PROVIDER: str = "file"  # "memory" | "file"
    CACHE_DIR: str = "./data/cache"
    CACHE_KEY_PREFIX: str = "glowlogy_"

    CACHE_TTL_SERVICES_SECONDS: int = 5 * 60
    CACHE_TTL_LOCATIONS_SECONDS: int = 10 * 60
    CACHE_TTL_TESTIMONIALS_SECONDS: int = 15 * 60
    CACHE_TTL_BOOKINGS_SECONDS: int = 60
    CACHE_TTL_SETTINGS_SECONDS: int = 30 * 60

    BATCH_DELAY_MS: int = 50

    BOOKING_RATE_LIMIT: int = 5
    BOOKING_RATE_WINDOW_SECONDS: int = 60 * 60
    CONTACT_RATE_LIMIT: int = 3
    CONTACT_RATE_WINDOW_SECONDS: int = 60 * 60
    MEMBERSHIP_RATE_LIMIT: int = 3
    MEMBERSHIP_RATE_WINDOW_SECONDS: int = 60 * 60
    CALLBACK_RATE_LIMIT: int = 3
    CALLBACK_RATE_WINDOW_SECONDS: int = 24 * 60 * 60
    NEWSLETTER_RATE_LIMIT: int = 3
    NEWSLETTER_RATE_WINDOW_SECONDS: int = 60 * 60

    ENFORCE_UNIQUE_SLOTS: bool = True

    def cache_ttls(self) -> dict[str, int]:
        return {
            "services": self.CACHE_TTL_SERVICES_SECONDS,
            "locations": self.CACHE_TTL_LOCATIONS_SECONDS,
            "testimonials": self.CACHE_TTL_TESTIMONIALS_SECONDS,
            "bookings": self.CACHE_TTL_BOOKINGS_SECONDS,
            "settings": self.CACHE_TTL_SETTINGS_SECONDS,
        }


settings = Settings()
