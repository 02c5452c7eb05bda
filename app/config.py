from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # App
    APP_NAME: str = "DIASPORA9JA MEMBERSHIP API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str

    # Stripe
    STRIPE_SECRET_KEY: str
    STRIPE_WEBHOOK_SECRET: str
    STRIPE_PRICE_ID: str = ""          # abonnement mensuel Membership
    DEFAULT_BILLING_COUNTRY: str = "US"
    WEBHOOK_TOLERANCE_SECONDS: int = 300

    # Redirections success / cancel
    PUBLIC_BASE_URL: str = "http://localhost:3000"

    # Resend
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Diaspora9ja <hello@diaspora9ja.com>"
    ADMIN_EMAIL: str = ""

    # Seuils de performance (ms)
    PERFORMANCE_METRICS_THRESHOLD_MS: int = 100
    PERFORMANCE_WARNING_THRESHOLD_MS: int = 1000

    # Rate limiting (slowapi)
    RATE_LIMIT_ENABLED: bool = True

    # CORS
    FRONTEND_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list:
        return [o.strip() for o in self.FRONTEND_ORIGINS.split(",") if o.strip()]

@lru_cache()
def get_settings():
    return Settings()

settings = get_settings()
