from pydantic_settings import BaseSettings
from pydantic import ConfigDict

class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env")

    ENV: str = "development"

    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Base URL of the storefront, used to build links in emails
    APP_URL: str = "http://localhost:3000"
    PASSWORD_SETUP_TOKEN_EXPIRE_HOURS: int = 24

    STRIPE_WEBHOOK_SECRET: str | None = None

    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str = "orders@localhost"
    MAIL_SERVER: str = "localhost"
    MAIL_PORT: int = 587
    # Seconds before an unresponsive SMTP server is given up on
    MAIL_TIMEOUT_SECONDS: float = 10.0
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]


settings = Settings()
