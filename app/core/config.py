from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "mflix"
    SECRET_KEY: str = "change-me"

    # Admin console (password check is delegated to AdminPolicy)
    ADMIN_PASSWORD: str = ""
    ADMIN_SESSION_HOURS: int = 12

    # Download gate
    DOWNLOAD_DELAY_SEC: int = 10
    DOWNLOAD_GATE_TTL_SEC: int = 900

    SITE_NAME: str = "Mflix Entertainment HUB"
    TELEGRAM_CHANNEL: str = "https://t.me/mflixhub"
    PLACEHOLDER_POSTER: str = "/static/placeholder.svg"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
