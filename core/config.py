from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Telegram
    telegram_bot_token: str | None = Field(None, alias="TELEGRAM_BOT_TOKEN")

    # Telegram WebApp URL (кнопка «Открыть приложение»)
    webapp_url: str | None = Field(None, alias="WEBAPP_URL")

    # Storage / DB
    database_url: str = Field(..., alias="DATABASE_URL")
    db_echo: bool = Field(False, alias="DB_ECHO")

    # Uploads (фото замеров, видео упражнений, вложения чата)
    uploads_dir: str = Field("uploads", alias="UPLOADS_DIR")
    upload_max_bytes: int = Field(50 * 1024 * 1024, alias="UPLOAD_MAX_BYTES")

    # CORS / Web
    allowed_origins: str = Field("*", alias="ALLOWED_ORIGINS")

    # Internal API base for bot to call FastAPI
    api_base_url: str = Field("http://127.0.0.1:3000", alias="API_BASE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
