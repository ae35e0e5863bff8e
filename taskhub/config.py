from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    app_name: str = "TaskHub"
    app_env: str = Field("dev", alias="APP_ENV")
    secret_key: str = Field("dev-secret-change-me", alias="SECRET_KEY")
    # 7 days
    access_token_expire_minutes: int = Field(60 * 24 * 7, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    database_url: str = Field(default=None, alias="DATABASE_URL")
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    upload_dir: str = Field("uploads", alias="UPLOAD_DIR")
    uploads_url_prefix: str = "/uploads"
    max_upload_mb: int = Field(5, alias="MAX_UPLOAD_MB")
    max_files_per_request: int = Field(3, alias="MAX_FILES_PER_REQUEST")

    rate_limit_window_seconds: int = Field(60, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_calls: int = Field(30, alias="RATE_LIMIT_MAX_CALLS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file_path: str | None = Field(default=None, alias="LOG_FILE_PATH")

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
