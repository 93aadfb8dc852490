import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    DB_USER: str | None = os.getenv("DB_USER")
    DB_PASS: str | None = os.getenv("DB_PASS")
    DB_HOST: str | None = os.getenv("DB_HOST")
    DB_PORT: str | None = os.getenv("DB_PORT")
    DB_NAME: str | None = os.getenv("DB_NAME")
    # Full URL wins over the DB_* parts (sqlite for local runs)
    DATABASE_URL: str | None = os.getenv("DATABASE_URL")

    # Blob store root for uploaded spreadsheets
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", os.path.join(BASE_DIR, "uploads"))
    IMPORT_TEMP_DIR: str | None = os.getenv("IMPORT_TEMP_DIR")

    IMPORT_BATCH_SIZE: int = int(os.getenv("IMPORT_BATCH_SIZE", 50))
    IMPORT_ROW_LOG_CAP: int = int(os.getenv("IMPORT_ROW_LOG_CAP", 1000))
    IMPORT_PREVIEW_ROWS: int = int(os.getenv("IMPORT_PREVIEW_ROWS", 20))

    COMEBACK_SWEEP_ENABLED: bool = os.getenv(
        "COMEBACK_SWEEP_ENABLED", "True").lower() == "true"
    COMEBACK_SWEEP_INTERVAL_SECONDS: int = int(
        os.getenv("COMEBACK_SWEEP_INTERVAL_SECONDS", 300))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: str = os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()


def build_database_url(config: Settings) -> str:
    if config.DATABASE_URL:
        return config.DATABASE_URL
    if not config.DB_HOST:
        return f"sqlite:///{os.path.join(BASE_DIR, 'compliance.db')}"
    return (
        f"postgresql+psycopg2://{config.DB_USER}:{config.DB_PASS}@{config.DB_HOST}:{config.DB_PORT}/{config.DB_NAME}"
    )


COMPLIANCE_DATABASE_URL = build_database_url(settings)
