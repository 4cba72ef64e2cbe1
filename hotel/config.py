# hotel/config.py
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./hotel.db"
    SQL_ECHO: bool = False

    # "sql" for the relational backend, "memory" for the process-local one
    STORAGE_BACKEND: Literal["sql", "memory"] = "sql"

    # Bulk delete_all() is only honoured when this is switched on (tests, resets)
    ALLOW_PURGE: bool = False

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
