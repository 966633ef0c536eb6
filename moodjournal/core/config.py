import os
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "MoodJournal Backend"
    ENV: str = os.getenv("ENV", "development")

    # Database
    # DATABASE_URL wins; otherwise a server URL is built when DB_HOST is set.
    DATABASE_URL_OVERRIDE: str = os.getenv("DATABASE_URL", "")
    DB_USER: str = os.getenv("DB_USER", "root")
    DB_PASS: str = os.getenv("DB_PASS", "")
    DB_HOST: str = os.getenv("DB_HOST", "")
    DB_PORT: str = os.getenv("DB_PORT", "3306")
    DB_NAME: str = os.getenv("DB_NAME", "moodjournal")
    DB_DRIVER: str = os.getenv("DB_DRIVER", "mysql+mysqlconnector")
    SQLITE_PATH: str = os.getenv("SQLITE_PATH", "./moodjournal.db")

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        if self.DB_HOST:
            return (
                f"{self.DB_DRIVER}://{self.DB_USER}:{self.DB_PASS}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return f"sqlite:///{self.SQLITE_PATH}"

    # CORS
    CORS_ORIGINS: List[str] = []

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "super-dev-secret-please-change-later")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    # Hosted inference (Hugging Face style endpoints)
    HF_API_URL: str = os.getenv("HF_API_URL", "https://router.huggingface.co/hf-inference/models/")
    HUGGINGFACE_API_KEY: str = os.getenv("HUGGINGFACE_API_KEY", "")
    SENTIMENT_MODEL: str = os.getenv("SENTIMENT_MODEL", "tabularisai/multilingual-sentiment-analysis")
    EMOTION_MODEL: str = os.getenv("EMOTION_MODEL", "j-hartmann/emotion-english-distilroberta-base")
    GENERATION_MODEL: str = os.getenv("GENERATION_MODEL", "mistralai/Mixtral-8x7B-Instruct-v0.1")
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "BAAI/bge-small-en-v1.5")
    INFERENCE_TIMEOUT_SECONDS: float = float(os.getenv("INFERENCE_TIMEOUT_SECONDS", "30"))

    # Retrieval / analysis
    EMBEDDING_DIM: int = int(os.getenv("EMBEDDING_DIM", "384"))
    SIMILAR_ENTRY_LIMIT: int = int(os.getenv("SIMILAR_ENTRY_LIMIT", "3"))
    PATTERN_HISTORY_LIMIT: int = int(os.getenv("PATTERN_HISTORY_LIMIT", "50"))
    RAG_ANALYSIS_ENABLED: bool = os.getenv("RAG_ANALYSIS_ENABLED", "1") in ("1", "true", "True")

    # Background analysis tasks
    ANALYSIS_MAX_CONCURRENCY: int = int(os.getenv("ANALYSIS_MAX_CONCURRENCY", "4"))
    ANALYSIS_TASK_TIMEOUT_SECONDS: float = float(os.getenv("ANALYSIS_TASK_TIMEOUT_SECONDS", "180"))

    # Pydantic v2 settings config
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


def _load_settings() -> "Settings":
    s = Settings()
    origins = os.getenv("FRONTEND_ORIGINS") or os.getenv("FRONTEND_ORIGIN")
    dev_defaults = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]
    if origins:
        provided = [o.strip() for o in origins.split(",") if o.strip()]
        s.CORS_ORIGINS = sorted(set(provided + dev_defaults))
    else:
        s.CORS_ORIGINS = dev_defaults
    return s


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return _load_settings()


settings = get_settings()
