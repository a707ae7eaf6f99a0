# chatrooms/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    PROJECT_NAME: str = "Chatrooms API"
    PROJECT_VERSION: str = "1.0.0"
    PROJECT_DESCRIPTION: str = "A FastAPI-based multi-room chat service"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REDIS_ENABLED: bool = True
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    DATABASE_URL: str = "sqlite+aiosqlite:///./chatrooms.db"
    LOG_LEVEL: str = "INFO"

    # seconds a single repository operation may take before it is abandoned
    STORE_TIMEOUT_SECONDS: float = 5.0

    MESSAGES_DEFAULT_LIMIT: int = 50
    MESSAGES_MAX_LIMIT: int = 500

    WS_SEND_TIMEOUT_SECONDS: float = 5.0
    WS_IDLE_TIMEOUT_SECONDS: float = 300.0
    WS_OUTBOX_SIZE: int = 100

    model_config = SettingsConfigDict(env_file=".env", extra="allow")
