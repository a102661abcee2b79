from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    DATABASE_URL_SYNC: str = os.getenv("DATABASE_URL", "sqlite:///./chatrelay.db")
    DATABASE_URL_ASYNC: str = os.getenv("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///./chatrelay.db")
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:5173")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3001"))
    CREATE_TABLES: bool = _as_bool(os.getenv("CREATE_TABLES", "true"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CLIENT_URL.split(",") if o.strip()]

settings = Settings()
