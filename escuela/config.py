import os
from pathlib import Path

from dotenv import load_dotenv

# .env junto al paquete o en el directorio de trabajo
load_dotenv(Path(__file__).with_name(".env"))
load_dotenv()


def _as_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Configuración leída del entorno."""

    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL", "").strip()
        self.sql_echo = _as_bool(os.getenv("SQL_ECHO"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.webhook_secret = os.getenv("WEBHOOK_SECRET") or None
        origins = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
        self.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]


settings = Settings()
