# app/core/config.py

import os
from typing import Optional

from dotenv import load_dotenv

# Caminho da raiz do projeto (onde está o main.py e o .env)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
ENV_PATH = os.path.join(BASE_DIR, ".env")

# Carrega variáveis do arquivo .env, se existir
if os.path.exists(ENV_PATH):
    load_dotenv(ENV_PATH)


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


class Settings:
    def __init__(self) -> None:
        # Banco SQLite local (arquivo exchange.db na pasta de execução)
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL",
            "sqlite:///./exchange.db",
        )
        self.QUOTE_API_URL: str = os.getenv(
            "QUOTE_API_URL",
            "https://economia.awesomeapi.com.br/json/last/USD-BRL",
        )

        # Timeouts em segundos: 200ms para a API, 10ms para o insert
        self.FETCH_TIMEOUT_SECONDS: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "0.2"))
        self.PERSIST_TIMEOUT_SECONDS: float = float(os.getenv("PERSIST_TIMEOUT_SECONDS", "0.01"))
        # None = sem limite além do próprio cliente
        self.REQUEST_TIMEOUT_SECONDS: Optional[float] = _optional_float("REQUEST_TIMEOUT_SECONDS")

        self.PORT: int = int(os.getenv("PORT", "8080"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
