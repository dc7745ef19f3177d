# main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI

from app.api.quotes import router as quotes_router
from app.core.config import Settings, settings as default_settings
from app.core.database import init_storage
from app.core.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(
        app_settings: Optional[Settings] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Sem banco não sobe: StorageInitError aborta o startup
        storage = init_storage(
            app_settings.DATABASE_URL,
            busy_timeout=app_settings.PERSIST_TIMEOUT_SECONDS,
        )
        app.state.storage = storage
        app.state.settings = app_settings
        async with httpx.AsyncClient(transport=http_transport) as client:
            app.state.http_client = client
            try:
                yield
            finally:
                storage.dispose()

    app = FastAPI(
        title="Cotação USD/BRL",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(quotes_router)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    setup_logging(default_settings.LOG_LEVEL)
    logger.info("Server initiated at port %s", default_settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=default_settings.PORT, log_config=None)
