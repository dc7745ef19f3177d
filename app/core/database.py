# app/core/database.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.exceptions import StorageInitError

logger = logging.getLogger(__name__)

Base = declarative_base()


@dataclass(frozen=True)
class Storage:
    """Handle único do banco, aberto no startup e vivo até o processo terminar."""

    engine: Engine
    session_factory: sessionmaker

    def dispose(self) -> None:
        self.engine.dispose()


def _sqlite_file(database_url: str) -> str | None:
    url = make_url(database_url)
    # o insert depende do progress handler do sqlite3 para respeitar o prazo
    if url.get_backend_name() != "sqlite":
        raise StorageInitError(f"only sqlite databases are supported, got {url.get_backend_name()!r}")
    if not url.database or url.database == ":memory:":
        return None
    return url.database


def init_storage(database_url: str, busy_timeout: float = 5.0) -> Storage:
    """
    Abre (criando se preciso) o banco e garante a tabela `rates`.

    Pode ser chamado várias vezes sobre o mesmo arquivo: create_all só cria
    o que ainda não existe.
    """
    # Importa os models para registrá-los no Base.metadata
    from app.models.rate import Rate  # noqa: F401

    try:
        path = _sqlite_file(database_url)
        if path is not None:
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        # Para SQLite, é importante usar connect_args={"check_same_thread": False}:
        # o insert roda numa thread do threadpool, não na que abriu a conexão
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": busy_timeout},
            echo=False,
            future=True,
        )

        Base.metadata.create_all(bind=engine)
    except (OSError, SQLAlchemyError) as exc:
        logger.error("could not initialise database %s", database_url, exc_info=True)
        raise StorageInitError(f"could not initialise database {database_url}: {exc}") from exc

    logger.info("connected to database %s", engine.url.database)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return Storage(engine=engine, session_factory=session_factory)


def get_db(request: Request) -> Iterator[Session]:
    storage: Storage = request.app.state.storage
    db = storage.session_factory()
    try:
        yield db
    finally:
        db.close()
