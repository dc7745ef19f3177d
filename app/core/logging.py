# app/core/logging.py

import logging
import sys

from pythonjsonlogger import jsonlogger


def setup_logging(level: str = "INFO") -> None:
    """
    Configura o root logger com saída JSON em stdout.
    Todos os módulos usam logging.getLogger(__name__) e herdam isto.
    """
    root_logger = logging.getLogger()

    # Evita logs duplicados se chamado mais de uma vez (ex.: testes)
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger",
        },
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
