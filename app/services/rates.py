from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.deadline import Deadline, DeadlineExceeded
from app.core.exceptions import StorageError
from app.models.rate import Rate
from app.schemas.quote import ExchangeQuote

logger = logging.getLogger(__name__)

PERSIST_TIMEOUT = 0.01

# VM instructions between deadline checks while the INSERT runs
_PROGRESS_STEPS = 1


def _rate_from_quote(quote: ExchangeQuote) -> Rate:
    return Rate(
        codein=quote.codein,
        name=quote.name,
        high=quote.high,
        low=quote.low,
        var_bid=quote.var_bid,
        pct_change=quote.pct_change,
        bid=quote.bid,
        ask=quote.ask,
        timestamp=quote.timestamp,
        create_date=quote.create_date,
    )


def save_quote(
    db: Session,
    quote: ExchangeQuote,
    deadline: Deadline,
    *,
    timeout: float = PERSIST_TIMEOUT,
) -> Rate:
    """
    Grava a cotação como uma linha de `rates`.

    Um único INSERT; se o prazo vencer (ou o cliente cancelar) no meio,
    o SQLite interrompe o statement e fazemos rollback.
    """
    ctx = deadline.child(timeout)
    try:
        ctx.check()
    except DeadlineExceeded as exc:
        raise StorageError(f"insert into rates: {exc} before insert") from exc

    rate = _rate_from_quote(quote)
    try:
        # o handler só vive enquanto a sessão segura esta conexão:
        # commit/rollback devolvem a conexão ao pool
        raw = db.connection().connection.dbapi_connection
        raw.set_progress_handler(lambda: 1 if ctx.expired else 0, _PROGRESS_STEPS)
        try:
            db.add(rate)
            db.flush()
        finally:
            raw.set_progress_handler(None, 0)
        ctx.check()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"insert into rates: {exc}") from exc
    except DeadlineExceeded as exc:
        db.rollback()
        raise StorageError(f"insert into rates: {exc} before commit") from exc

    logger.debug("stored quote in rates, bid=%s", quote.bid)
    return rate


def count_rates(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(Rate))
