# app/api/quotes.py

from __future__ import annotations

import asyncio
import logging

import httpx
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.database import get_db
from app.core.deadline import Deadline
from app.core.exceptions import QuoteServiceError
from app.schemas.quote import BidOut, ExchangeQuote
from app.services.exchange import fetch_usd_brl_quote
from app.services.rates import save_quote

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cotacao"])


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def _watch_disconnect(request: Request, deadline: Deadline) -> None:
    # GET sem corpo: o único evento que ainda pode chegar é o http.disconnect
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            logger.warning("/cotacao client disconnected, cancelling request")
            deadline.cancel()
            return


async def _fetch_and_store(
    client: httpx.AsyncClient,
    db: Session,
    settings: Settings,
    deadline: Deadline,
) -> ExchangeQuote:
    quote = await fetch_usd_brl_quote(
        client,
        deadline,
        url=settings.QUOTE_API_URL,
        timeout=settings.FETCH_TIMEOUT_SECONDS,
    )
    persist = asyncio.ensure_future(
        run_in_threadpool(
            save_quote,
            db,
            quote,
            deadline,
            timeout=settings.PERSIST_TIMEOUT_SECONDS,
        )
    )
    try:
        await asyncio.shield(persist)
    except asyncio.CancelledError:
        # a thread não para com cancel(): o deadline já cancelado interrompe
        # o INSERT, e a sessão só pode ser fechada depois que ela terminar
        await asyncio.wait({persist})
        if not persist.cancelled() and persist.exception() is not None:
            logger.warning("/cotacao insert aborted after disconnect", exc_info=persist.exception())
        raise
    return quote


@router.get(
    "/cotacao",
    response_model=BidOut,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "Falha ao buscar ou gravar a cotação"}},
)
async def get_cotacao(
    request: Request,
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """
    Busca a cotação USD/BRL, grava em `rates` e devolve só o bid.
    Qualquer falha vira 500 sem corpo.
    """
    logger.info("/cotacao request received")
    try:
        deadline = Deadline.after(settings.REQUEST_TIMEOUT_SECONDS)

        work = asyncio.ensure_future(_fetch_and_store(client, db, settings, deadline))
        watcher = asyncio.ensure_future(_watch_disconnect(request, deadline))
        try:
            await asyncio.wait({work, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)

        if not work.done():
            # cliente foi embora: ninguém vai ler a resposta
            work.cancel()
            await asyncio.wait({work})
            if not work.cancelled() and work.exception() is not None:
                logger.warning("/cotacao failed after disconnect", exc_info=work.exception())
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

        try:
            quote = work.result()
        except QuoteServiceError:
            logger.warning("/cotacao failed", exc_info=True)
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return JSONResponse(content=BidOut(bid=quote.bid).model_dump())
    finally:
        logger.info("/cotacao request completed")
