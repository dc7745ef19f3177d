from __future__ import annotations

import asyncio
import logging

import httpx
from pydantic import ValidationError

from app.core.deadline import Deadline, DeadlineExceeded
from app.core.exceptions import DecodeError, NetworkError
from app.schemas.quote import ExchangeQuote, QuoteEnvelope

logger = logging.getLogger(__name__)

USD_BRL_URL = "https://economia.awesomeapi.com.br/json/last/USD-BRL"
FETCH_TIMEOUT = 0.2


async def fetch_usd_brl_quote(
    client: httpx.AsyncClient,
    deadline: Deadline,
    *,
    url: str = USD_BRL_URL,
    timeout: float = FETCH_TIMEOUT,
) -> ExchangeQuote:
    """
    Um único GET na AwesomeAPI, sem retry.
    O prazo é o menor entre `timeout` e o prazo de quem chamou, e vale para
    a chamada inteira (conexão + leitura), não por operação de socket.
    """
    ctx = deadline.child(timeout)
    try:
        ctx.check()
    except DeadlineExceeded as exc:
        raise NetworkError(f"GET {url}: {exc} before request") from exc

    try:
        r = await asyncio.wait_for(client.get(url, timeout=ctx.remaining()), timeout=ctx.remaining())
        r.raise_for_status()
    except asyncio.TimeoutError as exc:
        raise NetworkError(f"GET {url}: timed out") from exc
    except httpx.HTTPStatusError as exc:
        raise NetworkError(f"GET {url}: upstream answered {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise NetworkError(f"GET {url}: {exc!r}") from exc

    try:
        envelope = QuoteEnvelope.model_validate_json(r.content)
    except ValidationError as exc:
        raise DecodeError(f"GET {url}: unexpected payload: {exc}") from exc

    logger.debug("fetched USD-BRL quote bid=%s", envelope.usdbrl.bid)
    return envelope.usdbrl
