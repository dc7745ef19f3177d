# app/schemas/quote.py

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class ExchangeQuote(BaseModel):
    """
    Cotação como a AwesomeAPI devolve dentro de "USDBRL".
    Tudo string: não convertemos para número para não mudar a precisão gravada.
    """
    code: StrictStr
    codein: StrictStr
    name: StrictStr
    high: StrictStr
    low: StrictStr
    var_bid: StrictStr = Field(alias="varBid")
    pct_change: StrictStr = Field(alias="pctChange")
    bid: StrictStr
    ask: StrictStr
    timestamp: StrictStr
    create_date: StrictStr

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class QuoteEnvelope(BaseModel):
    usdbrl: ExchangeQuote = Field(alias="USDBRL")


class BidOut(BaseModel):
    bid: str
