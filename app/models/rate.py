# app/models/rate.py

from sqlalchemy import Column, Integer, Text

from app.core.database import Base


class Rate(Base):
    """
    Uma cotação USD/BRL buscada na AwesomeAPI.
    Valores gravados como texto, exatamente como a API devolve.
    """
    __tablename__ = "rates"

    id = Column(Integer, primary_key=True, autoincrement=True)

    codein = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    high = Column(Text, nullable=False)
    low = Column(Text, nullable=False)
    var_bid = Column(Text, nullable=False)
    pct_change = Column(Text, nullable=False)
    bid = Column(Text, nullable=False)
    ask = Column(Text, nullable=False)
    timestamp = Column(Text, nullable=False)
    create_date = Column(Text, nullable=False)
