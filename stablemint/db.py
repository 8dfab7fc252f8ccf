from sqlalchemy import Column, Float, Integer, String, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker


DEFAULT_DB_URL = "sqlite:///quotes.db"


Base = declarative_base()


class Quote(Base):
    """
    Historical USD price of a coin, as downloaded from CoinGecko.
    """

    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coin = Column(String, index=True)
    vs_currency = Column(String)
    timestamp = Column(Integer)
    price = Column(Float)

    def __repr__(self) -> str:
        return f"Quote({self.coin}/{self.vs_currency} {self.price} @ {self.timestamp})"


def init_db(url: str = DEFAULT_DB_URL) -> Session:
    """
    Connect to the db and if necessary initialise the schema.
    """
    engine = create_engine(url, echo=False)

    Base.metadata.create_all(engine)

    return sessionmaker(bind=engine)()


def drop_all(url: str = DEFAULT_DB_URL) -> None:
    """
    Delete all structures in this database.
    """
    engine = create_engine(url, echo=False)
    Base.metadata.drop_all(engine)
