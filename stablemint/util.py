import logging
import time
from decimal import Decimal
from typing import Iterable, List, Set

import names
from sqlalchemy.orm import Session

from stablemint.constants import SECONDS_IN_AN_HOUR
from stablemint.crawlers.coingecko import coin_ids, market_chart_range
from stablemint.db import DEFAULT_DB_URL, Quote, drop_all, init_db
from stablemint.types import Price, Timestamp


VS_CURRENCY = "usd"


def to_fixed_point(value: float, decimals: int) -> Price:
    """
    Converts a float price to an integer with `decimals` decimals, truncating
    the digits that do not fit.
    """
    return int(Decimal(str(value)).scaleb(decimals))


def download_price_data(db: Session, coin: str, hours: int) -> None:
    logging.info(f"Download {hours} price points for {coin}")
    valid_coin_ids = list(coin_ids())
    assert coin in valid_coin_ids, f"Coin should be one of {valid_coin_ids}"

    now = Timestamp(time.time())
    prices = market_chart_range(
        coin_id=coin,
        vs_currency=VS_CURRENCY,
        from_timestamp=now - hours * SECONDS_IN_AN_HOUR,
        to_timestamp=now,
    )

    db.add_all(
        Quote(coin=coin, vs_currency=VS_CURRENCY, timestamp=timestamp, price=price)
        for timestamp, price in prices
    )
    db.commit()


def init_price_db(coins: Iterable[str], hours: int, url: str = DEFAULT_DB_URL) -> Session:
    """
    Returns a session on the quotes db, downloading everything again unless it
    already holds `hours` quotes for every coin.
    """
    coins = list(coins)
    db = init_db(url)

    if not all(
        db.query(Quote).filter(Quote.coin == coin).count() >= hours for coin in coins
    ):
        db.close()
        drop_all(url)
        db = init_db(url)
        for coin in coins:
            download_price_data(db, coin, hours)

    return db


def read_quotes_from_db(db: Session, coin: str, hours: int) -> List[Quote]:
    quotes = db.query(Quote).filter(Quote.coin == coin).order_by(Quote.timestamp).all()
    return list(quotes)[-hours:]


def make_trader_names(n: int) -> Set[str]:
    trader_names = set()
    while len(trader_names) < n:
        trader_names.add(names.get_full_name())

    return trader_names
