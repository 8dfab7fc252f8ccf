import logging
from typing import List, Protocol, Tuple

from stablemint.clock import Clock
from stablemint.constants import FEED_DECIMALS, ORACLE_TIMEOUT
from stablemint.db import Quote
from stablemint.errors import InvalidPrice, StalePrice
from stablemint.types import Price, PriceQuote, Timestamp
from stablemint.util import to_fixed_point


class PriceFeed(Protocol):
    """
    A USD price source. `latest_price` returns the last reported price, with
    `decimals` decimals, and the time it was reported at.
    """

    description: str
    decimals: int

    def latest_price(self) -> Tuple[Price, Timestamp]:
        ...


class OracleGuard:
    """
    Consumes price feeds on behalf of the engine. Prices older than `timeout`
    seconds freeze every operation that needs them instead of being used.
    """

    clock: Clock
    timeout: int

    def __init__(self, clock: Clock, timeout: int = ORACLE_TIMEOUT):
        self.clock = clock
        self.timeout = timeout

    def latest_price(self, feed: PriceFeed) -> PriceQuote:
        price, updated_at = feed.latest_price()

        now = self.clock.time
        if updated_at == 0 or now - updated_at > self.timeout:
            logging.warning(f"StalePrice\t => {feed.description} updated at {updated_at}, now {now}")
            raise StalePrice(feed.description, updated_at, now)

        # Non positive prices freeze the asset like stale ones.
        if price <= 0:
            logging.warning(f"InvalidPrice\t => {feed.description} reported {price}")
            raise InvalidPrice(feed.description, price)

        return PriceQuote(price=price, updated_at=updated_at)


class MockPriceFeed:
    """
    A feed whose answer is set by hand, every update is stamped with the current time.
    """

    clock: Clock
    description: str
    decimals: int

    def __init__(
        self,
        clock: Clock,
        initial_answer: Price,
        decimals: int = FEED_DECIMALS,
        description: str = "mock / USD",
    ):
        self.clock = clock
        self.decimals = decimals
        self.description = description
        self.update_answer(initial_answer)

    def update_answer(self, answer: Price) -> None:
        self._answer = answer
        self._updated_at = self.clock.time

    def update_round_data(self, answer: Price, updated_at: Timestamp) -> None:
        self._answer = answer
        self._updated_at = updated_at

    def latest_price(self) -> Tuple[Price, Timestamp]:
        return self._answer, self._updated_at


class QuotePriceFeed:
    """
    Replays a historical series of USD quotes, one quote per simulation period.
    """

    clock: Clock
    description: str
    decimals: int
    quotes: List[Quote]

    def __init__(
        self,
        clock: Clock,
        quotes: List[Quote],
        decimals: int = FEED_DECIMALS,
        description: str = "quotes / USD",
    ):
        assert len(quotes) >= clock.periods, "Not enough quotes to cover the simulation"

        self.clock = clock
        self.decimals = decimals
        self.description = description
        self.quotes = quotes

    def latest_price(self) -> Tuple[Price, Timestamp]:
        quote = self.quotes[self.clock.period]
        return to_fixed_point(quote.price, self.decimals), self.clock.time
