from typing import List

import pytest

from stablemint.clock import Clock
from stablemint.constants import ORACLE_TIMEOUT
from stablemint.db import Quote
from stablemint.errors import InvalidPrice, OracleError, StalePrice
from stablemint.oracle import MockPriceFeed, OracleGuard, QuotePriceFeed
from stablemint.types import PriceQuote

from helpers import ETH_USD_PRICE


def make_test_quotes_from_prices(prices: List[float]) -> List[Quote]:
    return [
        Quote(id=0, coin="ethereum", vs_currency="usd", timestamp=0, price=price)
        for price in prices
    ]


def test_fresh_price_is_returned():
    clock = Clock()
    feed = MockPriceFeed(clock, ETH_USD_PRICE)
    guard = OracleGuard(clock)

    assert guard.latest_price(feed) == PriceQuote(price=ETH_USD_PRICE, updated_at=clock.time)


def test_price_is_usable_until_the_timeout():
    clock = Clock()
    feed = MockPriceFeed(clock, ETH_USD_PRICE)
    guard = OracleGuard(clock)

    clock.advance(ORACLE_TIMEOUT)

    assert guard.latest_price(feed).price == ETH_USD_PRICE


def test_price_older_than_the_timeout_is_stale():
    """
    A price reported 3 hours and 1 second ago freezes the feed, whatever its value.
    """
    clock = Clock()
    feed = MockPriceFeed(clock, ETH_USD_PRICE, description="ETH / USD")
    guard = OracleGuard(clock)
    updated_at = clock.time

    clock.advance(ORACLE_TIMEOUT + 1)

    with pytest.raises(StalePrice) as error:
        guard.latest_price(feed)

    assert error.value.feed == "ETH / USD"
    assert error.value.updated_at == updated_at
    assert error.value.now == clock.time


def test_stale_feed_recovers_after_an_update():
    clock = Clock()
    feed = MockPriceFeed(clock, ETH_USD_PRICE)
    guard = OracleGuard(clock)

    clock.advance(ORACLE_TIMEOUT + 1)
    with pytest.raises(StalePrice):
        guard.latest_price(feed)

    feed.update_answer(ETH_USD_PRICE)

    assert guard.latest_price(feed).updated_at == clock.time


def test_never_updated_feed_is_stale():
    clock = Clock()
    feed = MockPriceFeed(clock, ETH_USD_PRICE)
    feed.update_round_data(ETH_USD_PRICE, updated_at=0)

    with pytest.raises(StalePrice):
        OracleGuard(clock).latest_price(feed)


def test_custom_timeout():
    clock = Clock()
    feed = MockPriceFeed(clock, ETH_USD_PRICE)
    guard = OracleGuard(clock, timeout=60)

    clock.advance(61)

    with pytest.raises(StalePrice):
        guard.latest_price(feed)


@pytest.mark.parametrize("price", [0, -1, -ETH_USD_PRICE])
def test_non_positive_price_is_invalid(price):
    clock = Clock()
    feed = MockPriceFeed(clock, price)

    with pytest.raises(InvalidPrice) as error:
        OracleGuard(clock).latest_price(feed)

    assert error.value.price == price
    assert isinstance(error.value, OracleError)


def test_quote_price_feed_replays_one_quote_per_period():
    clock = Clock(periods=3)
    feed = QuotePriceFeed(
        clock=clock,
        quotes=make_test_quotes_from_prices([2000.0, 2100.5, 1999.123456789]),
    )

    assert feed.latest_price() == (2000_00000000, clock.time)

    clock.step()
    assert feed.latest_price() == (2100_50000000, clock.time)

    clock.step()
    # Digits beyond the feed decimals are truncated
    assert feed.latest_price() == (1999_12345678, clock.time)


def test_quote_price_feed_is_never_stale_during_a_simulation():
    clock = Clock(periods=5)
    feed = QuotePriceFeed(clock=clock, quotes=make_test_quotes_from_prices([1.0] * 5))
    guard = OracleGuard(clock)

    while clock.step():
        assert guard.latest_price(feed).price == 1_00000000


def test_quote_price_feed_needs_a_quote_per_period():
    with pytest.raises(AssertionError):
        QuotePriceFeed(clock=Clock(periods=3), quotes=make_test_quotes_from_prices([1.0, 1.0]))


def test_clock_steps_through_the_periods():
    clock = Clock(periods=2, start=1000, period_seconds=60)

    assert clock.step() is True
    assert clock.period == 1
    assert clock.time == 1060

    assert clock.step() is False
    assert clock.period == 2


def test_clock_cannot_go_backwards():
    clock = Clock(start=1000)

    with pytest.raises(AssertionError):
        clock.warp(999)
