# CoinGecko API crawler
# https://www.coingecko.com/en/api/documentation
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Tuple

import requests

from stablemint.constants import SECONDS_IN_A_DAY
from stablemint.types import Timestamp


COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# The API only returns hourly prices for ranges of at most 90 days.
DAYS_PER_API_CALL = 30

REQUEST_TIMEOUT_SECONDS = 30


def _get(path: str, **params) -> object:
    response = requests.get(
        f"{COINGECKO_BASE_URL}{path}", params=params, timeout=REQUEST_TIMEOUT_SECONDS
    )
    response.raise_for_status()
    return response.json()


def _format(timestamp: Timestamp) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def coin_ids() -> Iterable[str]:
    for coin in _get("/coins/list"):
        yield coin["id"]


def market_chart_range(
    coin_id: str,
    vs_currency: str,
    from_timestamp: Timestamp,
    to_timestamp: Timestamp,
) -> List[Tuple[Timestamp, float]]:
    """
    Returns `(timestamp, price)` samples of `coin_id` between the two timestamps,
    sorted by ascending timestamp. Timestamps are in seconds.
    """
    days = int((to_timestamp - from_timestamp) / SECONDS_IN_A_DAY)
    periods = int(days / DAYS_PER_API_CALL) + 1  # Add an extra period to also download the rest
    date_ranges = [
        (
            from_timestamp + (n * DAYS_PER_API_CALL * SECONDS_IN_A_DAY),
            min(to_timestamp, from_timestamp + ((n + 1) * DAYS_PER_API_CALL * SECONDS_IN_A_DAY)),
        )
        for n in range(periods)
    ]

    prices: Dict[Timestamp, float] = {}  # Keyed by timestamp to drop samples duplicated across ranges
    for start, end in date_ranges:
        if start >= end:
            continue
        logging.info(f"Downloading {coin_id} prices {_format(start)} => {_format(end)}")
        data = _get(
            f"/coins/{coin_id}/market_chart/range",
            vs_currency=vs_currency,
            **{"from": start, "to": end},
        )
        # CoinGecko timestamps are in milliseconds
        prices.update({int(timestamp // 1000): price for timestamp, price in data["prices"]})

    return sorted(prices.items(), key=lambda sample: sample[0])
