from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from stablemint.clock import Clock
from stablemint.constants import FEED_DECIMALS
from stablemint.engine import DSCEngine
from stablemint.metrics import MetricsLogger
from stablemint.oracle import MockPriceFeed, PriceFeed
from stablemint.token import StableCoin, Token
from stablemint.types import Account, Asset, Price
from stablemint.util import to_fixed_point


DEPLOYER = Account("deployer")

# Collateral of a local network: symbol and initial USD price.
LOCAL_COLLATERAL: List[Tuple[str, float]] = [
    ("WETH", 2000.0),
    ("WBTC", 1000.0),
]


@dataclass
class Deployment:
    clock: Clock
    engine: DSCEngine
    dsc: StableCoin
    tokens: Dict[Asset, Token]
    price_feeds: Dict[Asset, PriceFeed]

    def token(self, symbol: str) -> Token:
        return self.tokens[Asset(symbol.lower())]

    def price_feed(self, symbol: str) -> PriceFeed:
        return self.price_feeds[Asset(symbol.lower())]

    def set_price(self, symbol: str, price: float) -> None:
        feed = self.price_feed(symbol)
        assert isinstance(feed, MockPriceFeed), f"The {symbol} price feed cannot be set"
        feed.update_answer(to_fixed_point(price, feed.decimals))


def deploy(
    clock: Clock,
    collateral: Sequence[Tuple[str, float]] = LOCAL_COLLATERAL,
    metrics_logger: Optional[MetricsLogger] = None,
    dsc: Optional[StableCoin] = None,
    price_feeds: Optional[Sequence[PriceFeed]] = None,
) -> Deployment:
    """
    Deploys one token per `(symbol, price)` collateral with its price feed, the
    stable coin and the engine, then hands the stable coin over to the engine.

    Unless `price_feeds` are given, every token gets a mock feed starting at its
    price. A custom `dsc` must be owned by `DEPLOYER`.
    """
    tokens = [Token(name=f"Wrapped {symbol}", symbol=symbol) for symbol, _ in collateral]
    if price_feeds is None:
        price_feeds = [
            MockPriceFeed(
                clock=clock,
                initial_answer=Price(to_fixed_point(price, FEED_DECIMALS)),
                decimals=FEED_DECIMALS,
                description=f"{symbol} / USD",
            )
            for symbol, price in collateral
        ]
    dsc = dsc or StableCoin(owner=DEPLOYER)

    engine = DSCEngine(
        tokens=tokens,
        price_feeds=price_feeds,
        dsc=dsc,
        clock=clock,
        metrics_logger=metrics_logger,
    )
    dsc.transfer_ownership(DEPLOYER, engine.address)

    return Deployment(
        clock=clock,
        engine=engine,
        dsc=dsc,
        tokens={token.address: token for token in tokens},
        price_feeds={token.address: feed for token, feed in zip(tokens, price_feeds)},
    )
