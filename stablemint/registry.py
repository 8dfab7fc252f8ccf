import logging
from typing import Dict, List, Sequence

from stablemint.errors import (
    NotAllowedToken,
    TokenAddressesAndPriceFeedAddressesMustBeSameLength,
)
from stablemint.oracle import PriceFeed
from stablemint.token import FungibleToken
from stablemint.types import Asset


class CollateralRegistry:
    """
    The collateral assets accepted by the engine, each with its price feed.

    The registry is built once and never changes. `assets` keeps the order the
    assets were registered in, duplicates included, while the lookups resolve
    a duplicated asset to the last registration.
    """

    _assets: List[Asset]
    _price_feeds: Dict[Asset, PriceFeed]
    _tokens: Dict[Asset, FungibleToken]

    def __init__(
        self,
        tokens: Sequence[FungibleToken],
        price_feeds: Sequence[PriceFeed],
    ):
        if len(tokens) != len(price_feeds):
            raise TokenAddressesAndPriceFeedAddressesMustBeSameLength(
                len(tokens), len(price_feeds)
            )

        self._assets = []
        self._price_feeds = {}
        self._tokens = {}

        for token, price_feed in zip(tokens, price_feeds):
            assert price_feed is not None, f"Missing price feed for {token.address}"
            if token.address in self._tokens:
                logging.warning(f"DuplicateCollateral\t => {token.address}")
            self._assets.append(token.address)
            self._price_feeds[token.address] = price_feed
            self._tokens[token.address] = token

    @property
    def assets(self) -> List[Asset]:
        return list(self._assets)

    @property
    def tokens(self) -> List[FungibleToken]:
        return list(self._tokens.values())

    def is_allowed(self, asset: Asset) -> bool:
        return asset in self._price_feeds

    def price_feed(self, asset: Asset) -> PriceFeed:
        if not self.is_allowed(asset):
            raise NotAllowedToken(asset)
        return self._price_feeds[asset]

    def token(self, asset: Asset) -> FungibleToken:
        if not self.is_allowed(asset):
            raise NotAllowedToken(asset)
        return self._tokens[asset]
