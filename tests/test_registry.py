import pytest

from stablemint.clock import Clock
from stablemint.errors import (
    NotAllowedToken,
    TokenAddressesAndPriceFeedAddressesMustBeSameLength,
)
from stablemint.oracle import MockPriceFeed
from stablemint.registry import CollateralRegistry
from stablemint.token import Token
from stablemint.types import Asset


def make_collateral(clock: Clock, symbol: str, price: int):
    return Token(name=symbol, symbol=symbol), MockPriceFeed(clock, price, description=f"{symbol} / USD")


def test_reverts_if_token_length_doesnt_match_price_feeds():
    clock = Clock()
    weth, eth_usd = make_collateral(clock, "WETH", 2000_00000000)
    wbtc, btc_usd = make_collateral(clock, "WBTC", 1000_00000000)

    with pytest.raises(TokenAddressesAndPriceFeedAddressesMustBeSameLength):
        CollateralRegistry([weth, wbtc, weth], [eth_usd, btc_usd])


def test_assets_are_enumerated_in_registration_order():
    clock = Clock()
    collateral = [
        make_collateral(clock, symbol, 1_00000000)
        for symbol in ["WETH", "WBTC", "LINK", "AAVE"]
    ]

    registry = CollateralRegistry(
        [token for token, _ in collateral],
        [feed for _, feed in collateral],
    )

    assert registry.assets == [Asset("weth"), Asset("wbtc"), Asset("link"), Asset("aave")]
    for token, feed in collateral:
        assert registry.is_allowed(token.address)
        assert registry.price_feed(token.address) is feed
        assert registry.token(token.address) is token


def test_assets_enumeration_is_a_copy():
    clock = Clock()
    weth, eth_usd = make_collateral(clock, "WETH", 2000_00000000)
    registry = CollateralRegistry([weth], [eth_usd])

    registry.assets.append(Asset("wbtc"))

    assert registry.assets == [Asset("weth")]


def test_duplicated_asset_keeps_the_last_price_feed():
    """
    A duplicated asset shows up twice in the enumeration, its lookups resolve
    to the last registration.
    """
    clock = Clock()
    weth, eth_usd = make_collateral(clock, "WETH", 2000_00000000)
    other_eth_usd = MockPriceFeed(clock, 2100_00000000)

    registry = CollateralRegistry([weth, weth], [eth_usd, other_eth_usd])

    assert registry.assets == [weth.address, weth.address]
    assert registry.price_feed(weth.address) is other_eth_usd
    assert registry.tokens == [weth]


def test_unknown_asset_is_not_allowed():
    clock = Clock()
    weth, eth_usd = make_collateral(clock, "WETH", 2000_00000000)
    registry = CollateralRegistry([weth], [eth_usd])

    assert not registry.is_allowed(Asset("ran"))
    with pytest.raises(NotAllowedToken):
        registry.price_feed(Asset("ran"))
    with pytest.raises(NotAllowedToken):
        registry.token(Asset("ran"))


def test_empty_registry():
    registry = CollateralRegistry([], [])

    assert registry.assets == []
    assert registry.tokens == []
