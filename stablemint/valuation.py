from stablemint.constants import PRECISION
from stablemint.errors import InvalidPrice
from stablemint.ledger import PositionLedger
from stablemint.oracle import OracleGuard
from stablemint.registry import CollateralRegistry
from stablemint.types import Account, Amount, Asset, Price


class Valuation:
    """
    Converts between collateral amounts and USD values, both 18 decimals fixed
    point. Every conversion reads the price feed again, prices are never cached.
    """

    oracle_guard: OracleGuard
    registry: CollateralRegistry

    def __init__(self, registry: CollateralRegistry, oracle_guard: OracleGuard):
        self.oracle_guard = oracle_guard
        self.registry = registry

    def price(self, asset: Asset) -> Price:
        """
        Returns the current price of `asset` scaled to 18 decimals.
        """
        feed = self.registry.price_feed(asset)
        quote = self.oracle_guard.latest_price(feed)

        if feed.decimals <= 18:
            price = quote.price * 10 ** (18 - feed.decimals)
        else:
            price = quote.price // 10 ** (feed.decimals - 18)

        # Feeds with more than 18 decimals can truncate a tiny price to zero.
        if price == 0:
            raise InvalidPrice(feed.description, quote.price)

        return price

    def usd_value(self, asset: Asset, amount: Amount) -> Amount:
        return self.price(asset) * amount // PRECISION

    def amount_from_usd_value(self, asset: Asset, usd_amount: Amount) -> Amount:
        return usd_amount * PRECISION // self.price(asset)

    def account_collateral_value(self, ledger: PositionLedger, account: Account) -> Amount:
        return sum(
            self.usd_value(asset, ledger.collateral_balance(account, asset))
            for asset in self.registry.assets
        )
