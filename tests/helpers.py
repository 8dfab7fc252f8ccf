from typing import Callable, Optional

from stablemint.clock import Clock
from stablemint.deploy import DEPLOYER, Deployment, deploy
from stablemint.engine import DSCEngine
from stablemint.metrics import MetricsLogger
from stablemint.oracle import MockPriceFeed
from stablemint.token import StableCoin, Token
from stablemint.types import Account, Amount, Asset, Price


USER = Account("0xuser")
LIQUIDATOR = Account("0xliquidator")

ETH_USD_PRICE = Price(2000_00000000)


def make_deployment(
    metrics_logger: Optional[MetricsLogger] = None,
    dsc: Optional[StableCoin] = None,
) -> Deployment:
    """
    WETH at 2000 USD and WBTC at 1000 USD.
    """
    clock = Clock() if metrics_logger is None else metrics_logger.clock
    return deploy(clock, metrics_logger=metrics_logger, dsc=dsc)


def make_engine(token: Token, dsc: Optional[StableCoin] = None) -> DSCEngine:
    """
    Engine accepting `token` only, priced at 2000 USD.
    """
    clock = Clock()
    engine = DSCEngine(
        tokens=[token],
        price_feeds=[MockPriceFeed(clock, ETH_USD_PRICE, description="ETH / USD")],
        dsc=dsc or StableCoin(owner=DEPLOYER),
        clock=clock,
    )
    engine.dsc.transfer_ownership(DEPLOYER, engine.address)
    return engine


def fund(token: Token, engine: DSCEngine, account: Account, amount: Amount) -> None:
    """
    Gives `amount` of `token` to `account` and lets the engine pull it.
    """
    token.mint(account, account, amount)
    token.approve(account, engine.address, amount)


class MockFailedTransferToken(Token):
    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool:
        return False


class MockFailedTransferFromToken(Token):
    def transfer_from(self, sender: Account, from_: Account, to: Account, amount: Amount) -> bool:
        return False


class MockFailedMintDSC(StableCoin):
    def mint(self, sender: Account, to: Account, amount: Amount) -> bool:
        super().mint(sender, to, amount)
        return False


class MockMoreDebtDSC(StableCoin):
    """
    Crashes the price of the collateral while debt is being burnt.
    """

    def __init__(self, owner: Account, price_feed: MockPriceFeed, crashed_price: Price):
        super().__init__(owner)
        self.crashed_price = crashed_price
        self.price_feed = price_feed

    def burn(self, sender: Account, amount: Amount) -> None:
        self.price_feed.update_answer(self.crashed_price)
        super().burn(sender, amount)


class ReentrantToken(Token):
    """
    Calls back into the engine while collateral is being pulled or paid out.
    """

    engine: Optional[DSCEngine] = None
    attack: bool = True
    reads_only: bool = False
    observed_health_factor: Optional[int] = None

    def transfer_from(self, sender: Account, from_: Account, to: Account, amount: Amount) -> bool:
        if self.engine is not None and self.attack:
            if self.reads_only:
                self.observed_health_factor = self.engine.get_health_factor(from_)
            else:
                self.engine.deposit_collateral(from_, self.address, amount)
        return super().transfer_from(sender, from_, to, amount)

    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool:
        if self.engine is not None and self.attack and not self.reads_only:
            self.engine.redeem_collateral(to, self.address, amount)
        return super().transfer(sender, to, amount)


class ReentrantDSC(StableCoin):
    """
    Runs `reenter` while the engine mints or pulls stable coins.
    """

    reenter: Optional[Callable[[], object]] = None

    def mint(self, sender: Account, to: Account, amount: Amount) -> bool:
        if self.reenter is not None:
            self.reenter()
        return super().mint(sender, to, amount)

    def transfer_from(self, sender: Account, from_: Account, to: Account, amount: Amount) -> bool:
        if self.reenter is not None:
            self.reenter()
        return super().transfer_from(sender, from_, to, amount)


class UnsnapshottableToken:
    """
    A collateral token the engine has no way to roll back.
    """

    address = Asset("plain")

    def balance_of(self, account: Account) -> Amount:
        return 0

    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool:
        return True

    def transfer_from(self, sender: Account, from_: Account, to: Account, amount: Amount) -> bool:
        return True
