import logging
import random
from typing import Tuple

from stablemint.constants import LIQUIDATION_BONUS, LIQUIDATION_PRECISION
from stablemint.engine import DSCEngine
from stablemint.errors import OracleError, StablemintError
from stablemint.health import is_healthy
from stablemint.types import Account, Amount, Asset


class Liquidator:
    """
    We model liquidators as independent agents who will try to liquidate an
    unhealthy account with a fixed probability, using their own stable coins.
    """

    account: Account
    engine: DSCEngine
    liquidation_probability: float

    def __init__(
        self,
        account: Account,
        engine: DSCEngine,
        liquidation_probability: float,
    ):
        self.account = account
        self.engine = engine
        self.liquidation_probability = liquidation_probability

    def liquidate(self) -> None:
        if not self._will_liquidate():
            return

        try:
            liquidable_accounts = [
                account
                for account in list(self.engine.ledger.accounts())
                if account != self.account
                and not is_healthy(self.engine.get_health_factor(account))
            ]
        except OracleError as error:
            logging.debug(f"LiquidatorFrozen\t => {self.account}: {error}")
            return

        if not liquidable_accounts:
            return

        user = random.choice(liquidable_accounts)
        try:
            asset, debt_to_cover = self._plan(user)
            if debt_to_cover == 0:
                return

            self.engine.get_dsc().approve(self.account, self.engine.address, debt_to_cover)
            self.engine.liquidate(self.account, asset, user, debt_to_cover)
        except StablemintError as error:
            logging.debug(f"LiquidatorRejected\t => {self.account} on {user}: {error}")

    def _plan(self, user: Account) -> Tuple[Asset, Amount]:
        """
        Picks the collateral `user` holds the most value of, and covers at most
        half of its debt, what that collateral can pay for bonus included, and
        what the liquidator can afford.
        """
        values = {
            asset: self.engine.get_usd_value(
                asset, self.engine.get_collateral_balance_of_user(user, asset)
            )
            for asset in self.engine.get_collateral_tokens()
        }
        asset = max(values, key=lambda asset: values[asset])

        debt = self.engine.ledger.debt_minted(user)
        coverable = values[asset] * LIQUIDATION_PRECISION // (LIQUIDATION_PRECISION + LIQUIDATION_BONUS)
        balance = self.engine.get_dsc().balance_of(self.account)

        return asset, min(debt // 2, coverable, balance)

    def _will_liquidate(self) -> bool:
        return random.random() < self.liquidation_probability
