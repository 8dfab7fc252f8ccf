import logging
import random
from typing import Callable, List, Optional

from stablemint.constants import LIQUIDATION_PRECISION, LIQUIDATION_THRESHOLD, PRECISION
from stablemint.engine import DSCEngine
from stablemint.errors import StablemintError
from stablemint.token import Token
from stablemint.types import Account, Amount, Asset


class Trader:
    """
    We model traders as independent agents who occasionally deposit collateral,
    mint stable coins against it, repay or withdraw, each with a fixed probability.

    Traders mint up to their own target health factor: some keep a large buffer,
    others run close to the liquidation threshold.
    """

    account: Account
    burn_probability: float
    deposit_probability: float
    engine: DSCEngine
    mint_probability: float
    redeem_probability: float
    target_health_factor: int
    tokens: List[Token]

    def __init__(
        self,
        account: Account,
        engine: DSCEngine,
        tokens: List[Token],
        calculate_deposit_usd: Callable[[], float],
        target_health_factor: int,
        deposit_probability: float,
        mint_probability: float,
        burn_probability: float,
        redeem_probability: float,
    ):
        """
        - calculate_deposit_usd: returns the USD value of the next deposit.
        - target_health_factor: 18 decimals health factor the trader mints down to.
        """
        self.account = account
        self.burn_probability = burn_probability
        self.calculate_deposit_usd = calculate_deposit_usd
        self.deposit_probability = deposit_probability
        self.engine = engine
        self.mint_probability = mint_probability
        self.redeem_probability = redeem_probability
        self.target_health_factor = target_health_factor
        self.tokens = tokens

    def trade(self) -> None:
        if self._want(self.deposit_probability):
            self._try(self._deposit)
        if self._want(self.mint_probability):
            self._try(self._mint)
        if self._want(self.burn_probability):
            self._try(self._burn)
        if self._want(self.redeem_probability):
            self._try(self._redeem)

    def mintable(self) -> Amount:
        """
        Debt that can still be minted without going below the target health factor.
        """
        debt, collateral_value = self.engine.get_account_information(self.account)
        capacity = (
            collateral_value * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
            * PRECISION // self.target_health_factor
        )
        return max(0, capacity - debt)

    def _deposit(self) -> None:
        token = random.choice(self.tokens)
        amount = min(
            self.engine.get_token_amount_from_usd(
                token.address, int(self.calculate_deposit_usd() * PRECISION)
            ),
            token.balance_of(self.account),
        )
        if amount == 0:
            return

        token.approve(self.account, self.engine.address, amount)
        self.engine.deposit_collateral(self.account, token.address, amount)

    def _mint(self) -> None:
        amount = self.mintable()
        if amount > 0:
            self.engine.mint_dsc(self.account, amount)

    def _burn(self) -> None:
        dsc = self.engine.get_dsc()
        debt = self.engine.ledger.debt_minted(self.account)
        amount = min(debt, dsc.balance_of(self.account)) // 2
        if amount == 0:
            return

        dsc.approve(self.account, self.engine.address, amount)
        self.engine.burn_dsc(self.account, amount)

    def _redeem(self) -> None:
        asset = self._largest_collateral()
        if asset is None:
            return

        # Redeem a quarter of the position, the engine refuses it if it breaks the health factor.
        amount = self.engine.get_collateral_balance_of_user(self.account, asset) // 4
        if amount > 0:
            self.engine.redeem_collateral(self.account, asset, amount)

    def _largest_collateral(self) -> Optional[Asset]:
        balances = {
            asset: self.engine.get_collateral_balance_of_user(self.account, asset)
            for asset in self.engine.get_collateral_tokens()
        }
        asset = max(balances, key=lambda asset: balances[asset], default=None)
        return asset if asset is not None and balances[asset] > 0 else None

    def _try(self, action: Callable[[], None]) -> None:
        try:
            action()
        except StablemintError as error:
            logging.debug(f"TraderRejected\t => {self.account} {action.__name__}: {error}")

    def _want(self, probability: float) -> bool:
        return random.random() < probability
