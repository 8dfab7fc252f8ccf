import copy
from typing import Callable

from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from stablemint.constants import ORACLE_TIMEOUT, PRECISION
from stablemint.errors import StablemintError
from stablemint.health import is_healthy
from stablemint.types import Account

from helpers import make_deployment


ACTORS = [Account("0xalice"), Account("0xbob"), Account("0xcarol")]
SYMBOLS = ["WETH", "WBTC"]
STARTING_BALANCE = 1000 * PRECISION
UNLIMITED_ALLOWANCE = 2**256 - 1

actors = st.sampled_from(ACTORS)
symbols = st.sampled_from(SYMBOLS)
collateral_amounts = st.integers(min_value=0, max_value=20 * PRECISION)
dsc_amounts = st.integers(min_value=0, max_value=20000 * PRECISION)


def token_state(token):
    return (
        {account: amount for account, amount in token.balances.items() if amount},
        {spender: amount for spender, amount in token.allowances.items() if amount},
        token.total_supply,
    )


class EngineStateMachine(RuleBasedStateMachine):
    """
    Random users hammer the engine while prices move and go stale. Every
    operation either succeeds leaving the acting account healthy, or fails
    without leaving a trace.
    """

    def __init__(self):
        super().__init__()
        self.deployment = make_deployment()
        self.engine = self.deployment.engine
        for actor in ACTORS:
            for token in self.deployment.tokens.values():
                token.mint(actor, actor, STARTING_BALANCE)
                token.approve(actor, self.engine.address, UNLIMITED_ALLOWANCE)
            self.deployment.dsc.approve(actor, self.engine.address, UNLIMITED_ALLOWANCE)

    def state(self):
        return (
            copy.deepcopy(self.engine.ledger.positions),
            [token_state(token) for token in self.deployment.tokens.values()],
            token_state(self.deployment.dsc),
            list(self.engine.events),
        )

    def attempt(self, actor: Account, operation: Callable[[], None], checks_health: bool = True) -> None:
        before = self.state()
        try:
            operation()
        except StablemintError:
            assert self.state() == before
        else:
            if checks_health and self.engine.ledger.debt_minted(actor) > 0:
                assert is_healthy(self.engine.get_health_factor(actor))

    @rule(actor=actors, symbol=symbols, amount=collateral_amounts)
    def deposit_collateral(self, actor, symbol, amount):
        asset = self.deployment.token(symbol).address
        self.attempt(
            actor,
            lambda: self.engine.deposit_collateral(actor, asset, amount),
            checks_health=False,
        )

    @rule(actor=actors, symbol=symbols, collateral_amount=collateral_amounts, amount=dsc_amounts)
    def deposit_collateral_and_mint_dsc(self, actor, symbol, collateral_amount, amount):
        asset = self.deployment.token(symbol).address
        self.attempt(
            actor,
            lambda: self.engine.deposit_collateral_and_mint_dsc(actor, asset, collateral_amount, amount),
        )

    @rule(actor=actors, amount=dsc_amounts)
    def mint_dsc(self, actor, amount):
        self.attempt(actor, lambda: self.engine.mint_dsc(actor, amount))

    @rule(actor=actors, amount=dsc_amounts)
    def burn_dsc(self, actor, amount):
        self.attempt(actor, lambda: self.engine.burn_dsc(actor, amount))

    @rule(actor=actors, symbol=symbols, amount=collateral_amounts)
    def redeem_collateral(self, actor, symbol, amount):
        asset = self.deployment.token(symbol).address
        self.attempt(actor, lambda: self.engine.redeem_collateral(actor, asset, amount))

    @rule(actor=actors, symbol=symbols, collateral_amount=collateral_amounts, amount=dsc_amounts)
    def redeem_collateral_for_dsc(self, actor, symbol, collateral_amount, amount):
        asset = self.deployment.token(symbol).address
        self.attempt(
            actor,
            lambda: self.engine.redeem_collateral_for_dsc(actor, asset, collateral_amount, amount),
        )

    @rule(liquidator=actors, user=actors, symbol=symbols, amount=dsc_amounts)
    def liquidate(self, liquidator, user, symbol, amount):
        asset = self.deployment.token(symbol).address
        self.attempt(liquidator, lambda: self.engine.liquidate(liquidator, asset, user, amount))

    @rule(symbol=symbols, price=st.integers(min_value=1, max_value=5000))
    def update_price(self, symbol, price):
        self.deployment.set_price(symbol, float(price))

    @rule()
    def let_prices_go_stale(self):
        self.deployment.clock.advance(ORACLE_TIMEOUT + 1)

    @invariant()
    def engine_holds_every_deposit(self):
        ledger = self.engine.ledger
        for asset, token in self.deployment.tokens.items():
            assert token.balance_of(self.engine.address) == sum(
                ledger.collateral_balance(account, asset) for account in ledger.accounts()
            )

    @invariant()
    def stable_coin_supply_matches_minted_debt(self):
        ledger = self.engine.ledger
        assert self.deployment.dsc.total_supply == sum(
            ledger.debt_minted(account) for account in ledger.accounts()
        )

    @invariant()
    def engine_is_never_left_locked(self):
        assert not self.engine._entered


TestEngineStateMachine = EngineStateMachine.TestCase
TestEngineStateMachine.settings = settings(
    max_examples=50,
    stateful_step_count=30,
    deadline=None,
)
