import functools
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple

from stablemint.clock import Clock
from stablemint.constants import (
    ADDITIONAL_FEED_PRECISION,
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MIN_HEALTH_FACTOR,
    ORACLE_TIMEOUT,
    PRECISION,
)
from stablemint.errors import (
    BreaksHealthFactor,
    HealthFactorNotImproved,
    HealthFactorOk,
    MintFailed,
    NeedsMoreThanZero,
    NotAllowedToken,
    OracleError,
    ReentrantCall,
    StablemintError,
    TransferFailed,
)
from stablemint.events import CollateralDeposited, CollateralRedeemed, Event
from stablemint.health import calculate_health_factor, is_healthy
from stablemint.ledger import PositionLedger
from stablemint.metrics import Metric, MetricsLogger
from stablemint.oracle import OracleGuard, PriceFeed
from stablemint.registry import CollateralRegistry
from stablemint.token import DebtToken, FungibleToken, Snapshottable
from stablemint.types import Account, Amount, Asset
from stablemint.valuation import Valuation


def nonreentrant(operation):
    """
    Wraps every state changing entry point of the engine.

    Tokens are untrusted and are called in the middle of an operation, so a
    call back into the engine while an operation is running is refused. An
    operation that raises is rolled back entirely, token balances included.
    """

    @functools.wraps(operation)
    def wrapper(self: "DSCEngine", *args, **kwargs):
        if self._entered:
            raise ReentrantCall()

        self._entered = True
        try:
            with self._atomic():
                return operation(self, *args, **kwargs)
        except StablemintError as error:
            # Only oracle freezes are warnings, other rejections are routine.
            log = logging.warning if isinstance(error, OracleError) else logging.info
            log(f"{operation.__name__}\t => rejected {error!r}")
            self._log_failure(error)
            raise
        finally:
            self._entered = False

    return wrapper


class DSCEngine:
    """
    Issues the stable coin against collateral deposits.

    Every account must keep a health factor of at least `MIN_HEALTH_FACTOR`,
    that is the USD value of its collateral must be at least twice the value of
    the stable coin it minted. Accounts that fall below can be liquidated by
    anyone: the liquidator repays part of the debt and receives the equivalent
    collateral plus a `LIQUIDATION_BONUS` percent bonus.
    """

    address: Account
    dsc: DebtToken
    events: List[Event]
    ledger: PositionLedger
    metrics_logger: Optional[MetricsLogger]
    oracle_guard: OracleGuard
    registry: CollateralRegistry
    valuation: Valuation

    def __init__(
        self,
        tokens: Sequence[FungibleToken],
        price_feeds: Sequence[PriceFeed],
        dsc: DebtToken,
        clock: Clock,
        address: Account = Account("dsc-engine"),
        metrics_logger: Optional[MetricsLogger] = None,
        timeout: int = ORACLE_TIMEOUT,
    ):
        """
        - tokens: the accepted collateral tokens, in the order they are enumerated.
        - price_feeds: the USD price feed of each token, in the same order.
        - dsc: the stable coin, the engine must be its owner to mint and burn.
          The collateral tokens and the stable coin must be `Snapshottable` so
          that a failed operation can be rolled back.
        - clock: block time, used to reject stale prices.
        - address: the account holding the collateral deposited in the engine.
        - metrics_logger: optional, receives a sample for every operation.
        - timeout: maximum age in seconds of a price before it is considered stale.
        """
        for token in [*tokens, dsc]:
            assert isinstance(token, Snapshottable), f"{token} cannot be rolled back"

        self.address = address
        self.dsc = dsc
        self.events = []
        self.ledger = PositionLedger()
        self.metrics_logger = metrics_logger
        self.oracle_guard = OracleGuard(clock, timeout)
        self.registry = CollateralRegistry(tokens, price_feeds)
        self.valuation = Valuation(self.registry, self.oracle_guard)
        self._entered = False
        self._pending_metrics = []

    # Position operations

    @nonreentrant
    def deposit_collateral_and_mint_dsc(
        self,
        caller: Account,
        asset: Asset,
        collateral_amount: Amount,
        amount_dsc_to_mint: Amount,
    ) -> None:
        self._require_more_than_zero(amount_dsc_to_mint)
        self._deposit_collateral(caller, asset, collateral_amount)
        self._mint_dsc(caller, amount_dsc_to_mint)

    @nonreentrant
    def deposit_collateral(self, caller: Account, asset: Asset, amount: Amount) -> None:
        self._deposit_collateral(caller, asset, amount)

    @nonreentrant
    def redeem_collateral_for_dsc(
        self,
        caller: Account,
        asset: Asset,
        collateral_amount: Amount,
        amount_dsc_to_burn: Amount,
    ) -> None:
        """
        Burns first so that the debt is repaid before the collateral leaves.
        """
        self._require_more_than_zero(collateral_amount)
        self._require_more_than_zero(amount_dsc_to_burn)
        self._require_allowed_token(asset)

        self._burn_dsc(amount_dsc_to_burn, on_behalf_of=caller, dsc_from=caller)
        self._redeem_collateral(asset, collateral_amount, from_=caller, to=caller)
        self._revert_if_health_factor_is_broken(caller)

    @nonreentrant
    def redeem_collateral(self, caller: Account, asset: Asset, amount: Amount) -> None:
        self._require_more_than_zero(amount)
        self._require_allowed_token(asset)
        self._redeem_collateral(asset, amount, from_=caller, to=caller)
        self._revert_if_health_factor_is_broken(caller)

    @nonreentrant
    def mint_dsc(self, caller: Account, amount: Amount) -> None:
        self._mint_dsc(caller, amount)

    @nonreentrant
    def burn_dsc(self, caller: Account, amount: Amount) -> None:
        self._require_more_than_zero(amount)
        self._burn_dsc(amount, on_behalf_of=caller, dsc_from=caller)
        # Burning can only improve the health factor, we check it anyway.
        self._revert_if_health_factor_is_broken(caller)

    @nonreentrant
    def liquidate(
        self,
        caller: Account,
        collateral_asset: Asset,
        user: Account,
        debt_to_cover: Amount,
    ) -> None:
        """
        Repays `debt_to_cover` of the debt of `user` with the caller's stable
        coins, and pays the caller back in `collateral_asset` taken from the
        position of `user`, plus the liquidation bonus.

        `user` must be unhealthy and must hold enough `collateral_asset`, and
        the liquidation must strictly improve its health factor.
        """
        self._require_more_than_zero(debt_to_cover)
        self._require_allowed_token(collateral_asset)

        starting_health_factor = self._health_factor(user)
        if is_healthy(starting_health_factor):
            raise HealthFactorOk(starting_health_factor)

        token_amount_from_debt_covered = self.valuation.amount_from_usd_value(
            collateral_asset, debt_to_cover
        )
        bonus_collateral = (
            token_amount_from_debt_covered * LIQUIDATION_BONUS // LIQUIDATION_PRECISION
        )
        total_collateral_to_redeem = token_amount_from_debt_covered + bonus_collateral

        self._redeem_collateral(
            collateral_asset, total_collateral_to_redeem, from_=user, to=caller
        )
        self._burn_dsc(debt_to_cover, on_behalf_of=user, dsc_from=caller)

        ending_health_factor = self._health_factor(user)
        if ending_health_factor <= starting_health_factor:
            raise HealthFactorNotImproved(starting_health_factor, ending_health_factor)

        self._revert_if_health_factor_is_broken(caller)

        logging.info(
            f"Liquidate\t => {caller} covered {debt_to_cover} of {user} for "
            f"{total_collateral_to_redeem} {collateral_asset}, health factor "
            f"{starting_health_factor} -> {ending_health_factor}"
        )
        self._log_metric(Metric.LIQUIDATION, debt_to_cover / PRECISION)

    # Read surface

    def get_account_information(self, user: Account) -> Tuple[Amount, Amount]:
        """
        Returns `(total_dsc_minted, collateral_value_in_usd)` of `user`.
        """
        total_dsc_minted = self.ledger.debt_minted(user)
        collateral_value_in_usd = self.get_account_collateral_value(user)
        return total_dsc_minted, collateral_value_in_usd

    def get_account_collateral_value(self, user: Account) -> Amount:
        return self.valuation.account_collateral_value(self.ledger, user)

    def get_usd_value(self, asset: Asset, amount: Amount) -> Amount:
        return self.valuation.usd_value(asset, amount)

    def get_token_amount_from_usd(self, asset: Asset, usd_amount: Amount) -> Amount:
        return self.valuation.amount_from_usd_value(asset, usd_amount)

    def get_health_factor(self, user: Account) -> int:
        return self._health_factor(user)

    def calculate_health_factor(
        self, total_dsc_minted: Amount, collateral_value_usd: Amount
    ) -> int:
        return calculate_health_factor(total_dsc_minted, collateral_value_usd)

    def get_collateral_balance_of_user(self, user: Account, asset: Asset) -> Amount:
        return self.ledger.collateral_balance(user, asset)

    def get_collateral_tokens(self) -> List[Asset]:
        return self.registry.assets

    def get_collateral_token_price_feed(self, asset: Asset) -> PriceFeed:
        return self.registry.price_feed(asset)

    def get_dsc(self) -> DebtToken:
        return self.dsc

    def get_precision(self) -> int:
        return PRECISION

    def get_additional_feed_precision(self) -> int:
        return ADDITIONAL_FEED_PRECISION

    def get_liquidation_threshold(self) -> int:
        return LIQUIDATION_THRESHOLD

    def get_liquidation_bonus(self) -> int:
        return LIQUIDATION_BONUS

    def get_liquidation_precision(self) -> int:
        return LIQUIDATION_PRECISION

    def get_min_health_factor(self) -> int:
        return MIN_HEALTH_FACTOR

    def get_timeout(self) -> int:
        return self.oracle_guard.timeout

    # Internals

    def _deposit_collateral(self, caller: Account, asset: Asset, amount: Amount) -> None:
        self._require_more_than_zero(amount)
        self._require_allowed_token(asset)

        self.ledger.add_collateral(caller, asset, amount)
        self.events.append(CollateralDeposited(user=caller, token=asset, amount=amount))

        token = self.registry.token(asset)
        if not token.transfer_from(self.address, caller, self.address, amount):
            raise TransferFailed(asset)

        logging.info(f"DepositCollateral\t => {caller} {amount} {asset}")
        self._log_metric(Metric.COLLATERAL_DEPOSITED)

    def _redeem_collateral(
        self, asset: Asset, amount: Amount, from_: Account, to: Account
    ) -> None:
        self.ledger.remove_collateral(from_, asset, amount)
        self.events.append(
            CollateralRedeemed(redeemed_from=from_, redeemed_to=to, token=asset, amount=amount)
        )

        token = self.registry.token(asset)
        if not token.transfer(self.address, to, amount):
            raise TransferFailed(asset)

        logging.info(f"RedeemCollateral\t => {from_} -> {to} {amount} {asset}")
        self._log_metric(Metric.COLLATERAL_REDEEMED)

    def _mint_dsc(self, caller: Account, amount: Amount) -> None:
        self._require_more_than_zero(amount)

        self.ledger.add_debt(caller, amount)
        # The token is only minted once the new debt is known to be covered.
        self._revert_if_health_factor_is_broken(caller)

        if not self.dsc.mint(self.address, caller, amount):
            raise MintFailed()

        logging.info(f"MintDsc\t => {caller} {amount}")
        self._log_metric(Metric.DSC_MINTED, amount / PRECISION)

    def _burn_dsc(self, amount: Amount, on_behalf_of: Account, dsc_from: Account) -> None:
        self.ledger.remove_debt(on_behalf_of, amount)

        if not self.dsc.transfer_from(self.address, dsc_from, self.address, amount):
            raise TransferFailed(self.dsc.address)
        self.dsc.burn(self.address, amount)

        logging.info(f"BurnDsc\t => {dsc_from} repaid {amount} for {on_behalf_of}")
        self._log_metric(Metric.DSC_BURNED, amount / PRECISION)

    def _health_factor(self, user: Account) -> int:
        total_dsc_minted, collateral_value_in_usd = self.get_account_information(user)
        return calculate_health_factor(total_dsc_minted, collateral_value_in_usd)

    def _revert_if_health_factor_is_broken(self, user: Account) -> None:
        health_factor = self._health_factor(user)
        if not is_healthy(health_factor):
            raise BreaksHealthFactor(health_factor)

    def _require_more_than_zero(self, amount: Amount) -> None:
        if amount <= 0:
            raise NeedsMoreThanZero()

    def _require_allowed_token(self, asset: Asset) -> None:
        if not self.registry.is_allowed(asset):
            raise NotAllowedToken(asset)

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """
        Snapshots are journals of the keys changed while the operation runs,
        taking one does not copy the ledger or the token balances.
        """
        participants = [self.ledger, *self.registry.tokens, self.dsc]
        snapshots = [(participant, participant.snapshot()) for participant in participants]
        events = len(self.events)
        self._pending_metrics = []

        try:
            yield
        except Exception:
            for participant, state in reversed(snapshots):
                participant.restore(state)
            del self.events[events:]
            self._pending_metrics = []
            raise

        pending_metrics, self._pending_metrics = self._pending_metrics, []
        for metric, sample in pending_metrics:
            self._record_metric(metric, sample)

    def _log_failure(self, error: StablemintError) -> None:
        self._record_metric(Metric.OPERATION_FAILED)
        if isinstance(error, OracleError):
            self._record_metric(Metric.ORACLE_FROZEN)

    def _log_metric(self, metric: Metric, sample: float = 1.0) -> None:
        # Samples of a running operation are only recorded once it succeeds.
        self._pending_metrics.append((metric, sample))

    def _record_metric(self, metric: Metric, sample: float = 1.0) -> None:
        if self.metrics_logger is not None:
            self.metrics_logger.log(metric, sample)
