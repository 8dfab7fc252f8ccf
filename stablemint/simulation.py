import logging
from typing import List

from stablemint.constants import PRECISION
from stablemint.deploy import Deployment
from stablemint.errors import OracleError
from stablemint.health import is_healthy
from stablemint.liquidator import Liquidator
from stablemint.metrics import Metric, Metrics, MetricsLogger
from stablemint.trader import Trader


class Simulation:
    deployment: Deployment
    liquidators: List[Liquidator]
    metrics_logger: MetricsLogger
    traders: List[Trader]

    def __init__(
        self,
        deployment: Deployment,
        traders: List[Trader],
        liquidators: List[Liquidator],
        metrics_logger: MetricsLogger,
    ):
        self.deployment = deployment
        self.liquidators = liquidators
        self.metrics_logger = metrics_logger
        self.traders = traders

    def run(self) -> Metrics:
        clock = self.deployment.clock
        while True:
            logging.info(f"PERIOD: {clock.period}")
            for trader in self.traders:
                trader.trade()
            for liquidator in self.liquidators:
                liquidator.liquidate()

            self._log_protocol_state()

            should_continue = clock.step()
            if not should_continue:
                break

        return self.metrics_logger.metrics

    def _log_protocol_state(self) -> None:
        engine = self.deployment.engine

        self.metrics_logger.log(
            Metric.TOTAL_DSC_SUPPLY,
            self.deployment.dsc.total_supply / PRECISION,
        )

        try:
            collateral_usd = sum(
                engine.get_usd_value(asset, token.balance_of(engine.address))
                for asset, token in self.deployment.tokens.items()
            )
            unhealthy_accounts = sum(
                1
                for account in list(engine.ledger.accounts())
                if not is_healthy(engine.get_health_factor(account))
            )
        except OracleError:
            self.metrics_logger.log(Metric.ORACLE_FROZEN)
            return

        self.metrics_logger.log(Metric.TOTAL_COLLATERAL_USD, collateral_usd / PRECISION)
        self.metrics_logger.log(Metric.UNHEALTHY_ACCOUNTS, float(unhealthy_accounts))
