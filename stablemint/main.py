import logging
import sys
from argparse import ArgumentParser
from functools import partial
from random import gauss, uniform
from typing import Dict, List

from stablemint.clock import Clock
from stablemint.constants import PRECISION
from stablemint.crawlers.coingecko import coin_ids
from stablemint.db import DEFAULT_DB_URL, Quote, init_db
from stablemint.deploy import Deployment, deploy
from stablemint.liquidator import Liquidator
from stablemint.metrics import (
    Metric,
    MetricsLogger,
    aggregate_avg,
    aggregate_max,
    aggregate_sum,
    make_timeseries,
)
from stablemint.montecarlo import MonteCarlo
from stablemint.oracle import QuotePriceFeed
from stablemint.simulation import Simulation
from stablemint.trader import Trader
from stablemint.types import Account
from stablemint.util import (
    download_price_data,
    init_price_db,
    make_trader_names,
    read_quotes_from_db,
)


HOURS = 2000
TRADERS_NUMBER = 10
LIQUIDATORS_NUMBER = 2
SIMULATIONS_NUMBER = 1

# CoinGecko coin id of each collateral symbol.
COLLATERAL_COINS = {
    "WETH": "ethereum",
    "WBTC": "bitcoin",
}

# Initial wallet of every trader, in USD per collateral token.
TRADER_WALLET_USD = 20_000
# Collateral deposited and stable coins minted by every liquidator to fund its liquidations.
LIQUIDATOR_COLLATERAL_USD = 1_000_000
LIQUIDATOR_DSC_FLOAT_USD = 100_000


def setup_logger(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def run_crawler() -> None:
    """
    Download price data for coin `token` for the last `days` days from Coingecko API
    """
    parser = ArgumentParser()
    parser.add_argument(
        "token", metavar="token", type=str, help="The token we need prices for"
    )
    parser.add_argument(
        "days", metavar="days", type=int, help="Number of days of historical data"
    )
    parser.add_argument("--db", type=str, default=DEFAULT_DB_URL, help="Quotes database URL")
    args = parser.parse_args()

    setup_logger()

    valid_coin_ids = list(coin_ids())
    assert args.token in valid_coin_ids, f"Coin should be one of {valid_coin_ids}"

    download_price_data(init_db(args.db), coin=args.token, hours=args.days * 24)


def calculate_deposit_usd() -> float:
    return abs(gauss(mu=3000, sigma=5000)) + 100.0


def calculate_target_health_factor() -> int:
    # Traders keep between 10% and 200% of buffer over the minimum health factor.
    return int(uniform(1.1, 3.0) * PRECISION)


def fund_liquidator(deployment: Deployment, account: Account) -> None:
    engine = deployment.engine
    token = deployment.token("WETH")
    amount = engine.get_token_amount_from_usd(token.address, LIQUIDATOR_COLLATERAL_USD * PRECISION)

    token.mint(account, account, amount)
    token.approve(account, engine.address, amount)
    engine.deposit_collateral_and_mint_dsc(
        account, token.address, amount, LIQUIDATOR_DSC_FLOAT_USD * PRECISION
    )


def build_simulation(
    quotes: Dict[str, List[Quote]],
    hours: int,
    traders_number: int,
    liquidators_number: int,
) -> Simulation:
    clock = Clock(periods=hours)
    metrics_logger = MetricsLogger(clock)

    deployment = deploy(
        clock,
        collateral=[(symbol, 0.0) for symbol in COLLATERAL_COINS],
        metrics_logger=metrics_logger,
        price_feeds=[
            QuotePriceFeed(clock=clock, quotes=quotes[symbol], description=f"{symbol} / USD")
            for symbol in COLLATERAL_COINS
        ],
    )
    engine = deployment.engine

    traders = []
    for name in make_trader_names(traders_number):
        account = Account(name)
        for token in deployment.tokens.values():
            token.mint(
                account,
                account,
                engine.get_token_amount_from_usd(token.address, TRADER_WALLET_USD * PRECISION),
            )
        traders.append(
            Trader(
                account=account,
                engine=engine,
                tokens=list(deployment.tokens.values()),
                calculate_deposit_usd=calculate_deposit_usd,
                target_health_factor=calculate_target_health_factor(),
                deposit_probability=0.1,
                mint_probability=0.1,
                burn_probability=0.05,
                redeem_probability=0.05,
            )
        )

    liquidators = []
    for n in range(liquidators_number):
        account = Account(f"liquidator-{n}")
        fund_liquidator(deployment, account)
        liquidators.append(
            Liquidator(account=account, engine=engine, liquidation_probability=0.5)
        )

    return Simulation(
        deployment=deployment,
        traders=traders,
        liquidators=liquidators,
        metrics_logger=metrics_logger,
    )


def run_simulation() -> None:
    parser = ArgumentParser()
    parser.add_argument("--hours", type=int, default=HOURS, help="Simulated hours, one period each")
    parser.add_argument("--traders", type=int, default=TRADERS_NUMBER)
    parser.add_argument("--liquidators", type=int, default=LIQUIDATORS_NUMBER)
    parser.add_argument("--simulations", type=int, default=SIMULATIONS_NUMBER)
    parser.add_argument("--processes", type=int, default=4)
    parser.add_argument("--db", type=str, default=DEFAULT_DB_URL, help="Quotes database URL")
    args = parser.parse_args()

    setup_logger()

    db = init_price_db(COLLATERAL_COINS.values(), args.hours, args.db)
    quotes = {
        symbol: read_quotes_from_db(db, coin, args.hours)
        for symbol, coin in COLLATERAL_COINS.items()
    }
    quote_periods = {len(series) for series in quotes.values()}
    assert len(quote_periods) == 1, "All price quote series must have the same length"

    monte_carlo = MonteCarlo(
        simulation_factory=partial(
            build_simulation,
            quotes,
            args.hours,
            args.traders,
            args.liquidators,
        ),
        simulations_number=args.simulations,
        processes=args.processes,
    )

    for n, metrics in enumerate(monte_carlo.run()):
        liquidations = make_timeseries(metrics, Metric.LIQUIDATION, aggregate_sum, args.hours)
        supply = make_timeseries(metrics, Metric.TOTAL_DSC_SUPPLY, aggregate_avg, args.hours)
        unhealthy = make_timeseries(metrics, Metric.UNHEALTHY_ACCOUNTS, aggregate_max, args.hours)

        print(f"SIMULATION {n}")
        print(f"LIQUIDATED_DEBT => {sum(liquidations)}")
        print(f"FINAL_DSC_SUPPLY => {supply[-1]}")
        print(f"MAX_UNHEALTHY_ACCOUNTS => {max(unhealthy)}")
