from enum import Enum
from typing import Callable, Dict, List, NewType

from stablemint.clock import Clock


class Metric(Enum):
    COLLATERAL_DEPOSITED = "collateral_deposited"
    COLLATERAL_REDEEMED = "collateral_redeemed"
    DSC_BURNED = "dsc_burned"
    DSC_MINTED = "dsc_minted"
    LIQUIDATION = "liquidation"
    OPERATION_FAILED = "operation_failed"
    ORACLE_FROZEN = "oracle_frozen"
    TOTAL_COLLATERAL_USD = "total_collateral_usd"
    TOTAL_DSC_SUPPLY = "total_dsc_supply"
    UNHEALTHY_ACCOUNTS = "unhealthy_accounts"


# Samples of every metric, grouped by simulation period.
Metrics = NewType("Metrics", Dict[Metric, Dict[int, List[float]]])


Aggregator = Callable[[List[float]], float]


def aggregate_sum(samples: List[float]) -> float:
    return sum(samples)


def aggregate_avg(samples: List[float]) -> float:
    return sum(samples) / len(samples)


def aggregate_max(samples: List[float]) -> float:
    return max(samples)


def aggregate_min(samples: List[float]) -> float:
    return min(samples)


def make_timeseries(metrics: Metrics, metric: Metric, aggregate: Aggregator, periods: int) -> List[float]:
    return [
        aggregate(metrics[metric][t])
        if metric in metrics and t in metrics[metric] else 0.0
        for t in range(periods)
    ]


class MetricsLogger:
    clock: Clock
    metrics: Metrics

    def __init__(self, clock: Clock):
        self.clock = clock
        self.metrics = Metrics({})

    def log(self, metric: Metric, sample: float = 1.0) -> None:
        samples = self.metrics.setdefault(metric, {})
        samples.setdefault(self.clock.period, []).append(sample)

    def count(self, metric: Metric) -> int:
        return sum(len(samples) for samples in self.metrics.get(metric, {}).values())

    def total(self, metric: Metric) -> float:
        return sum(sum(samples) for samples in self.metrics.get(metric, {}).values())
