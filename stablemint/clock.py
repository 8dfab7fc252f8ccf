from stablemint.constants import GENESIS_TIMESTAMP, SECONDS_IN_AN_HOUR
from stablemint.types import Timestamp


class Clock:
    """
    Block time of the simulated chain, in unix seconds.

    A simulation moves forward one period at a time with `step`, tests can also
    `advance` or `warp` the time directly to age price data.
    """

    _time: Timestamp
    _period: int = 0
    _periods: int
    _period_seconds: int

    def __init__(
        self,
        periods: int = 1,
        start: Timestamp = GENESIS_TIMESTAMP,
        period_seconds: int = SECONDS_IN_AN_HOUR,
    ):
        self._time = start
        self._periods = periods
        self._period_seconds = period_seconds

    def step(self) -> bool:
        self._period += 1
        self._time += self._period_seconds
        return self._period < self._periods

    def advance(self, seconds: int) -> None:
        assert seconds >= 0, "Time cannot go backwards"
        self._time += seconds

    def warp(self, timestamp: Timestamp) -> None:
        assert timestamp >= self._time, "Time cannot go backwards"
        self._time = timestamp

    @property
    def period(self) -> int:
        return self._period

    @property
    def periods(self) -> int:
        return self._periods

    @property
    def time(self) -> Timestamp:
        return self._time
