from stablemint.constants import (
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from stablemint.types import Amount


def calculate_health_factor(total_dsc_minted: Amount, collateral_value_usd: Amount) -> int:
    """
    Ratio between the collateral value adjusted for the liquidation threshold
    and the minted debt, 18 decimals fixed point. Accounts without debt get
    `MAX_HEALTH_FACTOR`.
    """
    if total_dsc_minted == 0:
        return MAX_HEALTH_FACTOR

    collateral_adjusted_for_threshold = (
        collateral_value_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
    )
    return collateral_adjusted_for_threshold * PRECISION // total_dsc_minted


def is_healthy(health_factor: int) -> bool:
    return health_factor >= MIN_HEALTH_FACTOR
