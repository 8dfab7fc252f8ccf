from dataclasses import dataclass
from typing import Union

from stablemint.types import Account, Amount, Asset


@dataclass(frozen=True)
class CollateralDeposited:
    user: Account
    token: Asset
    amount: Amount


@dataclass(frozen=True)
class CollateralRedeemed:
    """
    `redeemed_to` differs from `redeemed_from` when a liquidator takes the
    collateral of the liquidated account.
    """

    redeemed_from: Account
    redeemed_to: Account
    token: Asset
    amount: Amount


Event = Union[CollateralDeposited, CollateralRedeemed]
