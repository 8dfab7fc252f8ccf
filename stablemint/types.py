from dataclasses import dataclass, field
from typing import Dict, NewType


Account = NewType("Account", str)


Asset = NewType("Asset", str)


Amount = int


Price = int


Timestamp = int


@dataclass(frozen=True)
class PriceQuote:
    price: Price
    updated_at: Timestamp


@dataclass
class Position:
    collateral: Dict[Asset, Amount] = field(default_factory=dict)
    debt_minted: Amount = 0
