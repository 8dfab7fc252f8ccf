import copy
from typing import Dict, Iterable, Optional

from stablemint.errors import InsufficientCollateral, InsufficientDebt
from stablemint.types import Account, Amount, Asset, Position


# Positions as they were before the changes made since a snapshot, None when the position did not exist.
Journal = Dict[Account, Optional[Position]]


class PositionLedger:
    """
    Collateral balances and minted debt of every account. Positions are created
    on first use and are never removed, even once all their balances are zero.

    `snapshot` and `restore` only copy the positions changed in between, so
    rolling back an operation does not depend on the number of accounts.
    """

    positions: Dict[Account, Position]

    def __init__(self):
        self.positions = {}
        self._journal: Optional[Journal] = None

    def accounts(self) -> Iterable[Account]:
        return self.positions.keys()

    def position(self, account: Account) -> Position:
        if self._journal is not None and account not in self._journal:
            self._journal[account] = copy.deepcopy(self.positions.get(account))
        if account not in self.positions:
            self.positions[account] = Position()
        return self.positions[account]

    def collateral_balance(self, account: Account, asset: Asset) -> Amount:
        if account not in self.positions:
            return 0
        return self.positions[account].collateral.get(asset, 0)

    def debt_minted(self, account: Account) -> Amount:
        if account not in self.positions:
            return 0
        return self.positions[account].debt_minted

    def add_collateral(self, account: Account, asset: Asset, amount: Amount) -> None:
        position = self.position(account)
        position.collateral[asset] = position.collateral.get(asset, 0) + amount

    def remove_collateral(self, account: Account, asset: Asset, amount: Amount) -> None:
        balance = self.collateral_balance(account, asset)
        if balance < amount:
            raise InsufficientCollateral(asset, balance, amount)
        self.position(account).collateral[asset] = balance - amount

    def add_debt(self, account: Account, amount: Amount) -> None:
        self.position(account).debt_minted += amount

    def remove_debt(self, account: Account, amount: Amount) -> None:
        debt = self.debt_minted(account)
        if debt < amount:
            raise InsufficientDebt(debt, amount)
        self.position(account).debt_minted = debt - amount

    def snapshot(self) -> Journal:
        self._journal = {}
        return self._journal

    def restore(self, journal: Journal) -> None:
        for account, position in journal.items():
            if position is None:
                self.positions.pop(account, None)
            else:
                self.positions[account] = position
        self._journal = None
