from collections import defaultdict
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

from stablemint.constants import ZERO_ADDRESS
from stablemint.errors import (
    BurnAmountExceedsBalance,
    InsufficientAllowance,
    InsufficientBalance,
    MustBeMoreThanZero,
    NotOwner,
    NotZeroAddress,
)
from stablemint.types import Account, Amount, Asset


class FungibleToken(Protocol):
    """
    A collateral asset. Transfers report success with a boolean, `sender` is
    the account performing the call.
    """

    address: Asset

    def balance_of(self, account: Account) -> Amount:
        ...

    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool:
        ...

    def transfer_from(
        self, sender: Account, from_: Account, to: Account, amount: Amount
    ) -> bool:
        ...


class DebtToken(FungibleToken, Protocol):
    def mint(self, sender: Account, to: Account, amount: Amount) -> bool:
        ...

    def burn(self, sender: Account, amount: Amount) -> None:
        ...


@runtime_checkable
class Snapshottable(Protocol):
    """
    State the engine can roll back when an operation fails.

    `snapshot` starts recording the changes made from now on and `restore`
    undoes them. Only the latest snapshot can be restored.
    """

    def snapshot(self) -> Any:
        ...

    def restore(self, state: Any) -> None:
        ...


# Previous values of the balances, allowances and total supply changed since a snapshot.
Journal = Tuple[Dict[Account, Amount], Dict[Tuple[Account, Account], Amount], Amount]


class Token:
    """
    In memory fungible token. `mint` is unrestricted and is meant to fund test
    and simulation accounts.
    """

    address: Asset
    balances: Dict[Account, Amount]
    allowances: Dict[Tuple[Account, Account], Amount]
    decimals: int
    name: str
    symbol: str
    total_supply: Amount

    def __init__(self, name: str, symbol: str, decimals: int = 18, address: Optional[Asset] = None):
        self.address = address or Asset(symbol.lower())
        self.allowances = defaultdict(int)
        self.balances = defaultdict(int)
        self.decimals = decimals
        self.name = name
        self.symbol = symbol
        self.total_supply = 0
        self._journal: Optional[Journal] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol})"

    def balance_of(self, account: Account) -> Amount:
        return self.balances[account]

    def allowance(self, owner: Account, spender: Account) -> Amount:
        return self.allowances[(owner, spender)]

    def approve(self, sender: Account, spender: Account, amount: Amount) -> bool:
        self._set_allowance(sender, spender, amount)
        return True

    def transfer(self, sender: Account, to: Account, amount: Amount) -> bool:
        self._move(sender, to, amount)
        return True

    def transfer_from(
        self, sender: Account, from_: Account, to: Account, amount: Amount
    ) -> bool:
        allowance = self.allowances[(from_, sender)]
        if allowance < amount:
            raise InsufficientAllowance(self.symbol, allowance, amount)
        self._move(from_, to, amount)
        self._set_allowance(from_, sender, allowance - amount)
        return True

    def mint(self, sender: Account, to: Account, amount: Amount) -> bool:
        self._set_balance(to, self.balances[to] + amount)
        self.total_supply += amount
        return True

    def snapshot(self) -> Journal:
        """
        Costs nothing up front, every later change records the value it overwrites.
        """
        self._journal = ({}, {}, self.total_supply)
        return self._journal

    def restore(self, state: Journal) -> None:
        balances, allowances, total_supply = state
        for account, amount in balances.items():
            self.balances[account] = amount
        for key, amount in allowances.items():
            self.allowances[key] = amount
        self.total_supply = total_supply
        self._journal = None

    def _burn_from(self, account: Account, amount: Amount) -> None:
        self._set_balance(account, self.balances[account] - amount)
        self.total_supply -= amount

    def _move(self, from_: Account, to: Account, amount: Amount) -> None:
        balance = self.balances[from_]
        if balance < amount:
            raise InsufficientBalance(self.symbol, balance, amount)
        self._set_balance(from_, balance - amount)
        self._set_balance(to, self.balances[to] + amount)

    def _set_balance(self, account: Account, amount: Amount) -> None:
        if self._journal is not None:
            self._journal[0].setdefault(account, self.balances[account])
        self.balances[account] = amount

    def _set_allowance(self, owner: Account, spender: Account, amount: Amount) -> None:
        if self._journal is not None:
            self._journal[1].setdefault((owner, spender), self.allowances[(owner, spender)])
        self.allowances[(owner, spender)] = amount


class StableCoin(Token):
    """
    The debt token minted against collateral, pegged 1:1 to USD.
    Only its owner, the engine once deployed, can mint and burn.
    """

    owner: Account

    def __init__(self, owner: Account, name: str = "DecentralizedStableCoin", symbol: str = "DSC"):
        super().__init__(name=name, symbol=symbol, decimals=18)
        self.owner = owner

    def transfer_ownership(self, sender: Account, new_owner: Account) -> None:
        self._only_owner(sender)
        self.owner = new_owner

    def mint(self, sender: Account, to: Account, amount: Amount) -> bool:
        self._only_owner(sender)
        if to == ZERO_ADDRESS:
            raise NotZeroAddress(self.symbol)
        if amount <= 0:
            raise MustBeMoreThanZero(self.symbol)
        return super().mint(sender, to, amount)

    def burn(self, sender: Account, amount: Amount) -> None:
        self._only_owner(sender)
        if amount <= 0:
            raise MustBeMoreThanZero(self.symbol)
        balance = self.balances[sender]
        if balance < amount:
            raise BurnAmountExceedsBalance(self.symbol, balance, amount)
        self._burn_from(sender, amount)

    def _only_owner(self, sender: Account) -> None:
        if sender != self.owner:
            raise NotOwner(self.symbol, sender)
