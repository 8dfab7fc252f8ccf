from stablemint.types import Amount, Asset, Price, Timestamp


class StablemintError(Exception):
    pass


class EngineError(StablemintError):
    pass


class NeedsMoreThanZero(EngineError):
    def __init__(self):
        super().__init__("Amount needs to be more than zero")


class TokenAddressesAndPriceFeedAddressesMustBeSameLength(EngineError):
    def __init__(self, tokens: int, price_feeds: int):
        super().__init__(
            f"Got {tokens} collateral tokens but {price_feeds} price feeds"
        )


class NotAllowedToken(EngineError):
    def __init__(self, asset: Asset):
        self.asset = asset
        super().__init__(f"{asset} is not an accepted collateral")


class TransferFailed(EngineError):
    def __init__(self, asset: Asset):
        self.asset = asset
        super().__init__(f"Transfer of {asset} failed")


class MintFailed(EngineError):
    def __init__(self):
        super().__init__("Debt token refused to mint")


class BreaksHealthFactor(EngineError):
    def __init__(self, health_factor: int):
        self.health_factor = health_factor
        super().__init__(f"Health factor {health_factor} is below the minimum")


class HealthFactorOk(EngineError):
    def __init__(self, health_factor: int):
        self.health_factor = health_factor
        super().__init__(f"Health factor {health_factor} is not liquidatable")


class HealthFactorNotImproved(EngineError):
    def __init__(self, starting_health_factor: int, ending_health_factor: int):
        self.starting_health_factor = starting_health_factor
        self.ending_health_factor = ending_health_factor
        super().__init__(
            f"Health factor went from {starting_health_factor} to {ending_health_factor}"
        )


class ReentrantCall(EngineError):
    def __init__(self):
        super().__init__("Reentrant call")


class InsufficientCollateral(EngineError):
    def __init__(self, asset: Asset, balance: Amount, amount: Amount):
        self.asset = asset
        self.balance = balance
        self.amount = amount
        super().__init__(f"Cannot take {amount} {asset} from a balance of {balance}")


class InsufficientDebt(EngineError):
    def __init__(self, debt: Amount, amount: Amount):
        self.debt = debt
        self.amount = amount
        super().__init__(f"Cannot repay {amount} of a debt of {debt}")


class OracleError(StablemintError):
    pass


class StalePrice(OracleError):
    def __init__(self, feed: str, updated_at: Timestamp, now: Timestamp):
        self.feed = feed
        self.updated_at = updated_at
        self.now = now
        super().__init__(f"Price of {feed} last updated at {updated_at}, now is {now}")


class InvalidPrice(OracleError):
    def __init__(self, feed: str, price: Price):
        self.feed = feed
        self.price = price
        super().__init__(f"Price feed {feed} reported a non positive price {price}")


class TokenError(StablemintError):
    pass


class InsufficientBalance(TokenError):
    def __init__(self, symbol: str, balance: Amount, amount: Amount):
        self.balance = balance
        self.amount = amount
        super().__init__(f"{symbol}: balance {balance} is lower than {amount}")


class InsufficientAllowance(TokenError):
    def __init__(self, symbol: str, allowance: Amount, amount: Amount):
        self.allowance = allowance
        self.amount = amount
        super().__init__(f"{symbol}: allowance {allowance} is lower than {amount}")


class NotOwner(TokenError):
    def __init__(self, symbol: str, sender: str):
        super().__init__(f"{symbol}: {sender} is not the owner")


class MustBeMoreThanZero(TokenError):
    def __init__(self, symbol: str):
        super().__init__(f"{symbol}: amount must be more than zero")


class BurnAmountExceedsBalance(TokenError):
    def __init__(self, symbol: str, balance: Amount, amount: Amount):
        self.balance = balance
        self.amount = amount
        super().__init__(f"{symbol}: cannot burn {amount} with a balance of {balance}")


class NotZeroAddress(TokenError):
    def __init__(self, symbol: str):
        super().__init__(f"{symbol}: cannot mint to the zero address")
