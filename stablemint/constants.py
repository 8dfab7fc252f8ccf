from stablemint.types import Account


# Every amount handled by the engine is an 18 decimals fixed point integer.
PRECISION = 10**18

# Price feeds report USD prices with 8 decimals.
FEED_DECIMALS = 8
ADDITIONAL_FEED_PRECISION = 10**10

# Only 50% of the collateral value counts towards the debt capacity (200% overcollateralized).
LIQUIDATION_THRESHOLD = 50
LIQUIDATION_PRECISION = 100

# Liquidators receive a 10% bonus on the collateral they redeem.
LIQUIDATION_BONUS = 10

MIN_HEALTH_FACTOR = 10**18

# Health factor of an account without debt.
MAX_HEALTH_FACTOR = 2**256 - 1

SECONDS_IN_AN_HOUR = 60 * 60
SECONDS_IN_A_DAY = 24 * SECONDS_IN_AN_HOUR

ORACLE_TIMEOUT = 3 * SECONDS_IN_AN_HOUR

# 2023-11-14T22:13:20Z, a feed reporting `updated_at == 0` has never been updated.
GENESIS_TIMESTAMP = 1_700_000_000

ZERO_ADDRESS = Account("0x0000000000000000000000000000000000000000")
