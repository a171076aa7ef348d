"""
dsc - Collateralized-debt engine for a USD-pegged stable token

Accounts deposit approved collateral, mint the stable token against it up to
a 200% collateralization requirement, and later repay debt or redeem
collateral. Undercollateralized accounts can be liquidated by anyone for a
bonus paid out of the account's collateral.

Usage:
    from datetime import datetime
    from dsc import DSCEngine, StableToken, CollateralToken, MockPriceFeed

    now = datetime(2025, 1, 1)
    weth = CollateralToken("WETH", "Wrapped Ether")
    eth_usd = MockPriceFeed(8, 2000 * 10**8, now)
    dsc = StableToken(owner="deployer")

    engine = DSCEngine([weth], [eth_usd], dsc, initial_time=now)
    dsc.transfer_ownership("deployer", engine.address)

    weth.mint("alice", 10 * 10**18)
    weth.approve("alice", engine.address, 10 * 10**18)
    engine.deposit_collateral_and_mint_dsc("alice", weth, 10 * 10**18, 100 * 10**18)
    engine.get_health_factor("alice")
"""

# Core types
from .core import (
    PRECISION,
    FEED_PRECISION,
    ADDITIONAL_FEED_PRECISION,
    LIQUIDATION_THRESHOLD,
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    MIN_HEALTH_FACTOR,
    MAX_HEALTH_FACTOR,
    ORACLE_TIMEOUT,
    ENGINE_ADDRESS,
    RiskParameters,
    DEFAULT_RISK,
    SupportedCollateralSet,
    CollateralDeposited,
    CollateralRedeemed,
    CollateralAsset,
    Checkpointable,
    DSCError,
    ConfigMismatch,
    InvalidAmount,
    UnsupportedCollateral,
    ExternalTransferFailed,
    BrokenHealthFactor,
    MintFailed,
    TargetHealthy,
    LiquidationNotImproved,
    InsufficientBalance,
    ReentrantCall,
    StalePrice,
    InvalidPrice,
    NotOwner,
)

# Price feeds
from .oracle import (
    PriceFeed,
    RoundData,
    MockPriceFeed,
    stale_checked_latest_round_data,
    usd_value,
    token_amount_from_usd,
)

# Positions
from .accounts import AccountLedger, LedgerSnapshot

# Solvency
from .solvency import (
    AccountInformation,
    SolvencyEngine,
    calculate_collateral_adjusted_for_threshold,
    calculate_health_factor,
    is_healthy,
)

# Liquidation
from .liquidation import (
    LiquidationEngine,
    LiquidationResult,
    Seizure,
    calculate_seizure,
)

# Tokens
from .token import Token, CollateralToken, StableToken

# Engine
from .settlement import Settlement
from .engine import DSCEngine

__all__ = [
    # Constants
    'PRECISION', 'FEED_PRECISION', 'ADDITIONAL_FEED_PRECISION',
    'LIQUIDATION_THRESHOLD', 'LIQUIDATION_BONUS', 'LIQUIDATION_PRECISION',
    'MIN_HEALTH_FACTOR', 'MAX_HEALTH_FACTOR', 'ORACLE_TIMEOUT', 'ENGINE_ADDRESS',
    # Configuration
    'RiskParameters', 'DEFAULT_RISK', 'SupportedCollateralSet',
    # Events and protocols
    'CollateralDeposited', 'CollateralRedeemed', 'CollateralAsset', 'Checkpointable',
    # Errors
    'DSCError', 'ConfigMismatch', 'InvalidAmount', 'UnsupportedCollateral',
    'ExternalTransferFailed', 'BrokenHealthFactor', 'MintFailed', 'TargetHealthy',
    'LiquidationNotImproved', 'InsufficientBalance', 'ReentrantCall',
    'StalePrice', 'InvalidPrice', 'NotOwner',
    # Price feeds
    'PriceFeed', 'RoundData', 'MockPriceFeed', 'stale_checked_latest_round_data',
    'usd_value', 'token_amount_from_usd',
    # Positions
    'AccountLedger', 'LedgerSnapshot',
    # Solvency
    'AccountInformation', 'SolvencyEngine',
    'calculate_collateral_adjusted_for_threshold', 'calculate_health_factor', 'is_healthy',
    # Liquidation
    'LiquidationEngine', 'LiquidationResult', 'Seizure', 'calculate_seizure',
    # Tokens
    'Token', 'CollateralToken', 'StableToken',
    # Engine
    'Settlement', 'DSCEngine',
]

__version__ = '1.0.0'
