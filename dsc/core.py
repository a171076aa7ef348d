"""
Core types, constants and exceptions for the collateralized-debt engine.

This module provides the foundational pieces shared by every other module:
1. Constants: fixed-point scales and the default risk parameters
2. Configuration: RiskParameters (frozen, validated)
3. Exceptions: DSCError and the typed failure taxonomy
4. Immutable data structures: events, SupportedCollateralSet
5. Protocols: CollateralAsset, Checkpointable

All amounts are plain Python ints in fixed point. Collateral amounts and
USD values use 18 decimals (PRECISION); feed prices use 8 decimals and are
scaled up by ADDITIONAL_FEED_PRECISION before use.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType
from typing import (
    Any, Dict, Iterator, Mapping, Protocol, Sequence, Tuple, runtime_checkable
)


# ============================================================================
# CONSTANTS
# ============================================================================

PRECISION = 10**18
FEED_PRECISION = 10**8
ADDITIONAL_FEED_PRECISION = 10**10

# 50 / 100 means collateral must be worth 200% of the debt.
LIQUIDATION_THRESHOLD = 50
LIQUIDATION_BONUS = 10
LIQUIDATION_PRECISION = 100

MIN_HEALTH_FACTOR = 1 * PRECISION

# Health factor reported for an account without debt (uint256 max).
MAX_HEALTH_FACTOR = 2**256 - 1

ORACLE_TIMEOUT = timedelta(hours=3)

# Account id under which the engine custodies collateral and stable tokens.
ENGINE_ADDRESS = "dsc_engine"


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class RiskParameters:
    """
    Immutable risk configuration for solvency and liquidation arithmetic.

    Attributes:
        liquidation_threshold: Share of collateral value counted towards the
            health factor, expressed over liquidation_precision.
        liquidation_bonus: Extra collateral paid to liquidators, expressed
            over liquidation_precision.
        liquidation_precision: Denominator for threshold and bonus.
        min_health_factor: Lowest health factor (PRECISION-scaled) that is
            still considered solvent.
    """
    liquidation_threshold: int = LIQUIDATION_THRESHOLD
    liquidation_bonus: int = LIQUIDATION_BONUS
    liquidation_precision: int = LIQUIDATION_PRECISION
    min_health_factor: int = MIN_HEALTH_FACTOR

    def __post_init__(self):
        if self.liquidation_precision <= 0:
            raise ValueError("liquidation_precision must be positive")
        if not 0 < self.liquidation_threshold <= self.liquidation_precision:
            raise ValueError(
                f"liquidation_threshold must be in (0, {self.liquidation_precision}], "
                f"got {self.liquidation_threshold}"
            )
        if not 0 <= self.liquidation_bonus <= self.liquidation_precision:
            raise ValueError(
                f"liquidation_bonus must be in [0, {self.liquidation_precision}], "
                f"got {self.liquidation_bonus}"
            )
        if self.min_health_factor <= 0:
            raise ValueError("min_health_factor must be positive")


DEFAULT_RISK = RiskParameters()


# ============================================================================
# EXCEPTIONS
# ============================================================================

class DSCError(Exception):
    """Base exception for all engine errors."""
    pass


class ConfigMismatch(DSCError):
    """Raised when collateral kinds and price feeds do not pair up one to one."""
    pass


class InvalidAmount(DSCError):
    """Raised for a zero, negative or otherwise disallowed amount."""
    pass


class UnsupportedCollateral(DSCError):
    """Raised when a collateral kind is not registered with the engine."""
    pass


class ExternalTransferFailed(DSCError):
    """Raised when a token collaborator reports a failed transfer."""
    pass


class BrokenHealthFactor(DSCError):
    """Raised when an operation would leave an account below the minimum health factor."""

    def __init__(self, account: str, health_factor: int):
        self.account = account
        self.health_factor = health_factor
        super().__init__(f"Health factor of {account} broken: {health_factor}")


class MintFailed(DSCError):
    """Raised when the stable token collaborator reports a failed mint."""
    pass


class TargetHealthy(DSCError):
    """Raised when liquidation is attempted on an account that is not undercollateralized."""

    def __init__(self, account: str, health_factor: int):
        self.account = account
        self.health_factor = health_factor
        super().__init__(f"Health factor of {account} is ok: {health_factor}")


class LiquidationNotImproved(DSCError):
    """Raised when a liquidation does not strictly raise the target's health factor."""

    def __init__(self, account: str, starting: int, ending: int):
        self.account = account
        self.starting = starting
        self.ending = ending
        super().__init__(
            f"Health factor of {account} not improved: {starting} -> {ending}"
        )


class InsufficientBalance(DSCError):
    """Raised when a withdrawal, burn or seizure exceeds the recorded balance."""
    pass


class ReentrantCall(DSCError):
    """Raised when a state-mutating operation starts while another is in flight."""
    pass


class StalePrice(DSCError):
    """Raised when a price feed round is missing, incomplete or older than the timeout."""
    pass


class InvalidPrice(DSCError):
    """Raised when a price feed reports a non-positive answer."""
    pass


class NotOwner(DSCError):
    """Raised when an owner-gated token operation is called by another account."""
    pass


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class CollateralDeposited:
    """Notification emitted when collateral is credited to an account."""
    account: str
    kind: Any
    amount: int


@dataclass(frozen=True, slots=True)
class CollateralRedeemed:
    """
    Notification emitted when collateral leaves an account's position.

    from_account and to_account differ when collateral is seized by a liquidator.
    """
    from_account: str
    to_account: str
    kind: Any
    amount: int


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class CollateralAsset(Protocol):
    """Token handle accepted as a collateral kind."""

    symbol: str

    def balance_of(self, account: str) -> int:
        ...

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        ...

    def transfer_from(self, spender: str, source: str, to: str, amount: int) -> bool:
        ...


@runtime_checkable
class Checkpointable(Protocol):
    """Collaborator whose state can be captured and restored by the engine."""

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...


def kind_name(kind: Any) -> str:
    """Readable label for a collateral kind in messages and logs."""
    return getattr(kind, "symbol", None) or repr(kind)


# ============================================================================
# SUPPORTED COLLATERAL SET
# ============================================================================

@dataclass(frozen=True, slots=True)
class SupportedCollateralSet:
    """
    Ordered, immutable registry of collateral kinds and their price feeds.

    Iteration follows registration order so that every sum over collateral
    is computed in the same order on every call.

    Use from_lists() to build one from the parallel constructor arrays.
    """
    kinds: Tuple[Any, ...]
    feeds: Mapping[Any, Any] = field(default_factory=dict)

    def __post_init__(self):
        if len(set(self.kinds)) != len(self.kinds):
            raise ConfigMismatch("Collateral kinds must be unique")
        if set(self.kinds) != set(self.feeds):
            raise ConfigMismatch("Every collateral kind needs exactly one price feed")
        # Read-only copy: the caller's mapping cannot reach the registry afterwards
        object.__setattr__(self, "feeds", MappingProxyType(dict(self.feeds)))

    @classmethod
    def from_lists(cls, kinds: Sequence[Any], feeds: Sequence[Any]) -> SupportedCollateralSet:
        """
        Pair kinds with feeds positionally.

        Raises:
            ConfigMismatch: If the sequences differ in length or a kind repeats.
        """
        kinds = tuple(kinds)
        feeds = tuple(feeds)
        if len(kinds) != len(feeds):
            raise ConfigMismatch(
                f"Got {len(kinds)} collateral kinds but {len(feeds)} price feeds"
            )
        feed_map: Dict[Any, Any] = {}
        for kind, feed in zip(kinds, feeds):
            feed_map[kind] = feed
        return cls(kinds=kinds, feeds=feed_map)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.kinds)

    def __len__(self) -> int:
        return len(self.kinds)

    def __contains__(self, kind: Any) -> bool:
        return self.is_supported(kind)

    def is_supported(self, kind: Any) -> bool:
        try:
            return kind in self.feeds
        except TypeError:
            return False

    def require(self, kind: Any) -> None:
        """Raise UnsupportedCollateral unless kind is registered."""
        if not self.is_supported(kind):
            raise UnsupportedCollateral(f"Collateral {kind_name(kind)} is not supported")

    def feed_for(self, kind: Any) -> Any:
        self.require(kind)
        return self.feeds[kind]


def require_positive(amount: int) -> None:
    """Raise InvalidAmount unless amount is more than zero."""
    if amount <= 0:
        raise InvalidAmount(f"Amount must be more than zero, got {amount}")
