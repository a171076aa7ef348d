"""
solvency.py - Collateral valuation and health factor enforcement

ARCHITECTURE (Pure Function Pattern):
=====================================

1. PURE CALCULATION FUNCTIONS (calculate_*):
   - Take all inputs explicitly as parameters
   - No ledger, no price feed
   - Example: calculate_health_factor(total_debt, collateral_value_usd, risk) -> int

2. SolvencyEngine:
   - Reads positions from the AccountLedger and prices through a callable
   - Combines them with the pure functions
   - assert_healthy() is the single enforcement point for the invariant

Key Formulas:
    collateral_value_usd = sum(usd_value(price[kind], amount[kind]) for kind in registration order)
    adjusted             = collateral_value_usd * liquidation_threshold // liquidation_precision
    health_factor        = adjusted * PRECISION // total_debt      (MAX_HEALTH_FACTOR if no debt)
    healthy              = health_factor >= min_health_factor
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable

from .accounts import AccountLedger
from .core import (
    DEFAULT_RISK, MAX_HEALTH_FACTOR, PRECISION,
    BrokenHealthFactor, RiskParameters, SupportedCollateralSet,
)
from .oracle import usd_value


@dataclass(frozen=True, slots=True)
class AccountInformation:
    """Debt and collateral value of one account."""
    total_dsc_minted: int
    collateral_value_usd: int

    def __iter__(self):
        # Unpacks as (total_dsc_minted, collateral_value_usd).
        yield self.total_dsc_minted
        yield self.collateral_value_usd


# ============================================================================
# PURE CALCULATION FUNCTIONS
# ============================================================================

def calculate_collateral_adjusted_for_threshold(
    collateral_value_usd: int,
    risk: RiskParameters = DEFAULT_RISK,
) -> int:
    """Collateral value that counts towards solvency after the liquidation threshold."""
    return collateral_value_usd * risk.liquidation_threshold // risk.liquidation_precision


def calculate_health_factor(
    total_debt: int,
    collateral_value_usd: int,
    risk: RiskParameters = DEFAULT_RISK,
) -> int:
    """
    Health factor of a position, scaled by PRECISION.

    PURE FUNCTION - All inputs explicit, no hidden state.

    Args:
        total_debt: Minted stable tokens (18 decimals)
        collateral_value_usd: Undiscounted collateral value (18 decimals)
        risk: Threshold configuration

    Returns:
        MAX_HEALTH_FACTOR when total_debt is zero, otherwise
        adjusted collateral * PRECISION // total_debt.

    Example:
        # $20,000 of collateral against 5,000 debt at a 50% threshold
        calculate_health_factor(5000 * 10**18, 20000 * 10**18) == 2 * 10**18
    """
    if total_debt == 0:
        return MAX_HEALTH_FACTOR
    adjusted = calculate_collateral_adjusted_for_threshold(collateral_value_usd, risk)
    return adjusted * PRECISION // total_debt


def is_healthy(health_factor: int, risk: RiskParameters = DEFAULT_RISK) -> bool:
    return health_factor >= risk.min_health_factor


# ============================================================================
# ENGINE
# ============================================================================

class SolvencyEngine:
    """
    Derives collateral value and health factors from ledger positions.

    Args:
        ledger: Account positions
        collateral: Supported kinds, iterated in registration order
        price_of: Returns a validated (fresh, positive) feed price for a kind
        risk: Threshold configuration
    """

    def __init__(
        self,
        ledger: AccountLedger,
        collateral: SupportedCollateralSet,
        price_of: Callable[[Any], int],
        risk: RiskParameters = DEFAULT_RISK,
    ):
        self.ledger = ledger
        self.collateral = collateral
        self.price_of = price_of
        self.risk = risk

    def account_collateral_value_usd(self, account: str) -> int:
        total = 0
        for kind in self.collateral:
            amount = self.ledger.collateral_of(account, kind)
            total += usd_value(self.price_of(kind), amount)
        return total

    def account_information(self, account: str) -> AccountInformation:
        return AccountInformation(
            total_dsc_minted=self.ledger.debt_of(account),
            collateral_value_usd=self.account_collateral_value_usd(account),
        )

    def health_factor(self, account: str) -> int:
        info = self.account_information(account)
        return calculate_health_factor(info.total_dsc_minted, info.collateral_value_usd, self.risk)

    def assert_healthy(self, account: str) -> int:
        """
        Enforce the minimum health factor for one account.

        Returns:
            The account's health factor

        Raises:
            BrokenHealthFactor: If the health factor is below min_health_factor
        """
        health_factor = self.health_factor(account)
        if not is_healthy(health_factor, self.risk):
            raise BrokenHealthFactor(account, health_factor)
        return health_factor
