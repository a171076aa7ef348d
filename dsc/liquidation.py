"""
liquidation.py - Third-party liquidation of undercollateralized accounts

A liquidator repays part of an unhealthy account's debt with its own stable
tokens and receives the equivalent collateral plus a bonus.

Sequence for liquidate(kind, target, debt_to_cover, caller):
    1. starting_hf = health_factor(target); refuse if target is healthy
    2. base  = token_amount_from_usd(price[kind], debt_to_cover)
    3. bonus = base * liquidation_bonus // liquidation_precision
    4. record base + bonus of target's collateral as moving to caller
    5. record debt_to_cover of target's debt as repaid
    6. ending_hf = health_factor(target); refuse unless ending_hf > starting_hf
    7. caller must itself remain healthy
    8. pull and burn caller's stable tokens, then pay the collateral out

Steps 4 to 7 touch only the ledger, so a refused liquidation never reaches a
token. The target is only judged by the before/after comparison in step 6.
Between steps 4 and 5 its position is strictly worse than before, so the
ordinary post-redemption health check is not applied to it.

When collateral is worth 100% of the debt or less there is no bonus left to
pay and seizing base + bonus exceeds what the target holds; the liquidation
then fails with InsufficientBalance. There is no fallback for that case.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Any, Callable

from .core import (
    DEFAULT_RISK,
    InvalidAmount, LiquidationNotImproved, RiskParameters, TargetHealthy,
    kind_name,
)
from .oracle import token_amount_from_usd
from .settlement import Settlement
from .solvency import SolvencyEngine, is_healthy

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Seizure:
    """Collateral taken for a given amount of covered debt."""
    base: int
    bonus: int

    @property
    def total(self) -> int:
        return self.base + self.bonus


@dataclass(frozen=True, slots=True)
class LiquidationResult:
    """Outcome of a successful liquidation."""
    target: str
    caller: str
    kind: Any
    debt_covered: int
    collateral_seized: int
    bonus: int
    starting_health_factor: int
    ending_health_factor: int


def calculate_seizure(price: int, debt_to_cover: int, risk: RiskParameters = DEFAULT_RISK) -> Seizure:
    """
    Collateral owed to a liquidator covering debt_to_cover at price.

    PURE FUNCTION - All inputs explicit.

    Example:
        # $100 of debt at $2,000 per unit: 0.05 units + 10% bonus
        calculate_seizure(2000 * 10**8, 100 * 10**18).total == 55 * 10**15
    """
    base = token_amount_from_usd(price, debt_to_cover)
    bonus = base * risk.liquidation_bonus // risk.liquidation_precision
    return Seizure(base=base, bonus=bonus)


class LiquidationEngine:
    """
    Args:
        solvency: Health factor source for target and caller
        settlement: Token movements shared with the public operations
        price_of: Validated price lookup for a collateral kind
    """

    def __init__(
        self,
        solvency: SolvencyEngine,
        settlement: Settlement,
        price_of: Callable[[Any], int],
    ):
        self.solvency = solvency
        self.settlement = settlement
        self.price_of = price_of

    @property
    def risk(self) -> RiskParameters:
        return self.solvency.risk

    def liquidate(self, kind: Any, target: str, debt_to_cover: int, caller: str) -> LiquidationResult:
        """
        Cover debt_to_cover of target's debt and seize collateral of kind.

        Must run inside the engine's operation boundary: a failure at any step
        leaves ledger and token mutations to be rolled back by the caller.

        Raises:
            InvalidAmount: If debt_to_cover is not positive
            UnsupportedCollateral: If kind is not registered
            TargetHealthy: If target's health factor is at or above the minimum
            InsufficientBalance: If target holds less collateral than is seized
                                 or owes less than debt_to_cover
            ExternalTransferFailed: If caller's stable tokens cannot be pulled
                                    or the collateral cannot be paid out
            LiquidationNotImproved: If target's health factor did not rise
            BrokenHealthFactor: If the caller ends up undercollateralized
        """
        if debt_to_cover <= 0:
            raise InvalidAmount(f"Debt to cover must be more than zero, got {debt_to_cover}")
        self.solvency.collateral.require(kind)

        starting = self.solvency.health_factor(target)
        if is_healthy(starting, self.risk):
            raise TargetHealthy(target, starting)

        seizure = calculate_seizure(self.price_of(kind), debt_to_cover, self.risk)
        ledger = self.solvency.ledger
        ledger.withdraw(target, caller, kind, seizure.total)
        ledger.burn(target, debt_to_cover)

        ending = self.solvency.health_factor(target)
        if ending <= starting:
            raise LiquidationNotImproved(target, starting, ending)
        self.solvency.assert_healthy(caller)

        self.settlement.collect_and_burn_dsc(debt_to_cover, caller)
        self.settlement.pay_out_collateral(kind, seizure.total, caller)

        logger.info(
            "Liquidated %s: %s covered %s debt for %s %s (bonus %s), health %s -> %s",
            target, caller, debt_to_cover, seizure.total, kind_name(kind),
            seizure.bonus, starting, ending,
        )
        return LiquidationResult(
            target=target,
            caller=caller,
            kind=kind,
            debt_covered=debt_to_cover,
            collateral_seized=seizure.total,
            bonus=seizure.bonus,
            starting_health_factor=starting,
            ending_health_factor=ending,
        )
