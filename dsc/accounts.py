"""
accounts.py - Per-account collateral and debt positions

AccountLedger is the only structure that holds engine state:
    - collateral[account][kind] -> deposited amount
    - debt[account]             -> minted stable token amount
    - the notification log (deposits and redemptions)

Mutations are pure bookkeeping. No solvency checks happen here; the callers
(DSCEngine, LiquidationEngine) validate health afterwards. Zero is a valid
position and positions are never deleted, so an untouched account and an
emptied one read the same.

snapshot()/restore() capture and reinstate the entire ledger so that an
operation can be discarded as a unit.
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Set, Tuple

from .core import (
    CollateralDeposited, CollateralRedeemed,
    InsufficientBalance, SupportedCollateralSet, kind_name, require_positive,
)


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """Frozen copy of an AccountLedger's contents."""
    collateral: Tuple[Tuple[str, Tuple[Tuple[Any, int], ...]], ...]
    debt: Tuple[Tuple[str, int], ...]
    event_count: int


class AccountLedger:
    """
    Collateral and debt positions for every account.

    Example:
        ledger = AccountLedger(collateral_set)
        ledger.deposit("alice", weth, 10 * 10**18)
        ledger.mint("alice", 100 * 10**18)
        ledger.collateral_of("alice", weth)   # 10 * 10**18
    """

    def __init__(self, collateral: SupportedCollateralSet):
        self.collateral_set = collateral
        self._collateral: Dict[str, Dict[Any, int]] = defaultdict(lambda: defaultdict(int))
        self._debt: Dict[str, int] = defaultdict(int)
        self._events: List[Any] = []

    # ========================================================================
    # READ-ONLY
    # ========================================================================

    def collateral_of(self, account: str, kind: Any) -> int:
        """Deposited amount of kind for account (0 if never deposited)."""
        positions = self._collateral.get(account)
        if positions is None:
            return 0
        return positions.get(kind, 0)

    def debt_of(self, account: str) -> int:
        return self._debt.get(account, 0)

    def positions_of(self, account: str) -> Dict[Any, int]:
        """Every supported kind mapped to the account's amount, in registration order."""
        return {kind: self.collateral_of(account, kind) for kind in self.collateral_set}

    def accounts(self) -> Set[str]:
        """Every account that ever held collateral or debt."""
        return set(self._collateral) | set(self._debt)

    def total_debt(self) -> int:
        return sum(self._debt[a] for a in sorted(self._debt))

    def total_collateral(self, kind: Any) -> int:
        return sum(self.collateral_of(a, kind) for a in sorted(self._collateral))

    @property
    def events(self) -> Tuple[Any, ...]:
        return tuple(self._events)

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def deposit(self, account: str, kind: Any, amount: int) -> None:
        """
        Credit collateral to an account.

        Raises:
            InvalidAmount: If amount is not positive
            UnsupportedCollateral: If kind is not registered
        """
        require_positive(amount)
        self.collateral_set.require(kind)
        self._collateral[account][kind] += amount
        self._events.append(CollateralDeposited(account, kind, amount))

    def withdraw(self, from_account: str, to_account: str, kind: Any, amount: int) -> None:
        """
        Debit collateral from from_account on behalf of to_account.

        Raises:
            InvalidAmount: If amount is not positive
            UnsupportedCollateral: If kind is not registered
            InsufficientBalance: If amount exceeds the deposited balance
        """
        require_positive(amount)
        self.collateral_set.require(kind)
        current = self.collateral_of(from_account, kind)
        if amount > current:
            raise InsufficientBalance(
                f"{from_account} holds {current} {kind_name(kind)}, cannot withdraw {amount}"
            )
        self._collateral[from_account][kind] = current - amount
        self._events.append(CollateralRedeemed(from_account, to_account, kind, amount))

    def mint(self, account: str, amount: int) -> None:
        require_positive(amount)
        self._debt[account] += amount

    def burn(self, account: str, amount: int) -> None:
        """
        Reduce an account's debt.

        Raises:
            InsufficientBalance: If amount exceeds the outstanding debt
        """
        require_positive(amount)
        current = self.debt_of(account)
        if amount > current:
            raise InsufficientBalance(f"{account} owes {current}, cannot burn {amount}")
        self._debt[account] = current - amount

    # ========================================================================
    # CHECKPOINTING
    # ========================================================================

    def snapshot(self) -> LedgerSnapshot:
        """Capture the current ledger contents."""
        return LedgerSnapshot(
            collateral=tuple(
                (account, tuple(positions.items()))
                for account, positions in self._collateral.items()
            ),
            debt=tuple(self._debt.items()),
            event_count=len(self._events),
        )

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """Reinstate a snapshot taken on this ledger, discarding later changes."""
        collateral: Dict[str, Dict[Any, int]] = defaultdict(lambda: defaultdict(int))
        for account, positions in snapshot.collateral:
            collateral[account] = defaultdict(int, positions)
        self._collateral = collateral
        self._debt = defaultdict(int, snapshot.debt)
        del self._events[snapshot.event_count:]

    def __repr__(self):
        return f"AccountLedger({len(self.accounts())} accounts, {len(self.collateral_set)} collateral kinds)"