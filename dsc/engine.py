"""
engine.py - Public surface of the collateralized-debt engine

DSCEngine is the only way in. It owns the AccountLedger, wires the solvency
and liquidation engines to it, and runs every state-changing call as one
indivisible operation.

Key responsibilities:
    - Validates inputs (positive amounts, supported collateral)
    - Records ledger changes and runs solvency checks before any token call
    - Non-reentrant: a mutating call made while another is running fails
    - All-or-nothing: on any exception the ledger, the event log and every
      checkpointable token are restored to their state before the call. A
      token without snapshot/restore is only called once every check passed
    - Keeps a logical clock used to judge price feed freshness

Thread Safety:
    Not thread-safe. Operations are expected to be issued serially.
"""

from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime, timedelta
from functools import wraps
import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .accounts import AccountLedger
from .core import (
    ADDITIONAL_FEED_PRECISION, DEFAULT_RISK, ENGINE_ADDRESS, ORACLE_TIMEOUT, PRECISION,
    Checkpointable, ReentrantCall, RiskParameters,
    SupportedCollateralSet, kind_name, require_positive,
)
from .liquidation import LiquidationEngine, LiquidationResult
from .oracle import (
    stale_checked_latest_round_data, token_amount_from_usd, usd_value,
)
from .settlement import Settlement
from .solvency import AccountInformation, SolvencyEngine, calculate_health_factor

logger = logging.getLogger(__name__)


def operation(func):
    """Run a DSCEngine method inside the non-reentrant, all-or-nothing boundary."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        with self._operation(func.__name__):
            return func(self, *args, **kwargs)
    return wrapper


class DSCEngine:
    """
    Collateralized-debt engine for a single stable token.

    Example:
        engine = DSCEngine([weth, wbtc], [eth_feed, btc_feed], dsc)
        dsc.transfer_ownership("deployer", engine.address)

        weth.approve("alice", engine.address, 10 * 10**18)
        engine.deposit_collateral_and_mint_dsc("alice", weth, 10 * 10**18, 100 * 10**18)
        engine.get_health_factor("alice")
    """

    def __init__(
        self,
        collateral_tokens: Sequence[Any],
        price_feeds: Sequence[Any],
        dsc: Any,
        *,
        address: str = ENGINE_ADDRESS,
        risk: RiskParameters = DEFAULT_RISK,
        oracle_timeout: timedelta = ORACLE_TIMEOUT,
        initial_time: Optional[datetime] = None,
    ):
        """
        Create an engine.

        Args:
            collateral_tokens: Accepted collateral token handles, in registration order
            price_feeds: One USD price feed per collateral token, same order
            dsc: Stable token handle; must be owned by address before minting
            address: Account id under which the engine custodies tokens
            risk: Threshold, bonus and minimum health factor
            oracle_timeout: Maximum age of a usable price
            initial_time: Starting logical time (default: 1970-01-01)

        Raises:
            ConfigMismatch: If the token and feed sequences differ in length
        """
        self.collateral = SupportedCollateralSet.from_lists(collateral_tokens, price_feeds)
        self.dsc = dsc
        self.address = address
        self.risk = risk
        self.oracle_timeout = oracle_timeout
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self._entered = False

        self.ledger = AccountLedger(self.collateral)
        self.solvency = SolvencyEngine(self.ledger, self.collateral, self._price, risk)
        self.settlement = Settlement(dsc, address)
        self.liquidation = LiquidationEngine(self.solvency, self.settlement, self._price)

    # ========================================================================
    # TIME
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time, used for price freshness."""
        return self._current_time

    def advance_time(self, new_time: datetime) -> None:
        """
        Move the logical clock forward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # OPERATION BOUNDARY
    # ========================================================================

    def _collaborators(self) -> List[Checkpointable]:
        found: List[Checkpointable] = []
        for candidate in (self.dsc, *self.collateral):
            if isinstance(candidate, Checkpointable) and all(candidate is not c for c in found):
                found.append(candidate)
        return found

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """
        Guard against re-entry and discard every effect if the body raises.

        The guard flag is always cleared on exit, including on failure.
        """
        if self._entered:
            raise ReentrantCall(f"{name} called while another operation is running")
        self._entered = True
        try:
            ledger_snapshot = self.ledger.snapshot()
            token_snapshots = [(c, c.snapshot()) for c in self._collaborators()]
            try:
                yield
            except Exception as exc:
                for collaborator, snap in reversed(token_snapshots):
                    collaborator.restore(snap)
                self.ledger.restore(ledger_snapshot)
                logger.warning("%s rolled back: %s: %s", name, type(exc).__name__, exc)
                raise
            logger.debug("%s committed", name)
        finally:
            self._entered = False

    def _price(self, kind: Any) -> int:
        feed = self.collateral.feed_for(kind)
        return stale_checked_latest_round_data(feed, self._current_time, self.oracle_timeout).answer

    # ========================================================================
    # STATE-CHANGING OPERATIONS
    # ========================================================================

    @operation
    def deposit_collateral(self, sender: str, kind: Any, amount: int) -> None:
        """
        Deposit collateral held by sender into the engine.

        Raises:
            InvalidAmount, UnsupportedCollateral, ExternalTransferFailed
        """
        self._record_deposit(sender, kind, amount)
        self.settlement.pull_collateral(sender, kind, amount)

    @operation
    def mint_dsc(self, sender: str, amount: int) -> None:
        """
        Mint stable tokens against sender's collateral.

        Raises:
            InvalidAmount, BrokenHealthFactor, MintFailed, StalePrice, InvalidPrice
        """
        self._record_mint(sender, amount)
        self.settlement.issue_dsc(sender, amount)

    @operation
    def deposit_collateral_and_mint_dsc(
        self, sender: str, kind: Any, collateral_amount: int, debt_amount: int
    ) -> None:
        self._record_deposit(sender, kind, collateral_amount)
        self._record_mint(sender, debt_amount)
        self.settlement.pull_collateral(sender, kind, collateral_amount)
        self.settlement.issue_dsc(sender, debt_amount)

    @operation
    def redeem_collateral(self, sender: str, kind: Any, amount: int) -> None:
        """
        Withdraw sender's collateral back to sender.

        Raises:
            InvalidAmount, UnsupportedCollateral, InsufficientBalance,
            BrokenHealthFactor, ExternalTransferFailed
        """
        self._record_redemption(sender, kind, amount)
        self.settlement.pay_out_collateral(kind, amount, sender)

    @operation
    def burn_dsc(self, sender: str, amount: int) -> None:
        """
        Repay sender's debt with sender's stable tokens.

        Raises:
            InvalidAmount, InsufficientBalance, ExternalTransferFailed
        """
        require_positive(amount)
        self.ledger.burn(sender, amount)
        self.settlement.collect_and_burn_dsc(amount, sender)

    @operation
    def redeem_collateral_for_dsc(
        self, sender: str, kind: Any, collateral_amount: int, debt_amount: int
    ) -> None:
        """Burn debt_amount, then redeem collateral_amount, as one operation."""
        require_positive(debt_amount)
        self.ledger.burn(sender, debt_amount)
        self._record_redemption(sender, kind, collateral_amount)
        self.settlement.collect_and_burn_dsc(debt_amount, sender)
        self.settlement.pay_out_collateral(kind, collateral_amount, sender)

    @operation
    def liquidate(self, sender: str, kind: Any, target_account: str, debt_to_cover: int) -> LiquidationResult:
        """
        Cover part of an unhealthy account's debt in exchange for its collateral plus a bonus.

        See LiquidationEngine.liquidate for the sequence and failure modes.
        """
        return self.liquidation.liquidate(kind, target_account, debt_to_cover, sender)

    # Ledger side of each operation. Token calls follow only once these pass.

    def _record_deposit(self, sender: str, kind: Any, amount: int) -> None:
        require_positive(amount)
        self.collateral.require(kind)
        self.ledger.deposit(sender, kind, amount)
        logger.debug("%s deposited %s %s", sender, amount, kind_name(kind))

    def _record_mint(self, sender: str, amount: int) -> None:
        require_positive(amount)
        self.ledger.mint(sender, amount)
        self.solvency.assert_healthy(sender)
        logger.debug("%s minted %s", sender, amount)

    def _record_redemption(self, sender: str, kind: Any, amount: int) -> None:
        require_positive(amount)
        self.collateral.require(kind)
        self.ledger.withdraw(sender, sender, kind, amount)
        self.solvency.assert_healthy(sender)
        logger.debug("%s redeemed %s %s", sender, amount, kind_name(kind))

    # ========================================================================
    # READ-ONLY PROJECTIONS
    # ========================================================================

    def calculate_health_factor(self, total_dsc_minted: int, collateral_value_usd: int) -> int:
        return calculate_health_factor(total_dsc_minted, collateral_value_usd, self.risk)

    def get_health_factor(self, account: str) -> int:
        return self.solvency.health_factor(account)

    def get_account_information(self, account: str) -> AccountInformation:
        """(total_dsc_minted, collateral_value_usd) for account."""
        return self.solvency.account_information(account)

    def get_account_collateral_value_in_usd(self, account: str) -> int:
        return self.solvency.account_collateral_value_usd(account)

    def get_usd_value(self, kind: Any, amount: int) -> int:
        return usd_value(self._price(kind), amount)

    def get_token_amount_from_usd(self, kind: Any, usd_amount: int) -> int:
        return token_amount_from_usd(self._price(kind), usd_amount)

    def get_collateral_tokens(self) -> Tuple[Any, ...]:
        return self.collateral.kinds

    def get_collateral_balance_of_user(self, account: str, kind: Any) -> int:
        return self.ledger.collateral_of(account, kind)

    def get_collateral_token_price_feed(self, kind: Any) -> Any:
        return self.collateral.feed_for(kind)

    def get_collateral_positions(self, account: str) -> Dict[Any, int]:
        return self.ledger.positions_of(account)

    def get_events(self) -> Tuple[Any, ...]:
        """Committed deposit and redemption notifications, oldest first."""
        return self.ledger.events

    def get_dsc(self) -> Any:
        return self.dsc

    def get_precision(self) -> int:
        return PRECISION

    def get_additional_feed_precision(self) -> int:
        return ADDITIONAL_FEED_PRECISION

    def get_liquidation_threshold(self) -> int:
        return self.risk.liquidation_threshold

    def get_liquidation_bonus(self) -> int:
        return self.risk.liquidation_bonus

    def get_liquidation_precision(self) -> int:
        return self.risk.liquidation_precision

    def get_min_health_factor(self) -> int:
        return self.risk.min_health_factor

    def get_oracle_timeout(self) -> timedelta:
        return self.oracle_timeout

    def __repr__(self):
        symbols = ", ".join(kind_name(k) for k in self.collateral)
        return f"DSCEngine([{symbols}], address={self.address!r})"