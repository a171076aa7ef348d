"""
oracle.py - Price feed infrastructure for collateral valuation

Provides the price side of the engine: the feed interface the engine
consumes, an in-memory aggregator for simulations and tests, the freshness
check every price passes through, and the fixed-point conversions between
collateral amounts and USD value.

Classes:
- PriceFeed: Protocol defining the feed interface (aggregator style rounds)
- RoundData: One reported round
- MockPriceFeed: In-memory aggregator with full round history

Functions:
- stale_checked_latest_round_data: Latest round, rejected if stale or non-positive
- usd_value / token_amount_from_usd: Conversions at 18-decimal precision

Feed prices are 8-decimal fixed point (2000 USD == 2000 * 10**8).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Dict, List, Optional, Protocol, runtime_checkable

from .core import (
    ADDITIONAL_FEED_PRECISION, ORACLE_TIMEOUT, PRECISION,
    InvalidAmount, InvalidPrice, StalePrice,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RoundData:
    """
    A single price report.

    Attributes:
        round_id: Monotonic round identifier
        answer: Price in the feed's native precision
        started_at: When the round opened
        updated_at: When the answer was written (None if never)
        answered_in_round: Round in which the answer was computed
    """
    round_id: int
    answer: int
    started_at: Optional[datetime]
    updated_at: Optional[datetime]
    answered_in_round: int


@runtime_checkable
class PriceFeed(Protocol):
    """
    Protocol for price feeds.

    A price feed reports the USD price of one collateral unit as a sequence
    of rounds. Implementations must provide decimals and latest_round_data().
    """
    decimals: int

    def latest_round_data(self) -> RoundData:
        """Return the most recent round."""
        ...


class MockPriceFeed:
    """
    In-memory price feed with full round history.

    Every update opens a new round whose answer is computed in the same round.
    Useful for simulations where prices are driven by a script or a test.
    """

    def __init__(
        self,
        decimals: int,
        initial_answer: int,
        updated_at: Optional[datetime] = None,
    ):
        """
        Initialize the feed with a first round.

        Args:
            decimals: Native precision of answers (8 for USD feeds)
            initial_answer: First reported price
            updated_at: Timestamp of the first round (default: 1970-01-01)
        """
        self.decimals = decimals
        self.rounds: Dict[int, RoundData] = {}
        self.latest_round = 0
        self.update_answer(initial_answer, updated_at or datetime(1970, 1, 1))

    @property
    def latest_answer(self) -> int:
        return self.rounds[self.latest_round].answer

    @property
    def latest_timestamp(self) -> Optional[datetime]:
        return self.rounds[self.latest_round].updated_at

    def update_answer(self, answer: int, timestamp: datetime) -> RoundData:
        """Publish a new price as the next round."""
        round_id = self.latest_round + 1
        return self.update_round_data(round_id, answer, timestamp, timestamp, round_id)

    def update_round_data(
        self,
        round_id: int,
        answer: int,
        started_at: Optional[datetime],
        updated_at: Optional[datetime],
        answered_in_round: int,
    ) -> RoundData:
        """
        Write a round verbatim.

        Allows simulating incomplete rounds (updated_at None) and rounds
        answered in an earlier round (answered_in_round < round_id).
        """
        data = RoundData(
            round_id=round_id,
            answer=answer,
            started_at=started_at,
            updated_at=updated_at,
            answered_in_round=answered_in_round,
        )
        self.rounds[round_id] = data
        self.latest_round = max(self.latest_round, round_id)
        return data

    def latest_round_data(self) -> RoundData:
        return self.rounds[self.latest_round]

    def get_round_data(self, round_id: int) -> RoundData:
        if round_id not in self.rounds:
            raise KeyError(f"No data present for round {round_id}")
        return self.rounds[round_id]

    def history(self) -> List[RoundData]:
        """All rounds in round order."""
        return [self.rounds[r] for r in sorted(self.rounds)]

    def __repr__(self):
        return f"MockPriceFeed(answer={self.latest_answer}, round={self.latest_round}, decimals={self.decimals})"


def stale_checked_latest_round_data(
    feed: PriceFeed,
    now: datetime,
    timeout: timedelta = ORACLE_TIMEOUT,
) -> RoundData:
    """
    Return the feed's latest round if it is fresh and positive.

    A stale feed freezes the engine: every operation that needs a price fails
    until the feed reports again.

    Raises:
        StalePrice: If the round was never written, was answered in an
                    earlier round, or is older than timeout.
        InvalidPrice: If the answer is zero or negative.
    """
    data = feed.latest_round_data()
    if data.updated_at is None:
        raise StalePrice(f"Round {data.round_id} has no update time")
    if data.answered_in_round < data.round_id:
        raise StalePrice(
            f"Round {data.round_id} answered in earlier round {data.answered_in_round}"
        )
    age = now - data.updated_at
    if age > timeout:
        logger.warning("Stale price: round %s is %s old (timeout %s)", data.round_id, age, timeout)
        raise StalePrice(f"Price is {age} old, timeout is {timeout}")
    if data.answer <= 0:
        raise InvalidPrice(f"Feed reported non-positive price {data.answer}")
    return data


# ============================================================================
# CONVERSIONS
# ============================================================================

def usd_value(price: int, amount: int) -> int:
    """
    USD value (18 decimals) of amount collateral units at an 8-decimal price.

    Example:
        usd_value(2000 * 10**8, 15 * 10**18) == 30000 * 10**18
    """
    if amount < 0:
        raise InvalidAmount(f"Amount cannot be negative, got {amount}")
    return price * ADDITIONAL_FEED_PRECISION * amount // PRECISION


def token_amount_from_usd(price: int, usd_amount: int) -> int:
    """
    Collateral units (18 decimals) worth usd_amount at an 8-decimal price.

    Rounds down, so converting a value back never yields more collateral
    than was priced.
    """
    if usd_amount < 0:
        raise InvalidAmount(f"USD amount cannot be negative, got {usd_amount}")
    if price <= 0:
        raise InvalidPrice(f"Cannot convert at non-positive price {price}")
    return usd_amount * PRECISION // (price * ADDITIONAL_FEED_PRECISION)
