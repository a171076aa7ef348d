"""
settlement.py - External token movements behind engine operations

Each primitive performs one token call and turns a reported failure into a
typed error. None of them touches the AccountLedger or checks solvency.

Ordering contract: DSCEngine and LiquidationEngine record every ledger
change and run every health check first, and call these primitives last.
A refused operation therefore never reaches a token, which keeps it
all-or-nothing even when a token cannot be snapshotted. When an operation
needs two token calls, the incoming transfer (collateral or stable tokens
pulled into custody) comes before the outgoing one.
"""

from __future__ import annotations
import logging
from typing import Any

from .core import ExternalTransferFailed, MintFailed, kind_name

logger = logging.getLogger(__name__)


class Settlement:
    """
    Args:
        dsc: Stable token handle; its owner must be address
        address: Account id under which the engine custodies tokens
    """

    def __init__(self, dsc: Any, address: str):
        self.dsc = dsc
        self.address = address

    def pull_collateral(self, account: str, kind: Any, amount: int) -> None:
        """Move collateral from account into custody."""
        if not kind.transfer_from(self.address, account, self.address, amount):
            raise ExternalTransferFailed(
                f"Could not pull {amount} {kind_name(kind)} from {account}"
            )

    def pay_out_collateral(self, kind: Any, amount: int, to_account: str) -> None:
        if not kind.transfer(self.address, to_account, amount):
            raise ExternalTransferFailed(
                f"Could not pay {amount} {kind_name(kind)} to {to_account}"
            )

    def issue_dsc(self, account: str, amount: int) -> None:
        """Mint tokens for debt already recorded against account."""
        if not self.dsc.mint(self.address, account, amount):
            raise MintFailed(f"Minting {amount} to {account} failed")

    def collect_and_burn_dsc(self, amount: int, dsc_from: str) -> None:
        """Pull amount of dsc_from's stable tokens into custody and destroy them."""
        if not self.dsc.transfer_from(self.address, dsc_from, self.address, amount):
            raise ExternalTransferFailed(f"Could not pull {amount} stable tokens from {dsc_from}")
        self.dsc.burn(self.address, amount)
        logger.debug("Burned %s stable tokens from %s", amount, dsc_from)
