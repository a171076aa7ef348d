"""
token.py - Token collaborators used by the engine

Integer-balance token ledgers with ERC20 semantics. The engine does not own
their accounting; it calls them and checks what they report.

Classes:
- Token: balances, allowances, transfer/transfer_from reporting success as bool
- CollateralToken: Token with an open mint, for collateral in simulations and tests
- StableToken: the synthetic pegged token; mint and burn are restricted to its owner

Transfers that cannot be covered (balance or allowance too small) return
False rather than raising, so the caller decides how to fail. Every token
supports snapshot()/restore() so an engine operation can roll it back.
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
import logging
from typing import Dict, Tuple

from .core import InsufficientBalance, InvalidAmount, NotOwner

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TokenSnapshot:
    balances: Tuple[Tuple[str, int], ...]
    allowances: Tuple[Tuple[Tuple[str, str], int], ...]
    total_supply: int
    owner: str


class Token:
    """
    ERC20-style token ledger.

    Example:
        weth = CollateralToken("WETH", "Wrapped Ether")
        weth.mint("alice", 10 * 10**18)
        weth.approve("alice", "dsc_engine", 10 * 10**18)
        weth.transfer_from("dsc_engine", "alice", "dsc_engine", 10 * 10**18)  # True
    """

    def __init__(self, symbol: str, name: str, decimals: int = 18, owner: str = ""):
        self.symbol = symbol
        self.name = name
        self.decimals = decimals
        self.owner = owner
        self.total_supply = 0
        self._balances: Dict[str, int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, str], int] = defaultdict(int)

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise InvalidAmount(f"Allowance cannot be negative, got {amount}")
        self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move amount from sender to to. Returns False if sender's balance is too small."""
        return self._move(sender, to, amount)

    def transfer_from(self, spender: str, source: str, to: str, amount: int) -> bool:
        """
        Move amount from source to to using spender's allowance.

        Returns:
            False if the allowance or source's balance is too small,
            True otherwise. Nothing changes on False.
        """
        if amount <= 0:
            raise InvalidAmount(f"Transfer amount must be positive, got {amount}")
        allowed = self.allowance(source, spender)
        if spender != source and allowed < amount:
            logger.warning(
                "%s transfer_from rejected: allowance %s < %s (%s -> %s)",
                self.symbol, allowed, amount, source, spender,
            )
            return False
        if not self._move(source, to, amount):
            return False
        if spender != source:
            self._allowances[(source, spender)] = allowed - amount
        return True

    def _move(self, source: str, to: str, amount: int) -> bool:
        if amount <= 0:
            raise InvalidAmount(f"Transfer amount must be positive, got {amount}")
        balance = self.balance_of(source)
        if balance < amount:
            logger.warning(
                "%s transfer rejected: %s holds %s, needs %s", self.symbol, source, balance, amount
            )
            return False
        self._balances[source] = balance - amount
        self._balances[to] += amount
        return True

    def _mint(self, to: str, amount: int) -> None:
        if not to:
            raise InvalidAmount("Cannot mint to an empty account")
        if amount <= 0:
            raise InvalidAmount(f"Mint amount must be positive, got {amount}")
        self._balances[to] += amount
        self.total_supply += amount

    def _burn(self, account: str, amount: int) -> None:
        if amount <= 0:
            raise InvalidAmount(f"Burn amount must be positive, got {amount}")
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(f"{account} holds {balance} {self.symbol}, cannot burn {amount}")
        self._balances[account] = balance - amount
        self.total_supply -= amount

    def snapshot(self) -> TokenSnapshot:
        return TokenSnapshot(
            balances=tuple(self._balances.items()),
            allowances=tuple(self._allowances.items()),
            total_supply=self.total_supply,
            owner=self.owner,
        )

    def restore(self, snapshot: TokenSnapshot) -> None:
        self._balances = defaultdict(int, snapshot.balances)
        self._allowances = defaultdict(int, snapshot.allowances)
        self.total_supply = snapshot.total_supply
        self.owner = snapshot.owner

    def __repr__(self):
        return f"{type(self).__name__}({self.symbol}, supply={self.total_supply})"


class CollateralToken(Token):
    """Token anyone can mint; stands in for wrapped collateral assets."""

    def mint(self, to: str, amount: int) -> None:
        self._mint(to, amount)


class StableToken(Token):
    """
    The synthetic pegged token.

    Only the owner (the engine) can mint or burn, and burning only ever
    destroys the owner's own balance: the engine first pulls tokens in with
    transfer_from and then burns them.
    """

    def __init__(self, owner: str, symbol: str = "DSC", name: str = "DecentralizedStableCoin"):
        super().__init__(symbol, name, decimals=18, owner=owner)

    def _require_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise NotOwner(f"{sender} is not the owner of {self.symbol}")

    def mint(self, sender: str, to: str, amount: int) -> bool:
        """
        Create amount tokens for to.

        Raises:
            NotOwner: If sender is not the owner
            InvalidAmount: If amount is not positive or to is empty
        """
        self._require_owner(sender)
        self._mint(to, amount)
        return True

    def burn(self, sender: str, amount: int) -> None:
        """
        Destroy amount of the owner's tokens.

        Raises:
            NotOwner: If sender is not the owner
            InvalidAmount: If amount is not positive
            InsufficientBalance: If the owner holds less than amount
        """
        self._require_owner(sender)
        self._burn(sender, amount)

    def transfer_ownership(self, sender: str, new_owner: str) -> None:
        self._require_owner(sender)
        if not new_owner:
            raise ValueError("New owner cannot be empty")
        self.owner = new_owner
