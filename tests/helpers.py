"""
helpers.py - Shared constants and helpers for engine tests

Imported by conftest.py fixtures and directly by test modules.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from dsc import CollateralToken, DSCEngine, MockPriceFeed, StableToken


# =============================================================================
# CONSTANTS
# =============================================================================

T0 = datetime(2025, 1, 1)
DEPLOYER = "deployer"
USER = "alice"
LIQUIDATOR = "liquidator"

ETH_USD_PRICE = 2000 * 10**8
BTC_USD_PRICE = 1000 * 10**8

AMOUNT_COLLATERAL = 10 * 10**18
AMOUNT_TO_MINT = 100 * 10**18
STARTING_BALANCE = 10 * 10**18
COLLATERAL_TO_COVER = 20 * 10**18


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def fund(token: CollateralToken, account: str, amount: int, spender: str) -> None:
    """Mint collateral to account and approve spender for it."""
    token.mint(account, amount)
    token.approve(account, spender, token.allowance(account, spender) + amount)


def set_price(engine: DSCEngine, feed: MockPriceFeed, price: int, after: timedelta = timedelta(0)) -> None:
    """Publish a new price, optionally advancing the engine clock first."""
    if after:
        engine.advance_time(engine.current_time + after)
    feed.update_answer(price, engine.current_time)


def ledger_state(engine: DSCEngine, accounts=(USER, LIQUIDATOR, "bob", "carol")) -> dict:
    """Non-zero ledger positions and token balances, for before/after comparisons."""
    ledger = engine.ledger
    state = {}
    for account in sorted(ledger.accounts()):
        for kind, amount in ledger.positions_of(account).items():
            if amount:
                state[("collateral", account, kind.symbol)] = amount
        if ledger.debt_of(account):
            state[("debt", account)] = ledger.debt_of(account)
    for token in (*engine.get_collateral_tokens(), engine.dsc):
        state[("supply", token.symbol)] = token.total_supply
        for account in (*accounts, engine.address):
            if token.balance_of(account):
                state[("balance", token.symbol, account)] = token.balance_of(account)
            if token.allowance(account, engine.address):
                state[("allowance", token.symbol, account)] = token.allowance(account, engine.address)
    state["events"] = len(engine.get_events())
    return state


class PlainToken:
    """
    Collateral token with only symbol, balance_of, transfer and transfer_from.

    It has no snapshot/restore, so the engine cannot roll its balances back.
    transfer_from does not check allowances.
    """

    def __init__(self, symbol: str):
        self.symbol = symbol
        self.balances = {}

    def credit(self, account: str, amount: int) -> None:
        self.balances[account] = self.balances.get(account, 0) + amount

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        return self.transfer_from(sender, sender, to, amount)

    def transfer_from(self, spender: str, source: str, to: str, amount: int) -> bool:
        if self.balance_of(source) < amount:
            return False
        self.balances[source] -= amount
        self.credit(to, amount)
        return True


@dataclass
class Deployment:
    """A freshly deployed engine together with its collaborators."""
    engine: DSCEngine
    weth: CollateralToken
    wbtc: CollateralToken
    eth_feed: MockPriceFeed
    btc_feed: MockPriceFeed
    dsc: StableToken

    @property
    def collateral(self):
        return (self.weth, self.wbtc)


def deploy(weth_cls=CollateralToken) -> Deployment:
    """
    Deploy an engine outside of pytest fixtures.

    Used by property-based tests, where hypothesis needs fresh state per example.
    """
    weth = weth_cls("WETH", "Wrapped Ether")
    wbtc = CollateralToken("WBTC", "Wrapped Bitcoin")
    eth_feed = MockPriceFeed(8, ETH_USD_PRICE, T0)
    btc_feed = MockPriceFeed(8, BTC_USD_PRICE, T0)
    dsc = StableToken(owner=DEPLOYER)
    engine = DSCEngine([weth, wbtc], [eth_feed, btc_feed], dsc, initial_time=T0)
    dsc.transfer_ownership(DEPLOYER, engine.address)
    return Deployment(engine, weth, wbtc, eth_feed, btc_feed, dsc)
