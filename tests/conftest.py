"""
conftest.py - Shared pytest fixtures for engine tests

Provides common fixtures used across unit, functional and conformance tests:
- Collateral tokens, price feeds and the stable token
- A deployed engine that owns the stable token
- Accounts that have already deposited and minted
- An engine whose only collateral token cannot be snapshotted

Constants and helper functions live in tests/helpers.py.
"""

import pytest

from dsc import (
    DSCEngine, StableToken, CollateralToken, MockPriceFeed,
)

from tests.helpers import (
    T0, DEPLOYER, USER, LIQUIDATOR,
    ETH_USD_PRICE, BTC_USD_PRICE,
    AMOUNT_COLLATERAL, AMOUNT_TO_MINT, STARTING_BALANCE, COLLATERAL_TO_COVER,
    PlainToken, fund,
)


@pytest.fixture
def weth():
    return CollateralToken("WETH", "Wrapped Ether")


@pytest.fixture
def wbtc():
    return CollateralToken("WBTC", "Wrapped Bitcoin")


@pytest.fixture
def eth_feed():
    return MockPriceFeed(8, ETH_USD_PRICE, T0)


@pytest.fixture
def btc_feed():
    return MockPriceFeed(8, BTC_USD_PRICE, T0)


@pytest.fixture
def dsc():
    return StableToken(owner=DEPLOYER)


@pytest.fixture
def engine(weth, wbtc, eth_feed, btc_feed, dsc):
    """Engine accepting WETH and WBTC that owns the stable token."""
    engine = DSCEngine([weth, wbtc], [eth_feed, btc_feed], dsc, initial_time=T0)
    dsc.transfer_ownership(DEPLOYER, engine.address)
    return engine


@pytest.fixture
def funded(engine, weth, wbtc):
    """USER holds STARTING_BALANCE of each collateral, approved for the engine."""
    fund(weth, USER, STARTING_BALANCE, engine.address)
    fund(wbtc, USER, STARTING_BALANCE, engine.address)
    return engine


@pytest.fixture
def deposited(funded, weth):
    """USER has deposited AMOUNT_COLLATERAL of WETH."""
    funded.deposit_collateral(USER, weth, AMOUNT_COLLATERAL)
    return funded


@pytest.fixture
def deposited_and_minted(funded, weth):
    """USER has deposited AMOUNT_COLLATERAL of WETH and minted AMOUNT_TO_MINT."""
    funded.deposit_collateral_and_mint_dsc(USER, weth, AMOUNT_COLLATERAL, AMOUNT_TO_MINT)
    return funded


@pytest.fixture
def liquidator(deposited_and_minted, weth, dsc):
    """
    LIQUIDATOR has deposited COLLATERAL_TO_COVER of WETH, minted AMOUNT_TO_MINT
    and approved the engine to pull its stable tokens.
    """
    engine = deposited_and_minted
    fund(weth, LIQUIDATOR, COLLATERAL_TO_COVER, engine.address)
    engine.deposit_collateral_and_mint_dsc(LIQUIDATOR, weth, COLLATERAL_TO_COVER, AMOUNT_TO_MINT)
    dsc.approve(LIQUIDATOR, engine.address, AMOUNT_TO_MINT)
    return engine


@pytest.fixture
def plain_weth():
    return PlainToken("WETH")


@pytest.fixture
def plain_engine(plain_weth, eth_feed, dsc):
    """Engine whose only collateral is a PlainToken; USER holds AMOUNT_COLLATERAL of it."""
    engine = DSCEngine([plain_weth], [eth_feed], dsc, initial_time=T0)
    dsc.transfer_ownership(DEPLOYER, engine.address)
    plain_weth.credit(USER, AMOUNT_COLLATERAL)
    return engine
