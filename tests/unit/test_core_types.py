"""
test_core_types.py - Unit tests for core configuration and registry types

Tests:
- RiskParameters defaults and validation
- SupportedCollateralSet construction, ordering and lookups
- Event records
"""

import pytest

from dsc import (
    LIQUIDATION_BONUS, LIQUIDATION_PRECISION, LIQUIDATION_THRESHOLD, MIN_HEALTH_FACTOR,
    CollateralDeposited, CollateralRedeemed, ConfigMismatch, RiskParameters,
    SupportedCollateralSet, UnsupportedCollateral, CollateralToken, MockPriceFeed,
)


class TestRiskParameters:

    def test_defaults_match_module_constants(self):
        risk = RiskParameters()
        assert risk.liquidation_threshold == LIQUIDATION_THRESHOLD == 50
        assert risk.liquidation_bonus == LIQUIDATION_BONUS == 10
        assert risk.liquidation_precision == LIQUIDATION_PRECISION == 100
        assert risk.min_health_factor == MIN_HEALTH_FACTOR == 10**18

    def test_frozen(self):
        risk = RiskParameters()
        with pytest.raises(AttributeError):
            risk.liquidation_bonus = 20

    @pytest.mark.parametrize("kwargs", [
        {"liquidation_threshold": 0},
        {"liquidation_threshold": 101},
        {"liquidation_bonus": -1},
        {"liquidation_bonus": 101},
        {"liquidation_precision": 0},
        {"min_health_factor": 0},
    ])
    def test_rejects_out_of_range(self, kwargs):
        with pytest.raises(ValueError):
            RiskParameters(**kwargs)


class TestSupportedCollateralSet:

    def setup_method(self):
        self.weth = CollateralToken("WETH", "Wrapped Ether")
        self.wbtc = CollateralToken("WBTC", "Wrapped Bitcoin")
        self.eth_feed = MockPriceFeed(8, 2000 * 10**8)
        self.btc_feed = MockPriceFeed(8, 1000 * 10**8)

    def test_pairs_kinds_with_feeds(self):
        supported = SupportedCollateralSet.from_lists(
            [self.weth, self.wbtc], [self.eth_feed, self.btc_feed]
        )
        assert supported.feed_for(self.weth) is self.eth_feed
        assert supported.feed_for(self.wbtc) is self.btc_feed

    def test_iterates_in_registration_order(self):
        supported = SupportedCollateralSet.from_lists(
            [self.wbtc, self.weth], [self.btc_feed, self.eth_feed]
        )
        assert list(supported) == [self.wbtc, self.weth]
        assert len(supported) == 2

    @pytest.mark.parametrize("n_kinds,n_feeds", [(2, 1), (1, 2), (0, 1), (2, 0)])
    def test_length_mismatch_raises(self, n_kinds, n_feeds):
        kinds = [self.weth, self.wbtc][:n_kinds]
        feeds = [self.eth_feed, self.btc_feed][:n_feeds]
        with pytest.raises(ConfigMismatch):
            SupportedCollateralSet.from_lists(kinds, feeds)

    def test_duplicate_kind_raises(self):
        with pytest.raises(ConfigMismatch):
            SupportedCollateralSet.from_lists([self.weth, self.weth], [self.eth_feed, self.btc_feed])

    def test_unsupported_kind(self):
        supported = SupportedCollateralSet.from_lists([self.weth], [self.eth_feed])
        assert self.weth in supported
        assert self.wbtc not in supported
        assert not supported.is_supported(["unhashable"])
        with pytest.raises(UnsupportedCollateral):
            supported.feed_for(self.wbtc)

    def test_feeds_cannot_be_replaced(self):
        supported = SupportedCollateralSet.from_lists([self.weth], [self.eth_feed])
        with pytest.raises(TypeError):
            supported.feeds[self.weth] = self.btc_feed
        with pytest.raises(TypeError):
            supported.feeds[self.wbtc] = self.btc_feed
        assert supported.feed_for(self.weth) is self.eth_feed
        assert self.wbtc not in supported

    def test_registry_detached_from_source_mapping(self):
        feeds = {self.weth: self.eth_feed}
        supported = SupportedCollateralSet(kinds=(self.weth,), feeds=feeds)
        feeds[self.weth] = self.btc_feed
        assert supported.feed_for(self.weth) is self.eth_feed
        with pytest.raises(TypeError):
            supported.feeds[self.weth] = self.btc_feed

    def test_empty_set_is_valid(self):
        supported = SupportedCollateralSet.from_lists([], [])
        assert len(supported) == 0


class TestEvents:

    def test_events_are_values(self):
        weth = CollateralToken("WETH", "Wrapped Ether")
        assert CollateralDeposited("alice", weth, 5) == CollateralDeposited("alice", weth, 5)
        redeemed = CollateralRedeemed("alice", "bob", weth, 5)
        assert redeemed.from_account == "alice"
        assert redeemed.to_account == "bob"
        with pytest.raises(AttributeError):
            redeemed.amount = 6
