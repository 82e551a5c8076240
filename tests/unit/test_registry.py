"""
test_registry.py - Unit tests for the permission registry

Tests:
- Listing (admin gate, duplicate listing, snapshot of bond terms)
- Permission flags (set true/false, events, unlisted bonds)
- Collateralization ratio bounds
- Debt ceiling
- Oracle handle
- Reads on unknown bonds
"""

import pytest

from termledger import (
    DEFAULT_COLLATERALIZATION_RATIO, MAX_COLLATERALIZATION_RATIO, MIN_COLLATERALIZATION_RATIO,
    AlreadyListed, BondListed, BondNotListed, CollateralizationRatioChanged, DebtCeilingChanged,
    DebtCeilingZero, OracleChanged, Permission, PermissionChanged, PermissionFlags,
    PermissionRegistry, RatioAboveMaximum, RatioBelowMinimum, SingleAdmin, StaticPriceOracle,
    Unauthorized, to_fixed,
)
from tests.fakes import ADMIN, MATURITY, deploy


# ============================================================================
# LISTING
# ============================================================================

class TestListBond:

    def test_admin_lists_bond(self, unlisted):
        registry, fy = unlisted.registry, unlisted.fy_token
        record = registry.list_bond(ADMIN, fy)

        assert registry.is_listed(fy)
        assert record.id == fy.address
        assert record.permissions == PermissionFlags()
        assert registry.get_collateralization_ratio(fy) == DEFAULT_COLLATERALIZATION_RATIO

    def test_listing_snapshots_bond_terms(self):
        d = deploy(underlying_decimals=8, listed=False)
        record = d.registry.list_bond(ADMIN, d.fy_token)

        assert record.expiration_time == MATURITY
        assert record.underlying_precision_scalar == 10 ** 10
        assert record.debt_ceiling == 0

    def test_all_flags_default_false(self, unlisted):
        registry, fy = unlisted.registry, unlisted.fy_token
        registry.list_bond(ADMIN, fy)
        for permission in Permission:
            assert registry.get_permission(fy, permission) is False

    def test_emits_bond_listed(self, unlisted):
        unlisted.registry.list_bond(ADMIN, unlisted.fy_token)
        assert unlisted.registry.events[-1] == BondListed(unlisted.fy_token.address)

    def test_non_admin_rejected(self, unlisted):
        with pytest.raises(Unauthorized):
            unlisted.registry.list_bond("eve", unlisted.fy_token)
        assert not unlisted.registry.is_listed(unlisted.fy_token)
        assert unlisted.registry.events == []

    def test_listing_twice_rejected(self, protocol):
        with pytest.raises(AlreadyListed):
            protocol.registry.list_bond(ADMIN, protocol.fy_token)

    def test_admin_check_precedes_listing_check(self, protocol):
        """A non-admin relisting gets Unauthorized, not AlreadyListed."""
        with pytest.raises(Unauthorized):
            protocol.registry.list_bond("eve", protocol.fy_token)


# ============================================================================
# PERMISSIONS
# ============================================================================

class TestSetPermission:

    @pytest.mark.parametrize("permission", list(Permission))
    def test_sets_value_to_true(self, locked_down, permission):
        locked_down.registry.set_permission(ADMIN, locked_down.fy_token, permission, True)
        assert locked_down.registry.get_permission(locked_down.fy_token, permission) is True

    @pytest.mark.parametrize("permission", list(Permission))
    def test_sets_value_to_false(self, protocol, permission):
        protocol.registry.set_permission(ADMIN, protocol.fy_token, permission, False)
        assert protocol.registry.get_permission(protocol.fy_token, permission) is False

    def test_only_named_flag_changes(self, locked_down):
        fy = locked_down.fy_token
        locked_down.registry.set_permission(ADMIN, fy, Permission.REPAY_BORROW, True)
        others = [p for p in Permission if p is not Permission.REPAY_BORROW]
        assert all(not locked_down.registry.get_permission(fy, p) for p in others)

    def test_accepts_flag_name(self, locked_down):
        fy = locked_down.fy_token
        locked_down.registry.set_permission(ADMIN, fy, "redeem_underlying_allowed", True)
        assert locked_down.registry.get_permission(fy, Permission.REDEEM_UNDERLYING)

    def test_unknown_flag_name_rejected(self, locked_down):
        with pytest.raises(ValueError):
            locked_down.registry.set_permission(ADMIN, locked_down.fy_token, "mint_anything", True)

    def test_emits_permission_changed(self, locked_down):
        fy = locked_down.fy_token
        locked_down.registry.set_permission(ADMIN, fy, Permission.REPAY_BORROW, True)
        assert locked_down.registry.events[-1] == PermissionChanged(
            ADMIN, fy.address, "repay_borrow_allowed", True
        )

    def test_unlisted_bond_rejected(self, unlisted):
        with pytest.raises(BondNotListed):
            unlisted.registry.set_permission(ADMIN, unlisted.fy_token, Permission.BORROW, True)

    def test_non_admin_rejected(self, protocol):
        with pytest.raises(Unauthorized):
            protocol.registry.set_permission("eve", protocol.fy_token, Permission.BORROW, False)
        assert protocol.registry.get_permission(protocol.fy_token, Permission.BORROW) is True

    def test_toggle_mid_position(self, protocol):
        """Flags can be flipped at any time; the next gated call sees the new value."""
        fy = protocol.fy_token
        protocol.registry.set_permission(ADMIN, fy, Permission.DEPOSIT_COLLATERAL, False)
        assert protocol.registry.is_allowed(fy, Permission.DEPOSIT_COLLATERAL) is False
        protocol.registry.set_permission(ADMIN, fy, Permission.DEPOSIT_COLLATERAL, True)
        assert protocol.registry.is_allowed(fy, Permission.DEPOSIT_COLLATERAL) is True


class TestIsAllowed:

    @pytest.mark.parametrize("permission", list(Permission))
    def test_unlisted_bond_raises(self, unlisted, permission):
        with pytest.raises(BondNotListed):
            unlisted.registry.is_allowed(unlisted.fy_token, permission)

    def test_listed_bond_returns_flag(self, locked_down):
        assert locked_down.registry.is_allowed(locked_down.fy_token, Permission.BORROW) is False


# ============================================================================
# RATIO
# ============================================================================

class TestSetCollateralizationRatio:

    def test_sets_ratio(self, protocol):
        ratio = to_fixed("1.75")
        protocol.registry.set_collateralization_ratio(ADMIN, protocol.fy_token, ratio)
        assert protocol.registry.get_collateralization_ratio(protocol.fy_token) == ratio

    def test_exactly_minimum_accepted(self, protocol):
        protocol.registry.set_collateralization_ratio(ADMIN, protocol.fy_token, MIN_COLLATERALIZATION_RATIO)
        assert protocol.registry.get_collateralization_ratio(protocol.fy_token) == MIN_COLLATERALIZATION_RATIO

    def test_below_minimum_rejected(self, protocol):
        with pytest.raises(RatioBelowMinimum):
            protocol.registry.set_collateralization_ratio(
                ADMIN, protocol.fy_token, MIN_COLLATERALIZATION_RATIO - 1
            )
        assert protocol.registry.get_collateralization_ratio(protocol.fy_token) == DEFAULT_COLLATERALIZATION_RATIO

    def test_above_maximum_rejected(self, protocol):
        with pytest.raises(RatioAboveMaximum):
            protocol.registry.set_collateralization_ratio(
                ADMIN, protocol.fy_token, MAX_COLLATERALIZATION_RATIO + 1
            )

    def test_emits_ratio_changed(self, protocol):
        ratio = to_fixed("2")
        protocol.registry.set_collateralization_ratio(ADMIN, protocol.fy_token, ratio)
        assert protocol.registry.events[-1] == CollateralizationRatioChanged(
            ADMIN, protocol.fy_token.address, DEFAULT_COLLATERALIZATION_RATIO, ratio
        )

    def test_unlisted_bond_rejected(self, unlisted):
        with pytest.raises(BondNotListed):
            unlisted.registry.set_collateralization_ratio(ADMIN, unlisted.fy_token, to_fixed("2"))

    def test_listing_check_precedes_ratio_check(self, unlisted):
        with pytest.raises(BondNotListed):
            unlisted.registry.set_collateralization_ratio(ADMIN, unlisted.fy_token, 1)

    def test_non_admin_rejected(self, protocol):
        with pytest.raises(Unauthorized):
            protocol.registry.set_collateralization_ratio("eve", protocol.fy_token, to_fixed("2"))

    def test_invalid_default_ratio_rejected(self):
        with pytest.raises(RatioBelowMinimum):
            PermissionRegistry(SingleAdmin(ADMIN), default_ratio=to_fixed("0.5"), verbose=False)


# ============================================================================
# DEBT CEILING AND ORACLE
# ============================================================================

class TestDebtCeiling:

    def test_sets_ceiling(self, protocol):
        protocol.registry.set_debt_ceiling(ADMIN, protocol.fy_token, to_fixed("500"))
        assert protocol.registry.get_debt_ceiling(protocol.fy_token) == to_fixed("500")

    def test_emits_event(self, locked_down):
        locked_down.registry.set_debt_ceiling(ADMIN, locked_down.fy_token, 7)
        event = locked_down.registry.events[-1]
        assert isinstance(event, DebtCeilingChanged)
        assert event.new_ceiling == 7

    def test_zero_rejected(self, protocol):
        with pytest.raises(DebtCeilingZero):
            protocol.registry.set_debt_ceiling(ADMIN, protocol.fy_token, 0)

    def test_unlisted_rejected(self, unlisted):
        with pytest.raises(BondNotListed):
            unlisted.registry.set_debt_ceiling(ADMIN, unlisted.fy_token, 7)

    def test_non_admin_rejected(self, protocol):
        with pytest.raises(Unauthorized):
            protocol.registry.set_debt_ceiling("eve", protocol.fy_token, 7)


class TestSetOracle:

    def test_replaces_oracle(self, protocol):
        new_oracle = StaticPriceOracle({"WETH": to_fixed("1")})
        old_oracle = protocol.registry.oracle
        protocol.registry.set_oracle(ADMIN, new_oracle)

        assert protocol.registry.oracle is new_oracle
        assert protocol.registry.events[-1] == OracleChanged(ADMIN, old_oracle, new_oracle)

    def test_non_admin_rejected(self, protocol):
        with pytest.raises(Unauthorized):
            protocol.registry.set_oracle("eve", StaticPriceOracle())

    def test_none_rejected(self, protocol):
        with pytest.raises(ValueError):
            protocol.registry.set_oracle(ADMIN, None)


# ============================================================================
# READS
# ============================================================================

class TestReadsOnUnknownBonds:

    def test_defaults(self, unlisted):
        registry, fy = unlisted.registry, unlisted.fy_token
        assert registry.is_listed(fy) is False
        assert registry.get_bond(fy) is None
        assert registry.get_collateralization_ratio(fy) == 0
        assert registry.get_debt_ceiling(fy) == 0
        for permission in Permission:
            assert registry.get_permission(fy, permission) is False

    def test_require_listed_raises(self, unlisted):
        with pytest.raises(BondNotListed):
            unlisted.registry.require_listed(unlisted.fy_token)
