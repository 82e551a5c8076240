"""
Listing Gate Conformance Tests

INVARIANT: An unlisted bond accepts no mutation.

    ∀ operation O on bond B:  isListed(B) = false  ⟹  O fails with BondNotListed

The listing check runs before any other vault ledger check, so the error is
BondNotListed whatever the amount, the vault state or the time. Pool
operations check maturity and amount first; with both satisfied, the listing
error follows.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from termledger import BondNotListed, Permission, to_fixed
from tests.fakes import ADMIN, MATURITY, START, deploy


VAULT_OPERATIONS = [
    "open_vault", "deposit_collateral", "withdraw_collateral",
    "lock_collateral", "free_collateral", "borrow", "repay_borrow",
]


def _call_vault_operation(d, name, account, amount):
    method = getattr(d.ledger, name)
    if name == "open_vault":
        return method(d.fy_token, account)
    return method(d.fy_token, account, amount)


class TestListingGate:

    @given(
        name=st.sampled_from(VAULT_OPERATIONS),
        account=st.sampled_from(["alice", "bob", "admin"]),
        amount=st.integers(min_value=0, max_value=10 ** 24),
        offset=st.integers(min_value=0, max_value=2 * (MATURITY - START)),
    )
    @settings(max_examples=200, deadline=None)
    def test_vault_operations_reject_unlisted_bond(self, name, account, amount, offset):
        d = deploy(listed=False)
        d.fund_collateral(account, to_fixed("10"))
        d.clock.advance(offset)

        with pytest.raises(BondNotListed):
            _call_vault_operation(d, name, account, amount)
        assert not d.ledger.is_vault_open(d.fy_token, account)
        assert d.ledger.events == []

    @given(amount=st.integers(min_value=1, max_value=10 ** 24))
    @settings(max_examples=50, deadline=None)
    def test_pool_operations_reject_unlisted_bond(self, amount):
        d = deploy(listed=False)
        d.fund_underlying("maker", amount)

        with pytest.raises(BondNotListed):
            d.pool.supply_underlying(d.fy_token, "maker", amount)
        d.mature()
        with pytest.raises(BondNotListed):
            d.pool.redeem_underlying(d.fy_token, "maker", amount)

        assert d.pool.total_underlying_supply(d.fy_token) == 0
        assert d.underlying.balance_of("maker") == amount

    @pytest.mark.parametrize("permission", list(Permission))
    def test_gated_reads_reject_unlisted_bond(self, permission):
        d = deploy(listed=False)
        with pytest.raises(BondNotListed):
            d.registry.is_allowed(d.fy_token, permission)

    @pytest.mark.parametrize("permission", list(Permission))
    def test_admin_writes_reject_unlisted_bond(self, permission):
        d = deploy(listed=False)
        with pytest.raises(BondNotListed):
            d.registry.set_permission(ADMIN, d.fy_token, permission, True)
        with pytest.raises(BondNotListed):
            d.registry.set_collateralization_ratio(ADMIN, d.fy_token, to_fixed("2"))
        with pytest.raises(BondNotListed):
            d.registry.set_debt_ceiling(ADMIN, d.fy_token, to_fixed("2"))
