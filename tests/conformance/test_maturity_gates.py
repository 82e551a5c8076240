"""
Maturity Gate Conformance Tests

INVARIANT: Supply and redemption are strict complements in time.

    now <  expiration  ⟹ supply passes the maturity gate, redeem fails it
    now >= expiration  ⟹ redeem passes the maturity gate, supply fails it

Borrowing follows the supply side: no new debt at or after expiration.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from termledger import BondMatured, BondNotMatured, to_fixed
from tests.fakes import MATURITY, START, deploy


ONE = to_fixed("1")


class TestMaturityGates:

    @given(st.integers(min_value=START - MATURITY, max_value=10 ** 8))
    @settings(max_examples=200, deadline=None)
    def test_supply_and_redeem_are_complements(self, offset):
        """
        PROPERTY: At any instant exactly one of supply/redeem clears its maturity check.
        """
        d = deploy()
        d.fund_underlying("maker", 3 * ONE)
        d.pool.supply_underlying(d.fy_token, "maker", ONE)
        d.clock.advance_to(MATURITY + offset)

        try:
            d.pool.supply_underlying(d.fy_token, "maker", ONE)
            supply_open = True
        except BondMatured:
            supply_open = False

        try:
            d.pool.redeem_underlying(d.fy_token, "maker", ONE)
            redeem_open = True
        except BondNotMatured:
            redeem_open = False

        assert supply_open != redeem_open
        assert redeem_open == (offset >= 0)

    @given(st.integers(min_value=0, max_value=10 ** 8))
    @settings(max_examples=100, deadline=None)
    def test_no_borrowing_at_or_after_expiration(self, offset):
        d = deploy()
        d.open_with_collateral("brad", to_fixed("10"), lock=to_fixed("10"))
        d.clock.advance_to(MATURITY + offset)

        try:
            d.ledger.borrow(d.fy_token, "brad", ONE)
            raised = False
        except BondMatured:
            raised = True
        assert raised
        assert d.ledger.get_vault(d.fy_token, "brad").debt == 0

    @given(st.integers(min_value=0, max_value=10 ** 8))
    @settings(max_examples=50, deadline=None)
    def test_repayment_survives_maturity(self, offset):
        d = deploy()
        d.open_with_collateral("brad", to_fixed("10"), lock=to_fixed("10"))
        d.ledger.borrow(d.fy_token, "brad", ONE)
        d.clock.advance_to(MATURITY + offset)

        d.ledger.repay_borrow(d.fy_token, "brad", ONE)
        assert d.ledger.get_vault(d.fy_token, "brad").debt == 0
