"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending ledger core.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_collateral_conservation.py - free + locked equals net deposits
2. test_all_or_nothing.py - Failed operations leave no trace
3. test_maturity_gates.py - Supply and redemption are complements in time
4. test_listing_gate.py - Unlisted bonds accept no mutation
5. test_precision_round_trip.py - Decimal normalization is value-neutral
6. test_solvency.py - Debt never exceeds what locked collateral backs

These tests use hypothesis for property-based testing.
"""
