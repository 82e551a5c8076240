"""
redemption_pool.py - Underlying <-> claim token conversion around maturity

=== MODEL ===

Before maturity, anyone may supply the underlying asset and receive the same
value in claim tokens:

    claim tokens minted = underlying amount x underlying_precision_scalar

At or after maturity, claim-token holders redeem: they name the amount of
underlying they want back, and the equivalent claim tokens are burned.

    claim tokens burned = underlying amount x underlying_precision_scalar

The underlying moves in its native decimals; claim tokens always move in
18-decimal canonical units. ``underlying_precision_scalar`` is fixed when the
bond is listed, so a supply followed by a redemption of the same native
amount round-trips exactly.

=== LEDGER ===

The pool tracks ``total_underlying_supply`` per bond in native units. It only
ever grows by accepted supplies and shrinks by accepted redemptions, and a
redemption larger than the supply is rejected before anything changes.

=== ATOMICITY ===

Each operation issues two external calls. If the second fails, the first is
compensated (underlying returned, or burned claim tokens re-minted) and the
pool's own state is restored, so the caller observes all-or-nothing.
"""

from __future__ import annotations
from typing import Dict

from .atomic import AtomicComponent
from .clock import Clock
from .core import (
    BondToken, Permission,
    BondMatured, BondNotMatured, BurnFailed, MintFailed,
    RedeemUnderlyingInsufficientUnderlying, RedeemUnderlyingNotAllowed, RedeemUnderlyingZero,
    SupplyUnderlyingNotAllowed, SupplyUnderlyingZero, TokenTransferFailed,
    RedeemUnderlying, SupplyUnderlying,
)
from .precision import check_amount, scale_up
from .registry import PermissionRegistry


class RedemptionPool(AtomicComponent):
    """
    Per-bond pool of underlying backing claim tokens minted by supply.

    Example:
        pool = RedemptionPool(registry, clock, verbose=False)
        usdc.approve("maker", pool.address, to_fixed("100", 6))
        pool.supply_underlying(fy_token, "maker", to_fixed("100", 6))
        # ... after maturity
        pool.redeem_underlying(fy_token, "maker", to_fixed("100", 6))
    """

    def __init__(
        self,
        registry: PermissionRegistry,
        clock: Clock,
        address: str = "redemption-pool",
        verbose: bool = True,
    ):
        super().__init__("redemption_pool", verbose)
        self.registry = registry
        self.clock = clock
        self.address = address
        self._total_underlying_supply: Dict[str, int] = {}

    def total_underlying_supply(self, bond: BondToken) -> int:
        """Underlying held for the bond, in the underlying's native units."""
        with self._reading():
            return self._total_underlying_supply.get(bond.address, 0)

    def supply_underlying(self, bond: BondToken, account: str, amount: int) -> int:
        """
        Pull ``amount`` of underlying from the account and mint claim tokens to it.

        Args:
            bond: The bond's claim token
            account: Supplier (must have approved this pool on the underlying)
            amount: Underlying amount in native decimals

        Returns:
            Claim tokens minted (canonical precision)

        Raises:
            BondMatured, SupplyUnderlyingZero, BondNotListed,
            SupplyUnderlyingNotAllowed, TokenTransferFailed, MintFailed
        """
        check_amount(amount)
        with self._atomic("supply_underlying"):
            if self.clock.now() >= bond.expiration_time():
                raise BondMatured(f"Bond {bond.address} has matured")
            if amount == 0:
                raise SupplyUnderlyingZero("Cannot supply zero underlying")
            if not self.registry.is_allowed(bond, Permission.SUPPLY_UNDERLYING):
                raise SupplyUnderlyingNotAllowed(f"Supplying underlying is disabled for {bond.address}")

            scalar = self.registry.require_listed(bond).underlying_precision_scalar
            fy_amount = scale_up(amount, scalar)
            underlying = bond.underlying

            self._put(self._total_underlying_supply, bond.address,
                      self.total_underlying_supply(bond) + amount)

            self._settle(
                underlying.transfer_from(self.address, account, self.address, amount),
                TokenTransferFailed,
                f"{underlying.symbol} transfer of {amount} from {account} failed",
            )
            self._on_rollback(
                lambda: underlying.transfer(self.address, account, amount),
                f"returning {amount} {underlying.symbol} to {account}",
            )
            self._settle(
                bond.mint(self.address, account, fy_amount),
                MintFailed,
                f"Minting {fy_amount} {bond.symbol} to {account} failed",
            )
            self._emit(SupplyUnderlying(account, amount, fy_amount, bond.address))
        return fy_amount

    def redeem_underlying(self, bond: BondToken, account: str, amount: int) -> int:
        """
        Burn the account's claim tokens and pay out ``amount`` of underlying.

        Args:
            bond: The bond's claim token
            account: Redeeming holder
            amount: Underlying to receive, in native decimals

        Returns:
            Claim tokens burned (canonical precision)

        Raises:
            BondNotMatured, RedeemUnderlyingZero, BondNotListed,
            RedeemUnderlyingNotAllowed, RedeemUnderlyingInsufficientUnderlying,
            BurnFailed, TokenTransferFailed
        """
        check_amount(amount)
        with self._atomic("redeem_underlying"):
            if self.clock.now() < bond.expiration_time():
                raise BondNotMatured(f"Bond {bond.address} has not matured")
            if amount == 0:
                raise RedeemUnderlyingZero("Cannot redeem zero underlying")
            if not self.registry.is_allowed(bond, Permission.REDEEM_UNDERLYING):
                raise RedeemUnderlyingNotAllowed(f"Redeeming underlying is disabled for {bond.address}")

            available = self.total_underlying_supply(bond)
            if amount > available:
                raise RedeemUnderlyingInsufficientUnderlying(
                    f"Redeem {amount} exceeds underlying supply {available}"
                )
            scalar = self.registry.require_listed(bond).underlying_precision_scalar
            fy_amount = scale_up(amount, scalar)
            underlying = bond.underlying

            self._put(self._total_underlying_supply, bond.address, available - amount)

            self._settle(
                bond.burn(self.address, account, fy_amount),
                BurnFailed,
                f"Burning {fy_amount} {bond.symbol} from {account} failed",
            )
            self._on_rollback(
                lambda: bond.mint(self.address, account, fy_amount),
                f"re-minting {fy_amount} {bond.symbol} to {account}",
            )
            self._settle(
                underlying.transfer(self.address, account, amount),
                TokenTransferFailed,
                f"{underlying.symbol} transfer of {amount} to {account} failed",
            )
            self._emit(RedeemUnderlying(account, amount, bond.address))
        return fy_amount

    def __repr__(self):
        return f"RedemptionPool({len(self._total_underlying_supply)} bonds)"
