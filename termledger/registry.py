"""
registry.py - Permission registry for listed bonds

The PermissionRegistry owns every Bond record: whether the bond is listed, its
required collateralization ratio, its debt ceiling and its allow/deny flags.
The vault ledger and the redemption pool consult it before every mutation and
never write to it.

Admin-only mutators take the caller as their first argument and check it
against an injected AdminAuthority before anything else. Read methods never
fail; ``is_allowed`` is the gated read that mutating entry points use, and it
raises BondNotListed for an unlisted bond.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Dict, Optional, Protocol, runtime_checkable

from .atomic import AtomicComponent
from .core import (
    Bond, BondToken, Permission, PermissionFlags,
    DEFAULT_COLLATERALIZATION_RATIO, MAX_COLLATERALIZATION_RATIO, MIN_COLLATERALIZATION_RATIO,
    AlreadyListed, BondNotListed, DebtCeilingZero, RatioAboveMaximum, RatioBelowMinimum,
    Unauthorized,
    BondListed, CollateralizationRatioChanged, DebtCeilingChanged, OracleChanged,
    PermissionChanged,
)
from .oracle import PriceOracle
from .precision import check_amount


@runtime_checkable
class AdminAuthority(Protocol):
    """Decides whether a caller may run admin-only operations."""

    def is_admin(self, caller: str) -> bool:
        ...


class SingleAdmin:
    """One privileged address."""

    def __init__(self, address: str):
        if not address or not address.strip():
            raise ValueError("Admin address cannot be empty")
        self.address = address

    def is_admin(self, caller: str) -> bool:
        return caller == self.address

    def __repr__(self):
        return f"SingleAdmin({self.address!r})"


def _check_ratio(ratio: int) -> int:
    check_amount(ratio, "collateralization ratio")
    if ratio < MIN_COLLATERALIZATION_RATIO:
        raise RatioBelowMinimum(f"Ratio {ratio} is below the minimum {MIN_COLLATERALIZATION_RATIO}")
    if ratio > MAX_COLLATERALIZATION_RATIO:
        raise RatioAboveMaximum(f"Ratio {ratio} is above the maximum {MAX_COLLATERALIZATION_RATIO}")
    return ratio


class PermissionRegistry(AtomicComponent):
    """
    Per-bond listing, ratio, debt ceiling and permission flags.

    Example:
        registry = PermissionRegistry(SingleAdmin("admin"), verbose=False)
        registry.list_bond("admin", fy_token)
        registry.set_permission("admin", fy_token, Permission.DEPOSIT_COLLATERAL, True)
        registry.is_allowed(fy_token, Permission.DEPOSIT_COLLATERAL)   # True
    """

    def __init__(
        self,
        authority: AdminAuthority,
        default_ratio: int = DEFAULT_COLLATERALIZATION_RATIO,
        oracle: Optional[PriceOracle] = None,
        verbose: bool = True,
    ):
        super().__init__("registry", verbose)
        self.authority = authority
        self.default_ratio = _check_ratio(default_ratio)
        self.oracle = oracle
        self._bonds: Dict[str, Bond] = {}

    # ========================================================================
    # READS (never fail)
    # ========================================================================

    def get_bond(self, bond: BondToken) -> Optional[Bond]:
        with self._reading():
            return self._bonds.get(bond.address)

    def is_listed(self, bond: BondToken) -> bool:
        record = self.get_bond(bond)
        return record is not None and record.is_listed

    def get_permission(self, bond: BondToken, permission: Permission) -> bool:
        """Flag value, or False for an unknown bond."""
        record = self.get_bond(bond)
        if record is None:
            return False
        return record.permissions.get(permission)

    def get_collateralization_ratio(self, bond: BondToken) -> int:
        """Required ratio mantissa, or 0 for an unknown bond."""
        record = self.get_bond(bond)
        return record.collateralization_ratio if record else 0

    def get_debt_ceiling(self, bond: BondToken) -> int:
        record = self.get_bond(bond)
        return record.debt_ceiling if record else 0

    # ========================================================================
    # GATED READS
    # ========================================================================

    def require_listed(self, bond: BondToken) -> Bond:
        """
        Return the bond's record.

        Raises:
            BondNotListed: If the bond is not listed
        """
        record = self.get_bond(bond)
        if record is None or not record.is_listed:
            raise BondNotListed(f"Bond {bond.address} is not listed")
        return record

    def is_allowed(self, bond: BondToken, permission: Permission) -> bool:
        """
        Listing check followed by the flag lookup.

        Raises:
            BondNotListed: If the bond is not listed
        """
        return self.require_listed(bond).permissions.get(permission)

    # ========================================================================
    # ADMIN MUTATORS
    # ========================================================================

    def _require_admin(self, caller: str) -> None:
        if not self.authority.is_admin(caller):
            raise Unauthorized(f"{caller} is not the admin")

    def list_bond(self, caller: str, bond: BondToken) -> Bond:
        """
        List a bond with all flags off and the default ratio.

        The expiration time and the underlying precision scalar are read from
        the claim token once, here, and fixed for the bond's lifetime.

        Raises:
            Unauthorized: If caller is not the admin
            AlreadyListed: If the bond is already listed
        """
        with self._atomic("list_bond"):
            self._require_admin(caller)
            if self.is_listed(bond):
                raise AlreadyListed(f"Bond {bond.address} is already listed")
            record = Bond(
                id=bond.address,
                is_listed=True,
                collateralization_ratio=self.default_ratio,
                expiration_time=bond.expiration_time(),
                underlying_precision_scalar=bond.underlying_precision_scalar(),
                debt_ceiling=0,
                permissions=PermissionFlags(),
            )
            self._put(self._bonds, bond.address, record)
            self._emit(BondListed(bond.address))
        return record

    def set_permission(self, caller: str, bond: BondToken, permission: Permission, value: bool) -> None:
        """
        Set one allow/deny flag.

        Raises:
            Unauthorized: If caller is not the admin
            BondNotListed: If the bond is not listed
        """
        permission = Permission(permission)
        with self._atomic("set_permission"):
            self._require_admin(caller)
            record = self.require_listed(bond)
            updated = replace(record, permissions=record.permissions.with_flag(permission, value))
            self._put(self._bonds, bond.address, updated)
            self._emit(PermissionChanged(caller, bond.address, permission.value, bool(value)))

    def set_collateralization_ratio(self, caller: str, bond: BondToken, ratio: int) -> None:
        """
        Change the bond's required collateralization ratio.

        Raises:
            Unauthorized: If caller is not the admin
            BondNotListed: If the bond is not listed
            RatioBelowMinimum: If ratio < 100%
            RatioAboveMaximum: If ratio > 10,000%
        """
        with self._atomic("set_collateralization_ratio"):
            self._require_admin(caller)
            record = self.require_listed(bond)
            _check_ratio(ratio)
            self._put(self._bonds, bond.address, replace(record, collateralization_ratio=ratio))
            self._emit(CollateralizationRatioChanged(
                caller, bond.address, record.collateralization_ratio, ratio
            ))

    def set_debt_ceiling(self, caller: str, bond: BondToken, ceiling: int) -> None:
        """
        Cap the aggregate debt the bond may carry.

        Raises:
            Unauthorized: If caller is not the admin
            BondNotListed: If the bond is not listed
            DebtCeilingZero: If ceiling is zero
        """
        with self._atomic("set_debt_ceiling"):
            self._require_admin(caller)
            record = self.require_listed(bond)
            if check_amount(ceiling, "debt ceiling") == 0:
                raise DebtCeilingZero("Debt ceiling must be greater than zero")
            self._put(self._bonds, bond.address, replace(record, debt_ceiling=ceiling))
            self._emit(DebtCeilingChanged(caller, bond.address, record.debt_ceiling, ceiling))

    def set_oracle(self, caller: str, oracle: PriceOracle) -> None:
        """
        Point solvency checks at a new price oracle.

        Raises:
            Unauthorized: If caller is not the admin
            ValueError: If oracle is None
        """
        if oracle is None:
            raise ValueError("Oracle cannot be None")
        with self._atomic("set_oracle"):
            self._require_admin(caller)
            old = self.oracle
            self.oracle = oracle
            self._emit(OracleChanged(caller, old, oracle))

    def __repr__(self):
        listed = sum(1 for b in self._bonds.values() if b.is_listed)
        return f"PermissionRegistry({listed} listed bonds, oracle={self.oracle!r})"
