"""
Core types for the fixed-term lending ledger.

This module provides the foundational data structures shared by the registry,
the vault ledger and the redemption pool:
1. Constants: canonical precision and collateralization ratio bounds
2. Permission: closed enum of every flag-gated action
3. Immutable records: Bond, PermissionFlags, Vault
4. Protocols: Asset and BondToken collaborators (consumed, not owned)
5. Exceptions: ProtocolError and the category/specific error classes
6. Events: immutable records appended to each component's audit trail

Amounts, prices and ratios are plain ``int`` fixed-point mantissas. Python
integers have arbitrary width, so cross-multiplication never overflows.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Every claim-token amount, price and ratio uses 18 decimal places.
CANONICAL_DECIMALS = 18
SCALE = 10 ** CANONICAL_DECIMALS

# Collateralization ratios are mantissas: 150% == 1.5 * SCALE.
MIN_COLLATERALIZATION_RATIO = SCALE                  # 100%
MAX_COLLATERALIZATION_RATIO = 100 * SCALE            # 10,000%
DEFAULT_COLLATERALIZATION_RATIO = 3 * SCALE // 2     # 150%


# ============================================================================
# PERMISSIONS
# ============================================================================

class Permission(str, Enum):
    """
    Every flag-gated action a bond can allow or deny.

    The value is the field name on PermissionFlags, so the set of valid flags
    is closed and statically enumerable.
    """
    DEPOSIT_COLLATERAL = "deposit_collateral_allowed"
    BORROW = "borrow_allowed"
    REPAY_BORROW = "repay_borrow_allowed"
    LIQUIDATE_BORROW = "liquidate_borrow_allowed"
    SUPPLY_UNDERLYING = "supply_underlying_allowed"
    REDEEM_UNDERLYING = "redeem_underlying_allowed"


@dataclass(frozen=True, slots=True)
class PermissionFlags:
    """Per-bond allow/deny flags. All default to False on listing."""
    deposit_collateral_allowed: bool = False
    borrow_allowed: bool = False
    repay_borrow_allowed: bool = False
    liquidate_borrow_allowed: bool = False
    supply_underlying_allowed: bool = False
    redeem_underlying_allowed: bool = False

    def get(self, permission: Permission) -> bool:
        return getattr(self, Permission(permission).value)

    def with_flag(self, permission: Permission, value: bool) -> PermissionFlags:
        """Return a copy with one flag changed."""
        return replace(self, **{Permission(permission).value: bool(value)})


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Bond:
    """
    Registry record for a maturity-dated market.

    Attributes:
        id: Address of the bond's claim token (the registry key).
        is_listed: Whether the bond accepts mutating operations.
        collateralization_ratio: Required ratio mantissa (>= 100%).
        expiration_time: Unix timestamp at which the bond matures.
        underlying_precision_scalar: 10 ** (18 - underlying decimals), fixed at listing.
        debt_ceiling: Maximum aggregate debt the bond may carry (0 blocks borrowing).
        permissions: Allow/deny flag set.
    """
    id: str
    is_listed: bool
    collateralization_ratio: int
    expiration_time: int
    underlying_precision_scalar: int
    debt_ceiling: int = 0
    permissions: PermissionFlags = field(default_factory=PermissionFlags)


@dataclass(frozen=True, slots=True)
class Vault:
    """
    Per-(bond, account) collateral and debt position.

    Every change produces a new instance; the ledger swaps records atomically
    and keeps the previous one for rollback.
    """
    is_open: bool = False
    free_collateral: int = 0
    locked_collateral: int = 0
    debt: int = 0

    def __post_init__(self):
        for name in ("free_collateral", "locked_collateral", "debt"):
            if getattr(self, name) < 0:
                raise ValueError(f"Vault {name} cannot be negative")

    @property
    def total_collateral(self) -> int:
        return self.free_collateral + self.locked_collateral


EMPTY_VAULT = Vault()


# ============================================================================
# COLLABORATOR PROTOCOLS
# ============================================================================

@runtime_checkable
class Asset(Protocol):
    """
    Fungible token consumed by the ledger (collateral or underlying).

    Transfers report failure by returning False rather than raising.
    """
    symbol: str
    address: str

    def decimals(self) -> int:
        ...

    def balance_of(self, account: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def transfer_from(self, spender: str, sender: str, recipient: str, amount: int) -> bool:
        ...


@runtime_checkable
class BondToken(Protocol):
    """
    Maturity-dated claim token. Its address identifies the bond.

    Only authorised minters (the vault ledger and the redemption pool) may
    mint or burn.
    """
    symbol: str
    address: str
    collateral: Asset
    underlying: Asset

    def expiration_time(self) -> int:
        ...

    def underlying_precision_scalar(self) -> int:
        ...

    def collateral_precision_scalar(self) -> int:
        ...

    def balance_of(self, account: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def mint(self, minter: str, to: str, amount: int) -> bool:
        ...

    def burn(self, minter: str, holder: str, amount: int) -> bool:
        ...


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ProtocolError(Exception):
    """
    Base exception for every rejected operation.

    ``code`` is the stable identifier callers and tests assert on.
    """

    @property
    def code(self) -> str:
        return type(self).__name__


class AuthorizationError(ProtocolError):
    """Caller lacks the capability the operation requires."""
    pass


class LifecycleError(ProtocolError):
    """Bond or vault is in the wrong phase for the operation."""
    pass


class PermissionDenied(ProtocolError):
    """The bond's flag for this action is switched off."""
    pass


class ValidationError(ProtocolError):
    """An argument is outside its accepted domain."""
    pass


class SolvencyError(ProtocolError):
    """The operation would breach the collateralization ratio."""
    pass


class InsufficientResourceError(ProtocolError):
    """Not enough collateral, debt, balance or liquidity."""
    pass


class ExternalCallError(ProtocolError):
    """A collaborator reported failure."""
    pass


# Authorization
class Unauthorized(AuthorizationError):
    pass


# Lifecycle
class BondNotListed(LifecycleError):
    pass


class AlreadyListed(LifecycleError):
    pass


class BondMatured(LifecycleError):
    pass


class BondNotMatured(LifecycleError):
    pass


class VaultNotOpen(LifecycleError):
    pass


class ReentrantCall(LifecycleError):
    """Raised when a component is re-entered while an operation is in flight."""
    pass


# Permission
class DepositCollateralNotAllowed(PermissionDenied):
    pass


class BorrowNotAllowed(PermissionDenied):
    pass


class RepayBorrowNotAllowed(PermissionDenied):
    pass


class SupplyUnderlyingNotAllowed(PermissionDenied):
    pass


class RedeemUnderlyingNotAllowed(PermissionDenied):
    pass


# Validation
class DepositCollateralZero(ValidationError):
    pass


class WithdrawCollateralZero(ValidationError):
    pass


class LockCollateralZero(ValidationError):
    pass


class FreeCollateralZero(ValidationError):
    pass


class BorrowZero(ValidationError):
    pass


class RepayBorrowZero(ValidationError):
    pass


class SupplyUnderlyingZero(ValidationError):
    pass


class RedeemUnderlyingZero(ValidationError):
    pass


class RatioBelowMinimum(ValidationError):
    pass


class RatioAboveMaximum(ValidationError):
    pass


class DebtCeilingZero(ValidationError):
    pass


# Solvency
class BelowCollateralizationRatio(SolvencyError):
    pass


# Insufficient resources
class WithdrawCollateralInsufficientFreeCollateral(InsufficientResourceError):
    pass


class LockCollateralInsufficientFreeCollateral(InsufficientResourceError):
    pass


class FreeCollateralInsufficientLockedCollateral(InsufficientResourceError):
    pass


class RepayBorrowInsufficientDebt(InsufficientResourceError):
    pass


class RepayBorrowInsufficientBalance(InsufficientResourceError):
    pass


class BorrowDebtCeilingOverflow(InsufficientResourceError):
    pass


class RedeemUnderlyingInsufficientUnderlying(InsufficientResourceError):
    pass


# External calls
class TokenTransferFailed(ExternalCallError):
    pass


class MintFailed(ExternalCallError):
    pass


class BurnFailed(ExternalCallError):
    pass


class PriceUnavailable(ExternalCallError):
    pass


class CompensationFailed(ExternalCallError):
    """A compensating call issued during rollback itself failed."""
    pass


# ============================================================================
# EVENTS
# ============================================================================
#
# Field order mirrors the observability contract. Components append events
# only after every check and external call has succeeded.

@dataclass(frozen=True, slots=True)
class BondListed:
    bond: str


@dataclass(frozen=True, slots=True)
class PermissionChanged:
    admin: str
    bond: str
    flag_name: str
    value: bool


@dataclass(frozen=True, slots=True)
class CollateralizationRatioChanged:
    admin: str
    bond: str
    old_ratio: int
    new_ratio: int


@dataclass(frozen=True, slots=True)
class DebtCeilingChanged:
    admin: str
    bond: str
    old_ceiling: int
    new_ceiling: int


@dataclass(frozen=True, slots=True)
class OracleChanged:
    admin: str
    old_oracle: Any
    new_oracle: Any


@dataclass(frozen=True, slots=True)
class VaultOpened:
    bond: str
    account: str


@dataclass(frozen=True, slots=True)
class CollateralDeposited:
    bond: str
    account: str
    amount: int


@dataclass(frozen=True, slots=True)
class CollateralWithdrawn:
    bond: str
    account: str
    amount: int


@dataclass(frozen=True, slots=True)
class CollateralLocked:
    bond: str
    account: str
    amount: int


@dataclass(frozen=True, slots=True)
class CollateralFreed:
    bond: str
    account: str
    amount: int


@dataclass(frozen=True, slots=True)
class Borrowed:
    bond: str
    account: str
    amount: int


@dataclass(frozen=True, slots=True)
class BorrowRepaid:
    bond: str
    payer: str
    account: str
    amount: int
    new_debt: int


@dataclass(frozen=True, slots=True)
class SupplyUnderlying:
    account: str
    underlying_amount: int
    fy_amount: int
    bond: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RedeemUnderlying:
    account: str
    underlying_amount: int
    bond: Optional[str] = None
