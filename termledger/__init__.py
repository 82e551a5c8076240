"""
termledger - Accounting core for fixed-term collateralized lending

Users lock collateral and borrow a maturity-dated claim token against it; a
redemption pool converts the underlying asset into and out of that claim
token around maturity. Every mutation is gated by a per-bond permission
registry.

Usage:
    from termledger import (
        PermissionRegistry, SingleAdmin, VaultLedger, RedemptionPool,
        StaticPriceOracle, ManualClock, Erc20Token, ClaimToken,
        Permission, to_fixed,
    )

    clock = ManualClock(start=1_700_000_000)
    weth = Erc20Token("WETH", decimals=18)
    usdc = Erc20Token("USDC", decimals=6)
    fy_usdc = ClaimToken("fyUSDC", expiration_time=1_800_000_000,
                         underlying=usdc, collateral=weth)

    oracle = StaticPriceOracle({"WETH": to_fixed("100")})
    registry = PermissionRegistry(SingleAdmin("admin"), oracle=oracle)
    ledger = VaultLedger(registry, clock)
    pool = RedemptionPool(registry, clock)
    fy_usdc.authorize_minter(ledger.address)
    fy_usdc.authorize_minter(pool.address)

    registry.list_bond("admin", fy_usdc)
    registry.set_permission("admin", fy_usdc, Permission.DEPOSIT_COLLATERAL, True)

    ledger.open_vault(fy_usdc, "alice")
    weth.issue("alice", to_fixed("10"))
    weth.approve("alice", ledger.address, to_fixed("10"))
    ledger.deposit_collateral(fy_usdc, "alice", to_fixed("10"))
"""

# Core types
from .core import (
    CANONICAL_DECIMALS,
    SCALE,
    MIN_COLLATERALIZATION_RATIO,
    MAX_COLLATERALIZATION_RATIO,
    DEFAULT_COLLATERALIZATION_RATIO,
    Permission,
    PermissionFlags,
    Bond,
    Vault,
    EMPTY_VAULT,
    Asset,
    BondToken,
    # Error hierarchy
    ProtocolError,
    AuthorizationError,
    LifecycleError,
    PermissionDenied,
    ValidationError,
    SolvencyError,
    InsufficientResourceError,
    ExternalCallError,
    Unauthorized,
    BondNotListed,
    AlreadyListed,
    BondMatured,
    BondNotMatured,
    VaultNotOpen,
    ReentrantCall,
    DepositCollateralNotAllowed,
    BorrowNotAllowed,
    RepayBorrowNotAllowed,
    SupplyUnderlyingNotAllowed,
    RedeemUnderlyingNotAllowed,
    DepositCollateralZero,
    WithdrawCollateralZero,
    LockCollateralZero,
    FreeCollateralZero,
    BorrowZero,
    RepayBorrowZero,
    SupplyUnderlyingZero,
    RedeemUnderlyingZero,
    RatioBelowMinimum,
    RatioAboveMaximum,
    DebtCeilingZero,
    BelowCollateralizationRatio,
    WithdrawCollateralInsufficientFreeCollateral,
    LockCollateralInsufficientFreeCollateral,
    FreeCollateralInsufficientLockedCollateral,
    RepayBorrowInsufficientDebt,
    RepayBorrowInsufficientBalance,
    BorrowDebtCeilingOverflow,
    RedeemUnderlyingInsufficientUnderlying,
    TokenTransferFailed,
    MintFailed,
    BurnFailed,
    PriceUnavailable,
    CompensationFailed,
    # Events
    BondListed,
    PermissionChanged,
    CollateralizationRatioChanged,
    DebtCeilingChanged,
    OracleChanged,
    VaultOpened,
    CollateralDeposited,
    CollateralWithdrawn,
    CollateralLocked,
    CollateralFreed,
    Borrowed,
    BorrowRepaid,
    SupplyUnderlying,
    RedeemUnderlying,
)

# Fixed-point math
from .precision import (
    check_amount,
    precision_scalar,
    scale_up,
    to_fixed,
    from_fixed,
    collateral_value,
    required_collateral_value,
    is_underwater,
    collateralization_ratio,
)

# Time
from .clock import Clock, SystemClock, ManualClock

# Oracles
from .oracle import PriceOracle, StaticPriceOracle, TimeSeriesPriceOracle

# Components
from .registry import AdminAuthority, SingleAdmin, PermissionRegistry
from .vault_ledger import VaultLedger
from .redemption_pool import RedemptionPool

# In-memory collaborators
from .tokens import Erc20Token, ClaimToken


__all__ = [
    # Constants
    'CANONICAL_DECIMALS', 'SCALE', 'MIN_COLLATERALIZATION_RATIO',
    'MAX_COLLATERALIZATION_RATIO', 'DEFAULT_COLLATERALIZATION_RATIO',
    # Types
    'Permission', 'PermissionFlags', 'Bond', 'Vault', 'EMPTY_VAULT',
    'Asset', 'BondToken',
    # Errors
    'ProtocolError', 'AuthorizationError', 'LifecycleError', 'PermissionDenied',
    'ValidationError', 'SolvencyError', 'InsufficientResourceError', 'ExternalCallError',
    'Unauthorized', 'BondNotListed', 'AlreadyListed', 'BondMatured', 'BondNotMatured',
    'VaultNotOpen', 'ReentrantCall',
    'DepositCollateralNotAllowed', 'BorrowNotAllowed', 'RepayBorrowNotAllowed',
    'SupplyUnderlyingNotAllowed', 'RedeemUnderlyingNotAllowed',
    'DepositCollateralZero', 'WithdrawCollateralZero', 'LockCollateralZero',
    'FreeCollateralZero', 'BorrowZero', 'RepayBorrowZero', 'SupplyUnderlyingZero',
    'RedeemUnderlyingZero', 'RatioBelowMinimum', 'RatioAboveMaximum', 'DebtCeilingZero',
    'BelowCollateralizationRatio',
    'WithdrawCollateralInsufficientFreeCollateral', 'LockCollateralInsufficientFreeCollateral',
    'FreeCollateralInsufficientLockedCollateral', 'RepayBorrowInsufficientDebt',
    'RepayBorrowInsufficientBalance', 'BorrowDebtCeilingOverflow',
    'RedeemUnderlyingInsufficientUnderlying',
    'TokenTransferFailed', 'MintFailed', 'BurnFailed', 'PriceUnavailable',
    'CompensationFailed',
    # Events
    'BondListed', 'PermissionChanged', 'CollateralizationRatioChanged',
    'DebtCeilingChanged', 'OracleChanged', 'VaultOpened', 'CollateralDeposited',
    'CollateralWithdrawn', 'CollateralLocked', 'CollateralFreed', 'Borrowed',
    'BorrowRepaid', 'SupplyUnderlying', 'RedeemUnderlying',
    # Math
    'check_amount', 'precision_scalar', 'scale_up', 'to_fixed', 'from_fixed',
    'collateral_value', 'required_collateral_value', 'is_underwater',
    'collateralization_ratio',
    # Time
    'Clock', 'SystemClock', 'ManualClock',
    # Oracles
    'PriceOracle', 'StaticPriceOracle', 'TimeSeriesPriceOracle',
    # Components
    'AdminAuthority', 'SingleAdmin', 'PermissionRegistry', 'VaultLedger', 'RedemptionPool',
    # Tokens
    'Erc20Token', 'ClaimToken',
]

__version__ = '0.1.0'
