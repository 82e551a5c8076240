"""
vault_ledger.py - Collateral and debt ledger keyed by (bond, account)

The VaultLedger is the only module that mutates vault records. It holds the
collateral asset in custody on behalf of vault owners and authorises every
change to debt.

Key responsibilities:
    - Open vaults and move collateral in (deposit), out (withdraw) and between
      the free and locked buckets
    - Price locked collateral through the registry's oracle and answer the
      solvency predicate ``is_account_underwater``
    - Mint claim tokens against locked collateral (borrow) and burn them to
      retire debt (repay_borrow)

Every mutation consults the PermissionRegistry, updates ledger state, and only
then issues the external token call (checks-effects-interactions). A failed
or raising external call rolls the whole operation back.

Solvency rule:
    underwater  <=>  locked * collateral_scalar * price  <  debt * required_ratio

A vault exactly at the required ratio is not underwater.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Dict, Optional, Tuple

from .atomic import AtomicComponent
from .clock import Clock
from .core import (
    BondToken, Permission, Vault, EMPTY_VAULT,
    # Exceptions
    BelowCollateralizationRatio, BondMatured, BorrowDebtCeilingOverflow, BorrowNotAllowed,
    BorrowZero, BurnFailed, DepositCollateralNotAllowed, DepositCollateralZero,
    FreeCollateralInsufficientLockedCollateral, FreeCollateralZero,
    LockCollateralInsufficientFreeCollateral, LockCollateralZero, MintFailed,
    PriceUnavailable, RepayBorrowInsufficientBalance, RepayBorrowInsufficientDebt,
    RepayBorrowNotAllowed, RepayBorrowZero, TokenTransferFailed, VaultNotOpen,
    WithdrawCollateralInsufficientFreeCollateral, WithdrawCollateralZero,
    # Events
    Borrowed, BorrowRepaid, CollateralDeposited, CollateralFreed, CollateralLocked,
    CollateralWithdrawn, VaultOpened,
)
from .precision import check_amount, collateralization_ratio, is_underwater
from .registry import PermissionRegistry


VaultKey = Tuple[str, str]


class VaultLedger(AtomicComponent):
    """
    Per-(bond, account) vaults with collateral custody and debt accounting.

    Thread Safety:
        Mutations and reads are serialized by the component lock. Another
        thread never observes an operation until it has committed or rolled
        back; a collaborator called mid-operation may read on the same thread.

    Example:
        ledger = VaultLedger(registry, clock, verbose=False)
        ledger.open_vault(fy_token, "alice")
        ledger.deposit_collateral(fy_token, "alice", to_fixed("10"))
        ledger.lock_collateral(fy_token, "alice", to_fixed("10"))
        ledger.borrow(fy_token, "alice", to_fixed("100"))
    """

    def __init__(
        self,
        registry: PermissionRegistry,
        clock: Clock,
        address: str = "vault-ledger",
        verbose: bool = True,
    ):
        super().__init__("vault_ledger", verbose)
        self.registry = registry
        self.clock = clock
        self.address = address
        self._vaults: Dict[VaultKey, Vault] = {}
        self._total_debt: Dict[str, int] = {}
        self._custody: Dict[str, int] = {}

    # ========================================================================
    # READS
    # ========================================================================

    def get_vault(self, bond: BondToken, account: str) -> Vault:
        """Return the vault record (an empty, unopened vault for unknown keys)."""
        with self._reading():
            return self._vaults.get((bond.address, account), EMPTY_VAULT)

    def is_vault_open(self, bond: BondToken, account: str) -> bool:
        return self.get_vault(bond, account).is_open

    def total_debt(self, bond: BondToken) -> int:
        with self._reading():
            return self._total_debt.get(bond.address, 0)

    def collateral_in_custody(self, bond: BondToken) -> int:
        """Collateral held for all vaults of the bond (free + locked)."""
        with self._reading():
            return self._custody.get(bond.address, 0)

    def _collateral_price(self, bond: BondToken) -> int:
        oracle = self.registry.oracle
        if oracle is None:
            raise PriceUnavailable("No price oracle configured")
        symbol = bond.collateral.symbol
        price = oracle.get_adjusted_price(symbol)
        if not price:
            raise PriceUnavailable(f"No price for {symbol}")
        return price

    def _would_be_underwater(self, bond: BondToken, locked_collateral: int, debt: int) -> bool:
        if debt == 0:
            return False
        return is_underwater(
            locked_collateral,
            bond.collateral_precision_scalar(),
            self._collateral_price(bond),
            debt,
            self.registry.get_collateralization_ratio(bond),
        )

    def is_account_underwater(self, bond: BondToken, account: str) -> bool:
        """
        Solvency predicate.

        False for an unopened vault or a vault without debt; the oracle is
        only consulted when there is debt to cover.

        Raises:
            PriceUnavailable: If debt is outstanding and no price is known
        """
        with self._reading():
            vault = self.get_vault(bond, account)
            if not vault.is_open or vault.debt == 0:
                return False
            return self._would_be_underwater(bond, vault.locked_collateral, vault.debt)

    def get_current_collateralization_ratio(self, bond: BondToken, account: str) -> int:
        """Ratio mantissa of the vault's locked collateral to its debt (0 without debt)."""
        with self._reading():
            vault = self.get_vault(bond, account)
            return self.get_hypothetical_collateralization_ratio(
                bond, account, vault.locked_collateral, vault.debt
            )

    def get_hypothetical_collateralization_ratio(
        self,
        bond: BondToken,
        account: str,
        locked_collateral: int,
        debt: int,
    ) -> int:
        """
        Ratio mantissa the vault would have with the given locked collateral and debt.

        Raises:
            VaultNotOpen: If the vault is not open
        """
        check_amount(locked_collateral, "locked_collateral")
        check_amount(debt, "debt")
        if not self.is_vault_open(bond, account):
            raise VaultNotOpen(f"Vault {bond.address}/{account} is not open")
        if debt == 0:
            return 0
        return collateralization_ratio(
            locked_collateral,
            bond.collateral_precision_scalar(),
            self._collateral_price(bond),
            debt,
        )

    # ========================================================================
    # VAULT LIFECYCLE
    # ========================================================================

    def _require_open(self, bond: BondToken, account: str) -> Vault:
        vault = self.get_vault(bond, account)
        if not vault.is_open:
            raise VaultNotOpen(f"Vault {bond.address}/{account} is not open")
        return vault

    def open_vault(self, bond: BondToken, account: str) -> None:
        """
        Open the account's vault for a bond. Reopening is a no-op.

        Raises:
            BondNotListed: If the bond is not listed
        """
        with self._atomic("open_vault"):
            self.registry.require_listed(bond)
            vault = self.get_vault(bond, account)
            if vault.is_open:
                return
            self._put(self._vaults, (bond.address, account), replace(vault, is_open=True))
            self._emit(VaultOpened(bond.address, account))

    # ========================================================================
    # COLLATERAL
    # ========================================================================

    def deposit_collateral(self, bond: BondToken, account: str, amount: int) -> None:
        """
        Pull collateral from the account into custody, credited as free collateral.

        The account must have approved this ledger's address on the collateral asset.

        Raises:
            BondNotListed, VaultNotOpen, DepositCollateralZero,
            DepositCollateralNotAllowed, TokenTransferFailed
        """
        check_amount(amount)
        with self._atomic("deposit_collateral"):
            self.registry.require_listed(bond)
            vault = self._require_open(bond, account)
            if amount == 0:
                raise DepositCollateralZero("Cannot deposit zero collateral")
            if not self.registry.is_allowed(bond, Permission.DEPOSIT_COLLATERAL):
                raise DepositCollateralNotAllowed(f"Deposits are disabled for {bond.address}")

            self._put(self._vaults, (bond.address, account),
                      replace(vault, free_collateral=vault.free_collateral + amount))
            self._put(self._custody, bond.address, self.collateral_in_custody(bond) + amount)

            self._settle(
                bond.collateral.transfer_from(self.address, account, self.address, amount),
                TokenTransferFailed,
                f"{bond.collateral.symbol} transfer of {amount} from {account} failed",
            )
            self._emit(CollateralDeposited(bond.address, account, amount))

    def withdraw_collateral(self, bond: BondToken, account: str, amount: int) -> None:
        """
        Send free collateral back to the account.

        Raises:
            BondNotListed, VaultNotOpen, WithdrawCollateralZero,
            WithdrawCollateralInsufficientFreeCollateral, TokenTransferFailed
        """
        check_amount(amount)
        with self._atomic("withdraw_collateral"):
            self.registry.require_listed(bond)
            vault = self._require_open(bond, account)
            if amount == 0:
                raise WithdrawCollateralZero("Cannot withdraw zero collateral")
            if amount > vault.free_collateral:
                raise WithdrawCollateralInsufficientFreeCollateral(
                    f"Withdraw {amount} exceeds free collateral {vault.free_collateral}"
                )

            self._put(self._vaults, (bond.address, account),
                      replace(vault, free_collateral=vault.free_collateral - amount))
            self._put(self._custody, bond.address, self.collateral_in_custody(bond) - amount)

            self._settle(
                bond.collateral.transfer(self.address, account, amount),
                TokenTransferFailed,
                f"{bond.collateral.symbol} transfer of {amount} to {account} failed",
            )
            self._emit(CollateralWithdrawn(bond.address, account, amount))

    def lock_collateral(self, bond: BondToken, account: str, amount: int) -> None:
        """
        Move free collateral into the locked bucket backing debt.

        Raises:
            BondNotListed, VaultNotOpen, LockCollateralZero, LockCollateralInsufficientFreeCollateral
        """
        check_amount(amount)
        with self._atomic("lock_collateral"):
            self.registry.require_listed(bond)
            vault = self._require_open(bond, account)
            if amount == 0:
                raise LockCollateralZero("Cannot lock zero collateral")
            if amount > vault.free_collateral:
                raise LockCollateralInsufficientFreeCollateral(
                    f"Lock {amount} exceeds free collateral {vault.free_collateral}"
                )
            self._put(self._vaults, (bond.address, account), replace(
                vault,
                free_collateral=vault.free_collateral - amount,
                locked_collateral=vault.locked_collateral + amount,
            ))
            self._emit(CollateralLocked(bond.address, account, amount))

    def free_collateral(self, bond: BondToken, account: str, amount: int) -> None:
        """
        Move locked collateral back to the free bucket.

        With outstanding debt the remaining locked collateral must still meet
        the bond's required ratio.

        Raises:
            BondNotListed, VaultNotOpen, FreeCollateralZero, FreeCollateralInsufficientLockedCollateral,
            BelowCollateralizationRatio, PriceUnavailable
        """
        check_amount(amount)
        with self._atomic("free_collateral"):
            self.registry.require_listed(bond)
            vault = self._require_open(bond, account)
            if amount == 0:
                raise FreeCollateralZero("Cannot free zero collateral")
            if amount > vault.locked_collateral:
                raise FreeCollateralInsufficientLockedCollateral(
                    f"Free {amount} exceeds locked collateral {vault.locked_collateral}"
                )
            remaining = vault.locked_collateral - amount
            if self._would_be_underwater(bond, remaining, vault.debt):
                raise BelowCollateralizationRatio(
                    f"Freeing {amount} would leave {bond.address}/{account} below the required ratio"
                )
            self._put(self._vaults, (bond.address, account), replace(
                vault,
                free_collateral=vault.free_collateral + amount,
                locked_collateral=remaining,
            ))
            self._emit(CollateralFreed(bond.address, account, amount))

    # ========================================================================
    # DEBT
    # ========================================================================

    def borrow(self, bond: BondToken, account: str, amount: int) -> None:
        """
        Mint claim tokens to the account against its locked collateral.

        Raises:
            BondNotListed, BondMatured, VaultNotOpen, BorrowZero, BorrowNotAllowed,
            BorrowDebtCeilingOverflow, BelowCollateralizationRatio, PriceUnavailable,
            MintFailed
        """
        check_amount(amount)
        with self._atomic("borrow"):
            self.registry.require_listed(bond)
            if self.clock.now() >= bond.expiration_time():
                raise BondMatured(f"Bond {bond.address} has matured")
            vault = self._require_open(bond, account)
            if amount == 0:
                raise BorrowZero("Cannot borrow zero")
            if not self.registry.is_allowed(bond, Permission.BORROW):
                raise BorrowNotAllowed(f"Borrowing is disabled for {bond.address}")

            new_total_debt = self.total_debt(bond) + amount
            ceiling = self.registry.get_debt_ceiling(bond)
            if new_total_debt > ceiling:
                raise BorrowDebtCeilingOverflow(
                    f"Total debt {new_total_debt} would exceed the ceiling {ceiling}"
                )
            new_debt = vault.debt + amount
            if self._would_be_underwater(bond, vault.locked_collateral, new_debt):
                raise BelowCollateralizationRatio(
                    f"Borrowing {amount} would leave {bond.address}/{account} below the required ratio"
                )

            self._put(self._vaults, (bond.address, account), replace(vault, debt=new_debt))
            self._put(self._total_debt, bond.address, new_total_debt)

            self._settle(
                bond.mint(self.address, account, amount),
                MintFailed,
                f"Minting {amount} {bond.symbol} to {account} failed",
            )
            self._emit(Borrowed(bond.address, account, amount))

    def repay_borrow(
        self,
        bond: BondToken,
        account: str,
        amount: int,
        payer: Optional[str] = None,
    ) -> None:
        """
        Burn claim tokens from the payer to retire the account's debt.

        ``payer`` defaults to the account itself; anyone may repay on behalf of
        a borrower. Repayment stays possible after maturity.

        Raises:
            BondNotListed, RepayBorrowZero, RepayBorrowNotAllowed, VaultNotOpen,
            RepayBorrowInsufficientDebt, RepayBorrowInsufficientBalance, BurnFailed
        """
        check_amount(amount)
        payer = account if payer is None else payer
        with self._atomic("repay_borrow"):
            self.registry.require_listed(bond)
            if amount == 0:
                raise RepayBorrowZero("Cannot repay zero")
            if not self.registry.is_allowed(bond, Permission.REPAY_BORROW):
                raise RepayBorrowNotAllowed(f"Repayments are disabled for {bond.address}")
            vault = self._require_open(bond, account)
            if amount > vault.debt:
                raise RepayBorrowInsufficientDebt(
                    f"Repay {amount} exceeds debt {vault.debt}"
                )
            if bond.balance_of(payer) < amount:
                raise RepayBorrowInsufficientBalance(
                    f"{payer} holds {bond.balance_of(payer)} {bond.symbol}, needs {amount}"
                )

            new_debt = vault.debt - amount
            self._put(self._vaults, (bond.address, account), replace(vault, debt=new_debt))
            self._put(self._total_debt, bond.address, self.total_debt(bond) - amount)

            self._settle(
                bond.burn(self.address, payer, amount),
                BurnFailed,
                f"Burning {amount} {bond.symbol} from {payer} failed",
            )
            self._emit(BorrowRepaid(bond.address, payer, account, amount, new_debt))

    def __repr__(self):
        open_vaults = sum(1 for v in self._vaults.values() if v.is_open)
        return f"VaultLedger({open_vaults} open vaults)"
