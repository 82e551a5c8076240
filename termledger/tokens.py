"""
tokens.py - In-memory token collaborators

The ledger core consumes tokens; it does not own their balances. These
classes are the in-memory stand-ins used by simulations, the demo and the
tests:

- Erc20Token: fungible asset with balances, allowances and a fixed decimals
  count (collateral and underlying assets)
- ClaimToken: the bond's maturity-dated claim token, mintable and burnable
  only by authorised minters (the vault ledger and the redemption pool)

Like their on-chain counterparts, transfer/mint/burn report failure by
returning False and leave balances untouched when they do.
"""

from __future__ import annotations
from typing import Dict, Optional, Set, Tuple

from .core import Asset
from .precision import check_amount, precision_scalar


class Erc20Token:
    """
    Fungible token with balances and allowances.

    Conservation: the sum of all balances always equals ``total_supply``.
    """

    def __init__(
        self,
        symbol: str,
        decimals: int = 18,
        name: Optional[str] = None,
        address: Optional[str] = None,
    ):
        if not symbol or not symbol.strip():
            raise ValueError("Token symbol cannot be empty")
        precision_scalar(decimals)  # validates the range
        self.symbol = symbol
        self.name = name or symbol
        self.address = address or f"token:{symbol}"
        self._decimals = decimals
        self.total_supply = 0
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[Tuple[str, str], int] = {}

    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Let ``spender`` pull up to ``amount`` from ``owner``."""
        self.allowances[(owner, spender)] = check_amount(amount)
        return True

    def issue(self, to: str, amount: int) -> None:
        """Create new tokens out of thin air (faucet for simulations)."""
        check_amount(amount)
        self.balances[to] = self.balance_of(to) + amount
        self.total_supply += amount

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move tokens from sender to recipient. Returns False on insufficient balance."""
        check_amount(amount)
        if self.balance_of(sender) < amount:
            return False
        self._move(sender, recipient, amount)
        return True

    def transfer_from(self, spender: str, sender: str, recipient: str, amount: int) -> bool:
        """
        Move tokens on behalf of ``sender`` using the spender's allowance.

        Returns False if the allowance or the balance is insufficient.
        """
        check_amount(amount)
        if spender != sender:
            allowed = self.allowance(sender, spender)
            if allowed < amount:
                return False
        if self.balance_of(sender) < amount:
            return False
        if spender != sender:
            self.allowances[(sender, spender)] = self.allowance(sender, spender) - amount
        self._move(sender, recipient, amount)
        return True

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount

    def __repr__(self):
        return f"Erc20Token({self.symbol}, decimals={self._decimals}, supply={self.total_supply})"


class ClaimToken(Erc20Token):
    """
    Maturity-dated claim token (18 decimals) that identifies a bond.

    The precision scalars for its underlying and collateral assets are read
    from their ``decimals()`` at construction.
    """

    def __init__(
        self,
        symbol: str,
        expiration_time: int,
        underlying: Asset,
        collateral: Asset,
        name: Optional[str] = None,
        address: Optional[str] = None,
    ):
        super().__init__(symbol, decimals=18, name=name, address=address)
        self._expiration_time = expiration_time
        self.underlying = underlying
        self.collateral = collateral
        self._underlying_precision_scalar = precision_scalar(underlying.decimals())
        self._collateral_precision_scalar = precision_scalar(collateral.decimals())
        self.minters: Set[str] = set()

    def expiration_time(self) -> int:
        return self._expiration_time

    def underlying_precision_scalar(self) -> int:
        return self._underlying_precision_scalar

    def collateral_precision_scalar(self) -> int:
        return self._collateral_precision_scalar

    def authorize_minter(self, minter: str) -> None:
        self.minters.add(minter)

    def revoke_minter(self, minter: str) -> None:
        self.minters.discard(minter)

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Mint to ``to``. Returns False if ``minter`` is not authorised."""
        check_amount(amount)
        if minter not in self.minters:
            return False
        self.issue(to, amount)
        return True

    def burn(self, minter: str, holder: str, amount: int) -> bool:
        """Burn from ``holder``. Returns False if unauthorised or the balance is short."""
        check_amount(amount)
        if minter not in self.minters or self.balance_of(holder) < amount:
            return False
        self.balances[holder] = self.balance_of(holder) - amount
        self.total_supply -= amount
        return True

    def __repr__(self):
        return (
            f"ClaimToken({self.symbol}, expires={self._expiration_time}, "
            f"underlying={self.underlying.symbol}, collateral={self.collateral.symbol})"
        )
