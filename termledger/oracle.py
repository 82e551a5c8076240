"""
oracle.py - Price oracle gateways for solvency checks

The vault ledger values locked collateral through a price oracle. The oracle
is an external collaborator; this module defines its interface and two
in-memory implementations for simulations and tests.

Classes:
- PriceOracle: Protocol defining the gateway interface
- StaticPriceOracle: Time-independent prices
- TimeSeriesPriceOracle: Time-varying prices read at the clock's current time

All prices are 18-decimal mantissas quoted in the unit the claim token is
denominated in.
"""

from __future__ import annotations
from bisect import bisect_right
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

from .clock import Clock
from .precision import check_amount


@runtime_checkable
class PriceOracle(Protocol):
    """
    Protocol for price oracle gateways.

    Returns None when no price is known for the symbol.
    """

    def get_adjusted_price(self, symbol: str) -> Optional[int]:
        ...


class StaticPriceOracle:
    """
    Oracle with static prices (time-independent).

    Prices remain constant until explicitly updated.
    """

    def __init__(self, prices: Optional[Dict[str, int]] = None):
        """
        Initialize with a static price map.

        Args:
            prices: Dictionary mapping asset symbols to price mantissas
        """
        self.prices: Dict[str, int] = {}
        for symbol, price in (prices or {}).items():
            self.update_price(symbol, price)

    def get_adjusted_price(self, symbol: str) -> Optional[int]:
        return self.prices.get(symbol)

    def update_price(self, symbol: str, price: int) -> None:
        """Update the price of an asset."""
        self.prices[symbol] = check_amount(price, "price")

    def update_prices(self, prices: Dict[str, int]) -> None:
        """Update multiple prices at once."""
        for symbol, price in prices.items():
            self.update_price(symbol, price)

    def __repr__(self):
        return f"StaticPriceOracle({len(self.prices)} prices)"


class TimeSeriesPriceOracle:
    """
    Oracle with time-varying prices.

    Stores historical observations and answers with the most recent price at
    or before the clock's current time.
    """

    def __init__(
        self,
        clock: Clock,
        price_paths: Optional[Dict[str, List[Tuple[int, int]]]] = None,
    ):
        """
        Initialize the oracle.

        Args:
            clock: Source of the current time
            price_paths: Optional dict mapping symbols to lists of (timestamp, price)

        Example:
            oracle = TimeSeriesPriceOracle(clock, {
                'WETH': [(t0, to_fixed("100")), (t1, to_fixed("12"))],
            })
        """
        self.clock = clock
        self.price_history: Dict[str, List[Tuple[int, int]]] = {}

        if price_paths:
            for symbol, path in price_paths.items():
                for timestamp, price in path:
                    self.add_price(symbol, timestamp, price)

    def add_price(self, symbol: str, timestamp: int, price: int) -> None:
        """Add a price observation for an asset at a specific time."""
        check_amount(price, "price")
        history = self.price_history.setdefault(symbol, [])
        history.append((timestamp, price))
        history.sort(key=lambda x: x[0])

    def get_price_at(self, symbol: str, timestamp: int) -> Optional[int]:
        """
        Get the price at or before the specified timestamp.

        Uses binary search for O(log n) lookup.
        """
        history = self.price_history.get(symbol)
        if not history:
            return None

        timestamps = [ts for ts, _ in history]
        idx = bisect_right(timestamps, timestamp)
        if idx == 0:
            return None
        return history[idx - 1][1]

    def get_adjusted_price(self, symbol: str) -> Optional[int]:
        return self.get_price_at(symbol, self.clock.now())

    def __repr__(self):
        total_observations = sum(len(h) for h in self.price_history.values())
        return f"TimeSeriesPriceOracle({len(self.price_history)} assets, {total_observations} observations)"
