"""
conftest.py - Shared pytest fixtures for termledger tests

Provides common fixtures used across unit and functional tests:
- A fully wired, listed bond with every permission on (``protocol``)
- A listed bond with every permission off (``locked_down``)
- An unlisted bond (``unlisted``)
- Variants with 6- and 8-decimal underlying assets
"""

import pytest

from tests.fakes import deploy


@pytest.fixture
def protocol():
    """Listed bond, every permission on, WETH at $100."""
    return deploy()


@pytest.fixture
def locked_down():
    """Listed bond with every permission still at its default (off)."""
    return deploy(allow_all=False)


@pytest.fixture
def unlisted():
    """Bond whose claim token exists but was never listed."""
    return deploy(listed=False)


@pytest.fixture(params=[6, 8, 18], ids=lambda d: f"underlying{d}")
def any_decimals(request):
    """Listed bond parametrized over the underlying's decimals."""
    return deploy(underlying_decimals=request.param)

