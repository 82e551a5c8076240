#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Fixed-Term Lending Step by Step

This is a pedagogical demonstration of the lending ledger core. Each step
builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation     - Tokens, the registry, listing a bond, opening a vault
  4-6:  Borrowing      - Locking collateral, minting claims, rejections
  7-8:  Risk           - Oracle prices, the solvency predicate, repayment
  9-10: Maturity       - Supply closes, redemption opens, conservation proof

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from termledger import (
    # Components
    PermissionRegistry, SingleAdmin, VaultLedger, RedemptionPool,
    # Collaborators
    Erc20Token, ClaimToken, StaticPriceOracle, ManualClock,
    # Types
    Permission, ProtocolError,
    # Math
    to_fixed, from_fixed,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: int = 1_735_722_000            # 2025-01-01 09:00 UTC
    term_seconds: int = 90 * 24 * 3600          # 90-day bond

    weth_price: str = "100"
    crash_price: str = "12"

    borrower_weth: str = "10"
    borrow_amount: str = "100"
    maker_usdc: str = "1000"


CONFIG = DemoConfig()
ADMIN = "admin"

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


@dataclass
class World:
    clock: ManualClock
    weth: Erc20Token
    usdc: Erc20Token
    fy_usdc: ClaimToken
    oracle: StaticPriceOracle
    registry: PermissionRegistry
    ledger: VaultLedger
    pool: RedemptionPool


def show_vault(world: World, account: str):
    vault = world.ledger.get_vault(world.fy_usdc, account)
    print(f"    {account}: open={vault.is_open} "
          f"free={from_fixed(vault.free_collateral)} WETH "
          f"locked={from_fixed(vault.locked_collateral)} WETH "
          f"debt={from_fixed(vault.debt)} fyUSDC")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_wiring() -> World:
    """Build the tokens and the three components."""
    step_header(1, "Wiring the Protocol",
        "See the three components and the collaborators they consume.")

    print("""
    The ledger core has three components:

    PermissionRegistry - which bonds exist, and which actions are allowed
    VaultLedger        - collateral and debt per (bond, account)
    RedemptionPool     - underlying <-> claim tokens around maturity

    Tokens, the price oracle and the clock are collaborators: the core calls
    them but does not own them.
    """)

    clock = ManualClock(CONFIG.start_time)
    weth = Erc20Token("WETH", decimals=18)
    usdc = Erc20Token("USDC", decimals=6)
    fy_usdc = ClaimToken(
        "fyUSDC",
        expiration_time=CONFIG.start_time + CONFIG.term_seconds,
        underlying=usdc,
        collateral=weth,
    )
    oracle = StaticPriceOracle({"WETH": to_fixed(CONFIG.weth_price)})

    registry = PermissionRegistry(SingleAdmin(ADMIN), oracle=oracle)
    ledger = VaultLedger(registry, clock)
    pool = RedemptionPool(registry, clock)
    fy_usdc.authorize_minter(ledger.address)
    fy_usdc.authorize_minter(pool.address)

    print(f"    {fy_usdc!r}")
    print(f"    underlying precision scalar: {fy_usdc.underlying_precision_scalar()}")
    print(f"    {registry!r}, {ledger!r}, {pool!r}")

    return World(clock, weth, usdc, fy_usdc, oracle, registry, ledger, pool)


def step_02_listing(world: World):
    """List the bond and switch its permissions on."""
    step_header(2, "Listing a Bond",
        "Understand that unlisted bonds reject everything, and that flags start off.")

    section_header("Before listing")
    try:
        world.ledger.open_vault(world.fy_usdc, "brad")
    except ProtocolError as exc:
        print(f"    Rejected as expected: {exc.code}")

    section_header("Listing")
    world.registry.list_bond(ADMIN, world.fy_usdc)
    world.registry.set_debt_ceiling(ADMIN, world.fy_usdc, to_fixed("1000000"))
    for permission in Permission:
        print(f"    {permission.value:28s} {world.registry.get_permission(world.fy_usdc, permission)}")

    section_header("Only the admin may change the registry")
    try:
        world.registry.set_permission("eve", world.fy_usdc, Permission.BORROW, True)
    except ProtocolError as exc:
        print(f"    Rejected as expected: {exc.code}")

    for permission in Permission:
        world.registry.set_permission(ADMIN, world.fy_usdc, permission, True)


def step_03_open_and_deposit(world: World):
    """Open a vault and deposit collateral."""
    step_header(3, "Opening a Vault",
        "Deposit collateral into custody; it starts out free (withdrawable).")

    amount = to_fixed(CONFIG.borrower_weth)
    world.ledger.open_vault(world.fy_usdc, "brad")
    world.weth.issue("brad", amount)
    world.weth.approve("brad", world.ledger.address, amount)
    world.ledger.deposit_collateral(world.fy_usdc, "brad", amount)

    show_vault(world, "brad")
    print(f"    ledger custody: {from_fixed(world.weth.balance_of(world.ledger.address))} WETH")


# ============================================================================
# PHASE 2: BORROWING (Steps 4-6)
# ============================================================================

def step_04_borrow(world: World):
    """Lock collateral and borrow claim tokens."""
    step_header(4, "Borrowing",
        "Only locked collateral backs debt, at the bond's required ratio.")

    world.ledger.lock_collateral(world.fy_usdc, "brad", to_fixed(CONFIG.borrower_weth))
    world.ledger.borrow(world.fy_usdc, "brad", to_fixed(CONFIG.borrow_amount))

    show_vault(world, "brad")
    ratio = world.ledger.get_current_collateralization_ratio(world.fy_usdc, "brad")
    required = world.registry.get_collateralization_ratio(world.fy_usdc)
    print(f"    current ratio:  {from_fixed(ratio) * 100}%")
    print(f"    required ratio: {from_fixed(required) * 100}%")


def step_05_rejections(world: World):
    """Show that rejected operations leave no trace."""
    step_header(5, "Rejections Are Atomic",
        "A rejected operation changes nothing: no state, no balances, no events.")

    events_before = len(world.ledger.events)

    section_header("Borrowing beyond the ratio")
    try:
        world.ledger.borrow(world.fy_usdc, "brad", to_fixed("1000"))
    except ProtocolError as exc:
        print(f"    Rejected: {exc.code}")

    section_header("Withdrawing locked collateral")
    try:
        world.ledger.withdraw_collateral(world.fy_usdc, "brad", to_fixed("1"))
    except ProtocolError as exc:
        print(f"    Rejected: {exc.code}")

    show_vault(world, "brad")
    print(f"    events recorded by the rejections: {len(world.ledger.events) - events_before}")


def step_06_supply(world: World):
    """A maker supplies underlying before maturity."""
    step_header(6, "Supplying Underlying",
        "Underlying in native decimals becomes 18-decimal claim tokens.")

    amount = to_fixed(CONFIG.maker_usdc, 6)
    world.usdc.issue("maker", amount)
    world.usdc.approve("maker", world.pool.address, amount)
    minted = world.pool.supply_underlying(world.fy_usdc, "maker", amount)

    print(f"    supplied {amount} USDC base units ({CONFIG.maker_usdc} USDC)")
    print(f"    minted   {minted} fyUSDC base units ({from_fixed(minted)} fyUSDC)")
    print(f"    pool supply: {world.pool.total_underlying_supply(world.fy_usdc)}")


# ============================================================================
# PHASE 3: RISK (Steps 7-8)
# ============================================================================

def step_07_price_crash(world: World):
    """Drop the collateral price and watch the solvency predicate flip."""
    step_header(7, "Solvency",
        "underwater <=> locked x price < debt x required ratio")

    for price in (CONFIG.weth_price, CONFIG.crash_price):
        world.oracle.update_price("WETH", to_fixed(price))
        ratio = world.ledger.get_current_collateralization_ratio(world.fy_usdc, "brad")
        underwater = world.ledger.is_account_underwater(world.fy_usdc, "brad")
        print(f"    WETH @ ${price:>4}: ratio {from_fixed(ratio) * 100}%  underwater={underwater}")


def step_08_repay(world: World):
    """Repay the debt and release the collateral."""
    step_header(8, "Repaying",
        "Burning claim tokens retires debt; without debt, collateral moves freely.")

    world.ledger.repay_borrow(world.fy_usdc, "brad", to_fixed(CONFIG.borrow_amount))
    world.ledger.free_collateral(world.fy_usdc, "brad", to_fixed(CONFIG.borrower_weth))
    world.ledger.withdraw_collateral(world.fy_usdc, "brad", to_fixed(CONFIG.borrower_weth))
    show_vault(world, "brad")
    print(f"    brad holds {from_fixed(world.weth.balance_of('brad'))} WETH again")


# ============================================================================
# PHASE 4: MATURITY (Steps 9-10)
# ============================================================================

def step_09_maturity(world: World):
    """Cross the expiration time."""
    step_header(9, "Maturity",
        "Supply closes and redemption opens at exactly the same instant.")

    world.clock.advance_to(world.fy_usdc.expiration_time())

    try:
        world.pool.supply_underlying(world.fy_usdc, "maker", 1)
    except ProtocolError as exc:
        print(f"    supply after maturity rejected: {exc.code}")

    amount = to_fixed(CONFIG.maker_usdc, 6)
    burned = world.pool.redeem_underlying(world.fy_usdc, "maker", amount)
    print(f"    maker redeemed {CONFIG.maker_usdc} USDC, burning {from_fixed(burned)} fyUSDC")


def step_10_conservation(world: World):
    """Everything that went in came back out."""
    step_header(10, "Conservation",
        "No value was created or destroyed along the way.")

    checks = [
        ("fyUSDC supply", world.fy_usdc.total_supply, 0),
        ("pool underlying", world.pool.total_underlying_supply(world.fy_usdc), 0),
        ("ledger custody", world.ledger.collateral_in_custody(world.fy_usdc), 0),
        ("maker USDC", world.usdc.balance_of("maker"), to_fixed(CONFIG.maker_usdc, 6)),
        ("brad WETH", world.weth.balance_of("brad"), to_fixed(CONFIG.borrower_weth)),
    ]
    for name, actual, expected in checks:
        mark = "✓" if actual == expected else "✗"
        print(f"    {mark} {name:16s} {actual}")

    print(f"\n    ledger events: {len(world.ledger.events)}, pool events: {len(world.pool.events)}")


def main():
    print("=" * 70)
    print("       FIXED-TERM LENDING LEDGER: INTERACTIVE TUTORIAL")
    print("=" * 70)

    world = step_01_wiring()
    wait_for_enter()

    step_02_listing(world)
    wait_for_enter()

    step_03_open_and_deposit(world)
    wait_for_enter()

    step_04_borrow(world)
    wait_for_enter()

    step_05_rejections(world)
    wait_for_enter()

    step_06_supply(world)
    wait_for_enter()

    step_07_price_crash(world)
    wait_for_enter()

    step_08_repay(world)
    wait_for_enter()

    step_09_maturity(world)
    wait_for_enter()

    step_10_conservation(world)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:

    FOUNDATION
      - Bonds must be listed, and every action has its own flag
      - Only the admin changes the registry

    BORROWING
      - Free collateral is withdrawable; locked collateral backs debt
      - Rejected operations are all-or-nothing

    RISK
      - Solvency compares locked value with debt x required ratio
      - A vault without debt is never underwater

    MATURITY
      - Supply before, redemption after: never both
      - Precision scaling round-trips exactly

    Next steps:
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
