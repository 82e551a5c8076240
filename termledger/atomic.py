"""
atomic.py - All-or-nothing execution for stateful components

Every mutating operation on the registry, the vault ledger and the redemption
pool runs inside ``_atomic()``:

    with self._atomic("deposit_collateral"):
        ...checks...
        self._put(self._vaults, key, new_vault)        # journaled effect
        self._settle(asset.transfer_from(...), TokenTransferFailed, ...)
        self._on_rollback(compensating_call)           # undo for an external effect

If anything inside the block raises, the journal is replayed backwards and
the component's state is exactly what it was before the operation began.

The block also holds the component's RLock, serializing all mutations, and
sets an in-flight flag so that a collaborator calling back into the same
component mid-operation is rejected with ReentrantCall. Public reads take the
same lock through ``_reading()``, so no other thread observes an operation
before it commits or rolls back.
"""

from __future__ import annotations
from contextlib import contextmanager
from threading import RLock
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Type

from .core import CompensationFailed, ExternalCallError, ProtocolError, ReentrantCall


_MISSING = object()


class AtomicComponent:
    """
    Base class providing the undo journal, reentrancy guard and verbose output.

    Subclasses keep their owned state in plain dicts and route every write
    through ``_put`` while inside ``_atomic``.
    """

    def __init__(self, name: str, verbose: bool = True):
        self.name = name
        self.verbose = verbose
        self.events: List[Any] = []
        self._lock = RLock()
        self._in_flight: Optional[str] = None
        self._journal: List[Callable[[], None]] = []

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[None]:
        with self._lock:
            if self._in_flight is not None:
                raise ReentrantCall(
                    f"{self.name}.{operation} called while {self._in_flight} is in flight"
                )
            self._in_flight = operation
            self._journal = []
            try:
                yield
            except BaseException as exc:
                self._rollback(exc)
                if self.verbose and isinstance(exc, ProtocolError):
                    print(f"✗ REJECTED {self.name}.{operation}: {exc.code} {exc}")
                raise
            else:
                if self.verbose:
                    print(f"✓ APPLIED {self.name}.{operation}")
            finally:
                self._journal = []
                self._in_flight = None

    @contextmanager
    def _reading(self) -> Iterator[None]:
        """
        Hold the component lock for a read.

        Other threads wait until any in-flight operation has committed or
        rolled back. The lock is reentrant, so a collaborator called from
        inside an operation may still read on the same thread.
        """
        with self._lock:
            yield

    def _rollback(self, cause: BaseException) -> None:
        """Replay the journal backwards. Compensation failures are reported after all undos ran."""
        failures: List[BaseException] = []
        for undo in reversed(self._journal):
            try:
                undo()
            except CompensationFailed as exc:
                failures.append(exc)
        if failures:
            raise CompensationFailed(
                f"{len(failures)} compensating call(s) failed while rolling back: {failures[0]}"
            ) from cause

    def _put(self, store: Dict[Hashable, Any], key: Hashable, value: Any) -> None:
        """Write ``store[key] = value`` and journal the previous value."""
        previous = store.get(key, _MISSING)

        def undo() -> None:
            if previous is _MISSING:
                store.pop(key, None)
            else:
                store[key] = previous

        self._journal.append(undo)
        store[key] = value

    def _on_rollback(self, call: Callable[[], bool], description: str) -> None:
        """Register a compensating external call to issue if the operation later fails."""

        def undo() -> None:
            try:
                ok = call()
            except Exception as exc:
                raise CompensationFailed(description) from exc
            if not ok:
                raise CompensationFailed(description)

        self._journal.append(undo)

    @staticmethod
    def _settle(ok: bool, error: Type[ExternalCallError], message: str) -> None:
        """Turn a collaborator's boolean result into an explicit error."""
        if not ok:
            raise error(message)

    def _emit(self, event: Any) -> None:
        self._journal.append(self.events.pop)
        self.events.append(event)
        if self.verbose:
            print(f"  event {event!r}")
