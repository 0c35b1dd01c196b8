"""Loaded-package table - the process's single record of loaded packages.

Each identity is loaded at most once. Entries are added exactly once and are
never removed or replaced.

Concurrency:
- A short guard lock protects the dictionaries only. It is never held while a
  package is located, created or executed.
- The first thread to request an identity owns that identity's load slot and
  does the work. Other threads wait on the slot, then get the finished handle.
- Loads of different identities never wait on each other.

Cyclic imports get the in-progress handle instead of recursing. This happens
when the owning thread asks for a package it is still loading, or when
waiting would deadlock (thread A loads X and needs Y while thread B loads Y
and needs X). The handle may be partially initialized at that point.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from collections.abc import Hashable
from typing import Any

from .errors import LoaderError
from .errors import PackageLoadError

logger = logging.getLogger(__name__)


class _LoadSlot:
    """In-progress load of one identity."""

    __slots__ = ("key", "owner", "handle", "done", "error")

    def __init__(self, key: Hashable, owner: int):
        self.key = key
        self.owner = owner
        self.handle: Any = None
        self.done = threading.Event()
        self.error: BaseException | None = None


class LoadedPackageTable:
    """Identity -> handle registry with at-most-once loading."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._handles: dict[Hashable, Any] = {}
        self._slots: dict[Hashable, _LoadSlot] = {}
        # thread ident -> slot that thread is currently waiting on
        self._waiting: dict[int, _LoadSlot] = {}

    def get(self, key: Hashable) -> Any | None:
        with self._guard:
            return self._handles.get(key)

    def __contains__(self, key: Hashable) -> bool:
        with self._guard:
            return key in self._handles

    def __len__(self) -> int:
        with self._guard:
            return len(self._handles)

    def items(self) -> list[tuple[Hashable, Any]]:
        with self._guard:
            return list(self._handles.items())

    def _would_deadlock(self, slot: _LoadSlot, me: int) -> bool:
        """Check whether waiting on `slot` closes a cycle of waiting threads.

        Must be called with the guard held.
        """
        seen: set[int] = set()
        owner = slot.owner
        while owner not in seen:
            if owner == me:
                return True
            seen.add(owner)
            blocked_on = self._waiting.get(owner)
            if blocked_on is None:
                return False
            owner = blocked_on.owner
        return False

    def load_once(
        self,
        key: Hashable,
        create: Callable[[], Any],
        execute: Callable[[Any], None],
    ) -> Any:
        """Return the handle for `key`, creating and executing it on first request.

        Args:
            key: Identity of the package
            create: Locates the package and makes a fresh handle
            execute: Runs the package body into the handle

        Returns:
            The handle; the same object for every call with an equal key

        Raises:
            PackageLoadError: Another thread's load of this key failed
            LoaderError: `create` itself requested the key it is creating
            Exception: Whatever `create` or `execute` raised, in the owning thread
        """
        me = threading.get_ident()

        with self._guard:
            handle = self._handles.get(key)
            if handle is not None:
                return handle

            slot = self._slots.get(key)
            if slot is None:
                slot = _LoadSlot(key, me)
                self._slots[key] = slot
                owner = True
            else:
                owner = False
                if slot.owner == me and slot.handle is None:
                    raise LoaderError(f"Package {key} was requested again while its handle was being created")
                if slot.handle is not None and self._would_deadlock(slot, me):
                    logger.debug(f"[pkg:load] cyclic import of {key}, returning in-progress handle")
                    return slot.handle
                self._waiting[me] = slot

        if not owner:
            return self._wait_for(slot, me)

        try:
            handle = create()
            with self._guard:
                slot.handle = handle
            execute(handle)
        except BaseException as e:
            with self._guard:
                del self._slots[key]
                slot.error = e
            slot.done.set()
            raise

        with self._guard:
            self._handles[key] = handle
            del self._slots[key]
        slot.done.set()
        logger.debug(f"[pkg:load] {key} loaded")
        return handle

    def _wait_for(self, slot: _LoadSlot, me: int) -> Any:
        try:
            slot.done.wait()
        finally:
            with self._guard:
                self._waiting.pop(me, None)

        if slot.error is not None:
            raise PackageLoadError(slot.key) from slot.error
        with self._guard:
            return self._handles[slot.key]

    def __repr__(self) -> str:
        return f"LoadedPackageTable({len(self)} loaded)"
