from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Protocol

from portalgate.core.identity.models import IdentitySnapshot, Principal
from portalgate.core.logger import get_logger

Listener = Callable[[IdentitySnapshot], None]


class IdentityProvider(Protocol):
    def snapshot(self) -> IdentitySnapshot: ...

    def subscribe(self, listener: Listener) -> Callable[[], None]: ...

    def sign_out(self) -> None: ...


class InMemoryIdentityProvider:
    """
    Observable identity holder.

    Starts in the loading state until ``sign_in`` or ``finish_loading`` is called.
    ``revoke`` is the host's hook into the real identity backend; if it raises,
    ``sign_out`` raises and the local identity is left untouched.
    """

    def __init__(self, *, revoke: Optional[Callable[[Principal], None]] = None, logger: Optional[logging.Logger] = None):
        self._revoke = revoke
        self.logger = logger or get_logger("identity")
        self._lock = threading.Lock()
        self._snapshot = IdentitySnapshot(loading=True)
        self._listeners: List[Listener] = []

    def snapshot(self) -> IdentitySnapshot:
        with self._lock:
            return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def begin_loading(self) -> None:
        self._set(IdentitySnapshot(loading=True))

    def finish_loading(self) -> None:
        with self._lock:
            current = self._snapshot
        self._set(current.model_copy(update={"loading": False}))

    def sign_in(self, principal: Principal) -> None:
        self._set(IdentitySnapshot(user=principal, role=principal.role, loading=False))
        self.logger.info("Signed in: user_id=%s role=%s", principal.id, getattr(principal.role, "value", None))

    def sign_out(self) -> None:
        with self._lock:
            user = self._snapshot.user
        if user is not None and self._revoke is not None:
            self._revoke(user)
        self._set(IdentitySnapshot(loading=False))
        if user is not None:
            self.logger.info("Signed out: user_id=%s", user.id)

    def _set(self, snap: IdentitySnapshot) -> None:
        with self._lock:
            self._snapshot = snap
            listeners = list(self._listeners)
        for fn in listeners:
            fn(snap)
