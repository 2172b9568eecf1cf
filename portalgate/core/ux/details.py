from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from portalgate.core.directory.base import Directory
from portalgate.core.logger import get_logger

DetailsKey = Tuple[Optional[str], Optional[str]]


@dataclass(frozen=True)
class OverlayDetails:
    client_name: Optional[str] = None
    contact_name: Optional[str] = None
    contact_role: Optional[str] = None


class OverlayDetailsLoader:
    """
    Best-effort display lookups for the active simulation scoping.

    Results are keyed by ``(client_id, contact_id)``. Only the most recently
    requested key is kept; a lookup that completes for any other key is stale and
    is dropped. Lookup failures degrade to an omitted detail.
    Without an executor, lookups run inline.
    """

    def __init__(self, directory: Optional[Directory], *, executor: Optional[Executor] = None, logger: Optional[logging.Logger] = None):
        self.directory = directory
        self.executor = executor
        self.logger = logger or get_logger("banners")
        self._lock = threading.Lock()
        self._current: Optional[DetailsKey] = None
        self._results: Dict[DetailsKey, OverlayDetails] = {}
        self._inflight: Dict[DetailsKey, Future] = {}
        self.discarded = 0

    def request(self, key: DetailsKey) -> Optional[Future]:
        with self._lock:
            if key != self._current:
                self._current = key
                self._results = {k: v for k, v in self._results.items() if k == key}
            if key in self._results or key in self._inflight or self.directory is None:
                return self._inflight.get(key)
            if self.executor is None:
                inline = True
            else:
                inline = False
                fut = self.executor.submit(self._fetch, key)
                self._inflight[key] = fut
        if inline:
            self._store(key, self._fetch(key))
            return None
        fut.add_done_callback(lambda f, k=key: self._on_done(k, f))
        return fut

    def details(self, key: DetailsKey) -> Optional[OverlayDetails]:
        with self._lock:
            if key != self._current:
                return None
            return self._results.get(key)

    def invalidate(self) -> None:
        with self._lock:
            self._current = None
            self._results.clear()

    # ---- internals ----
    def _on_done(self, key: DetailsKey, fut: Future) -> None:
        with self._lock:
            self._inflight.pop(key, None)
        exc = fut.exception()
        if exc is not None:
            self.logger.debug("Overlay details lookup failed for %s: %s", key, exc)
            self._store(key, OverlayDetails())
            return
        self._store(key, fut.result())

    def _store(self, key: DetailsKey, details: OverlayDetails) -> None:
        with self._lock:
            if key != self._current:
                self.discarded += 1
                return
            self._results[key] = details

    def _fetch(self, key: DetailsKey) -> OverlayDetails:
        client_id, contact_id = key
        client_name = contact_name = contact_role = None
        if client_id:
            try:
                rec = self.directory.client(client_id) if self.directory is not None else None
                client_name = rec.name if rec else None
            except Exception as e:  # noqa: BLE001
                self.logger.debug("Client lookup failed (%s): %s", client_id, e)
        if contact_id:
            try:
                rec = self.directory.contact(contact_id) if self.directory is not None else None
                if rec is not None:
                    contact_name, contact_role = rec.name, rec.role
            except Exception as e:  # noqa: BLE001
                self.logger.debug("Contact lookup failed (%s): %s", contact_id, e)
        return OverlayDetails(client_name=client_name, contact_name=contact_name, contact_role=contact_role)
