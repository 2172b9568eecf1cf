from __future__ import annotations

from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self._t = float(start)

    def time(self) -> float:
        return self._t

    def advance(self, seconds: float) -> None:
        self._t += float(seconds)


class FakeTimer:
    def __init__(self, interval: float, fn: Callable[[], Any]):
        self.interval = interval
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> Any:
        return self.fn()


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, fn: Callable[[], Any]) -> FakeTimer:
        t = FakeTimer(interval, fn)
        self.timers.append(t)
        return t

    @property
    def live(self) -> List[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]


class FlakyRevoke:
    """Identity backend hook that fails the first ``failures`` calls."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0

    def __call__(self, _principal) -> None:  # noqa: ANN001
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("identity backend unavailable")


@dataclass
class RecordingAuditLogger:
    entries: List[Dict[str, Any]] = field(default_factory=list)

    def log(self, **kwargs: Any) -> None:
        self.entries.append(dict(kwargs))

    def events(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        return [e for e in self.entries if name is None or e.get("event") == name]


class ManualExecutor(Executor):
    """Queues submitted work until the test decides to run it."""

    def __init__(self) -> None:
        self.pending: List[Tuple[Future, Callable[..., Any], tuple, dict]] = []

    def submit(self, fn, /, *args, **kwargs):  # noqa: ANN001
        fut: Future = Future()
        self.pending.append((fut, fn, args, kwargs))
        return fut

    def run_next(self) -> None:
        fut, fn, args, kwargs = self.pending.pop(0)
        self._run(fut, fn, args, kwargs)

    def run_all(self) -> None:
        while self.pending:
            self.run_next()

    @staticmethod
    def _run(fut: Future, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        if not fut.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args, **kwargs)
        except Exception as e:  # noqa: BLE001
            fut.set_exception(e)
        else:
            fut.set_result(result)
