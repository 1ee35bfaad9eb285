import threading
from collections import Counter

from k3sgate.modules.probes import FunctionProbe


class FakeClock:
    """Monotonic clock that only moves when slept on."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []
        self._lock = threading.Lock()

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds):
        with self._lock:
            self.now += seconds


class ScheduledProbe(FunctionProbe):
    """Stub probe: each label becomes ready on a given call number (None = never)."""

    def __init__(self, ready_on, name="stub"):
        self.ready_on = dict(ready_on)
        self.calls = Counter()
        self._lock = threading.Lock()
        super().__init__(self._answer, name=name)

    def _answer(self, target, timeout):
        with self._lock:
            self.calls[target.label] += 1
            call = self.calls[target.label]
        ready_on = self.ready_on.get(target.label)
        if ready_on is not None and call >= ready_on:
            return True, "ready"
        return False, f"not ready (call {call})"
