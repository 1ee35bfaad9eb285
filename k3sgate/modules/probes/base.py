"""Probe interface shared by every readiness check.

A probe answers one question for one target: is it ready right now? The gate
engine only ever calls :meth:`Probe.probe`, which wraps the concrete
:meth:`Probe.check` with timing, per-attempt timeout enforcement and outcome
construction, so implementations only have to say yes or no and why.
"""
import logging
import socket
import subprocess
import time
from typing import Callable, Tuple

import requests

from ..gate.models import ProbeOutcome, Target, utcnow

logger = logging.getLogger("probes")

TIMEOUT_DETAIL = "timeout"

# Raised by the libraries probes use when they hit their own timeout.
TIMEOUT_ERRORS = (subprocess.TimeoutExpired, requests.Timeout, socket.timeout, TimeoutError)

# Ordinary "not ready yet" failures. Anything else is a bug and propagates.
TRANSIENT_ERRORS = (OSError, requests.RequestException, subprocess.SubprocessError)


class ProbeTimeoutError(TimeoutError):
    """The per-attempt budget ran out before the check finished."""
    pass


class AttemptBudget:
    """Wall-clock budget for a single probe attempt.

    Multi-step checks (ping, then ssh) draw from one budget so the whole
    attempt respects the per-attempt timeout.
    """

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic):
        self.timeout = float(timeout)
        self._clock = clock
        self._deadline = clock() + self.timeout

    def remaining(self) -> float:
        """Seconds left; raises ProbeTimeoutError once exhausted."""
        left = self._deadline - self._clock()
        if left <= 0:
            raise ProbeTimeoutError(TIMEOUT_DETAIL)
        return left

    @property
    def expired(self) -> bool:
        return self._deadline - self._clock() <= 0


class Probe:
    """Base class for readiness probes."""

    name = "probe"

    def check(self, target: Target, budget: AttemptBudget) -> Tuple[bool, str]:
        """Run the check. Return ``(ready, detail)``.

        Implementations must pass ``budget.remaining()`` as the timeout of
        every blocking call they make.
        """
        raise NotImplementedError

    def probe(self, target: Target, timeout: float, attempt: int = 0) -> ProbeOutcome:
        """Probe one target, never raising for ordinary failures.

        Raises:
            TargetFormatError: if the target address is malformed
        """
        target.validate()
        start = time.monotonic()
        budget = AttemptBudget(timeout)
        try:
            succeeded, detail = self.check(target, budget)
        except TIMEOUT_ERRORS:
            succeeded, detail = False, TIMEOUT_DETAIL
        except TRANSIENT_ERRORS as e:
            succeeded, detail = False, str(e) or e.__class__.__name__

        duration = time.monotonic() - start
        logger.debug("%s %s -> %s (%s) in %.2fs", self.name, target, succeeded, detail, duration)
        return ProbeOutcome(
            target=target,
            succeeded=bool(succeeded),
            detail=detail,
            observed_at=utcnow(),
            attempt=attempt,
            duration=duration,
        )

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r})"


class FunctionProbe(Probe):
    """Adapt a plain callable ``fn(target, timeout) -> bool | (bool, detail)``."""

    def __init__(self, fn: Callable, name: str = "function", enforce_timeout: bool = False):
        self.fn = fn
        self.name = name
        self.enforce_timeout = enforce_timeout

    def check(self, target: Target, budget: AttemptBudget) -> Tuple[bool, str]:
        result = self.fn(target, budget.timeout)
        if isinstance(result, tuple):
            ready, detail = result
        else:
            ready, detail = bool(result), "ready" if result else "not ready"
        if self.enforce_timeout and budget.expired:
            raise ProbeTimeoutError(TIMEOUT_DETAIL)
        return ready, detail
