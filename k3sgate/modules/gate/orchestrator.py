"""Readiness gate control loop.

Rounds run in lock-step: every still-failing target is re-probed together,
then the whole gate backs off before the next round. Round 1 fires at once,
so a cluster that is already up passes after a single round with no delay.
"""
import logging
import threading
import time
from typing import Callable, Iterable, List, Optional

from .backoff import BackoffPolicy
from .executor import RoundExecutor
from .models import GateState, GateStatus, Report, RoundResult, Target, TerminationReason
from .reporter import Reporter
from .settings import GateSettings

logger = logging.getLogger("gate.orchestrator")


class ReadinessGate:
    """Wait until a probe passes for every target, or give up.

    Args:
        probe: Probe run against each target every round
        settings: Attempts, backoff and timeout policy
        reporter: Where the final report goes; defaults to an in-memory reporter
        clock: Monotonic time source
        sleep: Backoff sleep; defaults to a sleep that :meth:`cancel` interrupts
    """

    def __init__(
        self,
        probe,
        settings: Optional[GateSettings] = None,
        reporter: Optional[Reporter] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.probe = probe
        self.settings = settings or GateSettings()
        self.reporter = reporter or Reporter.for_probe(probe)
        self.backoff = BackoffPolicy(self.settings.base_delay, self.settings.max_delay)
        self.executor = RoundExecutor(
            probe,
            probe_timeout=self.settings.probe_timeout,
            grace=self.settings.grace,
            max_workers=self.settings.max_workers,
        )
        self._clock = clock
        self._cancelled = threading.Event()
        self._sleep = sleep or self._cancelled.wait

    def cancel(self) -> None:
        """Stop after the in-flight round. Safe to call from any thread."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self, targets: Iterable[Target]) -> Report:
        """Run the gate to a terminal state and publish the report."""
        targets = list(dict.fromkeys(targets))
        settings = self.settings
        state = GateState(remaining=frozenset(targets))
        history: List[RoundResult] = []
        start = self._clock()

        if not targets:
            state.status = GateStatus.DONE_SUCCESS_IMMEDIATE
            return self._finish(targets, state, history, TerminationReason.NO_TARGETS)

        logger.info(f"Starting {self.probe.name} readiness gate for {len(targets)} targets")
        logger.info(
            f"Configuration: MAX_ATTEMPTS={settings.max_attempts}, BASE_DELAY={settings.base_delay}, "
            f"MAX_DELAY={settings.max_delay}, TIMEOUT={settings.timeout}, "
            f"PROBE_TIMEOUT={settings.probe_timeout}"
        )
        state.status = GateStatus.PROBING

        while True:
            state.elapsed = self._clock() - start
            if state.attempt > settings.max_attempts:
                reason = TerminationReason.ATTEMPTS_EXHAUSTED
                break
            if state.elapsed >= settings.timeout:
                logger.error(f"Timeout reached after {state.elapsed:.0f}s (limit: {settings.timeout:.0f}s)")
                reason = TerminationReason.DEADLINE
                break
            if self.cancelled:
                reason = TerminationReason.CANCELLED
                break

            logger.info(f"Attempt {state.attempt}/{settings.max_attempts} (elapsed: {state.elapsed:.0f}s)")
            pending = [t for t in targets if t in state.remaining]
            result = self.executor.run_round(pending, attempt=state.attempt)
            history.append(result)
            state.rounds += 1
            state.mark_ready(result.succeeded)
            state.elapsed = self._clock() - start
            self._log_round(result)

            if not state.remaining:
                logger.info(f"🎉 All {len(targets)} targets ready after {state.elapsed:.0f}s "
                            f"(attempt {state.attempt})")
                state.status = GateStatus.DONE_SUCCESS
                return self._finish(targets, state, history, TerminationReason.ALL_READY)

            if state.attempt >= settings.max_attempts:
                state.attempt += 1
                continue

            time_left = settings.timeout - state.elapsed
            if time_left <= 0:
                continue

            delay = min(self.backoff.delay(state.attempt), time_left)
            logger.info(f"Waiting {delay:.0f}s before next attempt ({len(state.remaining)} targets still pending)")
            self._sleep(delay)
            state.attempt += 1

        state.status = GateStatus.DONE_PARTIAL
        logger.error(f"❌ {self.probe.name} readiness gate failed for {len(state.remaining)} targets "
                     f"({reason.value}):")
        for target in targets:
            if target in state.remaining:
                logger.error(f"  - {target}")
        return self._finish(targets, state, history, reason)

    def _log_round(self, result: RoundResult) -> None:
        for outcome in result.outcomes:
            if outcome.succeeded:
                logger.info(f"✅ {outcome.target} - ready")
            else:
                logger.info(f"⏳ {outcome.target} - not ready: {outcome.detail}")
        total = len(result.outcomes)
        logger.info(f"Round complete: {len(result.succeeded)}/{total} targets ready")

    def _finish(self, targets: List[Target], state: GateState, history: List[RoundResult],
                reason: TerminationReason) -> Report:
        report = self.reporter.build(targets, state, history, reason)
        self.reporter.publish(report)
        return report


def wait_for_targets(probe, targets: Iterable[Target], settings: Optional[GateSettings] = None,
                     reporter: Optional[Reporter] = None) -> Report:
    """Run a readiness gate with default clock and sleep."""
    return ReadinessGate(probe, settings=settings, reporter=reporter).run(targets)


def check_once(probe, targets: Iterable[Target], probe_timeout: float, grace: float = 10.0) -> RoundResult:
    """Probe every target once, without retry or backoff."""
    return RoundExecutor(probe, probe_timeout=probe_timeout, grace=grace).run_round(targets)
