"""Run one probing round: every remaining target, in parallel, exactly once."""
import logging
import math
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Dict, Iterable, List, Optional

from .models import ProbeOutcome, RoundResult, Target, utcnow

logger = logging.getLogger("gate.executor")

WAIT_TIMEOUT_DETAIL = "timed out waiting for probe"


class RoundExecutor:
    """Fans a probe out over a set of targets and joins every result.

    Each target gets its own worker (optionally capped by ``max_workers``).
    A probe that has not returned within ``probe_timeout + grace`` is recorded
    as failed; the executor does not wait for its thread. A probe that raises
    is recorded as failed with the error text. Neither affects other targets.
    """

    def __init__(self, probe, probe_timeout: float, grace: float = 10.0, max_workers: Optional[int] = None):
        self.probe = probe
        self.probe_timeout = probe_timeout
        self.grace = grace
        self.max_workers = max_workers

    def wait_budget(self, count: int) -> float:
        """Seconds to wait for ``count`` probes before forcing timeouts."""
        workers = self._workers(count)
        waves = math.ceil(count / workers) if workers else 0
        return waves * (self.probe_timeout + self.grace)

    def _workers(self, count: int) -> int:
        if count <= 0:
            return 0
        if self.max_workers:
            return min(self.max_workers, count)
        return count

    def _invoke(self, target: Target, attempt: int) -> ProbeOutcome:
        return self.probe.probe(target, self.probe_timeout, attempt=attempt)

    def _collect(self, future: Future, target: Target, attempt: int) -> ProbeOutcome:
        try:
            outcome = future.result()
        except Exception as e:
            logger.warning(f"Probe crashed for {target}: {e}")
            logger.debug("Probe traceback", exc_info=True)
            return ProbeOutcome(target=target, succeeded=False,
                                detail=str(e) or e.__class__.__name__, attempt=attempt)
        if not isinstance(outcome, ProbeOutcome) or outcome.target != target:
            logger.warning(f"Probe returned an unexpected result for {target}: {outcome!r}")
            return ProbeOutcome(target=target, succeeded=False,
                                detail=f"invalid probe result: {outcome!r}", attempt=attempt)
        return outcome

    def run_round(self, targets: Iterable[Target], attempt: int = 1) -> RoundResult:
        """Probe every target once and partition the outcomes.

        Returns only after every target has an outcome.
        """
        targets = list(dict.fromkeys(targets))
        if not targets:
            return RoundResult.from_outcomes([])

        workers = self._workers(len(targets))
        budget = self.wait_budget(len(targets))
        logger.debug(f"Round {attempt}: probing {len(targets)} targets with {workers} workers "
                     f"(wait budget {budget:.1f}s)")

        outcomes: Dict[Target, ProbeOutcome] = {}
        started = time.monotonic()
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"probe-{self.probe.name}")
        try:
            future_to_target = {
                executor.submit(self._invoke, target, attempt): target
                for target in targets
            }
            try:
                for future in as_completed(future_to_target, timeout=budget):
                    target = future_to_target[future]
                    outcomes[target] = self._collect(future, target, attempt)
            except FuturesTimeoutError:
                for future, target in future_to_target.items():
                    if target in outcomes:
                        continue
                    if future.done():
                        outcomes[target] = self._collect(future, target, attempt)
                        continue
                    future.cancel()
                    logger.warning(f"Probe for {target} still running after {budget:.1f}s, marking failed")
                    outcomes[target] = ProbeOutcome(
                        target=target,
                        succeeded=False,
                        detail=WAIT_TIMEOUT_DETAIL,
                        observed_at=utcnow(),
                        attempt=attempt,
                        duration=time.monotonic() - started,
                    )
        finally:
            # Hung probe threads are abandoned, not joined.
            executor.shutdown(wait=False, cancel_futures=True)

        return RoundResult.from_outcomes([outcomes[t] for t in targets])
