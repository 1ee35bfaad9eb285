import threading
import time

from k3sgate.modules.gate.executor import WAIT_TIMEOUT_DETAIL, RoundExecutor
from k3sgate.modules.gate.models import Target
from k3sgate.modules.probes import FunctionProbe

from .helpers import ScheduledProbe


def test_every_target_gets_exactly_one_outcome(m1, m2):
    probe = ScheduledProbe({"m1": 1, "m2": None})
    result = RoundExecutor(probe, probe_timeout=5).run_round([m1, m2], attempt=1)

    assert [o.target for o in result.outcomes] == [m1, m2]
    assert result.succeeded == frozenset({m1})
    assert result.still_failing == frozenset({m2})
    assert probe.calls == {"m1": 1, "m2": 1}
    assert all(o.attempt == 1 for o in result.outcomes)


def test_empty_round():
    result = RoundExecutor(ScheduledProbe({}), probe_timeout=5).run_round([])
    assert result.outcomes == []
    assert result.all_succeeded


def test_probes_run_concurrently():
    targets = [Target(f"10.0.0.{i}", f"n{i}") for i in range(1, 6)]
    barrier = threading.Barrier(len(targets), timeout=5)

    def wait_for_everyone(target, timeout):
        # Only passes if all five probes are in flight at once.
        barrier.wait()
        return True

    result = RoundExecutor(FunctionProbe(wait_for_everyone), probe_timeout=5).run_round(targets)
    assert result.all_succeeded


def test_crashing_probe_is_isolated(m1, m2):
    def flaky(target, timeout):
        if target.label == "m1":
            raise RuntimeError("probe exploded")
        return True, "ok"

    result = RoundExecutor(FunctionProbe(flaky), probe_timeout=5).run_round([m1, m2])

    outcomes = {o.target.label: o for o in result.outcomes}
    assert not outcomes["m1"].succeeded
    assert outcomes["m1"].detail == "probe exploded"
    assert outcomes["m2"].succeeded


def test_malformed_address_recorded_as_failure(m1):
    bad = Target("999.0.0.1", "bad")
    result = RoundExecutor(FunctionProbe(lambda t, timeout: True), probe_timeout=5).run_round([bad, m1])

    outcomes = {o.target.label: o for o in result.outcomes}
    assert not outcomes["bad"].succeeded
    assert "Malformed address" in outcomes["bad"].detail
    assert outcomes["m1"].succeeded


def test_hung_probe_is_forced_to_fail(m1, m2):
    release = threading.Event()

    def hang_on_m1(target, timeout):
        if target.label == "m1":
            release.wait(10)
        return True, "ok"

    executor = RoundExecutor(FunctionProbe(hang_on_m1), probe_timeout=0.1, grace=0.1)
    started = time.monotonic()
    try:
        result = executor.run_round([m1, m2])
    finally:
        release.set()

    assert time.monotonic() - started < 5
    outcomes = {o.target.label: o for o in result.outcomes}
    assert not outcomes["m1"].succeeded
    assert outcomes["m1"].detail == WAIT_TIMEOUT_DETAIL
    assert outcomes["m2"].succeeded


def test_wait_budget_scales_with_worker_cap():
    executor = RoundExecutor(ScheduledProbe({}), probe_timeout=10, grace=5, max_workers=2)
    assert executor.wait_budget(2) == 15
    assert executor.wait_budget(5) == 45


def test_worker_cap_still_probes_everything():
    targets = [Target(f"10.0.1.{i}", f"w{i}") for i in range(1, 8)]
    probe = ScheduledProbe({t.label: 1 for t in targets})
    result = RoundExecutor(probe, probe_timeout=5, max_workers=2).run_round(targets)
    assert result.succeeded == frozenset(targets)
    assert sum(probe.calls.values()) == 7
